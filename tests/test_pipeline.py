from datetime import datetime, timezone

from hushmap.aggregation.pipeline import PinPipeline
from hushmap.aggregation.snapshot import ReportSnapshotStore
from hushmap.config import PrivacyLocationConfig
from hushmap.models import FilterOptions, PlaceCandidate, RawReport


def _base_report(**overrides) -> RawReport:
    payload = {
        "report_id": "r1",
        "lat": 52.52,
        "lon": 13.405,
        "noise": 0.2,
        "crowds": 0.3,
        "lighting": 0.4,
        "timestamp": datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc),
    }
    payload.update(overrides)
    return RawReport.model_validate(payload)


def test_run_uses_current_generation():
    store = ReportSnapshotStore([_base_report(), _base_report(report_id="r2")])
    pipeline = PinPipeline(store, PrivacyLocationConfig())
    first = pipeline.run(FilterOptions())
    assert first.generation == 0
    assert len(first.pins) == 1
    assert first.pins[0].report_count == 2

    store.replace([_base_report(), _base_report(report_id="r2", lat=52.6)])
    second = pipeline.run(FilterOptions())
    assert second.generation == 1
    assert len(second.pins) == 2
    assert pipeline.latest is second


def test_repeated_run_reuses_projection():
    store = ReportSnapshotStore([_base_report()])
    pipeline = PinPipeline(store, PrivacyLocationConfig())
    pipeline.run(FilterOptions())
    pipeline.run(FilterOptions())
    assert pipeline.projector.recomputations == 1


def test_unclustered_run_applies_cap():
    reports = [_base_report(report_id=f"r{i}") for i in range(5)]
    pipeline = PinPipeline(ReportSnapshotStore(reports), PrivacyLocationConfig(), max_pins=2)
    result = pipeline.run(FilterOptions(), cluster_enabled=False)
    assert len(result.pins) == 2


def test_stale_reports_resolved_before_aggregation():
    looked_up = []

    def lookup(report):
        looked_up.append(report.report_id)
        return [PlaceCandidate(name="Cafe Luna", lat=report.lat, lon=report.lon)]

    labelled = _base_report(
        report_id="r2",
        lat=52.6,
        display_name="Torstraße",
        display_tier="street",
        resolution_version=PrivacyLocationConfig().rules_version,
    )
    store = ReportSnapshotStore([_base_report(), labelled])
    pipeline = PinPipeline(store, PrivacyLocationConfig(), candidate_lookup=lookup)
    result = pipeline.run(FilterOptions(), sort_by_recent=False)
    assert looked_up == ["r1"]
    assert [pin.display_name for pin in result.pins] == ["Cafe Luna", "Torstraße"]
    assert pipeline.stats.direct_poi == 1


def test_debounced_request_publishes_on_flush():
    published = []
    store = ReportSnapshotStore([_base_report()])
    pipeline = PinPipeline(
        store, PrivacyLocationConfig(), debounce_seconds=60.0, on_result=published.append
    )
    pipeline.request(FilterOptions(max_noise=0.1))
    pipeline.request(FilterOptions())
    assert pipeline.flush() is True
    assert len(published) == 1
    assert len(published[0].pins) == 1


def test_submitter_area_only_request_survives_pipeline():
    def lookup(report):
        return [PlaceCandidate(name="Cafe Luna", lat=report.lat, lon=report.lon)]

    store = ReportSnapshotStore([_base_report(user_requested_area_only=True)])
    pipeline = PinPipeline(store, PrivacyLocationConfig(), candidate_lookup=lookup)
    result = pipeline.run(FilterOptions())
    assert result.pins[0].display_name is None
    assert pipeline.stats.area == 1
    assert pipeline.stats.direct_poi == 0


def test_candidate_lookup_runs_outside_pipeline_lock():
    lock_held = []
    pipeline = None

    def lookup(report):
        lock_held.append(pipeline._lock.locked())
        return []

    store = ReportSnapshotStore([_base_report()])
    pipeline = PinPipeline(store, PrivacyLocationConfig(), candidate_lookup=lookup)
    pipeline.run(FilterOptions())
    assert lock_held == [False]

import threading
from datetime import datetime, timezone

from hushmap.aggregation.snapshot import Debouncer, ReportSnapshotStore
from hushmap.models import RawReport


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


def test_replace_bumps_generation_and_keeps_old_snapshot():
    store = ReportSnapshotStore([_base_report()])
    before = store.current()
    after = store.replace([_base_report(report_id="r2"), _base_report(report_id="r3")])
    assert before.generation == 0
    assert len(before) == 1
    assert after.generation == 1
    assert len(after) == 2
    assert store.current() is after


def test_snapshot_is_decoupled_from_source_list():
    reports = [_base_report()]
    store = ReportSnapshotStore()
    store.replace(reports)
    reports.append(_base_report(report_id="r2"))
    assert len(store.current()) == 1


def test_debouncer_runs_only_last_request_on_flush():
    calls = []
    debouncer = Debouncer(60.0, calls.append)
    debouncer.schedule(1)
    debouncer.schedule(2)
    debouncer.schedule(3)
    assert debouncer.pending
    assert debouncer.flush() is True
    assert calls == [3]
    assert debouncer.flush() is False


def test_debouncer_cancel_drops_pending():
    calls = []
    debouncer = Debouncer(60.0, calls.append)
    debouncer.schedule(1)
    debouncer.cancel()
    assert not debouncer.pending
    assert debouncer.flush() is False
    assert calls == []


def test_debouncer_fires_after_delay():
    done = threading.Event()
    calls = []

    def callback(value):
        calls.append(value)
        done.set()

    debouncer = Debouncer(0.01, callback)
    debouncer.schedule("a")
    debouncer.schedule("b")
    assert done.wait(5.0)
    assert calls == ["b"]

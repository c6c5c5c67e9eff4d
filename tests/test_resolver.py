import logging
import math
from datetime import datetime, timezone

import pytest

from hushmap.config import PrivacyLocationConfig
from hushmap.errors import InvalidCoordinate
from hushmap.geo import EARTH_RADIUS_M
from hushmap.location.resolver import (
    STATS_LOG_EVERY,
    ResolutionStats,
    classify_confidence,
    needs_resolution,
    resolve_location,
    resolve_report,
)
from hushmap.models import Coordinate, DisplayTier, PlaceCandidate, RawReport, StreetMatch
from hushmap.utils.text import NEARBY_AREA


ORIGIN = Coordinate(lat=52.52, lon=13.405)
METERS_PER_DEGREE = EARTH_RADIUS_M * math.pi / 180.0


def _candidate(name: str, north_m: float, **overrides) -> PlaceCandidate:
    payload = {
        "name": name,
        "lat": ORIGIN.lat + north_m / METERS_PER_DEGREE,
        "lon": ORIGIN.lon,
        "place_id": f"place-{name.lower().replace(' ', '-')}",
    }
    payload.update(overrides)
    return PlaceCandidate.model_validate(payload)


def _base_report(**overrides) -> RawReport:
    payload = {
        "report_id": "r1",
        "lat": ORIGIN.lat,
        "lon": ORIGIN.lon,
        "noise": 0.2,
        "crowds": 0.3,
        "lighting": 0.4,
        "timestamp": datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc),
    }
    payload.update(overrides)
    return RawReport.model_validate(payload)


def test_close_candidate_resolves_direct_poi():
    config = PrivacyLocationConfig()
    resolved = resolve_location(ORIGIN, [_candidate("Cafe Luna", 5.0, types=["cafe"])], config)
    assert resolved.tier is DisplayTier.POI
    assert resolved.hedge is False
    assert resolved.label == "Cafe Luna"
    assert resolved.place_id == "place-cafe-luna"
    assert resolved.confidence == 1.0


def test_moderate_confidence_is_hedged_not_street():
    config = PrivacyLocationConfig(
        min_confidence_direct_poi=0.8,
        min_confidence_hedged_poi=0.5,
        snap_window_meters=5.0,
    )
    # 14 m at a 35 m radius decays to 0.6
    resolved = resolve_location(
        ORIGIN,
        [_candidate("Book Nook", 14.0)],
        config,
        street=StreetMatch(label="Torstraße"),
    )
    assert resolved.tier is DisplayTier.POI
    assert resolved.hedge is True
    assert resolved.confidence == pytest.approx(0.6)


def test_low_confidence_falls_back_to_street():
    config = PrivacyLocationConfig()
    resolved = resolve_location(
        ORIGIN,
        [_candidate("Distant Deli", 30.0)],
        config,
        street=StreetMatch(label="  Torstraße ", confidence=0.75),
        area_name="Mitte",
    )
    assert resolved.tier is DisplayTier.STREET
    assert resolved.label == "Torstraße"
    assert resolved.confidence == 0.75


def test_no_street_falls_back_to_area_with_nonzero_confidence():
    config = PrivacyLocationConfig()
    resolved = resolve_location(ORIGIN, [], config, area_name="Mitte")
    assert resolved.tier is DisplayTier.AREA
    assert resolved.label == "Mitte"
    assert 0.0 < resolved.confidence < 1.0
    assert resolved.confidence == config.area_fallback_confidence


def test_area_only_override_wins_over_everything():
    config = PrivacyLocationConfig().with_updates(area_only_override=True)
    resolved = resolve_location(
        ORIGIN,
        [_candidate("Cafe Luna", 0.0, types=["cafe"])],
        config,
        street=StreetMatch(label="Torstraße"),
        area_name="Mitte",
    )
    assert resolved.tier is DisplayTier.AREA
    assert resolved.label == "Mitte"
    assert resolved.confidence == 1.0


def test_user_area_only_request_acts_like_override():
    config = PrivacyLocationConfig()
    resolved = resolve_location(
        ORIGIN, [_candidate("Cafe Luna", 0.0)], config, area_name="Mitte", user_area_only=True
    )
    assert resolved.tier is DisplayTier.AREA
    assert resolved.confidence == 1.0


def test_enrichment_off_skips_candidates():
    config = PrivacyLocationConfig(use_places_enrichment=False)
    candidates = [_candidate("Cafe Luna", 0.0)]
    street = resolve_location(ORIGIN, candidates, config, street=StreetMatch(label="Torstraße"))
    area = resolve_location(ORIGIN, candidates, config, area_name="Mitte")
    assert street.tier is DisplayTier.STREET
    assert street.confidence == 0.7
    assert area.tier is DisplayTier.AREA
    assert area.label == "Mitte"


def test_candidate_beyond_radius_never_selected():
    config = PrivacyLocationConfig()
    resolved = resolve_location(ORIGIN, [_candidate("Far Cafe", 36.0, types=["cafe"])], config)
    assert resolved.tier is DisplayTier.AREA
    assert resolved.label == NEARBY_AREA


def test_synthetic_area_names_are_sanitised():
    config = PrivacyLocationConfig()
    resolved = resolve_location(ORIGIN, [], config, area_name="Grid 5135251")
    assert resolved.label == NEARBY_AREA


def test_sensitive_place_is_skipped_for_next_candidate():
    config = PrivacyLocationConfig()
    stats = ResolutionStats()
    resolved = resolve_location(
        ORIGIN,
        [_candidate("St. Mary's Church", 3.0), _candidate("Cafe Luna", 10.0, types=["cafe"])],
        config,
        stats=stats,
    )
    assert resolved.label == "Cafe Luna"
    assert resolved.tier is DisplayTier.POI
    assert stats.denylist_hits == 1
    assert stats.snaps == 1
    assert stats.direct_poi == 1


def test_only_sensitive_candidates_fall_back():
    config = PrivacyLocationConfig()
    resolved = resolve_location(
        ORIGIN, [_candidate("City Hospital", 1.0)], config, street=StreetMatch(label="Torstraße")
    )
    assert resolved.tier is DisplayTier.STREET


def test_accepts_plain_tuple_coordinate():
    config = PrivacyLocationConfig()
    resolved = resolve_location((52.52, 13.405), [], config, area_name="Mitte")
    assert resolved.tier is DisplayTier.AREA


@pytest.mark.parametrize("lat, lon", [(float("nan"), 13.4), (52.5, 181.0), (-95.0, 0.0)])
def test_invalid_coordinate_fails_fast(lat, lon):
    config = PrivacyLocationConfig().with_updates(area_only_override=True)
    with pytest.raises(InvalidCoordinate):
        resolve_location((lat, lon), [], config)


def test_resolution_is_idempotent():
    config = PrivacyLocationConfig()
    candidates = [_candidate("Cafe Luna", 12.0), _candidate("Inn", 20.0, types=["lodging"])]
    first = resolve_location(ORIGIN, candidates, config)
    second = resolve_location(ORIGIN, list(reversed(candidates)), config)
    assert first == second


def test_classify_confidence_bands():
    config = PrivacyLocationConfig()
    assert classify_confidence(0.8, config) == (DisplayTier.POI, False)
    assert classify_confidence(0.65, config) == (DisplayTier.POI, True)
    assert classify_confidence(0.64, config) is None


def test_needs_resolution():
    config = PrivacyLocationConfig()
    assert needs_resolution(_base_report(), config) is True
    current = _base_report(
        display_name="Cafe Luna", display_tier="poi", resolution_version=config.rules_version
    )
    assert needs_resolution(current, config) is False
    stale = _base_report(display_name="Cafe Luna", display_tier="poi", resolution_version=2)
    assert needs_resolution(stale, config) is True


def test_resolve_report_attaches_label():
    config = PrivacyLocationConfig()
    report = _base_report()
    resolved = resolve_report(report, [_candidate("Cafe Luna", 4.0)], config)
    assert resolved.display_name == "Cafe Luna"
    assert resolved.display_tier is DisplayTier.POI
    assert resolved.resolution_version == config.rules_version
    assert resolved.place_id == "place-cafe-luna"
    assert report.display_name is None
    assert needs_resolution(resolved, config) is False


def test_resolve_report_keeps_placeholder_unattached():
    config = PrivacyLocationConfig()
    report = _base_report()
    assert resolve_report(report, [], config, area_name="Zone 4") is report


def test_stats_summary_logged_and_reset(caplog):
    caplog.set_level(logging.INFO, logger="hushmap.location.resolver")
    config = PrivacyLocationConfig()
    stats = ResolutionStats()
    for _ in range(STATS_LOG_EVERY):
        resolve_location(ORIGIN, [], config, area_name="Mitte", stats=stats)
    summaries = [r for r in caplog.records if r.getMessage().startswith("resolver.stats")]
    assert len(summaries) == 1
    assert f"area={STATS_LOG_EVERY}" in summaries[0].getMessage()
    assert stats.total == 0


def test_weak_snapped_candidate_does_not_hide_qualifying_one():
    config = PrivacyLocationConfig(snap_bonus=0.0, min_confidence_hedged_poi=0.5)
    resolved = resolve_location(
        ORIGIN,
        [
            _candidate("Corner Kiosk", 17.0),
            _candidate("Grand Hotel", 20.0, types=["lodging"], rating=4.8, user_ratings_total=500),
        ],
        config,
        street=StreetMatch(label="Torstraße"),
    )
    assert resolved.tier is DisplayTier.POI
    assert resolved.label == "Grand Hotel"
    assert resolved.hedge is True


def test_stats_count_poi_below_hedge_threshold_as_hedged():
    config = PrivacyLocationConfig(confidence_hedge_threshold=0.95)
    stats = ResolutionStats()
    resolved = resolve_location(
        ORIGIN,
        [_candidate("St. Mary's Church", 3.0), _candidate("Cafe Luna", 10.0, types=["cafe"])],
        config,
        stats=stats,
    )
    # Direct label (about 0.91), but under the 0.95 reporting threshold
    assert resolved.hedge is False
    assert stats.hedged_poi == 1
    assert stats.direct_poi == 0


def test_resolve_report_honours_submitter_area_only_request():
    config = PrivacyLocationConfig()
    report = _base_report(user_requested_area_only=True)
    resolved = resolve_report(report, [_candidate("Cafe Luna", 4.0)], config, area_name="Mitte")
    assert resolved.display_tier is DisplayTier.AREA
    assert resolved.display_name == "Mitte"
    assert resolved.place_id is None

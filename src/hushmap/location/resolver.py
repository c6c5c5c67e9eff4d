"""Resolve a raw GPS fix into a privacy-tiered, confidence-calibrated label."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Tuple, Union

from hushmap.config.privacy import PrivacyLocationConfig
from hushmap.geo import validate_coordinate
from hushmap.location.scoring import ScoredCandidate, score_candidates
from hushmap.models import (
    Coordinate,
    DisplayTier,
    PlaceCandidate,
    RawReport,
    ResolvedLocation,
    StreetMatch,
)
from hushmap.utils.logging import get_logger
from hushmap.utils.text import is_synthetic_placeholder, normalize_whitespace, sanitize_area_name


logger = get_logger(__name__)

STATS_LOG_EVERY = 200

CoordinateLike = Union[Coordinate, Tuple[float, float]]


@dataclass
class ResolutionStats:
    """Outcome counters, summarised to the log every STATS_LOG_EVERY resolutions."""

    direct_poi: int = 0
    hedged_poi: int = 0
    street: int = 0
    area: int = 0
    snaps: int = 0
    denylist_hits: int = 0
    total: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(
        self,
        resolved: ResolvedLocation,
        hedge_threshold: float,
        snapped: bool = False,
        denylist_hits: int = 0,
    ) -> None:
        """Count one outcome. POI labels below `hedge_threshold` count as hedged."""
        with self._lock:
            if resolved.tier is DisplayTier.POI:
                if resolved.hedge or resolved.confidence < hedge_threshold:
                    self.hedged_poi += 1
                else:
                    self.direct_poi += 1
            elif resolved.tier is DisplayTier.STREET:
                self.street += 1
            else:
                self.area += 1
            if snapped:
                self.snaps += 1
            self.denylist_hits += denylist_hits
            self.total += 1
            if self.total >= STATS_LOG_EVERY:
                self._log_and_reset()

    def _log_and_reset(self) -> None:
        logger.info(
            "resolver.stats total=%s direct=%s hedged=%s street=%s area=%s snaps=%s denylist=%s",
            self.total,
            self.direct_poi,
            self.hedged_poi,
            self.street,
            self.area,
            self.snaps,
            self.denylist_hits,
        )
        self.direct_poi = 0
        self.hedged_poi = 0
        self.street = 0
        self.area = 0
        self.snaps = 0
        self.denylist_hits = 0
        self.total = 0


def classify_confidence(
    confidence: float, config: PrivacyLocationConfig
) -> Optional[Tuple[DisplayTier, bool]]:
    """Map a POI confidence to (tier, hedge), or None when it must fall back."""
    if confidence >= config.min_confidence_direct_poi:
        return DisplayTier.POI, False
    if confidence >= config.min_confidence_hedged_poi:
        return DisplayTier.POI, True
    return None


def _unpack(coordinate: CoordinateLike) -> Tuple[float, float]:
    if isinstance(coordinate, Coordinate):
        return coordinate.lat, coordinate.lon
    lat, lon = coordinate
    return lat, lon


def _area(area_name: Optional[str], confidence: float) -> ResolvedLocation:
    return ResolvedLocation(
        tier=DisplayTier.AREA,
        label=sanitize_area_name(area_name),
        confidence=confidence,
    )


def _street_or_area(
    street: Optional[StreetMatch],
    area_name: Optional[str],
    config: PrivacyLocationConfig,
) -> ResolvedLocation:
    if street is not None and normalize_whitespace(street.label):
        return ResolvedLocation(
            tier=DisplayTier.STREET,
            label=normalize_whitespace(street.label),
            confidence=street.confidence,
        )
    return _area(area_name, config.area_fallback_confidence)


def _pick_candidate(
    scored: list[ScoredCandidate], config: PrivacyLocationConfig
) -> tuple[Optional[ScoredCandidate], Optional[Tuple[DisplayTier, bool]], int]:
    """Return the first candidate that may be named and clears the hedged threshold.

    Snapped candidates sort first regardless of score, so a weak snapped match
    must not hide a qualifying unsnapped one further down. Also returns the tier
    decision and the number of sensitive candidates passed over.
    """
    skipped = 0
    for item in scored:
        if item.sensitive:
            skipped += 1
            continue
        decision = classify_confidence(item.confidence, config)
        if decision is not None:
            return item, decision, skipped
    return None, None, skipped


def resolve_location(
    coordinate: CoordinateLike,
    candidates: Iterable[PlaceCandidate],
    config: PrivacyLocationConfig,
    *,
    street: Optional[StreetMatch] = None,
    area_name: Optional[str] = None,
    horizontal_accuracy: Optional[float] = None,
    user_area_only: bool = False,
    stats: Optional[ResolutionStats] = None,
) -> ResolvedLocation:
    """Resolve one fix to a POI, street or area label.

    `street` and `area_name` are the caller's reverse-geocoding results; either
    may be missing. Never fails for lack of a match: the worst case is the area
    tier at `config.area_fallback_confidence`.

    Raises:
        InvalidCoordinate: lat/lon is NaN, infinite or out of range.
    """
    lat, lon = _unpack(coordinate)
    validate_coordinate(lat, lon)

    snapped = False
    denylist_hits = 0

    if config.area_only_override or user_area_only:
        resolved = _area(area_name, 1.0)
        logger.debug("resolver.area_only override=%s user=%s", config.area_only_override, user_area_only)
    elif not config.use_places_enrichment:
        resolved = _street_or_area(street, area_name, config)
    else:
        scored = score_candidates(lat, lon, candidates, config, horizontal_accuracy)
        best, decision, denylist_hits = _pick_candidate(scored, config)
        if best is not None and decision is not None:
            tier, hedge = decision
            snapped = best.snapped
            resolved = ResolvedLocation(
                tier=tier,
                label=best.candidate.name,
                confidence=best.confidence,
                hedge=hedge,
                place_id=best.candidate.place_id,
                open_now=best.candidate.open_now,
            )
        else:
            resolved = _street_or_area(street, area_name, config)

    logger.debug(
        "resolver.decision tier=%s hedge=%s confidence=%.3f",
        resolved.tier.value,
        resolved.hedge,
        resolved.confidence,
    )
    if stats is not None:
        stats.record(
            resolved,
            config.confidence_hedge_threshold,
            snapped=snapped,
            denylist_hits=denylist_hits,
        )
    return resolved


def needs_resolution(report: RawReport, config: PrivacyLocationConfig) -> bool:
    """True when a report has no usable label or was resolved under older rules."""
    if report.display_name is None or report.display_tier is None:
        return True
    if report.resolution_version is None or report.resolution_version < config.rules_version:
        return True
    return False


def resolve_report(
    report: RawReport,
    candidates: Iterable[PlaceCandidate],
    config: PrivacyLocationConfig,
    **kwargs: Any,
) -> RawReport:
    """Resolve a report's coordinate and return a copy carrying the result.

    The submitter's own area-only request is honoured even when the caller does
    not pass `user_area_only`. Synthetic placeholders ("Nearby area", "Grid 12")
    are not attached, so the consumer keeps showing its own placeholder.
    """
    if report.user_requested_area_only:
        kwargs["user_area_only"] = True
    resolved = resolve_location(report.coordinate, candidates, config, **kwargs)
    if is_synthetic_placeholder(resolved.label):
        return report
    return report.with_resolution(resolved, config.rules_version)

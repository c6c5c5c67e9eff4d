"""Score nearby place candidates against a raw GPS fix.

Confidence starts from a linear distance decay, `1 - d / poi_max_radius`, so
it reaches 0 at the radius bound. Bounded adjustments follow (type priority,
rating, popularity, dense competition, GPS accuracy, closed-now) plus a snap
bonus inside the snap window, and the result is clamped to [0, 1].

Ordering is: snapped before unsnapped, then higher confidence, then smaller
distance, then name. Candidates beyond the radius never appear.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from hushmap.config.privacy import PrivacyLocationConfig
from hushmap.geo import haversine_m
from hushmap.models import PlaceCandidate
from hushmap.utils.logging import debug_enabled, get_logger


logger = get_logger(__name__)

SENSITIVE_PLACE_TYPES = frozenset(
    {
        "hospital",
        "doctor",
        "dentist",
        "pharmacy",
        "physiotherapist",
        "school",
        "primary_school",
        "secondary_school",
        "university",
        "childcare",
        "church",
        "mosque",
        "synagogue",
        "hindu_temple",
        "place_of_worship",
        "police",
        "courthouse",
        "fire_station",
        "local_government_office",
        "homeless_shelter",
        "care_home",
        "funeral_home",
    }
)

SENSITIVE_NAME_RE = re.compile(
    r"\b(hospital|clinic|court|mosque|church|temple|synagogue|primary school|gp|surgery"
    r"|police|shelter|care home|childcare)\b",
    re.IGNORECASE,
)

TYPE_PRIORITY_BOOST = 0.12
TYPE_PRIORITY_STEP = 0.01
HIGH_RATING = 4.3
HIGH_RATING_BOOST = 0.06
POPULAR_RATINGS = 200
POPULAR_BOOST = 0.05
KNOWN_RATINGS = 50
KNOWN_BOOST = 0.02
COMPETITION_PENALTY = 0.12
ACCURACY_SOFT_M = 15.0
ACCURACY_SOFT_PENALTY = 0.08
ACCURACY_HARD_M = 30.0
ACCURACY_HARD_PENALTY = 0.07
CLOSED_NOW_PENALTY = 0.03


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate with its distance from the fix and calibrated confidence."""

    candidate: PlaceCandidate
    distance_m: float
    confidence: float
    snapped: bool
    sensitive: bool

    @property
    def sort_key(self) -> tuple[bool, float, float, str]:
        return (not self.snapped, -self.confidence, self.distance_m, self.candidate.name)


def is_sensitive_place(candidate: PlaceCandidate) -> bool:
    """True for places that must never be disclosed by name (clinics, schools, ...)."""
    if any(place_type in SENSITIVE_PLACE_TYPES for place_type in candidate.types):
        return True
    return bool(candidate.name and SENSITIVE_NAME_RE.search(candidate.name))


def distance_decay(distance_m: float, radius_m: float) -> float:
    """Linear falloff from 1 at the fix to 0 at the radius bound."""
    return max(0.0, 1.0 - distance_m / max(radius_m, 1.0))


def _type_boost(candidate: PlaceCandidate, priority: tuple[str, ...]) -> float:
    for index, place_type in enumerate(priority):
        if place_type in candidate.types:
            return TYPE_PRIORITY_BOOST - index * TYPE_PRIORITY_STEP
    return 0.0


def _popularity_boost(candidate: PlaceCandidate) -> float:
    boost = 0.0
    if candidate.rating is not None and candidate.rating >= HIGH_RATING:
        boost += HIGH_RATING_BOOST
    total = candidate.user_ratings_total
    if total is not None:
        if total >= POPULAR_RATINGS:
            boost += POPULAR_BOOST
        elif total >= KNOWN_RATINGS:
            boost += KNOWN_BOOST
    return boost


def _accuracy_penalty(horizontal_accuracy: Optional[float]) -> float:
    if horizontal_accuracy is None or horizontal_accuracy <= ACCURACY_SOFT_M:
        return 0.0
    penalty = ACCURACY_SOFT_PENALTY
    if horizontal_accuracy > ACCURACY_HARD_M:
        penalty += ACCURACY_HARD_PENALTY
    return penalty


def score_candidates(
    lat: float,
    lon: float,
    candidates: Iterable[PlaceCandidate],
    config: PrivacyLocationConfig,
    horizontal_accuracy: Optional[float] = None,
) -> List[ScoredCandidate]:
    """Rank candidates within `poi_max_radius_meters` of (lat, lon), best first."""
    in_range: list[tuple[PlaceCandidate, float]] = []
    for candidate in candidates:
        distance = haversine_m(lat, lon, candidate.lat, candidate.lon)
        if not math.isfinite(distance) or distance > config.poi_max_radius_meters:
            continue
        in_range.append((candidate, distance))

    accuracy_penalty = _accuracy_penalty(horizontal_accuracy)
    scored: list[ScoredCandidate] = []
    for index, (candidate, distance) in enumerate(in_range):
        snapped = distance <= config.snap_window_meters
        confidence = distance_decay(distance, config.poi_max_radius_meters)
        confidence += _type_boost(candidate, config.poi_type_priority)
        confidence += _popularity_boost(candidate)

        competing = any(
            abs(other_distance - distance) <= config.dense_competition_meters
            for other_index, (_, other_distance) in enumerate(in_range)
            if other_index != index
        )
        if competing:
            confidence -= COMPETITION_PENALTY

        confidence -= accuracy_penalty
        if candidate.open_now is False:
            confidence -= CLOSED_NOW_PENALTY
        if snapped:
            confidence += config.snap_bonus

        scored.append(
            ScoredCandidate(
                candidate=candidate,
                distance_m=distance,
                confidence=min(max(confidence, 0.0), 1.0),
                snapped=snapped,
                sensitive=is_sensitive_place(candidate),
            )
        )

    scored.sort(key=lambda item: item.sort_key)

    if debug_enabled(logger):
        for rank, item in enumerate(scored[:3], start=1):
            logger.debug(
                "scorer.candidate rank=%s name=%s distance_m=%.1f confidence=%.3f snapped=%s sensitive=%s",
                rank,
                item.candidate.name,
                item.distance_m,
                item.confidence,
                item.snapped,
                item.sensitive,
            )

    return scored

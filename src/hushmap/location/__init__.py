"""Location resolution package."""

from hushmap.location.identifier import LocationIdentifier, location_identifier
from hushmap.location.resolver import (
    ResolutionStats,
    classify_confidence,
    needs_resolution,
    resolve_location,
    resolve_report,
)
from hushmap.location.scoring import ScoredCandidate, is_sensitive_place, score_candidates

__all__ = [
    "LocationIdentifier",
    "location_identifier",
    "ResolutionStats",
    "classify_confidence",
    "needs_resolution",
    "resolve_location",
    "resolve_report",
    "ScoredCandidate",
    "is_sensitive_place",
    "score_candidates",
]

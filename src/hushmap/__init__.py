"""Privacy-aware location labelling and sensory report pin synthesis."""

from hushmap.aggregation import aggregate_reports, project_pins
from hushmap.config import PrivacyLocationConfig
from hushmap.errors import InconsistentConfigWarning, InvalidCoordinate
from hushmap.location import resolve_location

__all__ = [
    "aggregate_reports",
    "project_pins",
    "resolve_location",
    "PrivacyLocationConfig",
    "InvalidCoordinate",
    "InconsistentConfigWarning",
]

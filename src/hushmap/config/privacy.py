"""Privacy-aware location labelling thresholds.

A `PrivacyLocationConfig` is an immutable snapshot. It is passed explicitly to
every resolver call; changing a threshold means building a new snapshot with
`with_updates`, which re-runs validation and reports inconsistent settings at
the point of change rather than deep inside a resolution.
"""

from __future__ import annotations

import warnings
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hushmap.config.settings import Settings
from hushmap.errors import InconsistentConfigWarning
from hushmap.utils.logging import get_logger


logger = get_logger(__name__)

LOCATION_RULES_VERSION = 3

DEFAULT_POI_TYPE_PRIORITY: tuple[str, ...] = (
    "lodging",
    "supermarket",
    "grocery_or_supermarket",
    "pharmacy",
    "restaurant",
    "cafe",
    "bank",
    "book_store",
    "clothing_store",
    "shopping_mall",
    "department_store",
    "convenience_store",
)


class PrivacyLocationConfig(BaseModel):
    """Versioned, tunable threshold set read by every resolution call."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    rules_version: int = LOCATION_RULES_VERSION

    # Kill-switch: forces the area tier everywhere
    area_only_override: bool = False
    use_places_enrichment: bool = True

    confidence_hedge_threshold: float = 0.80
    poi_max_radius_meters: float = 35.0
    snap_window_meters: float = 18.0
    dense_competition_meters: float = 12.0
    min_confidence_direct_poi: float = 0.80
    min_confidence_hedged_poi: float = 0.65

    snap_bonus: float = 0.25
    area_fallback_confidence: float = 0.30
    poi_type_priority: tuple[str, ...] = Field(default=DEFAULT_POI_TYPE_PRIORITY)

    @field_validator(
        "confidence_hedge_threshold",
        "min_confidence_direct_poi",
        "min_confidence_hedged_poi",
        "snap_bonus",
    )
    @classmethod
    def _validate_unit_interval(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("must be within [0, 1]")
        return value

    @field_validator("area_fallback_confidence")
    @classmethod
    def _validate_area_fallback(cls, value: float) -> float:
        # Worst-case area fallback: low but nonzero.
        if not 0.0 < value < 1.0:
            raise ValueError("must be within (0, 1)")
        return value

    @field_validator("poi_max_radius_meters", "snap_window_meters", "dense_competition_meters")
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0.0:
            raise ValueError("must be > 0")
        return value

    @model_validator(mode="after")
    def _warn_on_inconsistency(self) -> "PrivacyLocationConfig":
        for problem in self.validate_consistency():
            logger.warning("privacy_config.inconsistent %s", problem)
            warnings.warn(problem, InconsistentConfigWarning, stacklevel=2)
        return self

    def validate_consistency(self) -> list[str]:
        """Return human-readable problems with the threshold ordering."""
        problems: list[str] = []
        if self.min_confidence_hedged_poi > self.min_confidence_direct_poi:
            problems.append(
                "min_confidence_hedged_poi="
                f"{self.min_confidence_hedged_poi} exceeds min_confidence_direct_poi="
                f"{self.min_confidence_direct_poi}; hedged POI labels can never be produced"
            )
        if self.snap_window_meters > self.poi_max_radius_meters:
            problems.append(
                f"snap_window_meters={self.snap_window_meters} exceeds "
                f"poi_max_radius_meters={self.poi_max_radius_meters}; "
                "snapped candidates beyond the radius are still discarded"
            )
        return problems

    @property
    def is_consistent(self) -> bool:
        return not self.validate_consistency()

    def with_updates(self, **changes: Any) -> "PrivacyLocationConfig":
        """Return a new validated snapshot with `changes` applied."""
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        return type(self).model_validate({**self.model_dump(), **changes})

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PrivacyLocationConfig":
        """Build a snapshot from environment-backed settings."""
        settings = settings or Settings()
        return cls(
            area_only_override=settings.area_only_override,
            use_places_enrichment=settings.use_places_enrichment,
            confidence_hedge_threshold=settings.confidence_hedge_threshold,
            poi_max_radius_meters=settings.poi_max_radius_meters,
            snap_window_meters=settings.snap_window_meters,
            dense_competition_meters=settings.dense_competition_meters,
            min_confidence_direct_poi=settings.min_confidence_direct_poi,
            min_confidence_hedged_poi=settings.min_confidence_hedged_poi,
        )

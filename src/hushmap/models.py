"""Core data models for location resolution and pin synthesis."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class DisplayTier(str, Enum):
    """Disclosure granularity, most specific first."""

    POI = "poi"
    STREET = "street"
    AREA = "area"


def _clamp_unit(value: float) -> float:
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so mixed inputs stay comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Coordinate(BaseModel):
    """A raw lat/lon fix. Range checks happen at resolution time."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    lat: float
    lon: float

    @model_validator(mode="before")
    @classmethod
    def _accept_lng(cls, data: object) -> object:
        if isinstance(data, dict) and "lon" not in data:
            for key in ("lng", "long", "longitude"):
                if key in data:
                    return {**data, "lon": data[key]}
        return data


class PlaceCandidate(BaseModel):
    """A nearby point of interest returned by an external places lookup."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    lat: float
    lon: float
    types: tuple[str, ...] = ()
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    open_now: Optional[bool] = None
    place_id: Optional[str] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)


class StreetMatch(BaseModel):
    """Street-level reverse geocoding result supplied by the caller."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    label: str
    confidence: float = 0.7

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return _clamp_unit(value)


class ResolvedLocation(BaseModel):
    """Outcome of one resolution: tier, label and calibrated confidence.

    `hedge` is set for moderate-confidence POI matches; rendering "near X" is
    left to the consumer (see `hushmap.utils.text.friendly_display_name`).
    """

    model_config = ConfigDict(frozen=True)

    tier: DisplayTier
    label: str
    confidence: float
    hedge: bool = False
    place_id: Optional[str] = None
    open_now: Optional[bool] = None

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return _clamp_unit(value)


class RawReport(BaseModel):
    """A persisted sensory report. Read-only for the core."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    report_id: Optional[str] = None
    lat: float
    lon: float
    noise: float
    crowds: float
    lighting: float
    comfort: Optional[float] = None
    quiet_score: Optional[int] = None
    timestamp: datetime
    submitted_by: Optional[str] = None
    display_name: Optional[str] = None
    display_tier: Optional[DisplayTier] = None
    confidence: Optional[float] = None
    open_now: Optional[bool] = None
    place_id: Optional[str] = None
    resolution_version: Optional[int] = None
    # Submitter asked for area-level disclosure only
    user_requested_area_only: bool = False

    @model_validator(mode="before")
    @classmethod
    def _derive_quiet_score(cls, data: object) -> object:
        if not isinstance(data, dict) or data.get("quiet_score") is not None:
            return data
        try:
            average = (
                float(data["noise"]) + float(data["crowds"]) + float(data["lighting"])
            ) / 3.0
        except (KeyError, TypeError, ValueError):
            # Field validation reports the missing/bad reading.
            return data
        derived = round((1.0 - average) * 100)
        return {**data, "quiet_score": max(0, min(100, derived))}

    @field_validator("noise", "crowds", "lighting")
    @classmethod
    def _validate_reading(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("sensory readings must be within [0, 1]")
        return value

    @field_validator("quiet_score")
    @classmethod
    def _validate_quiet_score(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and not 0 <= value <= 100:
            raise ValueError("quiet_score must be within [0, 100]")
        return value

    @field_validator("timestamp")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)

    def with_resolution(self, resolved: ResolvedLocation, rules_version: int) -> "RawReport":
        """Return a copy carrying the resolved label, tier and confidence."""
        return self.model_copy(
            update={
                "display_name": resolved.label,
                "display_tier": resolved.tier,
                "confidence": resolved.confidence,
                "open_now": resolved.open_now,
                "place_id": resolved.place_id,
                "resolution_version": rules_version,
            }
        )


class AggregatedPin(BaseModel):
    """One map pin standing for every report at a LocationIdentifier."""

    model_config = ConfigDict(frozen=True)

    location_id: str
    lat: float
    lon: float
    display_name: Optional[str] = None
    display_tier: Optional[DisplayTier] = None
    confidence: Optional[float] = None
    report_count: int
    average_noise: float
    average_crowds: float
    average_lighting: float
    average_quiet_score: int
    latest_timestamp: datetime
    attributed_contributor: str
    report_ids: tuple[str, ...] = ()

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lon=self.lon)

    @property
    def average_sensory_level(self) -> float:
        return (self.average_noise + self.average_crowds + self.average_lighting) / 3.0

    @property
    def quality_rating(self) -> str:
        level = self.average_sensory_level
        if level < 0.3:
            return "Excellent"
        if level < 0.5:
            return "Good"
        if level < 0.7:
            return "Fair"
        if level < 0.9:
            return "Poor"
        return "Very Poor"


class FilterOptions(BaseModel):
    """Viewport filter state. Bounds and thresholds are inclusive."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    max_noise: float = 1.0
    max_crowds: float = 1.0
    max_lighting: float = 1.0

    @field_validator("start", "end")
    @classmethod
    def _ensure_aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @field_validator("max_noise", "max_crowds", "max_lighting")
    @classmethod
    def _validate_threshold(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("thresholds must be within [0, 1]")
        return value

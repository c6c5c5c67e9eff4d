"""Application settings loaded from environment."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed settings for location resolution and pin synthesis."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Privacy kill-switch and enrichment flag
    area_only_override: bool = Field(default=False, alias="HUSHMAP_AREA_ONLY_OVERRIDE")
    use_places_enrichment: bool = Field(default=True, alias="HUSHMAP_USE_PLACES_ENRICHMENT")

    # POI snapping and confidence tuning
    confidence_hedge_threshold: float = Field(
        default=0.80, alias="HUSHMAP_CONFIDENCE_HEDGE_THRESHOLD"
    )
    poi_max_radius_meters: float = Field(default=35.0, alias="HUSHMAP_POI_MAX_RADIUS_METERS")
    snap_window_meters: float = Field(default=18.0, alias="HUSHMAP_SNAP_WINDOW_METERS")
    dense_competition_meters: float = Field(
        default=12.0, alias="HUSHMAP_DENSE_COMPETITION_METERS"
    )
    min_confidence_direct_poi: float = Field(
        default=0.80, alias="HUSHMAP_MIN_CONFIDENCE_DIRECT_POI"
    )
    min_confidence_hedged_poi: float = Field(
        default=0.65, alias="HUSHMAP_MIN_CONFIDENCE_HEDGED_POI"
    )

    # Aggregation / projection
    location_precision: int = Field(default=4, alias="HUSHMAP_LOCATION_PRECISION")
    max_pins: int = Field(default=200, alias="HUSHMAP_MAX_PINS")
    debounce_seconds: float = Field(default=0.3, alias="HUSHMAP_DEBOUNCE_SECONDS")
    default_area_name: Optional[str] = Field(default=None, alias="HUSHMAP_DEFAULT_AREA_NAME")

    # Runtime
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

"""Configuration package."""

from hushmap.config.privacy import DEFAULT_POI_TYPE_PRIORITY, PrivacyLocationConfig
from hushmap.config.settings import Settings

__all__ = ["Settings", "PrivacyLocationConfig", "DEFAULT_POI_TYPE_PRIORITY"]

"""Error and warning types raised by the core."""

from __future__ import annotations


class InvalidCoordinate(ValueError):
    """Latitude/longitude is NaN, infinite or outside the WGS84 range."""

    def __init__(self, lat: float, lon: float, reason: str) -> None:
        self.lat = lat
        self.lon = lon
        self.reason = reason
        super().__init__(f"invalid coordinate ({lat!r}, {lon!r}): {reason}")


class InconsistentConfigWarning(UserWarning):
    """Privacy thresholds are set in an order that inverts the hedging rule."""

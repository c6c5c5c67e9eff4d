"""Grid keys used to decide which reports describe the same place."""

from __future__ import annotations

from dataclasses import dataclass


DEFAULT_PRECISION = 4


@dataclass(frozen=True)
class LocationIdentifier:
    """Coordinate rounded to a fixed decimal grid.

    At precision 4 a cell is about 11 m north-south (less east-west away from
    the equator); two reports with equal identifiers are the same place.
    """

    lat_round: float
    lon_round: float
    precision: int = DEFAULT_PRECISION

    @classmethod
    def from_coordinate(
        cls, lat: float, lon: float, precision: int = DEFAULT_PRECISION
    ) -> "LocationIdentifier":
        if precision < 0:
            raise ValueError("precision must be >= 0")
        # + 0.0 folds -0.0 into 0.0 so both hemispheres' zero share a key
        return cls(
            lat_round=round(lat, precision) + 0.0,
            lon_round=round(lon, precision) + 0.0,
            precision=precision,
        )

    @property
    def key(self) -> str:
        return f"{self.lat_round:.{self.precision}f},{self.lon_round:.{self.precision}f}"

    def __str__(self) -> str:
        return self.key


def location_identifier(lat: float, lon: float, precision: int = DEFAULT_PRECISION) -> str:
    """Return the string grouping key for a coordinate."""
    return LocationIdentifier.from_coordinate(lat, lon, precision).key

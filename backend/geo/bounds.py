from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GeoBounds:
    """
    WGS84 viewport rectangle in decimal degrees.

    Convention used throughout this repo (matches the UI's map bounds):
    - north, south, east, west
    - south <= north and west <= east; no antimeridian wraparound.
    """

    north: float
    south: float
    east: float
    west: float

    def to_dict(self) -> dict[str, float]:
        return {"north": self.north, "south": self.south, "east": self.east, "west": self.west}


def bounds_errors(raw: Any) -> tuple[GeoBounds | None, list[str]]:
    """
    Validate a decoded bounds object. Returns (bounds, []) or (None, messages).
    """
    if not isinstance(raw, dict):
        return None, ["must be an object with north, south, east and west"]

    values: dict[str, float] = {}
    errors: list[str] = []
    for side in ("north", "south", "east", "west"):
        v = raw.get(side)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            errors.append(f"{side} must be a number")
            continue
        values[side] = float(v)
    if errors:
        return None, errors

    if values["south"] > values["north"]:
        errors.append("south must be <= north")
    if values["west"] > values["east"]:
        errors.append("west must be <= east")
    if not (-90.0 <= values["south"] <= 90.0 and -90.0 <= values["north"] <= 90.0):
        errors.append("latitude must be between -90 and 90")
    if not (-180.0 <= values["west"] <= 180.0 and -180.0 <= values["east"] <= 180.0):
        errors.append("longitude must be between -180 and 180")
    if errors:
        return None, errors
    return GeoBounds(**values), []

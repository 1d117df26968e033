from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Iterable

from geo.countries import COUNTRY_CENTROIDS, normalize_country_name
from records.types import CompanyRecord

# Fallback markers are spread around their country centroid so that companies
# from the same country do not stack on one point.
MAX_JITTER_LAT = 0.4
MAX_JITTER_LNG = 0.8

# (max_lat_offset, max_lng_offset) -> (lat_offset, lng_offset)
JitterFn = Callable[[float, float], tuple[float, float]]


def random_jitter(max_lat: float, max_lng: float) -> tuple[float, float]:
    # Unseeded on purpose: the offset is visual only.
    return random.uniform(-max_lat, max_lat), random.uniform(-max_lng, max_lng)


def no_jitter(max_lat: float, max_lng: float) -> tuple[float, float]:
    return 0.0, 0.0


@dataclass(frozen=True)
class ResolvedMarker:
    company_id: str
    lat: float
    lng: float
    is_fallback: bool

    def to_dict(self) -> dict:
        return {
            "companyId": self.company_id,
            "lat": self.lat,
            "lng": self.lng,
            "isFallback": self.is_fallback,
        }


@dataclass(frozen=True)
class MarkerDiagnostics:
    total: int
    precise: int
    fallback: int
    omitted: int

    @property
    def missing_coordinates(self) -> int:
        return self.fallback + self.omitted

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "precise": self.precise,
            "fallback": self.fallback,
            "omitted": self.omitted,
            "missingCoordinates": self.missing_coordinates,
        }


@dataclass(frozen=True)
class MarkerSet:
    markers: list[ResolvedMarker]
    diagnostics: MarkerDiagnostics


def _clamp(v: float, limit: float) -> float:
    return max(-limit, min(limit, v))


@dataclass
class CoordinateResolver:
    """
    Turns a record into a renderable map position.

    Precise coordinates pass through untouched. Records without them are placed
    at their country centroid plus a bounded jitter; records whose country is not
    in the centroid table cannot be placed and resolve to None.
    """

    centroids: dict[str, tuple[float, float]] = field(default_factory=lambda: dict(COUNTRY_CENTROIDS))
    jitter: JitterFn = random_jitter
    max_lat_offset: float = MAX_JITTER_LAT
    max_lng_offset: float = MAX_JITTER_LNG

    def resolve(self, record: CompanyRecord) -> ResolvedMarker | None:
        if record.has_coordinates:
            return ResolvedMarker(company_id=record.id, lat=record.lat, lng=record.lng, is_fallback=False)

        country = normalize_country_name(record.country)
        centroid = self.centroids.get(country) if country else None
        if centroid is None:
            return None

        d_lat, d_lng = self.jitter(self.max_lat_offset, self.max_lng_offset)
        return ResolvedMarker(
            company_id=record.id,
            lat=centroid[0] + _clamp(float(d_lat), self.max_lat_offset),
            lng=centroid[1] + _clamp(float(d_lng), self.max_lng_offset),
            is_fallback=True,
        )

    def resolve_all(self, records: Iterable[CompanyRecord]) -> MarkerSet:
        markers: list[ResolvedMarker] = []
        total = precise = fallback = 0
        for r in records:
            total += 1
            m = self.resolve(r)
            if m is None:
                continue
            markers.append(m)
            if m.is_fallback:
                fallback += 1
            else:
                precise += 1
        return MarkerSet(
            markers=markers,
            diagnostics=MarkerDiagnostics(
                total=total,
                precise=precise,
                fallback=fallback,
                omitted=total - precise - fallback,
            ),
        )

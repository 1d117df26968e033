from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CompanyRecord:
    """
    One row of the record store.

    Owned by the store; the engine never mutates it.
    """

    id: str
    name: str
    company_type: str | None = None
    company_role: str | None = None
    segment: str | None = None
    primary_market: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None
    lat: float | None = None
    lng: float | None = None
    website: str | None = None
    is_active: bool = True
    founded_year: int | None = None
    technologies: tuple[str, ...] = field(default_factory=tuple)
    materials: tuple[str, ...] = field(default_factory=tuple)
    service_types: tuple[str, ...] = field(default_factory=tuple)
    equipment_count: int = 0
    service_count: int = 0

    @property
    def technology_count(self) -> int:
        return len(self.technologies)

    @property
    def material_count(self) -> int:
        return len(self.materials)

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "state": self.state,
            "city": self.city,
            "lat": self.lat,
            "lng": self.lng,
            "companyType": self.company_type,
            "companyRole": self.company_role,
            "segment": self.segment,
            "primaryMarket": self.primary_market,
            "website": self.website,
            "isActive": self.is_active,
            "foundedYear": self.founded_year,
            "technologyCount": self.technology_count,
            "materialCount": self.material_count,
            "equipmentCount": self.equipment_count,
            "serviceCount": self.service_count,
            "technologies": list(self.technologies),
            "materials": list(self.materials),
            "serviceTypes": list(self.service_types),
        }


# Attribute name -> response/sort key. Used by the filter compiler (sortBy)
# and by the SQL backend (column names equal attribute names).
SORTABLE_FIELDS: dict[str, str] = {
    "name": "name",
    "country": "country",
    "state": "state",
    "city": "city",
    "companyType": "company_type",
    "companyRole": "company_role",
    "segment": "segment",
    "primaryMarket": "primary_market",
    "foundedYear": "founded_year",
    "equipmentCount": "equipment_count",
    "serviceCount": "service_count",
}

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from aggregate.types import RegionGranularity
from errors import FieldError
from filters.params import CAPABILITY_PARAMS, OVERLAP_PARAMS, SET_PARAMS
from geo.bounds import GeoBounds

_ATTR_TO_PARAM = {v: k for k, v in {**SET_PARAMS, **OVERLAP_PARAMS}.items()}
_CAPABILITY_TO_PARAM = {v: k for k, v in CAPABILITY_PARAMS.items()}


@dataclass(frozen=True)
class SortSpec:
    field: str = "name"  # public (camelCase) sort key
    descending: bool = False

    @property
    def order(self) -> str:
        return "desc" if self.descending else "asc"


@dataclass(frozen=True)
class FilterSpec:
    """
    Validated, immutable filter request.

    Set-valued dimensions are None when unconstrained; when present they hold at
    least one non-empty value. Invariants: 1 <= limit <= 1000, page >= 1.
    """

    company_type: tuple[str, ...] | None = None
    company_role: tuple[str, ...] | None = None
    segment: tuple[str, ...] | None = None
    country: tuple[str, ...] | None = None
    state: tuple[str, ...] | None = None
    city: tuple[str, ...] | None = None
    primary_market: tuple[str, ...] | None = None
    technologies: tuple[str, ...] | None = None
    materials: tuple[str, ...] | None = None
    service_types: tuple[str, ...] | None = None
    search: str | None = None
    is_active: bool | None = None
    capabilities: frozenset[str] = field(default_factory=frozenset)
    founded_year_min: int | None = None
    founded_year_max: int | None = None
    bounds: GeoBounds | None = None
    page: int = 1
    limit: int = 100
    sort: SortSpec = field(default_factory=SortSpec)
    dataset: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_dict(self) -> dict[str, Any]:
        """
        The "applied filters" view echoed back to the UI.
        """
        out: dict[str, Any] = {}
        for attr, param in _ATTR_TO_PARAM.items():
            values = getattr(self, attr)
            if values is not None:
                out[param] = list(values)
        if self.search is not None:
            out["search"] = self.search
        if self.is_active is not None:
            out["isActive"] = self.is_active
        for cap in sorted(self.capabilities):
            out[_CAPABILITY_TO_PARAM[cap]] = True
        if self.founded_year_min is not None:
            out["foundedYearMin"] = self.founded_year_min
        if self.founded_year_max is not None:
            out["foundedYearMax"] = self.founded_year_max
        if self.bounds is not None:
            out["bounds"] = self.bounds.to_dict()
        if self.dataset is not None:
            out["dataset"] = self.dataset
        out["page"] = self.page
        out["limit"] = self.limit
        out["sortBy"] = self.sort.field
        out["sortOrder"] = self.sort.order
        return out


@dataclass(frozen=True)
class RequestOptions:
    include_count: bool = True
    include_filters: bool = True
    region: RegionGranularity = RegionGranularity.country


@dataclass(frozen=True)
class CompileResult:
    """
    Either a spec (with options) or a non-empty list of errors, never both.
    """

    spec: FilterSpec | None = None
    options: RequestOptions | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.spec is not None and not self.errors

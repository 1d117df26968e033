from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from engine.cancel import CancelScope
from filters.predicates import Predicate
from filters.types import SortSpec
from records.types import CompanyRecord


@dataclass(frozen=True)
class FacetOptions:
    """
    Values currently available for each filterable dimension.
    """

    countries: list[str] = field(default_factory=list)
    states: list[str] = field(default_factory=list)
    cities: list[str] = field(default_factory=list)
    company_types: list[str] = field(default_factory=list)
    company_roles: list[str] = field(default_factory=list)
    segments: list[str] = field(default_factory=list)
    primary_markets: list[str] = field(default_factory=list)
    technologies: list[str] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)
    service_types: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "FacetOptions":
        return cls()

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "countries": list(self.countries),
            "states": list(self.states),
            "cities": list(self.cities),
            "companyTypes": list(self.company_types),
            "companyRoles": list(self.company_roles),
            "segments": list(self.segments),
            "primaryMarkets": list(self.primary_markets),
            "technologies": list(self.technologies),
            "materials": list(self.materials),
            "serviceTypes": list(self.service_types),
        }


@dataclass(frozen=True)
class PageResult:
    rows: list[CompanyRecord]
    total: int | None


@dataclass(frozen=True)
class QueryResult:
    """
    What the executor returns for a list request.
    """

    rows: list[CompanyRecord]
    total_count: int | None
    facets: FacetOptions | None
    stats: dict[str, Any] = field(default_factory=dict)


class RecordStore(Protocol):
    """
    Record store interface.

    - InMemoryStore: evaluates predicates over preloaded records
    - DuckDBStore: compiles predicates to SQL over a seeded `companies` table
    """

    name: str

    def fetch_page(
        self,
        predicates: Sequence[Predicate],
        sort: SortSpec,
        *,
        offset: int,
        limit: int,
        count: bool,
        cancel: CancelScope | None = None,
    ) -> PageResult: ...

    def fetch_all(
        self,
        predicates: Sequence[Predicate],
        *,
        cancel: CancelScope | None = None,
    ) -> list[CompanyRecord]: ...

    def facet_options(self) -> FacetOptions: ...

    def size(self) -> int: ...

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from records.types import CompanyRecord

TOP_STATES = 10
TOP_CITIES = 8


def percentage(num: int, denom: int) -> int:
    """Whole percent, halves rounded up; 0 when there is nothing to divide by."""
    if denom <= 0:
        return 0
    return int(math.floor(num / denom * 100 + 0.5))


@dataclass(frozen=True)
class Share:
    label: str
    companies: int
    percentage: int | None = None

    def to_dict(self, label_key: str) -> dict[str, Any]:
        out: dict[str, Any] = {label_key: self.label, "companies": self.companies}
        if self.percentage is not None:
            out["percentage"] = self.percentage
        return out


@dataclass(frozen=True)
class CompanySummary:
    total_companies: int
    total_states: int
    total_technologies: int
    states: list[Share] = field(default_factory=list)
    technologies: list[Share] = field(default_factory=list)
    materials: list[Share] = field(default_factory=list)
    company_types: list[Share] = field(default_factory=list)
    top_cities: list[Share] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCompanies": self.total_companies,
            "totalStates": self.total_states,
            "totalTechnologies": self.total_technologies,
            "stateDistribution": [s.to_dict("state") for s in self.states],
            "technologyDistribution": [s.to_dict("tech") for s in self.technologies],
            "materialDistribution": [s.to_dict("material") for s in self.materials],
            "companyTypes": [s.to_dict("type") for s in self.company_types],
            "topCities": [s.to_dict("city") for s in self.top_cities],
        }


def _ranked(groups: dict[str, set[str]], total: int | None, limit: int | None = None) -> list[Share]:
    # sorted() is stable: ties keep first-seen order.
    ranked = sorted(groups.items(), key=lambda kv: -len(kv[1]))
    if limit is not None:
        ranked = ranked[:limit]
    return [
        Share(
            label=label,
            companies=len(ids),
            percentage=percentage(len(ids), total) if total is not None else None,
        )
        for label, ids in ranked
    ]


def _group(
    rows: Iterable[CompanyRecord], labels: Callable[[CompanyRecord], Iterable[str]]
) -> dict[str, set[str]]:
    groups: dict[str, set[str]] = {}
    for r in rows:
        for label in labels(r):
            groups.setdefault(label, set()).add(r.id)
    return groups


def _state(r: CompanyRecord) -> list[str]:
    s = (r.state or "").strip()
    return [s] if s else []


def _company_type(r: CompanyRecord) -> list[str]:
    t = (r.company_type or "other").strip().lower() or "other"
    return [t[:1].upper() + t[1:]]


def _city(r: CompanyRecord) -> list[str]:
    city = (r.city or "").strip()
    if not city:
        return []
    state = (r.state or "").strip()
    return [f"{city}, {state}" if state else city]


def summarize_companies(rows: Iterable[CompanyRecord]) -> CompanySummary:
    """
    Headline counts and distributions for a set of companies.

    Every distribution counts distinct company ids, so a company listing the same
    technology twice (or appearing twice in `rows`) counts once. Percentages are
    relative to the number of distinct companies. States are capped at the top 10
    and cities ("City, State") at the top 8; city rows carry no percentage.
    """
    unique: dict[str, CompanyRecord] = {}
    for r in rows:
        unique.setdefault(r.id, r)
    records = list(unique.values())
    total = len(records)

    states = _group(records, _state)
    technologies = _group(records, lambda r: [t.strip() for t in r.technologies if t.strip()])
    materials = _group(records, lambda r: [m.strip() for m in r.materials if m.strip()])

    return CompanySummary(
        total_companies=total,
        total_states=len(states),
        total_technologies=len(technologies),
        states=_ranked(states, total, TOP_STATES),
        technologies=_ranked(technologies, total),
        materials=_ranked(materials, total),
        company_types=_ranked(_group(records, _company_type), total),
        top_cities=_ranked(_group(records, _city), None, TOP_CITIES),
    )

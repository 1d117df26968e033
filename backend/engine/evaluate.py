from __future__ import annotations

from typing import Any, Iterable, Sequence

from engine.types import FacetOptions
from filters.predicates import Exists, Overlap, Predicate, Range, SetMembership, TextMatch
from filters.types import SortSpec
from records.types import SORTABLE_FIELDS, CompanyRecord


def _present(v: Any) -> bool:
    if v is None:
        return False
    if isinstance(v, (str, tuple, list)):
        return len(v) > 0
    return True


def matches(record: CompanyRecord, predicate: Predicate) -> bool:
    if isinstance(predicate, SetMembership):
        return getattr(record, predicate.field) in predicate.values
    if isinstance(predicate, Overlap):
        have = getattr(record, predicate.field) or ()
        return any(v in have for v in predicate.values)
    if isinstance(predicate, Range):
        v = getattr(record, predicate.field)
        if v is None:
            return False
        if predicate.min is not None and v < predicate.min:
            return False
        if predicate.max is not None and v > predicate.max:
            return False
        return True
    if isinstance(predicate, TextMatch):
        term = predicate.term.lower()
        return any(term in str(getattr(record, f) or "").lower() for f in predicate.fields)
    if isinstance(predicate, Exists):
        return _present(getattr(record, predicate.field))
    raise TypeError(f"Unsupported predicate: {predicate!r}")


def matches_all(record: CompanyRecord, predicates: Sequence[Predicate]) -> bool:
    return all(matches(record, p) for p in predicates)


def sort_records(rows: Iterable[CompanyRecord], sort: SortSpec) -> list[CompanyRecord]:
    """
    Order by the sort field with nulls last (either direction), ties by id.
    """
    attr = SORTABLE_FIELDS.get(sort.field, "name")
    by_id = sorted(rows, key=lambda r: r.id)
    present = [r for r in by_id if getattr(r, attr) is not None]
    missing = [r for r in by_id if getattr(r, attr) is None]
    # Stable sort keeps id order among equal keys, also with reverse=True.
    present.sort(key=lambda r: getattr(r, attr), reverse=sort.descending)
    return present + missing


def _distinct(values: Iterable[Any]) -> list[str]:
    return sorted({str(v) for v in values if v is not None and str(v).strip()})


def facets_from_records(records: Sequence[CompanyRecord]) -> FacetOptions:
    return FacetOptions(
        countries=_distinct(r.country for r in records),
        states=_distinct(r.state for r in records),
        cities=_distinct(r.city for r in records),
        company_types=_distinct(r.company_type for r in records),
        company_roles=_distinct(r.company_role for r in records),
        segments=_distinct(r.segment for r in records),
        primary_markets=_distinct(r.primary_market for r in records),
        technologies=_distinct(t for r in records for t in r.technologies),
        materials=_distinct(m for r in records for m in r.materials),
        service_types=_distinct(s for r in records for s in r.service_types),
    )

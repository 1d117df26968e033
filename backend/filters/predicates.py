from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias, Union

from filters.types import FilterSpec


@dataclass(frozen=True)
class SetMembership:
    field: str
    values: tuple[Any, ...]


@dataclass(frozen=True)
class Overlap:
    """
    Array field shares at least one value with `values`.
    """

    field: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class Range:
    """
    Inclusive range; an open side is None. Null field values never match.
    """

    field: str
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True)
class TextMatch:
    """
    Case-insensitive substring match on any of `fields`.
    """

    fields: tuple[str, ...]
    term: str


@dataclass(frozen=True)
class Exists:
    """
    Field is non-null (and non-empty for text/array fields).
    """

    field: str


Predicate: TypeAlias = Union[SetMembership, Overlap, Range, TextMatch, Exists]

_SET_ATTRS = ("company_type", "company_role", "segment", "country", "state", "city", "primary_market")
_OVERLAP_ATTRS = ("technologies", "materials", "service_types")


def build_predicates(spec: FilterSpec, *, include_bounds: bool = True) -> list[Predicate]:
    """
    Lower a FilterSpec to a conjunctive list of predicates.

    Dimensions are ANDed; values inside one dimension are ORed.
    """
    out: list[Predicate] = []
    for attr in _SET_ATTRS:
        values = getattr(spec, attr)
        if values:
            out.append(SetMembership(field=attr, values=tuple(values)))
    for attr in _OVERLAP_ATTRS:
        values = getattr(spec, attr)
        if values:
            out.append(Overlap(field=attr, values=tuple(values)))

    if spec.search:
        out.append(TextMatch(fields=("name",), term=spec.search))
    if spec.is_active is not None:
        out.append(SetMembership(field="is_active", values=(spec.is_active,)))

    caps = spec.capabilities
    if "website" in caps:
        out.append(Exists(field="website"))
    if "coordinates" in caps:
        out.append(Exists(field="lat"))
        out.append(Exists(field="lng"))
    if "equipment" in caps:
        out.append(Range(field="equipment_count", min=1))
    if "services" in caps:
        out.append(Range(field="service_count", min=1))

    if spec.founded_year_min is not None or spec.founded_year_max is not None:
        out.append(Range(field="founded_year", min=spec.founded_year_min, max=spec.founded_year_max))

    if include_bounds and spec.bounds is not None:
        b = spec.bounds
        out.append(Range(field="lat", min=b.south, max=b.north))
        out.append(Range(field="lng", min=b.west, max=b.east))
    return out

from __future__ import annotations

from typing import Any, Sequence

from filters.predicates import Exists, Overlap, Predicate, Range, SetMembership, TextMatch
from filters.types import SortSpec
from records.types import SORTABLE_FIELDS

CREATE_COMPANIES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS companies (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  company_type TEXT,
  company_role TEXT,
  segment TEXT,
  primary_market TEXT,
  country TEXT,
  state TEXT,
  city TEXT,
  lat DOUBLE,
  lng DOUBLE,
  website TEXT,
  is_active BOOLEAN,
  founded_year INTEGER,
  technologies VARCHAR[],
  materials VARCHAR[],
  service_types VARCHAR[],
  equipment_count INTEGER,
  service_count INTEGER
);
"""

# Column order for INSERT and SELECT; matches CompanyRecord attribute names.
COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "company_type",
    "company_role",
    "segment",
    "primary_market",
    "country",
    "state",
    "city",
    "lat",
    "lng",
    "website",
    "is_active",
    "founded_year",
    "technologies",
    "materials",
    "service_types",
    "equipment_count",
    "service_count",
)

LIST_COLUMNS = frozenset({"technologies", "materials", "service_types"})
TEXT_COLUMNS = frozenset(
    {"id", "name", "company_type", "company_role", "segment", "primary_market", "country", "state", "city", "website"}
)

INSERT_COMPANY_SQL = (
    f"INSERT OR IGNORE INTO companies ({', '.join(COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in COLUMNS)})"
)

SELECT_COLUMNS_SQL = ", ".join(COLUMNS)

SCALAR_FACET_SQL_TEMPLATE = """
SELECT DISTINCT {col}
FROM companies
WHERE {col} IS NOT NULL AND trim({col}) <> ''
ORDER BY 1
"""

LIST_FACET_SQL_TEMPLATE = """
SELECT DISTINCT v
FROM (SELECT unnest({col}) AS v FROM companies)
WHERE v IS NOT NULL AND trim(v) <> ''
ORDER BY 1
"""


def _column(name: str) -> str:
    # Field names come from the filter AST, never from user input; still refuse
    # anything that is not a known column before splicing it into SQL.
    if name not in COLUMNS:
        raise ValueError(f"Unknown column: {name}")
    return name


def _placeholders(n: int) -> str:
    return ", ".join("?" for _ in range(n))


def predicate_sql(p: Predicate) -> tuple[str, list[Any]]:
    if isinstance(p, SetMembership):
        col = _column(p.field)
        return f"{col} IN ({_placeholders(len(p.values))})", list(p.values)
    if isinstance(p, Overlap):
        col = _column(p.field)
        return f"list_has_any({col}, [{_placeholders(len(p.values))}])", list(p.values)
    if isinstance(p, Range):
        col = _column(p.field)
        parts: list[str] = []
        params: list[Any] = []
        if p.min is not None:
            parts.append(f"{col} >= ?")
            params.append(p.min)
        if p.max is not None:
            parts.append(f"{col} <= ?")
            params.append(p.max)
        if not parts:
            return f"{col} IS NOT NULL", []
        return " AND ".join(parts), params
    if isinstance(p, TextMatch):
        cols = [_column(f) for f in p.fields]
        term = p.term.lower()
        sql = " OR ".join(f"contains(lower(coalesce({c}, '')), ?)" for c in cols)
        return f"({sql})", [term for _ in cols]
    if isinstance(p, Exists):
        col = _column(p.field)
        if col in LIST_COLUMNS:
            return f"({col} IS NOT NULL AND len({col}) > 0)", []
        if col in TEXT_COLUMNS:
            return f"({col} IS NOT NULL AND {col} <> '')", []
        return f"{col} IS NOT NULL", []
    raise TypeError(f"Unsupported predicate: {p!r}")


def where_clause(predicates: Sequence[Predicate]) -> tuple[str, list[Any]]:
    """
    AND together the predicates. Returns ("", []) when unconstrained.
    """
    parts: list[str] = []
    params: list[Any] = []
    for p in predicates:
        sql, ps = predicate_sql(p)
        parts.append(f"({sql})")
        params.extend(ps)
    if not parts:
        return "", []
    return "WHERE " + " AND ".join(parts), params


def order_by_clause(sort: SortSpec) -> str:
    col = _column(SORTABLE_FIELDS.get(sort.field, "name"))
    direction = "DESC" if sort.descending else "ASC"
    return f"ORDER BY {col} {direction} NULLS LAST, id ASC"

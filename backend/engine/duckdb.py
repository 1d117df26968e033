from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Sequence

import duckdb

from engine.cancel import CancelScope
from engine.sql import (
    COLUMNS,
    CREATE_COMPANIES_TABLE_SQL,
    INSERT_COMPANY_SQL,
    LIST_COLUMNS,
    LIST_FACET_SQL_TEMPLATE,
    SCALAR_FACET_SQL_TEMPLATE,
    SELECT_COLUMNS_SQL,
    order_by_clause,
    where_clause,
)
from engine.types import FacetOptions, PageResult, RecordStore
from errors import QueryCancelled
from filters.predicates import Predicate
from filters.types import SortSpec
from records.load import unique_by_id
from records.types import CompanyRecord

logger = logging.getLogger(__name__)

RecordsLoader = Callable[[], Sequence[CompanyRecord]]

_MAX_OFFSET = 2**63 - 1


class DuckDBStore(RecordStore):
    """
    DuckDB-backed store.

    The `companies` table is seeded once from `records` (or `records_loader`) when
    it is empty; an existing database file with a populated table is used as-is.
    Each query runs on its own cursor so it can be interrupted on cancel.
    """

    name = "duckdb"

    def __init__(
        self,
        *,
        path: str = ":memory:",
        threads: int = 1,
        records: Sequence[CompanyRecord] | None = None,
        records_loader: RecordsLoader | None = None,
    ):
        self.path = path
        self.threads = max(1, int(threads))
        self._records = records
        self._records_loader = records_loader
        self._init_lock = threading.RLock()
        self._root: duckdb.DuckDBPyConnection | None = None

    def ensure_initialized(self) -> duckdb.DuckDBPyConnection:
        root = self._root
        if root is not None:
            return root
        with self._init_lock:
            if self._root is None:
                conn = _connect(self.path, threads=self.threads)
                conn.execute(CREATE_COMPANIES_TABLE_SQL)
                if _count(conn) == 0:
                    records = self._records
                    if records is None and self._records_loader is not None:
                        records = self._records_loader()
                    _seed(conn, records or [])
                self._root = conn
            return self._root

    def close(self) -> None:
        with self._init_lock:
            if self._root is not None:
                try:
                    self._root.close()
                except Exception:
                    pass
            self._root = None

    def _cursor(self) -> duckdb.DuckDBPyConnection:
        with self._init_lock:
            return self.ensure_initialized().cursor()

    def _run(
        self,
        sql: str,
        params: list[Any],
        cancel: CancelScope | None,
    ) -> list[tuple]:
        if cancel is not None:
            cancel.raise_if_cancelled()
        cur = self._cursor()
        unregister = cancel.on_cancel(cur.interrupt) if cancel is not None else None
        try:
            if cancel is not None:
                cancel.raise_if_cancelled()
            return cur.execute(sql, params).fetchall()
        except duckdb.Error as e:
            if cancel is not None and cancel.cancelled:
                raise QueryCancelled("query interrupted by caller") from e
            raise
        finally:
            if unregister is not None:
                unregister()
            try:
                cur.close()
            except Exception:
                pass

    def size(self) -> int:
        rows = self._run("SELECT COUNT(*) FROM companies", [], None)
        return int(rows[0][0] or 0) if rows else 0

    def fetch_page(
        self,
        predicates: Sequence[Predicate],
        sort: SortSpec,
        *,
        offset: int,
        limit: int,
        count: bool,
        cancel: CancelScope | None = None,
    ) -> PageResult:
        where_sql, params = where_clause(predicates)
        rows: list[tuple] = []
        # OFFSET is a BIGINT; a page that far out is necessarily empty.
        if int(offset) <= _MAX_OFFSET:
            rows = self._run(
                f"SELECT {SELECT_COLUMNS_SQL} FROM companies {where_sql} {order_by_clause(sort)} LIMIT ? OFFSET ?",
                [*params, int(limit), int(offset)],
                cancel,
            )
        total: int | None = None
        if count:
            counted = self._run(f"SELECT COUNT(*) FROM companies {where_sql}", params, cancel)
            total = int(counted[0][0] or 0) if counted else 0
        return PageResult(rows=[_decode_row(r) for r in rows], total=total)

    def fetch_all(
        self,
        predicates: Sequence[Predicate],
        *,
        cancel: CancelScope | None = None,
    ) -> list[CompanyRecord]:
        where_sql, params = where_clause(predicates)
        rows = self._run(
            f"SELECT {SELECT_COLUMNS_SQL} FROM companies {where_sql} ORDER BY id",
            params,
            cancel,
        )
        return [_decode_row(r) for r in rows]

    def facet_options(self) -> FacetOptions:
        def scalar(col: str) -> list[str]:
            return [str(r[0]) for r in self._run(SCALAR_FACET_SQL_TEMPLATE.format(col=col), [], None)]

        def listed(col: str) -> list[str]:
            return [str(r[0]) for r in self._run(LIST_FACET_SQL_TEMPLATE.format(col=col), [], None)]

        return FacetOptions(
            countries=scalar("country"),
            states=scalar("state"),
            cities=scalar("city"),
            company_types=scalar("company_type"),
            company_roles=scalar("company_role"),
            segments=scalar("segment"),
            primary_markets=scalar("primary_market"),
            technologies=listed("technologies"),
            materials=listed("materials"),
            service_types=listed("service_types"),
        )


def _connect(path: str, *, threads: int) -> duckdb.DuckDBPyConnection:
    if path != ":memory:":
        p = Path(path)
        if p.parent and str(p.parent) not in {".", ""}:
            p.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(database=path, read_only=False, config={"threads": int(threads)})


def _count(conn: duckdb.DuckDBPyConnection) -> int:
    row = conn.execute("SELECT COUNT(*) FROM companies").fetchone()
    return int(row[0] or 0) if row else 0


def _encode_record(r: CompanyRecord) -> tuple:
    out = []
    for col in COLUMNS:
        v = getattr(r, col)
        out.append(list(v) if col in LIST_COLUMNS else v)
    return tuple(out)


def _seed(conn: duckdb.DuckDBPyConnection, records: Sequence[CompanyRecord]) -> None:
    rows = [_encode_record(r) for r in unique_by_id(records)]
    if rows:
        conn.executemany(INSERT_COMPANY_SQL, rows)
    logger.info("Seeded %d company records into DuckDB", len(rows))


def _decode_row(row: tuple) -> CompanyRecord:
    data = dict(zip(COLUMNS, row))
    for col in LIST_COLUMNS:
        data[col] = tuple(data.get(col) or ())
    data["is_active"] = bool(data["is_active"]) if data.get("is_active") is not None else True
    data["equipment_count"] = int(data.get("equipment_count") or 0)
    data["service_count"] = int(data.get("service_count") or 0)
    return CompanyRecord(**data)

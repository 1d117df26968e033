from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from fastapi.datastructures import QueryParams
from fastapi import Request

from aggregate.regions import aggregate_regions
from aggregate.summary import summarize_companies
from api.cancellable import run_cancellable
from cache.response_cache import ResponseCache
from engine.cancel import CancelScope
from engine.executor import QueryExecutor
from engine.types import RecordStore
from errors import ValidationError
from filters.compiler import PresetLookup, compile_filters, describe_filters
from filters.types import FilterSpec, RequestOptions
from geo.resolver import CoordinateResolver

logger = logging.getLogger(__name__)

# spec, options, cancel scope -> response payload (without metadata)
BuildFn = Callable[[FilterSpec, RequestOptions, CancelScope], dict]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def params_from_query(query: QueryParams) -> dict[str, str]:
    """
    Flatten a query string into the compiler's parameter bag.

    Repeated names (`country=A&country=B`) are comma-joined, like `country=A,B`.
    """
    out: dict[str, str] = {}
    for key in query.keys():
        values = query.getlist(key)
        out[key] = ",".join(values) if len(values) > 1 else values[0]
    return out


def non_empty(field: str) -> Callable[[dict], bool]:
    """Cacheability check: the payload's `field` holds at least one result."""
    return lambda payload: bool(payload.get(field))


def pagination(spec: FilterSpec, total: int | None, n_rows: int) -> dict[str, Any]:
    if total is None:
        # Count skipped: a full page means there may be more.
        return {
            "page": spec.page,
            "limit": spec.limit,
            "total": None,
            "pages": None,
            "hasNext": n_rows == spec.limit,
            "hasPrev": spec.page > 1,
        }
    pages = math.ceil(total / spec.limit) if total else 0
    return {
        "page": spec.page,
        "limit": spec.limit,
        "total": total,
        "pages": pages,
        "hasNext": spec.page < pages,
        "hasPrev": spec.page > 1,
    }


class CompanyService:
    """
    Request orchestration behind the HTTP routes.

    compile -> cache lookup -> store query (cancellable) -> aggregate/resolve ->
    cache store. Cache problems are logged and otherwise ignored.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        cache: ResponseCache | None = None,
        resolver: CoordinateResolver | None = None,
        presets: PresetLookup | None = None,
    ):
        self.store = store
        self.executor = QueryExecutor(store)
        self.cache = cache
        self.resolver = resolver or CoordinateResolver()
        self.presets = presets

    def compile(self, params: Mapping[str, Any]) -> tuple[FilterSpec, RequestOptions]:
        result = compile_filters(params, presets=self.presets)
        spec, options = result.spec, result.options
        if not result.ok or spec is None or options is None:
            raise ValidationError(result.errors)
        return spec, options

    def _cache_get(self, key: str) -> dict | None:
        if self.cache is None:
            return None
        try:
            return self.cache.get(key)
        except Exception:
            logger.warning("Response cache read failed; executing directly", exc_info=True)
            return None

    def _cache_put(self, key: str, payload: dict) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, payload)
        except Exception:
            logger.warning("Response cache write failed", exc_info=True)

    def _metadata(self, spec: FilterSpec, started: float, *, cache_hit: bool) -> dict[str, Any]:
        return {
            "executionTime": int(round((time.perf_counter() - started) * 1000.0)),
            "timestamp": utc_timestamp(),
            "dataSource": self.store.name,
            "description": describe_filters(spec),
            "cacheHit": cache_hit,
        }

    async def respond(
        self,
        request: Request,
        params: Mapping[str, Any],
        *,
        cache_key: str,
        build: BuildFn,
        has_results: Callable[[dict], bool],
    ) -> dict:
        """
        Serve one cacheable request. Only payloads for which `has_results` holds
        are stored.
        """
        started = time.perf_counter()
        spec, options = self.compile(params)

        cached = self._cache_get(cache_key)
        if cached is not None:
            # Stored payloads are shared; answer with a copy carrying fresh timing.
            return {**cached, "metadata": self._metadata(spec, started, cache_hit=True)}

        payload = await run_cancellable(request, lambda scope: build(spec, options, scope))
        payload["metadata"] = self._metadata(spec, started, cache_hit=False)
        if has_results(payload):
            self._cache_put(cache_key, payload)
        return payload

    def build_list(self, spec: FilterSpec, options: RequestOptions, cancel: CancelScope) -> dict:
        result = self.executor.execute(
            spec,
            include_count=options.include_count,
            include_facets=options.include_filters,
            cancel=cancel,
        )
        return {
            "data": [r.to_dict() for r in result.rows],
            "pagination": pagination(spec, result.total_count, len(result.rows)),
            "filters": {
                "applied": spec.to_dict(),
                "available": result.facets.to_dict() if result.facets is not None else None,
            },
        }

    def build_heatmap(self, spec: FilterSpec, options: RequestOptions, cancel: CancelScope) -> dict:
        # Choropleth covers whole regions, so the viewport does not narrow it and
        # rows without coordinates still count.
        rows = self.executor.select_all(spec, include_bounds=False, cancel=cancel)
        agg = aggregate_regions(rows, options.region)
        return {
            **agg.to_dict(),
            "totalCompanies": len(rows),
            "filters": {"applied": spec.to_dict()},
        }

    def build_summary(self, spec: FilterSpec, options: RequestOptions, cancel: CancelScope) -> dict:
        # Dashboard totals describe the filtered dataset, not the visible map area.
        rows = self.executor.select_all(spec, include_bounds=False, cancel=cancel)
        return {
            "data": summarize_companies(rows).to_dict(),
            "filters": {"applied": spec.to_dict()},
        }

    def build_markers(self, spec: FilterSpec, options: RequestOptions, cancel: CancelScope) -> dict:
        rows = self.executor.select_all(spec, cancel=cancel)
        marker_set = self.resolver.resolve_all(rows)
        return {
            "markers": [m.to_dict() for m in marker_set.markers],
            "diagnostics": marker_set.diagnostics.to_dict(),
            "filters": {"applied": spec.to_dict()},
        }

    def filter_options(self) -> dict:
        return {
            "available": self.executor.facet_options().to_dict(),
            "timestamp": utc_timestamp(),
        }

    def health(self) -> dict:
        try:
            records: int | None = self.store.size()
            status = "ok"
        except Exception:
            logger.warning("Health check could not reach the record store", exc_info=True)
            records, status = None, "degraded"
        return {
            "status": status,
            "engine": self.store.name,
            "records": records,
            "cache": self.cache.stats() if self.cache is not None else None,
        }

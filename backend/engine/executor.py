from __future__ import annotations

import logging
import time

from engine.cancel import CancelScope
from engine.types import FacetOptions, QueryResult, RecordStore
from errors import QueryCancelled, StoreError
from filters.predicates import build_predicates
from filters.types import FilterSpec
from records.types import CompanyRecord

logger = logging.getLogger(__name__)


class QueryExecutor:
    """
    Applies a FilterSpec to a RecordStore.

    Store failures surface as StoreError; facet failures degrade to empty
    option lists and are only logged.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def execute(
        self,
        spec: FilterSpec,
        *,
        include_count: bool = True,
        include_facets: bool = True,
        cancel: CancelScope | None = None,
    ) -> QueryResult:
        predicates = build_predicates(spec)
        t0 = time.perf_counter()
        try:
            page = self.store.fetch_page(
                predicates,
                spec.sort,
                offset=spec.offset,
                limit=spec.limit,
                count=include_count,
                cancel=cancel,
            )
        except QueryCancelled:
            raise
        except Exception as e:
            logger.exception("Company query failed (store=%s)", self.store.name)
            raise StoreError(f"Database query failed: {e}") from e
        t_query_ms = (time.perf_counter() - t0) * 1000.0

        facets: FacetOptions | None = None
        t1 = time.perf_counter()
        if include_facets:
            facets = self.facet_options()
        t_facets_ms = (time.perf_counter() - t1) * 1000.0

        return QueryResult(
            rows=page.rows,
            total_count=page.total,
            facets=facets,
            stats={
                "store": self.store.name,
                "predicates": len(predicates),
                "timingsMs": {
                    "query": round(t_query_ms, 2),
                    "facets": round(t_facets_ms, 2),
                },
            },
        )

    def select_all(
        self,
        spec: FilterSpec,
        *,
        include_bounds: bool = True,
        cancel: CancelScope | None = None,
    ) -> list[CompanyRecord]:
        """
        Every matching row, unpaginated (aggregation and pin modes).
        """
        predicates = build_predicates(spec, include_bounds=include_bounds)
        try:
            return self.store.fetch_all(predicates, cancel=cancel)
        except QueryCancelled:
            raise
        except Exception as e:
            logger.exception("Company query failed (store=%s)", self.store.name)
            raise StoreError(f"Database query failed: {e}") from e

    def facet_options(self) -> FacetOptions:
        # Computed over the unfiltered corpus so the UI can always offer every
        # valid next choice.
        try:
            return self.store.facet_options()
        except Exception:
            logger.warning("Facet options unavailable; returning empty lists", exc_info=True)
            return FacetOptions.empty()

from __future__ import annotations

from functools import cached_property
from typing import Sequence

from engine.cancel import CancelScope
from engine.evaluate import facets_from_records, matches_all, sort_records
from engine.types import FacetOptions, PageResult, RecordStore
from filters.predicates import Predicate
from filters.types import SortSpec
from records.load import unique_by_id
from records.types import CompanyRecord

# How many records to scan between cancellation checks.
_CANCEL_CHECK_EVERY = 2048


class InMemoryStore(RecordStore):
    """
    Holds the whole corpus in memory and evaluates the filter AST per record.
    """

    name = "in_memory"

    def __init__(self, records: Sequence[CompanyRecord]):
        self._records = unique_by_id(records)

    def size(self) -> int:
        return len(self._records)

    def _scan(self, predicates: Sequence[Predicate], cancel: CancelScope | None) -> list[CompanyRecord]:
        out: list[CompanyRecord] = []
        for i, r in enumerate(self._records):
            if cancel is not None and i % _CANCEL_CHECK_EVERY == 0:
                cancel.raise_if_cancelled()
            if matches_all(r, predicates):
                out.append(r)
        return out

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
        matched = self._scan(predicates, cancel)
        ordered = sort_records(matched, sort)
        return PageResult(
            rows=ordered[offset : offset + limit],
            total=len(matched) if count else None,
        )

    def fetch_all(
        self,
        predicates: Sequence[Predicate],
        *,
        cancel: CancelScope | None = None,
    ) -> list[CompanyRecord]:
        return self._scan(predicates, cancel)

    @cached_property
    def _facets(self) -> FacetOptions:
        return facets_from_records(self._records)

    def facet_options(self) -> FacetOptions:
        return self._facets

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class AtlasError(Exception):
    pass


class ValidationError(AtlasError):
    """
    Malformed filter/bounds input. Maps to HTTP 400 and is never retried.
    """

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


class StoreError(AtlasError):
    """
    The record store failed to answer a query. Maps to HTTP 500.
    """


class QueryCancelled(AtlasError):
    """
    The caller abandoned the request while a store query was in flight.
    """

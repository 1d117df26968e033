from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from filters.params import PRESET_FILTER_PARAMS


class DatasetSort(BaseModel):
    field: str = "name"
    order: Literal["asc", "desc"] = "asc"


class DatasetPreset(BaseModel):
    """
    A named, filtered view of the company corpus (e.g. "am-systems-manufacturers").

    `filters` uses the same parameter names as the HTTP API. When a request names
    a preset, these values sit underneath the request's own parameters.
    """

    id: str
    name: str
    description: str = ""
    enabled: bool = True
    mapType: Literal["equipment", "service", "material", "software"] | None = None
    filters: dict[str, Any] = Field(default_factory=dict)
    defaultSort: DatasetSort | None = None

    @field_validator("filters")
    @classmethod
    def _known_filter_params(cls, v: dict[str, Any]) -> dict[str, Any]:
        unknown = sorted(k for k in v if k not in PRESET_FILTER_PARAMS)
        if unknown:
            raise ValueError(f"Unknown preset filter parameters: {', '.join(unknown)}")
        return v

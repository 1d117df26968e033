from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional

from aggregate.types import RegionGranularity
from errors import FieldError
from filters.params import (
    CAPABILITY_PARAMS,
    DEFAULT_LIMIT,
    DEFAULT_SORT_FIELD,
    MAX_LIMIT,
    OVERLAP_PARAMS,
    SET_PARAMS,
)
from filters.types import CompileResult, FilterSpec, RequestOptions, SortSpec
from geo.bounds import GeoBounds, bounds_errors
from presets.registry import find_preset
from presets.types import DatasetPreset
from records.types import SORTABLE_FIELDS

PresetLookup = Callable[[str], Optional[DatasetPreset]]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class _Errors:
    def __init__(self) -> None:
        self.items: list[FieldError] = []

    def add(self, field: str, message: str) -> None:
        self.items.append(FieldError(field=field, message=message))


def _text_set(name: str, raw: Any, errs: _Errors) -> tuple[str, ...] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        # Comma-joined list; blank pieces ("a,,b") are dropped.
        values = [p.strip() for p in raw.split(",")]
        values = [v for v in values if v]
        if not values:
            errs.add(name, "must contain at least one non-empty value")
            return None
    elif isinstance(raw, (list, tuple)):
        if not raw:
            errs.add(name, "cannot be empty")
            return None
        values = []
        for item in raw:
            if not isinstance(item, str) or not item.strip():
                errs.add(name, "values must be non-empty strings")
                return None
            values.append(item.strip())
    else:
        errs.add(name, "must be a string or a list of strings")
        return None
    return tuple(dict.fromkeys(values))


def _bool(name: str, raw: Any, errs: _Errors) -> bool | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        s = raw.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
    errs.add(name, "must be true or false")
    return None


def _int(name: str, raw: Any, errs: _Errors) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        errs.add(name, "must be an integer")
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            pass
    errs.add(name, "must be an integer")
    return None


def _search(raw: Any, errs: _Errors) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        errs.add("search", "must be a string")
        return None
    term = " ".join(raw.split())
    return term or None


def _bounds(raw: Any, errs: _Errors) -> GeoBounds | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            errs.add("bounds", "must be valid JSON")
            return None
    bounds, messages = bounds_errors(raw)
    for m in messages:
        errs.add("bounds", m)
    return bounds


def _sort(
    raw_field: Any,
    raw_order: Any,
    default: SortSpec,
) -> SortSpec:
    if raw_field is None and raw_order is None:
        return default
    field = raw_field.strip() if isinstance(raw_field, str) else default.field
    if field not in SORTABLE_FIELDS:
        return SortSpec(field=DEFAULT_SORT_FIELD, descending=False)
    order = raw_order.strip().lower() if isinstance(raw_order, str) else "asc"
    return SortSpec(field=field, descending=order == "desc")


def _region(raw: Any, errs: _Errors) -> RegionGranularity:
    if raw is None:
        return RegionGranularity.country
    if isinstance(raw, str):
        try:
            return RegionGranularity(raw.strip().lower())
        except ValueError:
            pass
    errs.add("region", "must be one of: state, country")
    return RegionGranularity.country


def _merge_preset(
    params: dict[str, Any],
    lookup: PresetLookup,
    errs: _Errors,
) -> tuple[dict[str, Any], DatasetPreset | None]:
    raw_id = params.pop("dataset", None)
    alt_id = params.pop("datasetId", None)
    dataset_id = raw_id if raw_id is not None else alt_id
    if dataset_id is None:
        return params, None
    if not isinstance(dataset_id, str) or not dataset_id.strip():
        errs.add("dataset", "must be a non-empty string")
        return params, None

    preset = lookup(dataset_id.strip())
    if preset is None:
        errs.add("dataset", f"unknown dataset '{dataset_id.strip()}'")
        return params, None

    # Explicit request values win over the preset's.
    merged = dict(preset.filters)
    merged.update(params)
    return merged, preset


def compile_filters(
    params: Mapping[str, Any],
    *,
    presets: PresetLookup | None = None,
) -> CompileResult:
    """
    Validate a loosely-typed parameter bag (query string or JSON body).

    Values may be strings (lists comma-joined, bounds as JSON text) or already
    decoded JSON values. Unknown parameters are ignored. Never raises for bad
    input: problems come back as FieldErrors.
    """
    errs = _Errors()
    merged, preset = _merge_preset(dict(params), presets or find_preset, errs)

    sets = {attr: _text_set(name, merged.get(name), errs) for name, attr in SET_PARAMS.items()}
    overlaps = {attr: _text_set(name, merged.get(name), errs) for name, attr in OVERLAP_PARAMS.items()}

    capabilities = set()
    for name, cap in CAPABILITY_PARAMS.items():
        if _bool(name, merged.get(name), errs):
            capabilities.add(cap)

    founded_min = _int("foundedYearMin", merged.get("foundedYearMin"), errs)
    founded_max = _int("foundedYearMax", merged.get("foundedYearMax"), errs)
    if founded_min is not None and founded_max is not None and founded_min > founded_max:
        errs.add("foundedYearMin", "cannot be greater than foundedYearMax")

    page = _int("page", merged.get("page"), errs)
    if page is not None and page < 1:
        errs.add("page", "must be a positive integer")
    limit = _int("limit", merged.get("limit"), errs)
    limit = DEFAULT_LIMIT if limit is None else max(1, min(MAX_LIMIT, limit))

    default_sort = SortSpec()
    if preset is not None and preset.defaultSort is not None:
        default_sort = _sort(preset.defaultSort.field, preset.defaultSort.order, SortSpec())

    spec_kwargs: dict[str, Any] = dict(
        search=_search(merged.get("search"), errs),
        is_active=_bool("isActive", merged.get("isActive"), errs),
        capabilities=frozenset(capabilities),
        founded_year_min=founded_min,
        founded_year_max=founded_max,
        bounds=_bounds(merged.get("bounds"), errs),
        page=page or 1,
        limit=limit,
        sort=_sort(merged.get("sortBy"), merged.get("sortOrder"), default_sort),
        dataset=preset.id if preset is not None else None,
        **sets,
        **overlaps,
    )
    options = RequestOptions(
        include_count=_bool("includeCount", merged.get("includeCount"), errs) is not False,
        include_filters=_bool("includeFilters", merged.get("includeFilters"), errs) is not False,
        region=_region(merged.get("region"), errs),
    )

    if errs.items:
        return CompileResult(errors=errs.items)
    return CompileResult(spec=FilterSpec(**spec_kwargs), options=options)


def describe_filters(spec: FilterSpec) -> str:
    """
    Short human-readable summary, e.g. 'equipment companies in Germany matching "laser"'.
    """
    parts: list[str] = []
    if spec.company_type:
        parts.append(f"{', '.join(spec.company_type)} companies")
    if spec.company_role:
        parts.append(f"({', '.join(spec.company_role)})")
    if spec.country:
        parts.append(f"in {', '.join(spec.country)}")
    if spec.technologies:
        parts.append(f"using {', '.join(spec.technologies)}")
    if spec.segment:
        parts.append(f"({', '.join(spec.segment)} segment)")
    if spec.search:
        parts.append(f'matching "{spec.search}"')
    if spec.bounds is not None:
        parts.append("within the map view")
    return " ".join(parts) if parts else "All companies"

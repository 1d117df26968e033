from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from records.config import data_path
from records.types import CompanyRecord

logger = logging.getLogger(__name__)

# Input key (camelCase as exported by the UI/API, or snake_case) -> attribute.
_KEY_ALIASES: dict[str, str] = {
    "companyType": "company_type",
    "companyRole": "company_role",
    "primaryMarket": "primary_market",
    "isActive": "is_active",
    "foundedYear": "founded_year",
    "serviceTypes": "service_types",
    "equipmentCount": "equipment_count",
    "serviceCount": "service_count",
    "latitude": "lat",
    "longitude": "lng",
    "lon": "lng",
}

_LIST_FIELDS = ("technologies", "materials", "service_types")
_TEXT_FIELDS = (
    "company_type",
    "company_role",
    "segment",
    "primary_market",
    "country",
    "state",
    "city",
    "website",
)


def _opt_text(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _opt_float(v: Any) -> float | None:
    if v is None or v == "":
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _opt_int(v: Any) -> int | None:
    if v is None or v == "":
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _text_list(v: Any) -> tuple[str, ...]:
    if v is None:
        return ()
    if isinstance(v, str):
        v = v.split(",")
    out = []
    for item in v:
        s = _opt_text(item)
        if s is not None and s not in out:
            out.append(s)
    return tuple(out)


def record_from_dict(raw: dict[str, Any]) -> CompanyRecord:
    """
    Build a record from a loosely-shaped mapping (camelCase or snake_case keys).
    """
    data = {_KEY_ALIASES.get(k, k): v for k, v in raw.items()}
    rid = _opt_text(data.get("id"))
    name = _opt_text(data.get("name"))
    if rid is None or name is None:
        raise ValueError(f"Company record requires `id` and `name`: {raw!r}")

    kwargs: dict[str, Any] = {f: _opt_text(data.get(f)) for f in _TEXT_FIELDS}
    kwargs.update({f: _text_list(data.get(f)) for f in _LIST_FIELDS})
    active = data.get("is_active", True)
    if isinstance(active, str):
        active = active.strip().lower() not in {"0", "false", "no", "off"}
    return CompanyRecord(
        id=rid,
        name=name,
        lat=_opt_float(data.get("lat")),
        lng=_opt_float(data.get("lng")),
        is_active=bool(active),
        founded_year=_opt_int(data.get("founded_year")),
        equipment_count=max(0, _opt_int(data.get("equipment_count")) or 0),
        service_count=max(0, _opt_int(data.get("service_count")) or 0),
        **kwargs,
    )


def records_from_dicts(rows: Iterable[dict[str, Any]]) -> list[CompanyRecord]:
    return [record_from_dict(r) for r in rows]


def unique_by_id(records: Iterable[CompanyRecord]) -> list[CompanyRecord]:
    """Drop records whose id was already seen; the first occurrence wins."""
    seen: set[str] = set()
    out: list[CompanyRecord] = []
    dropped = 0
    for r in records:
        if r.id in seen:
            dropped += 1
            continue
        seen.add(r.id)
        out.append(r)
    if dropped:
        logger.warning("Dropped %d company records with duplicate ids", dropped)
    return out


def load_records(path: Path | None = None) -> list[CompanyRecord]:
    p = path or data_path()
    data = json.loads(p.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("companies") or data.get("data") or []
    if not isinstance(data, list):
        raise ValueError(f"Invalid company data root (expected a list): {p}")
    return records_from_dicts(data)

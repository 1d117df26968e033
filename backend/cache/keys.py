from __future__ import annotations

import json
from typing import Any, Iterable
from urllib.parse import urlencode


def canonical_request_key(path: str, items: Iterable[tuple[str, Any]]) -> str:
    """
    Order-independent key for a GET request: the path plus its query pairs sorted
    by (name, value). Repeated names keep every value.
    """
    pairs = sorted((str(k), "" if v is None else str(v)) for k, v in items)
    return f"GET {path}?{urlencode(pairs)}"


def canonical_body_key(path: str, body: Any) -> str:
    """
    Key for a JSON-body request. Object keys are sorted at every level; list
    order is significant.
    """
    blob = json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return f"POST {path} {blob}"

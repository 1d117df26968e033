from __future__ import annotations

import os

# Comma list in ATLAS_CORS_ORIGINS narrows this.
DEFAULT_CORS_ORIGINS = ("*",)


def cors_origins() -> list[str]:
    raw = (os.getenv("ATLAS_CORS_ORIGINS") or "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [o.strip() for o in raw.split(",") if o.strip()]

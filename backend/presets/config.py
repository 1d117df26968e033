from __future__ import annotations

import os
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def datasets_dir() -> Path:
    raw = (os.getenv("ATLAS_DATASETS_DIR") or "").strip()
    if raw:
        p = Path(raw)
        return p if p.is_absolute() else _repo_root() / p
    return _repo_root() / "datasets"

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from presets.config import datasets_dir
from presets.types import DatasetPreset


def _iter_preset_yaml_files() -> Iterable[Path]:
    root = datasets_dir()
    if not root.exists():
        return []
    # Convention: datasets/<id>.yaml
    return root.glob("*.yaml")


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid dataset yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_registry() -> dict[str, DatasetPreset]:
    out: dict[str, DatasetPreset] = {}
    for p in sorted(_iter_preset_yaml_files(), key=lambda x: str(x)):
        preset = DatasetPreset.model_validate(_load_yaml(p))
        if preset.id in out:
            raise ValueError(f"Duplicate dataset id `{preset.id}`: {p}")
        out[preset.id] = preset
    return out


def list_presets() -> list[DatasetPreset]:
    return [p for p in get_registry().values() if p.enabled]


def find_preset(preset_id: str | None) -> DatasetPreset | None:
    pid = (preset_id or "").strip()
    preset = get_registry().get(pid)
    if preset is None or not preset.enabled:
        return None
    return preset


def clear_registry_cache() -> None:
    """
    Clear the in-memory preset registry.

    Preset YAML changes are otherwise not picked up until the process restarts.
    """
    get_registry.cache_clear()

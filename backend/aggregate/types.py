from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class RegionGranularity(str, Enum):
    state = "state"
    country = "country"


class IntensityMetric(str, Enum):
    total_machines = "totalMachines"
    company_count = "companyCount"


@dataclass(frozen=True)
class RegionStat:
    region_key: str
    country: str | None
    state: str | None
    company_count: int
    total_machines: int


@dataclass(frozen=True)
class QuantileBucket:
    index: int
    color: str
    min: int
    max: int | None
    label: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "color": self.color,
            "min": self.min,
            "max": self.max,
            "label": self.label,
        }

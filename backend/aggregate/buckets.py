from __future__ import annotations

import math
from typing import Iterable, Sequence

from aggregate.types import QuantileBucket

# Low -> high intensity.
PALETTE: tuple[str, ...] = ("#FFEDA0", "#FED976", "#FEB24C", "#FD8D3C", "#E31A1C")
NO_DATA_COLOR = "#E5E7EB"
QUANTILES: tuple[float, ...] = (0.2, 0.4, 0.6, 0.8)


def quantile_thresholds(intensities: Iterable[float]) -> list[float]:
    """
    Thresholds at the 20/40/60/80th percentile positions of the positive values.

    Index is floor((n-1) * p) into the ascending list. Repeated values collapse,
    so fewer than four thresholds come back for skewed distributions.
    """
    xs = sorted(v for v in intensities if v > 0)
    if not xs:
        return []
    out: list[float] = []
    for p in QUANTILES:
        t = xs[math.floor((len(xs) - 1) * p)]
        if not out or t != out[-1]:
            out.append(t)
    return out


def bucket_index(intensity: float, thresholds: Sequence[float]) -> int | None:
    """
    Number of thresholds the value exceeds; None for zero ("no data").
    """
    if intensity <= 0:
        return None
    return sum(1 for t in thresholds if intensity > t)


def bucket_color(index: int | None) -> str:
    if index is None:
        return NO_DATA_COLOR
    return PALETTE[min(index, len(PALETTE) - 1)]


def build_buckets(intensities: Iterable[float], thresholds: Sequence[float]) -> list[QuantileBucket]:
    """
    Legend entries for the classes that can hold data.

    The top, open-ended class only exists when some value exceeds the last
    threshold, so a single shared value yields exactly one bucket.
    """
    xs = [v for v in intensities if v > 0]
    if not xs or not thresholds:
        return []

    n = len(thresholds) + (1 if max(xs) > thresholds[-1] else 0)
    lower_edges = [0.0, *thresholds]
    out: list[QuantileBucket] = []
    for i in range(n):
        lo = 1 if i == 0 else math.floor(lower_edges[i]) + 1
        hi = math.floor(thresholds[i]) if i < len(thresholds) else None
        if hi is not None:
            lo = min(lo, hi)
        label = f"{lo}-{hi}" if hi is not None else f"{lo}+"
        out.append(QuantileBucket(index=i, color=bucket_color(i), min=lo, max=hi, label=label))
    return out

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from aggregate.buckets import bucket_color, bucket_index, build_buckets, quantile_thresholds
from aggregate.types import IntensityMetric, QuantileBucket, RegionGranularity, RegionStat
from geo.countries import normalize_country_name
from records.types import CompanyRecord

KeyFn = Callable[[CompanyRecord], Optional[str]]
MachinesFn = Callable[[CompanyRecord], Optional[float]]


def default_machines(record: CompanyRecord) -> float | None:
    return record.equipment_count


@dataclass(frozen=True)
class ShadedRegion:
    stat: RegionStat
    intensity: int
    bucket: int | None
    color: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "regionKey": self.stat.region_key,
            "country": self.stat.country,
            "state": self.stat.state,
            "companyCount": self.stat.company_count,
            "totalMachines": self.stat.total_machines,
            "intensity": self.intensity,
            "bucket": self.bucket,
            "color": self.color,
        }


@dataclass(frozen=True)
class RegionAggregation:
    granularity: RegionGranularity
    metric: IntensityMetric
    regions: list[ShadedRegion]
    buckets: list[QuantileBucket]
    thresholds: list[float] = field(default_factory=list)
    unassigned: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "granularity": self.granularity.value,
            "metric": self.metric.value,
            "regions": [r.to_dict() for r in self.regions],
            "buckets": [b.to_dict() for b in self.buckets],
            "thresholds": list(self.thresholds),
            "unassigned": self.unassigned,
        }


def _region_of(
    record: CompanyRecord, granularity: RegionGranularity
) -> tuple[str, str | None, str | None] | None:
    country = normalize_country_name(record.country)
    if granularity == RegionGranularity.state:
        state = (record.state or "").strip()
        if not state:
            return None
        return f"{state}-{country or ''}", country, state
    if country is None:
        return None
    return country, country, None


def aggregate_regions(
    rows: Iterable[CompanyRecord],
    granularity: RegionGranularity = RegionGranularity.country,
    *,
    key_fn: KeyFn | None = None,
    machines_fn: MachinesFn | None = None,
) -> RegionAggregation:
    """
    Group rows by region and shade each region by quantile bucket.

    `key_fn` overrides the granularity-derived region key (its regions carry no
    country/state). Intensity is totalMachines when any region has machines,
    otherwise companyCount.
    """
    machines = machines_fn or default_machines
    groups: dict[str, dict[str, CompanyRecord]] = {}
    labels: dict[str, tuple[str | None, str | None]] = {}
    unassigned = 0

    for r in rows:
        if key_fn is not None:
            key = key_fn(r)
            where = (None, None)
        else:
            region = _region_of(r, granularity)
            key, where = (region[0], region[1:]) if region else (None, (None, None))
        if not key:
            unassigned += 1
            continue
        # Companies count once per region even if the store returns duplicates.
        groups.setdefault(key, {}).setdefault(r.id, r)
        labels.setdefault(key, where)

    stats: list[RegionStat] = []
    for key in sorted(groups):
        members = groups[key]
        total = 0.0
        for r in members.values():
            v = machines(r)
            total += float(v) if v and v > 0 else 0.0
        country, state = labels[key]
        stats.append(
            RegionStat(
                region_key=key,
                country=country,
                state=state,
                company_count=len(members),
                total_machines=int(round(total)),
            )
        )

    metric = (
        IntensityMetric.total_machines
        if any(s.total_machines > 0 for s in stats)
        else IntensityMetric.company_count
    )

    def intensity(s: RegionStat) -> int:
        return s.total_machines if metric == IntensityMetric.total_machines else s.company_count

    values = [intensity(s) for s in stats]
    thresholds = quantile_thresholds(values)
    shaded = []
    for s, v in zip(stats, values):
        idx = bucket_index(v, thresholds)
        shaded.append(ShadedRegion(stat=s, intensity=v, bucket=idx, color=bucket_color(idx)))

    return RegionAggregation(
        granularity=granularity,
        metric=metric,
        regions=shaded,
        buckets=build_buckets(values, thresholds),
        thresholds=thresholds,
        unassigned=unassigned,
    )

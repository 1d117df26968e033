from __future__ import annotations

from aggregate.buckets import NO_DATA_COLOR, PALETTE
from aggregate.regions import aggregate_regions
from aggregate.types import IntensityMetric, RegionGranularity


def _by_key(agg):
    return {r.stat.region_key: r for r in agg.regions}


def test_country_grouping_normalizes_names_and_counts_distinct_companies(make_record):
    rows = [
        make_record(id="1", country="USA", equipment_count=5),
        make_record(id="2", country="United States", equipment_count=3),
        make_record(id="2", country="United States", equipment_count=3),
        make_record(id="3", country="Germany", equipment_count=0),
        make_record(id="4", country=None, equipment_count=9),
    ]
    agg = aggregate_regions(rows, RegionGranularity.country)
    regions = _by_key(agg)
    assert set(regions) == {"United States", "Germany"}
    us = regions["United States"].stat
    assert (us.company_count, us.total_machines, us.country, us.state) == (2, 8, "United States", None)
    assert agg.unassigned == 1


def test_machines_metric_with_zero_regions_marked_no_data(make_record):
    rows = [
        make_record(country="Germany", equipment_count=10),
        make_record(country="France", equipment_count=2),
        make_record(country="Italy", equipment_count=0),
    ]
    agg = aggregate_regions(rows)
    assert agg.metric == IntensityMetric.total_machines
    regions = _by_key(agg)
    assert regions["Italy"].intensity == 0
    assert regions["Italy"].bucket is None
    assert regions["Italy"].color == NO_DATA_COLOR
    assert regions["Germany"].bucket >= regions["France"].bucket
    assert regions["France"].color in PALETTE


def test_falls_back_to_company_count_without_machines(make_record):
    rows = [make_record(country="Germany"), make_record(country="Germany"), make_record(country="France")]
    agg = aggregate_regions(rows)
    assert agg.metric == IntensityMetric.company_count
    regions = _by_key(agg)
    assert regions["Germany"].intensity == 2
    assert regions["France"].intensity == 1
    assert regions["Germany"].bucket == 1
    assert regions["France"].bucket == 0


def test_state_granularity_keys_and_skips_rows_without_state(make_record):
    rows = [
        make_record(country="USA", state="California", equipment_count=4),
        make_record(country="United States", state="California", equipment_count=1),
        make_record(country="United States", state="Texas", equipment_count=2),
        make_record(country="Germany", state=None, equipment_count=7),
    ]
    agg = aggregate_regions(rows, RegionGranularity.state)
    regions = _by_key(agg)
    assert set(regions) == {"California-United States", "Texas-United States"}
    assert regions["California-United States"].stat.total_machines == 5
    assert regions["California-United States"].stat.state == "California"
    assert agg.unassigned == 1


def test_all_equal_intensity_yields_single_bucket(make_record):
    rows = [make_record(country=c, equipment_count=3) for c in ("Germany", "France", "Italy", "Spain")]
    agg = aggregate_regions(rows)
    assert len(agg.buckets) == 1
    assert {r.bucket for r in agg.regions} == {0}


def test_custom_key_function(make_record):
    rows = [make_record(city="Munich"), make_record(city="Munich"), make_record(city=None)]
    agg = aggregate_regions(rows, key_fn=lambda r: r.city)
    assert [r.stat.region_key for r in agg.regions] == ["Munich"]
    assert agg.regions[0].stat.company_count == 2
    assert agg.regions[0].stat.country is None
    assert agg.unassigned == 1


def test_serialized_shape(make_record):
    agg = aggregate_regions([make_record(country="Germany", equipment_count=2)])
    out = agg.to_dict()
    assert out["metric"] == "totalMachines"
    assert out["granularity"] == "country"
    region = out["regions"][0]
    assert set(region) == {
        "regionKey", "country", "state", "companyCount", "totalMachines", "intensity", "bucket", "color",
    }
    assert out["buckets"][0]["label"] == "1-2"

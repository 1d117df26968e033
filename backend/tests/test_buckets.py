from __future__ import annotations

import random

from aggregate.buckets import (
    NO_DATA_COLOR,
    PALETTE,
    bucket_color,
    bucket_index,
    build_buckets,
    quantile_thresholds,
)


def test_thresholds_use_floor_percentile_positions():
    values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    # n=10 -> indices floor(9*p) = 1, 3, 5, 7
    assert quantile_thresholds(values) == [2, 4, 6, 8]


def test_zero_intensities_are_excluded_from_thresholds():
    assert quantile_thresholds([0, 0, 0, 10, 20, 30, 40, 50]) == [10, 20, 30, 40]
    assert quantile_thresholds([0, 0]) == []


def test_skewed_distribution_collapses_thresholds():
    values = [1] * 9 + [100]
    assert quantile_thresholds(values) == [1]
    buckets = build_buckets(values, quantile_thresholds(values))
    assert [b.label for b in buckets] == ["1-1", "2+"]


def test_single_shared_value_gives_one_bucket():
    values = [7, 7, 7, 7]
    thresholds = quantile_thresholds(values)
    assert thresholds == [7]
    buckets = build_buckets(values, thresholds)
    assert len(buckets) == 1
    assert {bucket_index(v, thresholds) for v in values} == {0}


def test_bucket_index_counts_exceeded_thresholds():
    t = [2, 4, 6, 8]
    assert bucket_index(1, t) == 0
    assert bucket_index(2, t) == 0
    assert bucket_index(3, t) == 1
    assert bucket_index(8, t) == 3
    assert bucket_index(9, t) == 4
    assert bucket_index(0, t) is None


def test_bucket_monotonicity():
    rng = random.Random(11)
    for _ in range(50):
        values = [rng.randint(0, 40) for _ in range(rng.randint(1, 30))]
        t = quantile_thresholds(values)
        positive = sorted(v for v in values if v > 0)
        for a, b in zip(positive, positive[1:]):
            assert bucket_index(b, t) >= bucket_index(a, t)


def test_legend_labels_and_colors():
    values = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
    buckets = build_buckets(values, quantile_thresholds(values))
    assert [b.label for b in buckets] == ["1-2", "3-4", "5-6", "7-8", "9+"]
    assert [b.color for b in buckets] == list(PALETTE)
    assert buckets[-1].max is None
    assert buckets[0].to_dict()["min"] == 1


def test_no_data_color():
    assert bucket_color(None) == NO_DATA_COLOR
    assert bucket_color(0) == PALETTE[0]

from __future__ import annotations

import random

from geo.countries import COUNTRY_CENTROIDS, country_centroid, normalize_country_name
from geo.resolver import MAX_JITTER_LAT, MAX_JITTER_LNG, CoordinateResolver, no_jitter


def test_precise_coordinates_pass_through(make_record):
    r = make_record(country="Germany", lat=48.1, lng=11.5)
    m = CoordinateResolver().resolve(r)
    assert (m.lat, m.lng, m.is_fallback) == (48.1, 11.5, False)
    assert m.company_id == r.id


def test_half_coordinates_use_the_centroid(make_record):
    m = CoordinateResolver(jitter=no_jitter).resolve(make_record(country="Germany", lat=48.1, lng=None))
    assert m.is_fallback
    assert (m.lat, m.lng) == COUNTRY_CENTROIDS["Germany"]


def test_fallback_stays_within_jitter_box(make_record):
    random.seed(7)
    resolver = CoordinateResolver()
    c_lat, c_lng = COUNTRY_CENTROIDS["Japan"]
    for _ in range(500):
        m = resolver.resolve(make_record(country="Japan"))
        assert m.is_fallback
        assert abs(m.lat - c_lat) <= MAX_JITTER_LAT
        assert abs(m.lng - c_lng) <= MAX_JITTER_LNG


def test_runaway_jitter_is_clamped(make_record):
    resolver = CoordinateResolver(jitter=lambda max_lat, max_lng: (5.0, -9.0))
    m = resolver.resolve(make_record(country="France"))
    c_lat, c_lng = COUNTRY_CENTROIDS["France"]
    assert m.lat == c_lat + MAX_JITTER_LAT
    assert m.lng == c_lng - MAX_JITTER_LNG


def test_aliases_resolve_to_table_names(make_record):
    assert normalize_country_name(" USA ") == "United States"
    assert normalize_country_name("Czechia") == "Czech Republic"
    assert normalize_country_name("germany") == "Germany"
    assert normalize_country_name("") is None
    assert country_centroid("holland") == COUNTRY_CENTROIDS["Netherlands"]

    m = CoordinateResolver(jitter=no_jitter).resolve(make_record(country="United States of America"))
    assert (m.lat, m.lng) == COUNTRY_CENTROIDS["United States"]


def test_unknown_country_is_omitted_but_counted(make_record):
    rows = [
        make_record(country="Germany", lat=50.0, lng=10.0),
        make_record(country="Germany"),
        make_record(country="Atlantis"),
        make_record(country=None),
    ]
    result = CoordinateResolver(jitter=no_jitter).resolve_all(rows)
    assert len(result.markers) == 2
    d = result.diagnostics.to_dict()
    assert d == {"total": 4, "precise": 1, "fallback": 1, "omitted": 2, "missingCoordinates": 3}

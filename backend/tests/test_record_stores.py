from __future__ import annotations

import pytest

from engine.cancel import CancelScope
from engine.duckdb import DuckDBStore
from engine.in_memory import InMemoryStore
from errors import QueryCancelled
from filters.compiler import compile_filters
from filters.predicates import Exists, Overlap, Range, SetMembership, TextMatch, build_predicates
from filters.types import SortSpec


def _no_presets(_: str):
    return None


@pytest.fixture
def corpus(make_record):
    return [
        make_record(id="a", name="Alpha Additive", country="Germany", company_type="equipment",
                    lat=55.0, lng=15.0, technologies=["Powder Bed Fusion"], equipment_count=4,
                    founded_year=2001, website="https://alpha.example"),
        make_record(id="b", name="Beta Print", country="Germany", company_type="service",
                    lat=47.0, lng=5.0, technologies=["Binder Jetting", "Material Extrusion"], equipment_count=0,
                    founded_year=None),
        make_record(id="c", name="Gamma Labs", country="France", company_type="equipment",
                    lat=None, lng=None, technologies=[], equipment_count=2, founded_year=1995),
        make_record(id="d", name="delta resins", country="Germany", company_type="material",
                    lat=50.0, lng=10.0, materials=["Photopolymer"], is_active=False, founded_year=2015),
        make_record(id="e", name="Epsilon Alpha", country="Italy", company_type="equipment",
                    lat=55.0001, lng=15.0, technologies=["Material Extrusion"], equipment_count=1),
    ]


BACKENDS = ["in_memory", "duckdb"]


def _build(kind: str, records):
    if kind == "duckdb":
        return DuckDBStore(records=records)
    return InMemoryStore(records)


@pytest.fixture(params=BACKENDS)
def store(request, corpus):
    s = _build(request.param, corpus)
    yield s
    if isinstance(s, DuckDBStore):
        s.close()


def _ids(rows) -> list[str]:
    return [r.id for r in rows]


def _spec(**params):
    res = compile_filters(params, presets=_no_presets)
    assert res.ok, res.errors
    return res.spec


def test_set_membership_ors_within_and_ands_across(store):
    preds = [
        SetMembership("country", ("Germany", "Italy")),
        SetMembership("company_type", ("equipment",)),
    ]
    page = store.fetch_page(preds, SortSpec(), offset=0, limit=10, count=True)
    assert _ids(page.rows) == ["a", "e"]
    assert page.total == 2


def test_overlap_matches_any_requested_value(store):
    preds = [Overlap("technologies", ("Binder Jetting", "Powder Bed Fusion"))]
    assert sorted(_ids(store.fetch_all(preds))) == ["a", "b"]


def test_bounds_are_inclusive_and_skip_missing_coordinates(store):
    spec = _spec(bounds={"north": 55.0, "south": 47.0, "east": 15.0, "west": 5.0})
    rows = store.fetch_all(build_predicates(spec))
    # a sits exactly on (north, east), b exactly on (south, west); c has no coordinates.
    assert sorted(_ids(rows)) == ["a", "b", "d"]

    rows = store.fetch_all(build_predicates(spec, include_bounds=False))
    assert len(rows) == 5


def test_text_match_is_case_insensitive_substring_on_name(store):
    rows = store.fetch_all([TextMatch(("name",), "ALPHA")])
    assert sorted(_ids(rows)) == ["a", "e"]


def test_range_never_matches_null(store):
    rows = store.fetch_all([Range("founded_year", min=1990, max=2010)])
    assert sorted(_ids(rows)) == ["a", "c"]


def test_exists_and_capabilities(store):
    assert _ids(store.fetch_all([Exists("website")])) == ["a"]
    spec = _spec(hasEquipment="true", hasCoordinates="true")
    assert sorted(_ids(store.fetch_all(build_predicates(spec)))) == ["a", "e"]


def test_is_active_filter(store):
    rows = store.fetch_all([SetMembership("is_active", (False,))])
    assert _ids(rows) == ["d"]


def test_sort_nulls_last_in_both_directions(store):
    asc = store.fetch_page([], SortSpec("foundedYear", False), offset=0, limit=10, count=False)
    assert _ids(asc.rows) == ["c", "a", "d", "b", "e"]
    desc = store.fetch_page([], SortSpec("foundedYear", True), offset=0, limit=10, count=False)
    assert _ids(desc.rows) == ["d", "a", "c", "b", "e"]
    assert asc.total is None


def test_facets_cover_the_whole_corpus(store):
    facets = store.facet_options()
    assert facets.countries == ["France", "Germany", "Italy"]
    assert facets.company_types == ["equipment", "material", "service"]
    assert facets.technologies == ["Binder Jetting", "Material Extrusion", "Powder Bed Fusion"]
    assert facets.materials == ["Photopolymer"]
    assert store.size() == 5


@pytest.mark.parametrize("kind", BACKENDS)
def test_pagination_contract(kind, make_record):
    rows = [make_record(id=f"r{i:03d}", name=f"Company {i:03d}", country="Germany") for i in range(1, 121)]
    s = _build(kind, rows)
    spec = _spec(limit="50", page="2")
    page = s.fetch_page(build_predicates(spec), spec.sort, offset=spec.offset, limit=spec.limit, count=True)
    assert _ids(page.rows) == [f"r{i:03d}" for i in range(51, 101)]
    assert page.total == 120


@pytest.mark.parametrize("kind", BACKENDS)
def test_page_beyond_any_offset_is_empty(kind, corpus):
    s = _build(kind, corpus)
    spec = _spec(page=str(10**18))
    page = s.fetch_page(build_predicates(spec), spec.sort, offset=spec.offset, limit=spec.limit, count=True)
    assert page.rows == []
    assert page.total == 5


@pytest.mark.parametrize("kind", BACKENDS)
def test_duplicate_ids_keep_the_first_record(kind, make_record):
    rows = [
        make_record(id="dup", name="First Additive", country="Germany"),
        make_record(id="solo", name="Solo Print", country="France"),
        make_record(id="dup", name="Second Additive", country="Italy"),
    ]
    s = _build(kind, rows)
    assert s.size() == 2
    page = s.fetch_page([], SortSpec(), offset=0, limit=10, count=True)
    assert page.total == 2
    assert {r.id: r.name for r in page.rows} == {"dup": "First Additive", "solo": "Solo Print"}
    assert s.fetch_all([SetMembership("country", ("Italy",))]) == []


def test_cancelled_scope_aborts_before_querying(store):
    scope = CancelScope()
    scope.cancel()
    with pytest.raises(QueryCancelled):
        store.fetch_all([], cancel=scope)


def test_duckdb_seeds_only_an_empty_table(tmp_path, corpus, make_record):
    path = str(tmp_path / "companies.duckdb")
    first = DuckDBStore(path=path, records=corpus)
    assert first.size() == 5
    first.close()

    loaded = []

    def loader():
        loaded.append(True)
        return [make_record(id="zzz", name="Never seeded")]

    second = DuckDBStore(path=path, records_loader=loader)
    assert second.size() == 5
    assert loaded == []
    second.close()


def test_duckdb_reconnects_after_close(corpus):
    s = DuckDBStore(records=corpus)
    assert s.size() == 5
    s.close()
    # A closed in-memory database is gone; the next query reconnects and reseeds.
    assert s.size() == 5
    assert _ids(s.fetch_all([SetMembership("country", ("France",))])) == ["c"]
    s.close()

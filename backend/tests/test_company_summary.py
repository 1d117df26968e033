from __future__ import annotations

from aggregate.summary import TOP_CITIES, TOP_STATES, percentage, summarize_companies


def test_percentage_rounds_halves_up_and_guards_zero():
    assert percentage(1, 8) == 13  # 12.5
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(5, 0) == 0


def test_distributions_count_distinct_companies(make_record):
    rows = [
        make_record(id="a", company_type="equipment", state="Bavaria", city="Munich",
                    technologies=["Powder Bed Fusion", "Binder Jetting"], materials=["Metal"]),
        make_record(id="b", company_type="Service", state="Bavaria", city="Munich",
                    technologies=["Powder Bed Fusion"], materials=["Metal", "Polymer"]),
        make_record(id="b", company_type="Service", state="Bavaria", city="Munich",
                    technologies=["Powder Bed Fusion"], materials=["Metal", "Polymer"]),
        make_record(id="c", company_type=None, state="  ", city="Lyon"),
        make_record(id="d", company_type="equipment", state="Hesse", city=None,
                    technologies=["Binder Jetting"]),
    ]
    summary = summarize_companies(rows).to_dict()

    assert summary["totalCompanies"] == 4
    assert summary["totalStates"] == 2
    assert summary["totalTechnologies"] == 2
    assert summary["stateDistribution"] == [
        {"state": "Bavaria", "companies": 2, "percentage": 50},
        {"state": "Hesse", "companies": 1, "percentage": 25},
    ]
    assert summary["technologyDistribution"] == [
        {"tech": "Powder Bed Fusion", "companies": 2, "percentage": 50},
        {"tech": "Binder Jetting", "companies": 2, "percentage": 50},
    ]
    assert summary["materialDistribution"][0] == {"material": "Metal", "companies": 2, "percentage": 50}
    assert summary["companyTypes"] == [
        {"type": "Equipment", "companies": 2, "percentage": 50},
        {"type": "Service", "companies": 1, "percentage": 25},
        {"type": "Other", "companies": 1, "percentage": 25},
    ]
    assert summary["topCities"] == [
        {"city": "Munich, Bavaria", "companies": 2},
        {"city": "Lyon", "companies": 1},
    ]


def test_states_and_cities_are_capped(make_record):
    rows = [make_record(state=f"State {i:02d}", city=f"City {i:02d}") for i in range(12)]
    summary = summarize_companies(rows)
    assert summary.total_states == 12
    assert len(summary.states) == TOP_STATES
    assert len(summary.top_cities) == TOP_CITIES


def test_empty_rows():
    summary = summarize_companies([]).to_dict()
    assert summary["totalCompanies"] == 0
    assert summary["stateDistribution"] == []
    assert summary["companyTypes"] == []

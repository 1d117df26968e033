from __future__ import annotations

# Request parameter -> CompanyRecord attribute, per filter dimension.
SET_PARAMS: dict[str, str] = {
    "companyType": "company_type",
    "companyRole": "company_role",
    "segment": "segment",
    "country": "country",
    "state": "state",
    "city": "city",
    "primaryMarket": "primary_market",
}

# Array-valued record fields; a record matches if it has ANY requested value.
OVERLAP_PARAMS: dict[str, str] = {
    "technologies": "technologies",
    "materials": "materials",
    "serviceTypes": "service_types",
}

CAPABILITY_PARAMS: dict[str, str] = {
    "hasWebsite": "website",
    "hasCoordinates": "coordinates",
    "hasEquipment": "equipment",
    "hasServices": "services",
}

SCALAR_FILTER_PARAMS = ("search", "isActive", "foundedYearMin", "foundedYearMax", "bounds")

# Parameters a dataset preset may pin.
PRESET_FILTER_PARAMS: frozenset[str] = frozenset(
    [*SET_PARAMS, *OVERLAP_PARAMS, *CAPABILITY_PARAMS, *SCALAR_FILTER_PARAMS]
)

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000
DEFAULT_SORT_FIELD = "name"

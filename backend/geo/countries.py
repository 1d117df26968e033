from __future__ import annotations

# Approximate country centroids (lat, lng), keyed by normalized country name.
# Used to place companies that lack precise coordinates.
COUNTRY_CENTROIDS: dict[str, tuple[float, float]] = {
    "Germany": (51.1657, 10.4515),
    "United States": (39.8283, -98.5795),
    "United Kingdom": (55.3781, -3.4360),
    "Netherlands": (52.1326, 5.2913),
    "China": (35.8617, 104.1954),
    "France": (46.2276, 2.2137),
    "Italy": (41.8719, 12.5674),
    "Japan": (36.2048, 138.2529),
    "South Korea": (35.9078, 127.7669),
    "Canada": (56.1304, -106.3468),
    "Austria": (47.5162, 14.5501),
    "Switzerland": (46.8182, 8.2275),
    "Israel": (31.0461, 34.8516),
    "Australia": (-25.2744, 133.7751),
    "Czech Republic": (49.8175, 15.4730),
    "Spain": (40.4637, -3.7492),
    "Sweden": (60.1282, 18.6435),
    "Denmark": (56.2639, 9.5018),
    "Finland": (61.9241, 25.7482),
    "Belgium": (50.5039, 4.4699),
    "Norway": (60.4720, 8.4689),
    "Poland": (51.9194, 19.1451),
    "Russia": (61.5240, 105.3188),
    "India": (20.5937, 78.9629),
    "Brazil": (-14.2350, -51.9253),
    "Mexico": (23.6345, -102.5528),
    "South Africa": (-30.5595, 22.9375),
    "Hong Kong": (22.3193, 114.1694),
    "Singapore": (1.3521, 103.8198),
    "Taiwan": (23.6978, 120.9605),
    "Ireland": (53.4129, -8.2439),
    "Portugal": (39.3999, -8.2245),
    "Greece": (39.0742, 21.8243),
    "Turkey": (38.9637, 35.2433),
    "Slovenia": (46.1512, 14.9955),
    "Hungary": (47.1625, 19.5033),
    "Romania": (45.9432, 24.9668),
    "Slovakia": (48.6690, 19.6990),
    "Estonia": (58.5953, 25.0136),
    "Latvia": (56.8796, 24.6032),
    "Lithuania": (55.1694, 23.8813),
}

# Lowercased spelling -> canonical name.
_COUNTRY_ALIASES: dict[str, str] = {
    "united states of america": "United States",
    "the united states": "United States",
    "usa": "United States",
    "u.s.a.": "United States",
    "us": "United States",
    "united kingdom of great britain and northern ireland": "United Kingdom",
    "the united kingdom": "United Kingdom",
    "great britain": "United Kingdom",
    "u.k.": "United Kingdom",
    "uk": "United Kingdom",
    "the netherlands": "Netherlands",
    "holland": "Netherlands",
    "russian federation": "Russia",
    "republic of korea": "South Korea",
    "korea, republic of": "South Korea",
    "korea": "South Korea",
    "czechia": "Czech Republic",
    "taiwan, province of china": "Taiwan",
    "turkiye": "Turkey",
    "türkiye": "Turkey",
    "viet nam": "Vietnam",
    "iran, islamic republic of": "Iran",
    "syrian arab republic": "Syria",
    "hong kong sar": "Hong Kong",
    "swaziland": "Eswatini",
    "burma": "Myanmar",
    "ivory coast": "Côte d'Ivoire",
    "cote d'ivoire": "Côte d'Ivoire",
    "cape verde": "Cabo Verde",
    "east timor": "Timor-Leste",
}


def normalize_country_name(raw: str | None) -> str | None:
    """
    Canonical country name: known aliases first, then title case.

    Returns None for missing/blank input.
    """
    s = " ".join(str(raw or "").split())
    if not s:
        return None
    alias = _COUNTRY_ALIASES.get(s.lower())
    if alias:
        return alias
    if s in COUNTRY_CENTROIDS:
        return s
    return " ".join(w[0].upper() + w[1:].lower() for w in s.split(" "))


def country_centroid(raw: str | None) -> tuple[float, float] | None:
    name = normalize_country_name(raw)
    if name is None:
        return None
    return COUNTRY_CENTROIDS.get(name)

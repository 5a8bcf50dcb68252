"""
modules/hubs/seed_data.py
-------------------------
Hand-curated highway hubs shipped with the app so the very first trip along
a major North-American corridor already gets named fuel stops.

Each row: (name, lat, lng, coverage radius km, POI count).
Radius and POI count follow the same tiers as runtime discovery.
"""

from __future__ import annotations

from schemas.hub import DiscoveredHub

SEED_DATE = "2026-01-01T00:00:00+00:00"

_Row = tuple[str, float, float, float, int]

# ── I-94 corridor (Seattle → Detroit) ─────────────────────────────────────────
I94_CORRIDOR: list[_Row] = [
    ("Fargo, ND",        46.877,  -96.789, 30, 15),
    ("Bismarck, ND",     46.808, -100.784, 25, 10),
    ("Billings, MT",     45.783, -108.500, 30, 12),
    ("Minneapolis, MN",  44.977,  -93.265, 50, 25),
    ("St. Paul, MN",     44.954,  -93.090, 40, 20),
    ("Madison, WI",      43.074,  -89.384, 35, 15),
    ("Milwaukee, WI",    43.039,  -87.906, 45, 22),
    ("Chicago, IL",      41.878,  -87.630, 60, 50),
]

# ── I-90 corridor (Boston → Seattle) ──────────────────────────────────────────
I90_CORRIDOR: list[_Row] = [
    ("Sioux Falls, SD",     43.545,  -96.731, 30, 12),
    ("Rapid City, SD",      44.080, -103.231, 25, 10),
    ("Albert Lea, MN",      43.648,  -93.368, 20,  8),
    ("Rochester, MN",       44.021,  -92.470, 30, 15),
    ("La Crosse, WI",       43.801,  -91.239, 25, 10),
    ("Wisconsin Dells, WI", 43.627,  -89.771, 25, 12),
    ("Rockford, IL",        42.271,  -89.094, 30, 12),
]

# ── Trans-Canada (Calgary → Sault Ste. Marie) ─────────────────────────────────
TRANS_CANADA_CENTRAL: list[_Row] = [
    ("Winnipeg, MB",         49.895,  -97.138, 45, 25),
    ("Brandon, MB",          49.848,  -99.950, 25, 10),
    ("Regina, SK",           50.445, -104.619, 35, 15),
    ("Saskatoon, SK",        52.157, -106.670, 35, 15),
    ("Calgary, AB",          51.049, -114.071, 50, 30),
    ("Edmonton, AB",         53.546, -113.494, 50, 30),
    ("Kenora, ON",           49.767,  -94.490, 20,  8),
    ("Thunder Bay, ON",      48.382,  -89.246, 30, 12),
    ("Sault Ste. Marie, ON", 46.522,  -84.346, 25, 10),
]

# ── BC corridor (Calgary → Vancouver) ─────────────────────────────────────────
BC_CORRIDOR: list[_Row] = [
    ("Golden, BC",     51.296, -116.965, 20,  6),
    ("Revelstoke, BC", 50.999, -118.196, 20,  6),
    ("Kamloops, BC",   50.674, -120.327, 35, 18),
    ("Hope, BC",       49.381, -121.441, 20,  8),
    ("Vancouver, BC",  49.283, -123.121, 55, 40),
    ("Kelowna, BC",    49.888, -119.496, 35, 15),
]

# ── Northern Ontario (Winnipeg → Sault Ste. Marie) ────────────────────────────
NORTHERN_ONTARIO: list[_Row] = [
    ("Dryden, ON",      49.783, -92.838, 20, 6),
    ("White River, ON", 48.593, -85.281, 15, 4),
    ("Wawa, ON",        47.927, -84.779, 15, 5),
    ("Chapleau, ON",    47.842, -83.399, 15, 4),
]

# ── Ontario / Quebec (Toronto → Ottawa → Montreal) ────────────────────────────
ONTARIO_CORRIDOR: list[_Row] = [
    ("Toronto, ON",  43.653, -79.383, 60, 50),
    ("Ottawa, ON",   45.421, -75.697, 45, 25),
    ("Kingston, ON", 44.231, -76.486, 25, 10),
    ("Montreal, QC", 45.501, -73.567, 55, 40),
    ("London, ON",   42.984, -81.246, 35, 15),
    ("Hamilton, ON", 43.256, -79.869, 35, 18),
    ("Sudbury, ON",  46.522, -80.953, 25, 10),
]

# ── I-75 corridor (Michigan → Florida) ────────────────────────────────────────
I75_CORRIDOR: list[_Row] = [
    ("Detroit, MI",    42.331, -83.046, 50, 35),
    ("Toledo, OH",     41.664, -83.556, 30, 15),
    ("Cincinnati, OH", 39.103, -84.512, 45, 25),
    ("Lexington, KY",  38.040, -84.503, 30, 15),
    ("Knoxville, TN",  35.961, -83.921, 35, 18),
    ("Atlanta, GA",    33.749, -84.388, 55, 40),
    ("Tampa, FL",      27.951, -82.459, 50, 35),
]

# ── I-95 corridor (Boston → Miami) ────────────────────────────────────────────
I95_CORRIDOR: list[_Row] = [
    ("Boston, MA",       42.361, -71.057, 50, 40),
    ("Providence, RI",   41.824, -71.413, 30, 15),
    ("New York, NY",     40.713, -74.006, 60, 60),
    ("Philadelphia, PA", 39.953, -75.164, 50, 35),
    ("Baltimore, MD",    39.290, -76.612, 45, 30),
    ("Washington, DC",   38.907, -77.037, 50, 40),
    ("Richmond, VA",     37.541, -77.436, 35, 18),
    ("Jacksonville, FL", 30.332, -81.656, 45, 25),
    ("Miami, FL",        25.762, -80.192, 55, 40),
]

# ── Western US ────────────────────────────────────────────────────────────────
WESTERN_US: list[_Row] = [
    ("Seattle, WA",        47.606, -122.332, 50, 35),
    ("Portland, OR",       45.523, -122.677, 45, 30),
    ("San Francisco, CA",  37.775, -122.419, 50, 40),
    ("Los Angeles, CA",    34.052, -118.244, 60, 60),
    ("San Diego, CA",      32.716, -117.161, 50, 35),
    ("Las Vegas, NV",      36.169, -115.140, 50, 40),
    ("Phoenix, AZ",        33.449, -112.074, 55, 40),
    ("Denver, CO",         39.739, -104.990, 50, 35),
    ("Salt Lake City, UT", 40.761, -111.891, 45, 25),
    ("Boise, ID",          43.615, -116.202, 35, 18),
]

# ── Texas triangle ────────────────────────────────────────────────────────────
TEXAS: list[_Row] = [
    ("Dallas, TX",      32.777,  -96.797, 55, 45),
    ("Fort Worth, TX",  32.755,  -97.331, 45, 30),
    ("Houston, TX",     29.760,  -95.370, 55, 50),
    ("San Antonio, TX", 29.425,  -98.494, 50, 35),
    ("Austin, TX",      30.267,  -97.743, 45, 30),
    ("El Paso, TX",     31.761, -106.485, 40, 20),
]


def _build(rows: list[_Row]) -> list[DiscoveredHub]:
    return [
        DiscoveredHub(
            name=name, lat=lat, lng=lng, radius_km=float(radius), poi_count=pois,
            discovered_at=SEED_DATE, last_used=SEED_DATE, source="seed", use_count=0,
        )
        for name, lat, lng, radius, pois in rows
    ]


def seed_hubs() -> list[DiscoveredHub]:
    """Fresh DiscoveredHub objects for every corridor (new instances per call)."""
    return _build(
        I94_CORRIDOR + I90_CORRIDOR + TRANS_CANADA_CENTRAL + BC_CORRIDOR
        + NORTHERN_ONTARIO + ONTARIO_CORRIDOR + I75_CORRIDOR + I95_CORRIDOR
        + WESTERN_US + TEXAS
    )

"""Shared configuration for the moai analysis modules."""

from pathlib import Path

# ── Paths ──────────────────────────────────────────────────────────
ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT / "data"
OUTPUT_DIR = ROOT / "figures"

VAN_TILBURG_XLSX = "VanTilburgData.xlsx"
ROAD_MOAI_XLSX = "Road Moai Data.xlsx"
PUBLIC_DATABASE_XLSX = "MOAI_DATABASE_PUBLIC.xlsx"

# ── Geo matching ───────────────────────────────────────────────────
# Same sphere as geosphere::distHaversine (WGS84 semi-major axis)
EARTH_RADIUS_M = 6_378_137.0
MATCH_THRESHOLD_M = 100.0

LAT_BOUNDS = (-90.0, 90.0)
LON_BOUNDS = (-180.0, 180.0)

# Public database location types eligible as road moai matches
MATCH_LOCATION_TYPES = ("ROAD", "ISOLATED")

# ── Measurements ───────────────────────────────────────────────────
# Compared after strip() + lower()
MISSING_SENTINELS = frozenset({"missing", "n/a", "na", ""})

BASE_ANGLE_COLS = ["base_angle_1", "base_angle_2", "base_angle_3"]
SIZE_COLS = ["total_length_cm", "base_width_cm", "face_width_cm"]

# Public database column -> fused output column
PUBLIC_SIZE_COLUMNS = {
    "TOTAL_LENGTH_cm": "total_length_cm",
    "BASE_WIDTHcm": "base_width_cm",
    "FACE_WIDTHcm": "face_width_cm",
}

# ── Van Tilburg location coding ───────────────────────────────────
# Locations 1-6 are ahu sites, 8 is roads / transport routes
AHU_LOCATION_RANGE = (1, 6)
ROAD_LOCATION_CODE = 8
MOAI_TYPES = ["Ahu", "Road"]

# ── Transport phases (km from Rano Raraku) ────────────────────────
PHASE_BINS = [0, 2, 4, float("inf")]
PHASE_LABELS = ["Early (0-2 km)", "Middle (2-4 km)", "Late (>4 km)"]

DISTANCE_ZONES = {
    "Near Zone\n(0-2 km)": (0, 2),
    "Middle Zone\n(2-4 km)": (2, 4),
    "Far Zone\n(4+ km)": (4, None),
}

# Expected moai per 1 km bin under the transport failure hypothesis
FAILURE_PROFILE = [14, 12, 5, 3, 2, 2, 1, 1, 0.5, 0.5, 0.5, 0.5]
OBSERVED_PCT_WITHIN_2KM = 51.6

# Failure density mixture: weights, gamma shapes and rates (per km)
FAILURE_MODEL = {
    "early_weight": 0.6, "early_rate": 1.5,
    "middle_weight": 0.3, "middle_shape": 2.0, "middle_rate": 0.8,
    "late_weight": 0.1, "late_shape": 2.0, "late_rate": 0.3, "late_offset_km": 2.0,
}

# ── Centre of mass model ──────────────────────────────────────────
COM_BASE = 0.42
COM_WIDTH_COEF = 0.08
COM_TAPER_COEF = 0.02
COM_NOISE_SD = 0.005

# ── Plot style ─────────────────────────────────────────────────────
MOAI_COLORS = {
    "early": "#e74c3c",
    "middle": "#3498db",
    "late": "#2ecc71",
    "highlight": "#e74c3c",
    "secondary": "#34495e",
}
TYPE_COLORS = {"Ahu": "#9ECAE1", "Road": "#FC9272"}
POSITION_COLORS = {"prone": "#e74c3c", "supine": "#3498db"}
NA_COLOR = "#95a5a6"

# ── Export ─────────────────────────────────────────────────────────
PRINT_DPI = 600
PREVIEW_DPI = 150

# ── Statistical parameters ─────────────────────────────────────────
ALPHA = 0.05
SEED = 42

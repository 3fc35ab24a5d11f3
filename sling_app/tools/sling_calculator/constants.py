from __future__ import annotations

TOOL_ID = "sling_calculator"
TOOL_VERSION = "1.0.0"
REPORT_VERSION = "1.0"
CODE_BASIS = "Below-the-hook rigging rules v1 (45° bottom / 60° top, 10% lateral, 40 ft sling cap)"

DISCLAIMER = "Load acceptability and lug integrity are the user’s responsibility."
LIMIT_STATEMENT = "This is what limits the lift."

# Minimum sling angle from horizontal [deg]
BOTTOM_MIN_ANGLE_DEG = 45.0  # exclusive: angle must be > 45
TOP_MIN_ANGLE_DEG = 60.0  # inclusive: angle must be >= 60

RECOMMENDED_WLL_FACTOR = 1.5
SHACKLE_CONNECTION_FACTOR = 1.25
MIN_SHACKLE_TONNAGE = 0.5

MAX_LATERAL_PERCENT = 10.0
MAX_SLING_LENGTH_FT = 40

LBS_PER_METRIC_TON = 2204.62

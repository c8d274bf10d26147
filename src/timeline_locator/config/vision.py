"""Vision configuration constants.

Tolerances, ratio thresholds and gauge geometry used by the detectors.
Thresholds are 16.16 fixed-point fractions (0x10000 = 100%).
"""

# Maximum per-channel difference for a pixel to count as a color match
COLOR_TOLERANCE = 15

# Ratio thresholds
THRESHOLD_STRICT = 0xC000  # 75%: gauge blocks, gaps and margins
THRESHOLD_LENIENT = 0x8000  # 50%: cursor bar, tolerates overlapping text
THRESHOLD_FULL = 0x10000

# Zoom gauge layout
GAUGE_BLOCK_COUNT = 26
GAUGE_MARGIN = 2
GAUGE_BLOCK_WIDTH = 2
GAUGE_BLOCK_GAP = 1

# Zoom breakpoints; the active block count is the index of the first one >= zoom
ZOOM_LEVELS = (
    20, 30, 40, 50, 75, 100,
    150, 200, 300, 400, 500, 750, 1000,
    1500, 2000, 3000, 4000, 5000, 7500, 10000,
    15000, 20000, 30000, 40000, 50000, 75000, 100000,
)
# Active count used for zoom values beyond the table (index of 10000)
ZOOM_FALLBACK_ACTIVE_COUNT = 19

# Any negative zoom skips the active-count check
ZOOM_UNKNOWN = -1

# Zoom above which the host draws the wide cursor
WIDE_CURSOR_ZOOM = 10000

# Candidate windows considered per search
MAX_WINDOWS = 8

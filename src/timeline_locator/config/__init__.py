"""Config subpackage.

- vision: tolerances, thresholds and gauge geometry for the detectors
"""
from .vision import (
    COLOR_TOLERANCE,
    THRESHOLD_STRICT,
    THRESHOLD_LENIENT,
    THRESHOLD_FULL,
    GAUGE_BLOCK_COUNT,
    GAUGE_MARGIN,
    GAUGE_BLOCK_WIDTH,
    GAUGE_BLOCK_GAP,
    ZOOM_LEVELS,
    ZOOM_FALLBACK_ACTIVE_COUNT,
    ZOOM_UNKNOWN,
    WIDE_CURSOR_ZOOM,
    MAX_WINDOWS,
)

__all__ = [
    "COLOR_TOLERANCE",
    "THRESHOLD_STRICT",
    "THRESHOLD_LENIENT",
    "THRESHOLD_FULL",
    "GAUGE_BLOCK_COUNT",
    "GAUGE_MARGIN",
    "GAUGE_BLOCK_WIDTH",
    "GAUGE_BLOCK_GAP",
    "ZOOM_LEVELS",
    "ZOOM_FALLBACK_ACTIVE_COUNT",
    "ZOOM_UNKNOWN",
    "WIDE_CURSOR_ZOOM",
    "MAX_WINDOWS",
]

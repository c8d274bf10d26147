"""Vision package: bitmap access, color matching and timeline detectors.

Submodules:
- types: rectangles, colors, style, results and errors
- bitmap: bounds-checked view over captured 24-bit bitmaps
- matcher: per-pixel and per-region color matching
- detectors: zoom gauge, panel, layout and cursor detection
- metadata: PNG captures with embedded detection context
- annotate: debug overlays of detection results
"""
from .types import (
    CaptureError,
    Color,
    DetectionResult,
    DetectionStatus,
    InvalidArgumentError,
    LocatorError,
    MetadataError,
    Rect,
    Style,
    TimelineNotFoundError,
    WindowInfo,
    ZERO_RECT,
)
from .bitmap import Bitmap, row_stride
from .matcher import ColorCounter, color_matches, color_mask, region_matches, required_pixels
from .detectors import (
    analyze,
    calculate_cursor_search_area,
    calculate_effective_area,
    detect_cursor,
    detect_panel,
    expected_active_count,
    find_zoom_gauge,
    is_scrollbar_at_top,
)

__all__ = [
    "CaptureError",
    "Color",
    "DetectionResult",
    "DetectionStatus",
    "InvalidArgumentError",
    "LocatorError",
    "MetadataError",
    "Rect",
    "Style",
    "TimelineNotFoundError",
    "WindowInfo",
    "ZERO_RECT",
    "Bitmap",
    "row_stride",
    "ColorCounter",
    "color_matches",
    "color_mask",
    "region_matches",
    "required_pixels",
    "analyze",
    "calculate_cursor_search_area",
    "calculate_effective_area",
    "detect_cursor",
    "detect_panel",
    "expected_active_count",
    "find_zoom_gauge",
    "is_scrollbar_at_top",
]

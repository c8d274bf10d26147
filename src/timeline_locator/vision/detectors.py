"""
Pure timeline detectors (no IO):

- Zoom gauge: the row of 26 small blocks whose active prefix encodes the zoom.
- Panel: the timeline panel bounds, grown from the gauge along background runs.
- Layout: the effective (layer content) area and the cursor search strip.
- Cursor: the vertical playback bar inside the search strip.

Usage pattern in controllers:
  1) Capture the host window into a Bitmap.
  2) Call analyze() with the loaded Style and the current zoom value.
  3) Read the rectangles from the returned DetectionResult.

All functions here are side-effect free and suitable for unit tests on
synthetic or saved captures.
"""
from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple
import logging

import numpy as np

from ..config.vision import (
    COLOR_TOLERANCE,
    GAUGE_BLOCK_COUNT,
    THRESHOLD_LENIENT,
    THRESHOLD_STRICT,
    WIDE_CURSOR_ZOOM,
    ZOOM_FALLBACK_ACTIVE_COUNT,
    ZOOM_LEVELS,
    ZOOM_UNKNOWN,
)
from .bitmap import Bitmap
from .matcher import ColorCounter, color_mask, region_matches, required_pixels
from .types import (
    Color,
    DetectionResult,
    DetectionStatus,
    InvalidArgumentError,
    Rect,
    Style,
    ZERO_RECT,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ zoom gauge
def expected_active_count(zoom: int) -> int:
    """Number of active gauge blocks the host draws for a zoom value.

    Values past the last breakpoint return the count for 10000.
    """
    for i, level in enumerate(ZOOM_LEVELS):
        if zoom <= level:
            return i
    return ZOOM_FALLBACK_ACTIVE_COUNT


def gauge_size(style: Style) -> Tuple[int, int]:
    """Return (width, height) of the gauge body for a style."""
    width = GAUGE_BLOCK_COUNT * (style.gauge_block_width + style.gauge_block_gap) - style.gauge_block_gap
    height = style.scroll_bar_size - style.gauge_margin * 2
    return width, height


def _blocks_match(
    counters: Dict[Color, ColorCounter],
    style: Style,
    x: int,
    y: int,
    height: int,
    active: Color,
    inactive: Color,
    expected: Optional[int],
) -> bool:
    """Check blocks and gaps; expected=None accepts any active prefix length."""
    pitch = style.gauge_block_width + style.gauge_block_gap
    on, off, bg = counters[active], counters[inactive], counters[style.background]
    in_prefix = True
    for i in range(GAUGE_BLOCK_COUNT):
        block = Rect(x + i * pitch, y, style.gauge_block_width, height)
        if expected is None:
            in_prefix = in_prefix and on.matches(block, THRESHOLD_STRICT)
            ok = in_prefix or off.matches(block, THRESHOLD_STRICT)
        else:
            ok = (on if i < expected else off).matches(block, THRESHOLD_STRICT)
        if not ok:
            return False
        if i < GAUGE_BLOCK_COUNT - 1:
            gap = Rect(block.right, y, style.gauge_block_gap, height)
            if not bg.matches(gap, THRESHOLD_STRICT):
                return False
    return True


def _framed_candidates(
    background: ColorCounter, margin: int, width: int, height: int, rows: int, cols: int
) -> np.ndarray:
    """Mask of corners (offset by margin) whose gauge body is framed by background on all four sides."""
    m = margin
    need_h = required_pixels(width + m * 2, m, THRESHOLD_STRICT)
    need_v = required_pixels(m, height, THRESHOLD_STRICT)
    top = background.box_counts(0, 0, width + m * 2, m, cols, rows)
    bottom = background.box_counts(0, m + height, width + m * 2, m, cols, rows)
    left = background.box_counts(0, m, m, height, cols, rows)
    right = background.box_counts(m + width, m, m, height, cols, rows)
    return (top >= need_h) & (bottom >= need_h) & (left >= need_v) & (right >= need_v)


def find_zoom_gauge(bitmap: Bitmap, style: Style, zoom: int = ZOOM_UNKNOWN) -> Optional[Rect]:
    """Locate the zoom gauge, scanning top-to-bottom, left-to-right.

    Each block may be drawn in its normal or hover color; the family is chosen
    from the first pixel of a candidate. With a known zoom only gauges showing
    the matching number of active blocks are accepted, so gauges of other
    panels in the same capture are skipped. A negative zoom accepts any
    active prefix.

    Returns the gauge body rectangle, or None if no valid gauge exists.
    """
    if bitmap is None or style is None:
        raise InvalidArgumentError("bitmap and style are required")
    width, height = gauge_size(style)
    if width <= 0 or height <= 0:
        return None
    margin = style.gauge_margin

    # Candidate top-left corners keep the gauge plus margin inside the bitmap
    y_stop = bitmap.height - margin - height + 1
    x_stop = bitmap.width - margin - width + 1
    if y_stop <= margin or x_stop <= margin:
        return None

    families: Sequence[Tuple[Sequence[Color], Color, Color]]
    if zoom < 0:
        # Looser than the host, which draws -1 as zero active blocks: an
        # unknown zoom here accepts any active prefix.
        expected: Optional[int] = None
        families = (
            ((style.active_normal, style.inactive_normal), style.active_normal, style.inactive_normal),
            ((style.active_hover, style.inactive_hover), style.active_hover, style.inactive_hover),
        )
    else:
        expected = expected_active_count(zoom)
        first_normal = style.active_normal if expected > 0 else style.inactive_normal
        first_hover = style.active_hover if expected > 0 else style.inactive_hover
        families = (
            ((first_normal,), style.active_normal, style.inactive_normal),
            ((first_hover,), style.active_hover, style.inactive_hover),
        )

    # Cheap first-pixel test for every candidate at once
    area = bitmap.bgr[margin:y_stop, margin:x_stop]
    family_masks = []
    for firsts, _, _ in families:
        mask = np.zeros(area.shape[:2], dtype=bool)
        for c in firsts:
            mask |= color_mask(area, c, COLOR_TOLERANCE)
        family_masks.append(mask)

    counters: Dict[Color, ColorCounter] = {}

    def counter(color: Color) -> ColorCounter:
        if color not in counters:
            counters[color] = ColorCounter(bitmap, color, COLOR_TOLERANCE)
        return counters[color]

    framed = _framed_candidates(counter(style.background), margin, width, height, *area.shape[:2])
    candidates = (family_masks[0] | family_masks[1]) & framed

    # np.nonzero walks rows first, which is the scan order
    ys, xs = np.nonzero(candidates)
    for cy, cx in zip(ys.tolist(), xs.tolist()):
        family = 0 if family_masks[0][cy, cx] else 1
        _, active, inactive = families[family]
        counter(active)
        counter(inactive)
        x = cx + margin
        y = cy + margin
        if _blocks_match(counters, style, x, y, height, active, inactive, expected):
            return Rect(x, y, width, height)
    return None


# ----------------------------------------------------------------------- panel
def _run_bounds(mask: np.ndarray, start: int) -> Tuple[int, int]:
    """Extent of the contiguous True run on both sides of start (start included)."""
    lo = start
    i = start - 1
    while i >= 0 and mask[i]:
        lo = i
        i -= 1
    hi = start
    i = start + 1
    n = mask.shape[0]
    while i < n and mask[i]:
        hi = i
        i += 1
    return lo, hi


def detect_panel(bitmap: Bitmap, gauge: Rect, background: Color) -> Optional[Rect]:
    """Recover the timeline panel bounds from the gauge position.

    Starts one row above the gauge's top-left corner, follows the background
    run left and right, then follows the background run up and down along the
    rightmost column found. That column runs along the scroll bar track, which
    spans the full panel height wherever the scroll bar sits.
    """
    if bitmap is None or gauge is None or background is None:
        raise InvalidArgumentError("bitmap, gauge and background are required")
    x0 = gauge.x
    y0 = gauge.y - 1
    if not bitmap.contains(x0, y0):
        return None

    row = color_mask(bitmap.bgr[y0], background, COLOR_TOLERANCE)
    left, right = _run_bounds(row, x0)

    column = color_mask(bitmap.bgr[:, right], background, COLOR_TOLERANCE)
    top, bottom = _run_bounds(column, y0)

    return Rect(left, top, right + 1 - left, bottom + 1 - top)


# ---------------------------------------------------------------------- layout
def is_scrollbar_at_top(gauge: Optional[Rect], panel: Optional[Rect]) -> bool:
    if gauge is None or panel is None:
        return False
    return (gauge.y - panel.y) < (panel.height // 2)


def calculate_effective_area(
    panel: Optional[Rect], gauge: Optional[Rect], style: Optional[Style]
) -> Optional[Rect]:
    """Layer content area: panel minus layer headers, time gauge and scroll bars.

    Returns None only when an input is missing; sizes clamp at 0.
    """
    if panel is None or gauge is None or style is None:
        return None
    x = panel.x + style.layer_header_width
    width = max(0, panel.width - style.layer_header_width - style.scroll_bar_size)
    height = max(0, panel.height - style.scroll_bar_size - style.time_gauge_height)
    if is_scrollbar_at_top(gauge, panel):
        y = panel.y + style.scroll_bar_size + style.time_gauge_height
    else:
        y = panel.y + style.time_gauge_height
    return Rect(x, y, width, height)


def calculate_cursor_search_area(
    panel: Optional[Rect],
    gauge: Optional[Rect],
    effective_area: Optional[Rect],
    style: Optional[Style],
) -> Optional[Rect]:
    """Strip above the layers (the time gauge) where the cursor is searched.

    With the scroll bar on top the gauge band itself is excluded, since its
    block colors would produce false cursor hits.
    """
    if panel is None or gauge is None or effective_area is None or style is None:
        return None
    y = panel.y
    height = effective_area.y - panel.y
    if is_scrollbar_at_top(gauge, panel):
        band = gauge.height + style.gauge_margin * 2
        y += band
        height -= band
    return Rect(effective_area.x, y, effective_area.width, max(0, height))


# ---------------------------------------------------------------------- cursor
def detect_cursor(
    bitmap: Bitmap,
    search_area: Rect,
    effective_area: Rect,
    style: Style,
    zoom: int,
) -> Optional[Rect]:
    """Find the playback cursor as a vertical bar in search_area.

    A column counts when half of its pixels match, so text drawn over the
    cursor does not hide it. Above WIDE_CURSOR_ZOOM the host draws a wider
    cursor in its own color and the width is measured; otherwise it is 1px.
    The returned bar spans the effective area vertically.
    """
    if bitmap is None or search_area is None or effective_area is None or style is None:
        raise InvalidArgumentError("bitmap, areas and style are required")
    if search_area.width <= 0 or search_area.height <= 0:
        return None
    wide = zoom > WIDE_CURSOR_ZOOM
    color = style.frame_cursor_wide if wide else style.frame_cursor

    def column_matches(x: int) -> bool:
        col = Rect(x, search_area.y, 1, search_area.height)
        return region_matches(bitmap, col, color, COLOR_TOLERANCE, THRESHOLD_LENIENT)

    left = -1
    for x in range(search_area.x, search_area.right):
        if x < 0 or x >= bitmap.width:
            continue
        if column_matches(x):
            left = x
            break
    if left < 0:
        return None

    right = left
    if wide:
        while right + 1 < search_area.right and column_matches(right + 1):
            right += 1

    return Rect(left, effective_area.y, right + 1 - left, effective_area.height)


# -------------------------------------------------------------------- pipeline
def analyze(bitmap: Bitmap, style: Style, zoom: int = ZOOM_UNKNOWN) -> DetectionResult:
    """Run gauge, panel, layout and cursor detection on one capture.

    Stops at the first failing stage and reports it in ``status``. A missing
    cursor is not a failure: the cursor rectangle is left zeroed.
    """
    if bitmap is None or style is None:
        raise InvalidArgumentError("bitmap and style are required")
    result = DetectionResult(layer_height=style.layer_height)

    gauge = find_zoom_gauge(bitmap, style, zoom)
    if gauge is None:
        result.status = DetectionStatus.GAUGE_NOT_FOUND
        return result
    result.gauge = gauge

    panel = detect_panel(bitmap, gauge, style.background)
    if panel is None:
        result.status = DetectionStatus.PANEL_NOT_FOUND
        return result
    result.panel = panel

    effective = calculate_effective_area(panel, gauge, style)
    if effective is None:
        result.status = DetectionStatus.EFFECTIVE_AREA_CALCULATION_FAILED
        return result
    result.effective_area = effective

    search = calculate_cursor_search_area(panel, gauge, effective, style)
    if search is None:
        result.status = DetectionStatus.CURSOR_DETECTION_AREA_CALCULATION_FAILED
        return result
    result.cursor_search_area = search

    cursor = detect_cursor(bitmap, search, effective, style, zoom)
    result.cursor = cursor if cursor is not None else ZERO_RECT
    result.status = DetectionStatus.SUCCESS
    logger.debug(
        "analyze: gauge=%s panel=%s effective=%s cursor=%s", gauge, panel, effective, result.cursor
    )
    return result

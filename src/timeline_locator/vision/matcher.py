"""
Tolerance-based color matching over captured bitmaps.

Pure functions: a per-pixel channel comparison and a ratio test that decides
whether a rectangle is "filled" with a color. Detectors compose these to
validate gauge blocks, background margins and the cursor column. ColorCounter
answers the same ratio test from a summed-area table when many rectangles of
one capture are checked.
"""
from __future__ import annotations

import cv2
import numpy as np

from ..config.vision import COLOR_TOLERANCE, THRESHOLD_FULL
from .bitmap import Bitmap
from .types import Color, InvalidArgumentError, Rect


def color_matches(r: int, g: int, b: int, target: Color, tolerance: int = COLOR_TOLERANCE) -> bool:
    """True when every channel differs from target by at most tolerance (inclusive)."""
    dr = int(r) - target.r
    dg = int(g) - target.g
    db = int(b) - target.b
    return -tolerance <= dr <= tolerance and -tolerance <= dg <= tolerance and -tolerance <= db <= tolerance


def color_mask(bgr: np.ndarray, color: Color, tolerance: int = COLOR_TOLERANCE) -> np.ndarray:
    """Boolean mask of pixels in a B,G,R array matching color within tolerance."""
    target = np.array((color.b, color.g, color.r), dtype=np.int16)
    diff = np.abs(bgr.astype(np.int16) - target)
    return np.all(diff <= tolerance, axis=-1)


def required_pixels(width: int, height: int, threshold: int) -> int:
    """Minimum matching pixel count for a width x height area at a 16.16 threshold."""
    return (width * height * threshold) >> 16


def region_matches(
    bitmap: Bitmap,
    rect: Rect,
    color: Color,
    tolerance: int = COLOR_TOLERANCE,
    threshold: int = THRESHOLD_FULL,
) -> bool:
    """Return True if at least ``threshold`` of rect's pixels match color.

    Pixels of rect that fall outside the bitmap never match, but still count
    toward the required total.
    """
    if bitmap is None or rect is None or color is None:
        raise InvalidArgumentError("bitmap, rect and color are required")
    need = required_pixels(rect.width, rect.height, threshold)
    area = bitmap.region(rect)
    if area.size == 0:
        return need <= 0
    matching = int(np.count_nonzero(color_mask(area, color, tolerance)))
    return matching >= need


class ColorCounter:
    """Constant-time match counts for rectangles of one color in one bitmap.

    Built once per capture from a summed-area table of the color mask, so
    scanning many candidate positions does not rescan pixels. Pixels outside
    the bitmap never match, as in region_matches().
    """

    def __init__(self, bitmap: Bitmap, color: Color, tolerance: int = COLOR_TOLERANCE) -> None:
        if bitmap is None or color is None:
            raise InvalidArgumentError("bitmap and color are required")
        mask = color_mask(bitmap.bgr, color, tolerance).astype(np.uint8)
        self.table = cv2.integral(mask)
        self.width = bitmap.width
        self.height = bitmap.height

    def count(self, rect: Rect) -> int:
        left = max(0, rect.x)
        top = max(0, rect.y)
        right = min(self.width, rect.x + rect.width)
        bottom = min(self.height, rect.y + rect.height)
        if right <= left or bottom <= top:
            return 0
        t = self.table
        return int(t[bottom, right]) - int(t[top, right]) - int(t[bottom, left]) + int(t[top, left])

    def matches(self, rect: Rect, threshold: int = THRESHOLD_FULL) -> bool:
        return self.count(rect) >= required_pixels(rect.width, rect.height, threshold)

    def box_counts(self, left: int, top: int, width: int, height: int, cols: int, rows: int) -> np.ndarray:
        """Counts of width x height boxes for every corner in a rows x cols grid at (left, top).

        Every box must lie inside the bitmap.
        """
        t = self.table
        x0, y0 = left, top
        x1, y1 = left + width, top + height
        return (
            t[y1:y1 + rows, x1:x1 + cols]
            - t[y0:y0 + rows, x1:x1 + cols]
            - t[y1:y1 + rows, x0:x0 + cols]
            + t[y0:y0 + rows, x0:x0 + cols]
        )

"""
Debug rendering: overlays detected rectangles on a copy of a capture.
"""
from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from .bitmap import Bitmap
from .types import DetectionResult, Rect

# B,G,R fill colors and opacity per rectangle
_LAYERS: Tuple[Tuple[str, Tuple[int, int, int], float], ...] = (
    ("panel", (0, 255, 0), 0.12),
    ("effective_area", (255, 0, 0), 0.12),
    ("cursor_search_area", (0, 255, 255), 0.20),
    ("gauge", (255, 0, 255), 0.50),
    ("cursor", (0, 0, 255), 0.50),
)


def _fill(canvas: np.ndarray, rect: Rect, bgr: Tuple[int, int, int], alpha: float) -> None:
    if rect.width <= 0 or rect.height <= 0:
        return
    h, w = canvas.shape[:2]
    x0, y0 = max(0, rect.x), max(0, rect.y)
    x1, y1 = min(w, rect.right), min(h, rect.bottom)
    if x1 <= x0 or y1 <= y0:
        return
    roi = np.ascontiguousarray(canvas[y0:y1, x0:x1])
    overlay = np.empty_like(roi)
    overlay[:, :] = bgr
    canvas[y0:y1, x0:x1] = cv2.addWeighted(overlay, alpha, roi, 1.0 - alpha, 0)


def annotate_result(bitmap: Bitmap, result: DetectionResult) -> Bitmap:
    """Return a new Bitmap with result's rectangles drawn as translucent fills."""
    canvas = np.ascontiguousarray(bitmap.bgr.copy())
    for name, bgr, alpha in _LAYERS:
        _fill(canvas, getattr(result, name), bgr, alpha)
    return Bitmap(canvas)

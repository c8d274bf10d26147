"""Pytest configuration and synthetic timeline captures.

Ensures src/ is on sys.path so tests can import ``timeline_locator`` without
installing it, and provides fixtures that draw an 800x600 host capture with
the timeline panel at {117,397,649,146}.
"""

import logging
import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from timeline_locator.core.logging_setup import SESSION_ENV  # noqa: E402
from timeline_locator.vision.bitmap import Bitmap  # noqa: E402
from timeline_locator.vision.detectors import expected_active_count  # noqa: E402
from timeline_locator.vision.types import Color, Rect, Style  # noqa: E402

WIDTH, HEIGHT = 800, 600
CHROME = Color(100, 100, 100)
CONTENT = Color(64, 64, 64)
PANEL = Rect(117, 397, 649, 146)
GAUGE_X = 126
GAUGE_Y = {"bottom": 533, "top": 399}
EFFECTIVE = {"bottom": Rect(213, 419, 541, 112), "top": Rect(213, 431, 541, 112)}
SEARCH = {"bottom": Rect(213, 397, 541, 22), "top": Rect(213, 409, 541, 22)}


def make_style(**overrides) -> Style:
    """Default host colors with the layout sizes of the fixture captures."""
    values = dict(
        active_normal=Color(96, 160, 255),
        active_hover=Color(128, 192, 255),
        inactive_normal=Color(32, 64, 128),
        inactive_hover=Color(48, 96, 160),
        background=Color(32, 32, 32),
        frame_cursor=Color(200, 48, 48),
        frame_cursor_wide=Color(255, 200, 0),
        time_gauge_height=22,
        layer_header_width=96,
        scroll_bar_size=12,
        layer_height=24,
        gauge_margin=2,
        gauge_block_width=2,
        gauge_block_gap=1,
    )
    values.update(overrides)
    return Style(**values)


def fill(bgr: np.ndarray, rect: Rect, color: Color) -> None:
    bgr[rect.y:rect.bottom, rect.x:rect.right] = (color.b, color.g, color.r)


def draw_gauge(bgr: np.ndarray, x: int, y: int, style: Style, active: int, hover: bool = False) -> None:
    """Draw a gauge body at x, y framed by its background margin."""
    m = style.gauge_margin
    height = style.scroll_bar_size - 2 * m
    pitch = style.gauge_block_width + style.gauge_block_gap
    width = 26 * pitch - style.gauge_block_gap
    fill(bgr, Rect(x - m, y - m, width + 2 * m, height + 2 * m), style.background)
    on = style.active_hover if hover else style.active_normal
    off = style.inactive_hover if hover else style.inactive_normal
    for i in range(26):
        fill(bgr, Rect(x + i * pitch, y, style.gauge_block_width, height), on if i < active else off)


def build_timeline(
    style: Style,
    scrollbar: str = "bottom",
    zoom: int = 1000,
    cursor_x=None,
    cursor_width: int = 1,
    hover: bool = False,
) -> Bitmap:
    """Capture with one timeline panel; the gauge shows the blocks for zoom."""
    bgr = np.empty((HEIGHT, WIDTH, 3), dtype=np.uint8)
    fill(bgr, Rect(0, 0, WIDTH, HEIGHT), CHROME)
    fill(bgr, PANEL, style.background)
    fill(bgr, EFFECTIVE[scrollbar], CONTENT)
    active = expected_active_count(zoom) if zoom >= 0 else 12
    draw_gauge(bgr, GAUGE_X, GAUGE_Y[scrollbar], style, active, hover=hover)
    if cursor_x is not None:
        color = style.frame_cursor_wide if zoom > 10000 else style.frame_cursor
        top = SEARCH[scrollbar].y
        bottom = EFFECTIVE[scrollbar].bottom
        fill(bgr, Rect(cursor_x, top, cursor_width, bottom - top), color)
    return Bitmap(bgr)


@pytest.fixture
def style() -> Style:
    return make_style()


@pytest.fixture
def timeline(style) -> Bitmap:
    """Bottom scroll bar, zoom 1000, no cursor."""
    return build_timeline(style)


@pytest.fixture
def blank() -> Bitmap:
    return Bitmap.filled(WIDTH, HEIGHT, CHROME)


@pytest.fixture
def restore_root_logger(monkeypatch):
    """Undo setup_logging(): drop the handlers it added and its session env."""
    monkeypatch.setenv(SESSION_ENV, "")
    root = logging.getLogger()
    level, before = root.level, set(root.handlers)
    yield
    for h in root.handlers[:]:
        if h not in before:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)

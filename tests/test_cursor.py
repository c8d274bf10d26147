import pytest

from conftest import CONTENT, build_timeline, fill
from timeline_locator.vision.detectors import analyze, detect_cursor
from timeline_locator.vision.types import DetectionStatus, InvalidArgumentError, Rect, ZERO_RECT

SEARCH = Rect(213, 397, 541, 22)
EFFECTIVE = Rect(213, 419, 541, 112)


def test_cursor_bottom_layout(style):
    result = analyze(build_timeline(style, cursor_x=293), style, 1000)
    assert result.status == DetectionStatus.SUCCESS
    assert result.gauge == Rect(126, 533, 77, 8)
    assert result.panel == Rect(117, 397, 649, 146)
    assert result.effective_area == EFFECTIVE
    assert result.cursor_search_area == SEARCH
    assert result.cursor == Rect(293, 419, 1, 112)


def test_cursor_top_layout(style):
    result = analyze(build_timeline(style, scrollbar="top", cursor_x=293), style, 1000)
    assert result.cursor_search_area == Rect(213, 409, 541, 22)
    assert result.cursor == Rect(293, 431, 1, 112)


def test_leftmost_cursor_column_wins(style):
    bmp = build_timeline(style, cursor_x=400)
    fill(bmp.bgr, Rect(300, 397, 1, 22), style.frame_cursor)
    assert detect_cursor(bmp, SEARCH, EFFECTIVE, style, 1000) == Rect(300, 419, 1, 112)


@pytest.mark.parametrize("occluded,found", [
    (0, True),
    (8, True),    # ~36% hidden
    (11, True),   # exactly half visible
    (12, False),
    (14, False),  # ~64% hidden
])
def test_cursor_survives_partial_occlusion(style, occluded, found):
    bmp = build_timeline(style, cursor_x=293)
    fill(bmp.bgr, Rect(293, 397, 1, occluded), CONTENT)
    cursor = detect_cursor(bmp, SEARCH, EFFECTIVE, style, 1000)
    if found:
        assert cursor == Rect(293, 419, 1, 112)
    else:
        assert cursor is None


def test_occluded_cursor_is_not_an_error(style):
    bmp = build_timeline(style, cursor_x=293)
    fill(bmp.bgr, Rect(293, 397, 1, 20), CONTENT)
    result = analyze(bmp, style, 1000)
    assert result.status == DetectionStatus.SUCCESS
    assert result.cursor == ZERO_RECT


def test_wide_cursor_above_10000(style):
    bmp = build_timeline(style, zoom=15000, cursor_x=293, cursor_width=4)
    result = analyze(bmp, style, 15000)
    assert result.ok
    assert result.cursor == Rect(293, 419, 4, 112)


def test_narrow_color_is_ignored_when_zoomed_in(style):
    bmp = build_timeline(style, zoom=15000)
    fill(bmp.bgr, Rect(293, 397, 1, 22), style.frame_cursor)
    assert detect_cursor(bmp, SEARCH, EFFECTIVE, style, 15000) is None


def test_narrow_cursor_width_is_fixed(style):
    bmp = build_timeline(style, cursor_x=293, cursor_width=3)
    assert detect_cursor(bmp, SEARCH, EFFECTIVE, style, 10000) == Rect(293, 419, 1, 112)


def test_search_area_partly_outside_bitmap(style):
    bmp = build_timeline(style, cursor_x=2)
    fill(bmp.bgr, Rect(2, 0, 1, 30), style.frame_cursor)
    area = Rect(-10, 0, 20, 30)
    assert detect_cursor(bmp, area, EFFECTIVE, style, 1000) == Rect(2, 419, 1, 112)


def test_detect_cursor_rejects_missing_inputs(timeline, style):
    with pytest.raises(InvalidArgumentError):
        detect_cursor(timeline, None, EFFECTIVE, style, 1000)


@pytest.mark.parametrize("search", [Rect(213, 397, 541, 0), Rect(213, 397, 0, 22), Rect(213, 397, 541, -3)])
def test_empty_search_strip_finds_no_cursor(style, search):
    bmp = build_timeline(style, cursor_x=293)
    assert detect_cursor(bmp, search, EFFECTIVE, style, 1000) is None

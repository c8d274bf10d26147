"""TimelineAnalyzer with in-memory capture collaborators."""
import pytest

from conftest import build_timeline
from timeline_locator.controllers.analyzer import TimelineAnalyzer, sort_windows
from timeline_locator.vision.bitmap import Bitmap
from timeline_locator.vision.metadata import load_png_with_metadata
from timeline_locator.vision.types import (
    CaptureError,
    DetectionStatus,
    InvalidArgumentError,
    Rect,
    Style,
    TimelineNotFoundError,
    WindowInfo,
)


class FakeHost:
    """Windows keyed by handle; values are Bitmaps or exceptions to raise."""

    def __init__(self, frames, sizes=None):
        self.frames = dict(frames)
        self.sizes = sizes or {h: (800, 600) for h in self.frames}
        self.captures = []
        self.list_calls = []

    def capture(self, window, reuse):
        self.captures.append((window, reuse))
        frame = self.frames[window]
        if isinstance(frame, Exception):
            raise frame
        return frame

    def list_windows(self, max_count):
        self.list_calls.append(max_count)
        return [WindowInfo(h, w, ht) for h, (w, ht) in self.sizes.items()]

    @property
    def captured_handles(self):
        return [w for w, _ in self.captures]


class StyleSource:
    def __init__(self, style):
        self.style = style
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.style


def make_analyzer(host, style):
    return TimelineAnalyzer(capture=host.capture, list_windows=host.list_windows, get_style=StyleSource(style))


def test_requires_collaborators(style):
    host = FakeHost({})
    with pytest.raises(InvalidArgumentError):
        TimelineAnalyzer(capture=host.capture, list_windows=None, get_style=lambda: style)
    with pytest.raises(InvalidArgumentError):
        TimelineAnalyzer(capture=None, list_windows=host.list_windows, get_style=lambda: style)
    with pytest.raises(InvalidArgumentError):
        TimelineAnalyzer(capture=host.capture, list_windows=host.list_windows, get_style=None)


def test_sort_windows_by_area_then_handle():
    windows = [
        WindowInfo(1, 100, 100),
        WindowInfo(5, 50, 50),
        WindowInfo(3, 100, 100),
        WindowInfo(2, 200, 100),
    ]
    assert [w.handle for w in sort_windows(windows)] == [2, 3, 1, 5]


def test_search_then_cached_fast_path(style, timeline, blank):
    # the larger window fails detection, the smaller one succeeds
    host = FakeHost({1: blank, 2: timeline}, sizes={1: (1000, 800), 2: (800, 600)})
    analyzer = make_analyzer(host, style)

    result = analyzer.run(1000)
    assert result.ok
    assert result.window == 2
    assert result.gauge == Rect(126, 533, 77, 8)
    assert host.captured_handles == [1, 2]
    assert analyzer.target_window == 2

    host.captures.clear()
    again = analyzer.run(1000)
    assert host.captured_handles == [2]
    assert host.list_calls == [8]
    assert again == result


def test_failed_cached_window_falls_back_to_search(style, timeline, blank):
    host = FakeHost({1: timeline, 2: blank}, sizes={1: (800, 600), 2: (400, 300)})
    analyzer = make_analyzer(host, style)
    analyzer.run(1000)
    assert analyzer.target_window == 1

    # window 1 loses the timeline, window 2 now shows it
    host.frames = {1: blank, 2: timeline}
    host.captures.clear()
    result = analyzer.run(1000)
    assert result.window == 2
    assert host.captured_handles == [1, 1, 2]
    assert analyzer.target_window == 2


def test_exhausted_search_raises_and_clears_cache(style, timeline, blank):
    host = FakeHost({1: timeline})
    analyzer = make_analyzer(host, style)
    analyzer.run(1000)
    host.frames[1] = blank
    with pytest.raises(TimelineNotFoundError) as exc_info:
        analyzer.run(1000)
    assert exc_info.value.status == DetectionStatus.INVALID
    assert analyzer.target_window is None


def test_capture_errors_are_skipped(style, timeline):
    host = FakeHost(
        {1: CaptureError("minimized"), 2: OSError("gone"), 3: timeline},
        sizes={1: (900, 900), 2: (850, 850), 3: (800, 600)},
    )
    result = make_analyzer(host, style).run(1000)
    assert result.window == 3
    assert host.captured_handles == [1, 2, 3]


def test_search_is_capped_at_eight_windows(style, blank):
    host = FakeHost({h: blank for h in range(12)})
    with pytest.raises(TimelineNotFoundError):
        make_analyzer(host, style).run(1000)
    assert len(host.captures) == 8
    assert host.list_calls == [8]


def test_previous_capture_is_offered_for_reuse(style, blank, timeline):
    host = FakeHost({1: blank, 2: timeline}, sizes={1: (1000, 800), 2: (800, 600)})
    make_analyzer(host, style).run(1000)
    assert host.captures[0][1] is None
    assert host.captures[1][1] is blank


def test_style_is_loaded_once(style, timeline):
    host = FakeHost({1: timeline})
    source = StyleSource(style)
    analyzer = TimelineAnalyzer(capture=host.capture, list_windows=host.list_windows, get_style=source)
    analyzer.run(1000)
    analyzer.reset()
    analyzer.run(1000)
    assert source.calls == 1
    assert analyzer.style is style


def test_unloaded_style_is_requested_again(timeline):
    host = FakeHost({1: timeline})
    source = StyleSource(Style())
    analyzer = TimelineAnalyzer(capture=host.capture, list_windows=host.list_windows, get_style=source)
    for _ in range(2):
        with pytest.raises(TimelineNotFoundError):
            analyzer.run(1000)
    assert source.calls == 2


def test_reset_forces_search(style, timeline):
    host = FakeHost({1: timeline})
    analyzer = make_analyzer(host, style)
    analyzer.run(1000)
    analyzer.reset()
    assert analyzer.target_window is None
    analyzer.run(1000)
    assert host.list_calls == [8, 8]


def test_on_complete_receives_success(style, timeline):
    host = FakeHost({1: timeline})
    seen = []
    make_analyzer(host, style).run(1000, on_complete=lambda ctx, status: seen.append((ctx, status)))
    assert len(seen) == 1
    ctx, status = seen[0]
    assert status == DetectionStatus.SUCCESS
    assert ctx.status == DetectionStatus.SUCCESS
    assert ctx.bitmap is timeline
    assert ctx.zoom == 1000
    assert ctx.style == style


def test_on_complete_runs_before_not_found(style, blank):
    host = FakeHost({1: blank})
    seen = []
    with pytest.raises(TimelineNotFoundError):
        make_analyzer(host, style).run(500, on_complete=lambda ctx, status: seen.append(status))
    assert seen == [DetectionStatus.INVALID]


def test_on_complete_skipped_without_capture(style):
    host = FakeHost({1: CaptureError("no")})
    seen = []
    with pytest.raises(TimelineNotFoundError):
        make_analyzer(host, style).run(1000, on_complete=lambda ctx, status: seen.append(status))
    assert seen == []


def test_on_complete_errors_propagate(style, timeline):
    host = FakeHost({1: timeline})

    def boom(ctx, status):
        raise RuntimeError("disk full")

    with pytest.raises(RuntimeError):
        make_analyzer(host, style).run(1000, on_complete=boom)


def test_save_context_writes_capture(style, tmp_path):
    bmp = build_timeline(style, cursor_x=293)
    host = FakeHost({1: bmp})
    saved = []

    def on_complete(ctx, status):
        saved.append(ctx.save_to_file(tmp_path / "capture.png"))

    make_analyzer(host, style).run(1000, on_complete=on_complete)
    loaded, meta = load_png_with_metadata(saved[0])
    assert isinstance(loaded, Bitmap)
    assert (loaded.bgr == bmp.bgr).all()
    assert meta.status == DetectionStatus.SUCCESS
    assert meta.zoom == 1000
    assert meta.style == style

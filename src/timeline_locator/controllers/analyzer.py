"""Timeline analysis orchestration.

Responsibility:
- Capture candidate host windows (IO through injected callables) and run the
  pure detectors from timeline_locator.vision on each capture.
- Remember the window that last produced a successful detection and try it
  first on the next run; fall back to searching the window list when it fails.
- Hand every capture to an optional completion callback, which may persist it
  through SaveContext.save_to_file().

The host may have several top-level windows and the timeline can live in any
of them. Candidates are tried largest first.

Single-writer contract: an instance keeps its cached window and style without
locking, so callers must not run one instance from several threads at once.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union
import logging

from ..config.vision import MAX_WINDOWS, ZOOM_UNKNOWN
from ..vision.bitmap import Bitmap
from ..vision.detectors import analyze
from ..vision.metadata import CaptureMetadata, save_png_with_metadata
from ..vision.types import (
    CaptureError,
    DetectionResult,
    DetectionStatus,
    InvalidArgumentError,
    Style,
    TimelineNotFoundError,
    WindowInfo,
)

logger = logging.getLogger(__name__)

CaptureFunc = Callable[[Any, Optional[Bitmap]], Bitmap]
ListWindowsFunc = Callable[[int], Sequence[WindowInfo]]
GetStyleFunc = Callable[[], Style]


@dataclass
class SaveContext:
    """What a completion callback receives about the capture of one run."""
    bitmap: Bitmap
    zoom: int
    status: DetectionStatus
    style: Style
    timestamp: datetime = field(default_factory=lambda: datetime.now().astimezone())

    def save_to_file(self, path: Union[str, Path]) -> Path:
        """Write the capture as a PNG with embedded detection metadata."""
        meta = CaptureMetadata(zoom=self.zoom, status=self.status, creation_time=self.timestamp, style=self.style)
        return save_png_with_metadata(path, self.bitmap, meta)


CompleteFunc = Callable[[SaveContext, DetectionStatus], Any]


def sort_windows(windows: Sequence[WindowInfo]) -> List[WindowInfo]:
    """Order candidates by pixel area, largest first; ties by handle, descending."""
    def handle_key(w: WindowInfo):
        try:
            return int(w.handle)
        except (TypeError, ValueError):
            return 0

    return sorted(windows, key=lambda w: (w.pixel_area, handle_key(w)), reverse=True)


class TimelineAnalyzer:
    """Finds the timeline panel in the host's windows and caches the winner."""

    def __init__(
        self,
        capture: CaptureFunc,
        list_windows: ListWindowsFunc,
        get_style: GetStyleFunc,
    ) -> None:
        if capture is None or list_windows is None or get_style is None:
            raise InvalidArgumentError("capture, list_windows and get_style are required")
        self._list_windows = list_windows
        self._capture = capture
        self._get_style = get_style
        self._style: Optional[Style] = None
        self._target_window: Any = None

    # --------------------------- state ---------------------------
    @property
    def style(self) -> Optional[Style]:
        return self._style

    @property
    def target_window(self) -> Any:
        return self._target_window

    def reset(self) -> None:
        """Forget the cached window so the next run searches again."""
        self._target_window = None

    def _ensure_style(self) -> Style:
        if self._style is None or not self._style.is_loaded:
            style = self._get_style()
            if style is None:
                raise InvalidArgumentError("get_style returned no style")
            self._style = style
        return self._style

    # --------------------------- capture + detect ---------------------------
    def _try_window(
        self, window: Any, zoom: int, style: Style, last: Optional[Bitmap]
    ) -> Tuple[Optional[Bitmap], Optional[DetectionResult]]:
        """Capture and analyze one window; (None, None) when capture fails."""
        try:
            bitmap = self._capture(window, last)
        except (CaptureError, OSError) as e:
            logger.debug("analyzer: capture of window %r failed: %s", window, e)
            return None, None
        if bitmap is None:
            logger.debug("analyzer: capture of window %r returned nothing", window)
            return None, None
        result = analyze(bitmap, style, zoom)
        logger.debug("analyzer: window %r (%s) -> %s", window, bitmap, result.status.label)
        return bitmap, result

    def run(self, zoom: int = ZOOM_UNKNOWN, on_complete: Optional[CompleteFunc] = None) -> DetectionResult:
        """Capture the host and locate the timeline.

        zoom: the host's current zoom value, or a negative value when unknown.
        on_complete: called with (SaveContext, status) whenever a capture was
            taken, before this method returns or raises.

        Returns a successful DetectionResult. Raises TimelineNotFoundError when
        no candidate window contains the timeline.
        """
        style = self._ensure_style()
        bitmap: Optional[Bitmap] = None
        result: Optional[DetectionResult] = None
        status = DetectionStatus.INVALID

        try:
            # Fast path: the window that worked last time
            if self._target_window is not None:
                window = self._target_window
                captured, res = self._try_window(window, zoom, style, None)
                if captured is not None:
                    bitmap = captured
                if res is not None and res.ok:
                    res.window = window
                    result = res
                else:
                    logger.info("analyzer: cached window %r no longer shows the timeline", window)
                    self._target_window = None

            if result is None:
                windows = list(self._list_windows(MAX_WINDOWS) or [])[:MAX_WINDOWS]
                for info in sort_windows(windows):
                    captured, res = self._try_window(info.handle, zoom, style, bitmap)
                    if captured is None:
                        continue
                    bitmap = captured
                    if res is not None and res.ok:
                        res.window = info.handle
                        self._target_window = info.handle
                        result = res
                        logger.info(
                            "analyzer: timeline found in window %r (%dx%d)", info.handle, info.width, info.height
                        )
                        break

            if result is not None:
                status = result.status
        finally:
            if bitmap is not None and on_complete is not None:
                on_complete(SaveContext(bitmap=bitmap, zoom=zoom, status=status, style=style), status)

        if result is None:
            logger.info("analyzer: no window shows the timeline")
            raise TimelineNotFoundError("timeline panel not found in any host window")
        return result

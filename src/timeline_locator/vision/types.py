"""
Plain data types shared by the detectors and the analyzer.

Rectangles use integer pixel coordinates with the origin at the top-left and
half-open extents. Colors are 8-bit RGB triples; bitmaps store them as B,G,R.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import IntEnum
from typing import Any, Dict, Optional


class LocatorError(Exception):
    """Base class for errors raised by timeline_locator."""


class InvalidArgumentError(LocatorError, ValueError):
    """Raised when a public function receives unusable input."""


class CaptureError(LocatorError):
    """Raised by capture collaborators when a window cannot be grabbed."""


class MetadataError(LocatorError):
    """Raised when a saved capture carries no readable metadata."""


class DetectionStatus(IntEnum):
    INVALID = 0
    SUCCESS = 1
    GAUGE_NOT_FOUND = 2
    PANEL_NOT_FOUND = 3
    EFFECTIVE_AREA_CALCULATION_FAILED = 4
    CURSOR_DETECTION_AREA_CALCULATION_FAILED = 5

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @classmethod
    def from_label(cls, label: Optional[str]) -> "DetectionStatus":
        for status, text in _STATUS_LABELS.items():
            if text == label:
                return status
        return cls.INVALID


# Labels match the ones written by the host plugin into saved captures.
_STATUS_LABELS = {
    DetectionStatus.INVALID: "invalid",
    DetectionStatus.SUCCESS: "success",
    DetectionStatus.GAUGE_NOT_FOUND: "zoom_bar_not_found",
    DetectionStatus.PANEL_NOT_FOUND: "layer_window_not_found",
    DetectionStatus.EFFECTIVE_AREA_CALCULATION_FAILED: "effective_area_calculation_failed",
    DetectionStatus.CURSOR_DETECTION_AREA_CALCULATION_FAILED: "cursor_detection_area_calculation_failed",
}


class TimelineNotFoundError(LocatorError, LookupError):
    """Raised when no candidate window yields a successful detection."""

    status = DetectionStatus.INVALID


@dataclass(frozen=True)
class Rect:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def is_zero(self) -> bool:
        return self == ZERO_RECT

    def to_tuple(self) -> tuple:
        return (self.x, self.y, self.width, self.height)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.x},{self.y},{self.width},{self.height}"


ZERO_RECT = Rect()


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @classmethod
    def from_hex(cls, value: Optional[str]) -> "Color":
        """Parse '#rrggbb'. Anything else yields black, like the host plugin does."""
        if not value or len(value) != 7 or value[0] != "#":
            return cls(0, 0, 0)
        channels = []
        for i in (1, 3, 5):
            try:
                channels.append(int(value[i:i + 2], 16))
            except ValueError:
                channels.append(0)
        return cls(*channels)


BLACK = Color(0, 0, 0)


@dataclass(frozen=True)
class Style:
    """Colors and layout sizes of the host's timeline panel.

    ``scroll_bar_size == 0`` marks a style that has not been loaded yet.
    The three gauge geometry values are not part of style.conf.
    """
    active_normal: Color = BLACK
    active_hover: Color = BLACK
    inactive_normal: Color = BLACK
    inactive_hover: Color = BLACK
    background: Color = BLACK
    frame_cursor: Color = BLACK
    frame_cursor_wide: Color = BLACK
    time_gauge_height: int = 0
    layer_header_width: int = 0
    scroll_bar_size: int = 0
    layer_height: int = 0
    gauge_margin: int = 0
    gauge_block_width: int = 0
    gauge_block_gap: int = 0

    @property
    def is_loaded(self) -> bool:
        return self.scroll_bar_size != 0


@dataclass
class DetectionResult:
    """Rectangles are meaningful only when status is SUCCESS.

    ``cursor`` stays the zero rectangle when no cursor was visible.
    """
    gauge: Rect = ZERO_RECT
    panel: Rect = ZERO_RECT
    effective_area: Rect = ZERO_RECT
    cursor_search_area: Rect = ZERO_RECT
    cursor: Rect = ZERO_RECT
    status: DetectionStatus = DetectionStatus.INVALID
    layer_height: int = 0
    window: Any = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.status == DetectionStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.label,
            "gauge": self.gauge.to_dict(),
            "panel": self.panel.to_dict(),
            "effective_area": self.effective_area.to_dict(),
            "cursor_search_area": self.cursor_search_area.to_dict(),
            "cursor": self.cursor.to_dict(),
            "layer_height": self.layer_height,
        }


@dataclass(frozen=True)
class WindowInfo:
    handle: Any
    width: int
    height: int

    @property
    def pixel_area(self) -> int:
        return self.width * self.height

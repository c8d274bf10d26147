"""
Bounds-checked view over a captured 24-bit bitmap.

Captures arrive as packed B,G,R bytes with each row padded to a 4-byte
boundary. Bitmap keeps them as a (height, width, 3) uint8 numpy array so
every pixel or region access is an index into a checked view instead of
manual stride arithmetic.
"""
from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .types import InvalidArgumentError, Rect


def row_stride(width: int) -> int:
    """Bytes per row for a 24-bit bitmap padded to 4 bytes."""
    return (width * 3 + 3) & ~3


class Bitmap:
    """B,G,R pixels of one capture."""

    def __init__(self, bgr: np.ndarray) -> None:
        if not isinstance(bgr, np.ndarray) or bgr.ndim != 3 or bgr.shape[2] != 3:
            raise InvalidArgumentError("bitmap must be a (height, width, 3) array")
        if bgr.shape[0] <= 0 or bgr.shape[1] <= 0:
            raise InvalidArgumentError("bitmap dimensions must be positive")
        if bgr.dtype != np.uint8:
            bgr = bgr.astype(np.uint8)
        self.bgr = bgr

    # --------------------------- constructors ---------------------------
    @classmethod
    def from_buffer(cls, data, width: int, height: int) -> "Bitmap":
        """Wrap a packed, row-padded B,G,R buffer without copying."""
        if data is None:
            raise InvalidArgumentError("buffer is required")
        if width <= 0 or height <= 0:
            raise InvalidArgumentError(f"invalid bitmap size {width}x{height}")
        stride = row_stride(width)
        raw = np.frombuffer(data, dtype=np.uint8)
        if raw.size < stride * height:
            raise InvalidArgumentError(
                f"buffer holds {raw.size} bytes, {stride * height} needed for {width}x{height}"
            )
        rows = raw[: stride * height].reshape(height, stride)
        return cls(rows[:, : width * 3].reshape(height, width, 3))

    @classmethod
    def from_bgra(cls, frame: np.ndarray) -> "Bitmap":
        """Build from an mss grab (B,G,R,A)."""
        frame = np.asarray(frame)
        if frame.ndim != 3 or frame.shape[2] < 3:
            raise InvalidArgumentError("expected a BGRA frame")
        return cls(np.ascontiguousarray(frame[:, :, :3]))

    @classmethod
    def filled(cls, width: int, height: int, color) -> "Bitmap":
        """Solid bitmap of an RGB color."""
        if width <= 0 or height <= 0:
            raise InvalidArgumentError(f"invalid bitmap size {width}x{height}")
        bgr = np.empty((height, width, 3), dtype=np.uint8)
        bgr[:, :] = (color.b, color.g, color.r)
        return cls(bgr)

    # --------------------------- geometry ---------------------------
    @property
    def width(self) -> int:
        return int(self.bgr.shape[1])

    @property
    def height(self) -> int:
        return int(self.bgr.shape[0])

    @property
    def stride(self) -> int:
        return row_stride(self.width)

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        """Return (r, g, b) at x, y."""
        if not self.contains(x, y):
            raise IndexError(f"pixel {x},{y} outside {self.width}x{self.height}")
        b, g, r = self.bgr[y, x]
        return int(r), int(g), int(b)

    def region(self, rect: Rect) -> np.ndarray:
        """Return the part of rect that lies inside the bitmap (possibly empty)."""
        left = max(0, rect.x)
        top = max(0, rect.y)
        right = min(self.width, rect.x + rect.width)
        bottom = min(self.height, rect.y + rect.height)
        if right <= left or bottom <= top:
            return self.bgr[0:0, 0:0]
        return self.bgr[top:bottom, left:right]

    # --------------------------- export ---------------------------
    def to_buffer(self, reuse: Optional[bytearray] = None) -> bytearray:
        """Pack into row-padded B,G,R bytes, growing ``reuse`` when given."""
        size = self.stride * self.height
        out = reuse if reuse is not None else bytearray(size)
        if len(out) < size:
            out.extend(bytes(size - len(out)))
        rows = np.frombuffer(out, dtype=np.uint8)[:size].reshape(self.height, self.stride)
        rows[:, : self.width * 3] = self.bgr.reshape(self.height, self.width * 3)
        rows[:, self.width * 3:] = 0
        return out

    def to_rgb(self) -> np.ndarray:
        return np.ascontiguousarray(self.bgr[:, :, ::-1])

    def copy(self) -> "Bitmap":
        return Bitmap(self.bgr.copy())

    def __repr__(self) -> str:
        return f"Bitmap({self.width}x{self.height})"

"""
Windows-specific collaborators: enumerating the host's top-level windows and
copying a window's client area.

The client area is rendered with PrintWindow(PW_CLIENTONLY), so windows that
overlap the host do not end up in the capture. Under Wine, where PrintWindow
is unreliable, the window DC is copied with BitBlt instead. A screen grab via
mss is the last resort for windows that neither path can render.

Separated from controllers to keep platform IO concerns isolated and testable.
TimelineAnalyzer receives these as plain callables.
"""
from __future__ import annotations

import ctypes
import logging
import os
import threading
from typing import Any, List, Optional

import mss
from mss.exception import ScreenShotError
import numpy as np

from ..vision.bitmap import Bitmap, row_stride
from ..vision.types import CaptureError, WindowInfo

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_CLASS = "aviutl2Manager"

_tls = threading.local()


def _get_sct(force_new: bool = False):
    """Per-thread mss instance; mss handles are not shareable across threads."""
    sct = getattr(_tls, "sct", None)
    if sct is None or force_new:
        sct = mss.mss()
        _tls.sct = sct
    return sct


def _grab(region: dict) -> np.ndarray:
    try:
        return np.array(_get_sct().grab(region))
    except AttributeError:
        return np.array(_get_sct(force_new=True).grab(region))


def _into_reuse(frame: np.ndarray, reuse: Optional[Bitmap]) -> Bitmap:
    """Copy a BGR or BGRA frame into reuse when it has the same size and is writable."""
    if reuse is not None:
        target = reuse.bgr
        if target.shape[:2] == frame.shape[:2] and target.flags.writeable:
            np.copyto(target, frame[:, :, :3])
            return reuse
    return Bitmap.from_bgra(frame)


def _from_dib(data: bytearray, width: int, height: int, reuse: Optional[Bitmap] = None) -> Bitmap:
    """Bitmap over a top-down 24-bit DIB whose rows are padded to 4 bytes."""
    bitmap = Bitmap.from_buffer(data, width, height)
    if reuse is None:
        return bitmap
    return _into_reuse(bitmap.bgr, reuse)


def _check_window_state(window: Any, exists: bool, visible: bool, enabled: bool, iconic: bool) -> None:
    """Raise CaptureError unless the window can be rendered."""
    if not exists:
        raise CaptureError(f"window {window!r} no longer exists")
    if not visible:
        raise CaptureError(f"window {window!r} is hidden")
    if not enabled:
        raise CaptureError(f"window {window!r} is disabled")
    if iconic:
        raise CaptureError(f"window {window!r} is minimized")


if os.name == "nt":
    from ctypes import wintypes

    # Private DLL handles so the prototypes below do not leak into other users
    user32 = ctypes.WinDLL("user32", use_last_error=True)
    gdi32 = ctypes.WinDLL("gdi32", use_last_error=True)

    PW_CLIENTONLY = 0x00000001
    SRCCOPY = 0x00CC0020
    BI_RGB = 0
    DIB_RGB_COLORS = 0

    class RECT(ctypes.Structure):
        _fields_ = [
            ("left", ctypes.c_long),
            ("top", ctypes.c_long),
            ("right", ctypes.c_long),
            ("bottom", ctypes.c_long),
        ]

    class POINT(ctypes.Structure):
        _fields_ = [("x", ctypes.c_long), ("y", ctypes.c_long)]

    class BITMAPINFOHEADER(ctypes.Structure):
        _fields_ = [
            ("biSize", wintypes.DWORD),
            ("biWidth", wintypes.LONG),
            ("biHeight", wintypes.LONG),
            ("biPlanes", wintypes.WORD),
            ("biBitCount", wintypes.WORD),
            ("biCompression", wintypes.DWORD),
            ("biSizeImage", wintypes.DWORD),
            ("biXPelsPerMeter", wintypes.LONG),
            ("biYPelsPerMeter", wintypes.LONG),
            ("biClrUsed", wintypes.DWORD),
            ("biClrImportant", wintypes.DWORD),
        ]

    class BITMAPINFO(ctypes.Structure):
        _fields_ = [("bmiHeader", BITMAPINFOHEADER), ("bmiColors", wintypes.DWORD * 3)]

    user32.GetDC.argtypes = [wintypes.HWND]
    user32.GetDC.restype = wintypes.HDC
    user32.ReleaseDC.argtypes = [wintypes.HWND, wintypes.HDC]
    user32.PrintWindow.argtypes = [wintypes.HWND, wintypes.HDC, wintypes.UINT]
    user32.PrintWindow.restype = wintypes.BOOL
    user32.GetClientRect.argtypes = [wintypes.HWND, ctypes.POINTER(RECT)]
    user32.ClientToScreen.argtypes = [wintypes.HWND, ctypes.POINTER(POINT)]
    gdi32.CreateCompatibleDC.argtypes = [wintypes.HDC]
    gdi32.CreateCompatibleDC.restype = wintypes.HDC
    gdi32.CreateCompatibleBitmap.argtypes = [wintypes.HDC, ctypes.c_int, ctypes.c_int]
    gdi32.CreateCompatibleBitmap.restype = wintypes.HBITMAP
    gdi32.SelectObject.argtypes = [wintypes.HDC, wintypes.HGDIOBJ]
    gdi32.SelectObject.restype = wintypes.HGDIOBJ
    gdi32.DeleteObject.argtypes = [wintypes.HGDIOBJ]
    gdi32.DeleteDC.argtypes = [wintypes.HDC]
    gdi32.BitBlt.argtypes = [
        wintypes.HDC, ctypes.c_int, ctypes.c_int, ctypes.c_int, ctypes.c_int,
        wintypes.HDC, ctypes.c_int, ctypes.c_int, wintypes.DWORD,
    ]
    gdi32.BitBlt.restype = wintypes.BOOL
    gdi32.GetDIBits.argtypes = [
        wintypes.HDC, wintypes.HBITMAP, wintypes.UINT, wintypes.UINT,
        ctypes.c_void_p, ctypes.POINTER(BITMAPINFO), wintypes.UINT,
    ]

    def _is_wine() -> bool:
        try:
            return hasattr(ctypes.WinDLL("ntdll"), "wine_get_version")
        except OSError:
            return False

    _WINE = _is_wine()

    def _client_size(hwnd) -> Optional[tuple]:
        rc = RECT()
        if not user32.GetClientRect(hwnd, ctypes.byref(rc)):
            return None
        return int(rc.right - rc.left), int(rc.bottom - rc.top)

    def _render_client(hwnd, width: int, height: int) -> bytearray:
        """Render the client area into a top-down 24-bit DIB buffer."""
        screen_dc = user32.GetDC(None)
        window_dc = mem_dc = bitmap = None
        try:
            if not screen_dc:
                raise CaptureError("GetDC failed")
            source_dc = screen_dc
            if _WINE:
                window_dc = user32.GetDC(hwnd)
                if not window_dc:
                    raise CaptureError("GetDC on the window failed")
                source_dc = window_dc
            mem_dc = gdi32.CreateCompatibleDC(source_dc)
            if not mem_dc:
                raise CaptureError("CreateCompatibleDC failed")
            bitmap = gdi32.CreateCompatibleBitmap(source_dc, width, height)
            if not bitmap:
                raise CaptureError("CreateCompatibleBitmap failed")
            old = gdi32.SelectObject(mem_dc, bitmap)
            if _WINE:
                ok = gdi32.BitBlt(mem_dc, 0, 0, width, height, window_dc, 0, 0, SRCCOPY)
            else:
                ok = user32.PrintWindow(hwnd, mem_dc, PW_CLIENTONLY)
            # GetDIBits needs the bitmap deselected
            gdi32.SelectObject(mem_dc, old)
            if not ok:
                raise CaptureError("BitBlt failed" if _WINE else "PrintWindow failed")

            bmi = BITMAPINFO()
            bmi.bmiHeader.biSize = ctypes.sizeof(BITMAPINFOHEADER)
            bmi.bmiHeader.biWidth = width
            bmi.bmiHeader.biHeight = -height  # top-down rows
            bmi.bmiHeader.biPlanes = 1
            bmi.bmiHeader.biBitCount = 24
            bmi.bmiHeader.biCompression = BI_RGB
            data = bytearray(row_stride(width) * height)
            buf = (ctypes.c_char * len(data)).from_buffer(data)
            lines = gdi32.GetDIBits(
                mem_dc, bitmap, 0, height, ctypes.addressof(buf), ctypes.byref(bmi), DIB_RGB_COLORS
            )
            del buf
            if lines != height:
                raise CaptureError("GetDIBits failed")
            return data
        finally:
            if bitmap:
                gdi32.DeleteObject(bitmap)
            if mem_dc:
                gdi32.DeleteDC(mem_dc)
            if window_dc:
                user32.ReleaseDC(hwnd, window_dc)
            if screen_dc:
                user32.ReleaseDC(None, screen_dc)

    def _grab_screen(hwnd, window: Any, width: int, height: int) -> np.ndarray:
        origin = POINT(0, 0)
        if not user32.ClientToScreen(hwnd, ctypes.byref(origin)):
            raise CaptureError(f"window {window!r}: ClientToScreen failed")
        region = {"left": int(origin.x), "top": int(origin.y), "width": width, "height": height}
        try:
            return _grab(region)
        except ScreenShotError as e:
            raise CaptureError(f"window {window!r}: {e}") from e

    def list_windows(max_count: int = 8, class_name: str = DEFAULT_WINDOW_CLASS) -> List[WindowInfo]:
        """Visible, enabled top-level windows of class_name with their client-area size."""
        found: List[WindowInfo] = []

        @ctypes.WINFUNCTYPE(ctypes.c_bool, wintypes.HWND, wintypes.LPARAM)
        def _enum_proc(hwnd, lparam):  # pragma: no cover - requires Windows GUI
            if len(found) >= max_count:
                return False
            if not user32.IsWindowVisible(hwnd) or not user32.IsWindowEnabled(hwnd):
                return True
            buf = ctypes.create_unicode_buffer(256)
            if not user32.GetClassNameW(hwnd, buf, 256) or buf.value != class_name:
                return True
            size = _client_size(hwnd)
            if size is None:
                return True
            found.append(WindowInfo(handle=int(hwnd or 0), width=size[0], height=size[1]))
            return True

        # Window metrics depend on the DPI awareness mss sets up
        _get_sct()
        user32.EnumWindows(_enum_proc, 0)
        logger.debug("win: %d window(s) of class %s", len(found), class_name)
        return found

    def capture_window(window: Any, reuse: Optional[Bitmap] = None) -> Bitmap:
        """Copy the client area of window into a Bitmap (reuse is filled when it fits)."""
        _get_sct()
        hwnd = wintypes.HWND(int(window))
        _check_window_state(
            window,
            exists=bool(user32.IsWindow(hwnd)),
            visible=bool(user32.IsWindowVisible(hwnd)),
            enabled=bool(user32.IsWindowEnabled(hwnd)),
            iconic=bool(user32.IsIconic(hwnd)),
        )
        size = _client_size(hwnd)
        if size is None or size[0] <= 0 or size[1] <= 0:
            raise CaptureError(f"window {window!r} has an empty client area")
        width, height = size
        try:
            data = _render_client(hwnd, width, height)
        except CaptureError as e:
            logger.debug("win: %s for %r, falling back to a screen grab", e, window)
            return _into_reuse(_grab_screen(hwnd, window, width, height), reuse)
        return _from_dib(data, width, height, reuse)
else:
    def list_windows(max_count: int = 8, class_name: str = DEFAULT_WINDOW_CLASS) -> List[WindowInfo]:
        return []

    def capture_window(window: Any, reuse: Optional[Bitmap] = None) -> Bitmap:
        raise CaptureError("window capture requires Windows")

__all__ = [
    "DEFAULT_WINDOW_CLASS",
    "list_windows",
    "capture_window",
]

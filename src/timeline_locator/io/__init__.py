"""IO subpackage for platform-specific integrations.

- win: Windows helpers for enumerating host windows and capturing them
"""
from .win import DEFAULT_WINDOW_CLASS, capture_window, list_windows

__all__ = [
    "DEFAULT_WINDOW_CLASS",
    "capture_window",
    "list_windows",
]

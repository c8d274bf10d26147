"""Controllers: orchestration over the vision detectors.

- analyzer: TimelineAnalyzer, window search with a cached target window
"""
from .analyzer import SaveContext, TimelineAnalyzer, sort_windows

__all__ = ["SaveContext", "TimelineAnalyzer", "sort_windows"]

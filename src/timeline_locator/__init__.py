"""timeline-locator: finds the timeline panel of a video editor in screen captures."""

__version__ = "0.1.0"

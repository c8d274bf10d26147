"""Command line entry point.

Initializes configuration and logging, then runs one of:
- analyze: re-run detection on a saved capture
- locate: capture the host's windows and locate the timeline
- style: print the effective style
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

# Allow running this file directly from a source checkout
if not getattr(sys, "frozen", False):
    src_path = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    if src_path not in sys.path:
        sys.path.insert(0, src_path)

import cv2

from timeline_locator import __version__
from timeline_locator.controllers.analyzer import SaveContext, TimelineAnalyzer
from timeline_locator.core.config import ConfigManager
from timeline_locator.core.logging_setup import get_artifacts_dir, setup_logging
from timeline_locator.core.style_config import default_style_paths, load_style
from timeline_locator.io.win import capture_window, list_windows
from timeline_locator.vision.annotate import annotate_result
from timeline_locator.vision.detectors import analyze
from timeline_locator.vision.metadata import (
    capture_filename,
    load_png_with_metadata,
    prune_captures,
    style_to_dict,
)
from timeline_locator.vision.types import DetectionStatus, LocatorError, TimelineNotFoundError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timeline-locator",
        description="Locate the timeline panel of the host editor from screen captures.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="path to config.ini (default: per-user config)")
    parser.add_argument("--log-level", help="override log_level from config.ini")
    sub = parser.add_subparsers(dest="command", required=True)

    p_analyze = sub.add_parser("analyze", help="re-analyze a saved capture PNG")
    p_analyze.add_argument("png", help="capture written by 'locate --save' or by the host plugin")
    p_analyze.add_argument("--zoom", type=int, default=None, help="zoom value (default: the one stored in the capture)")
    p_analyze.add_argument("--annotate", metavar="OUT", help="write an annotated copy of the capture")

    p_locate = sub.add_parser("locate", help="capture the host windows and locate the timeline")
    p_locate.add_argument("--zoom", type=int, default=None, help="current zoom value (default: default_zoom)")
    p_locate.add_argument("--save", action="store_true", help="save the capture into the session artifacts")

    sub.add_parser("style", help="print the effective style")
    return parser


def _print_json(doc) -> None:
    print(json.dumps(doc, indent=2))


def _style_getter(config_manager: ConfigManager):
    def get_style():
        base, override = default_style_paths(config_manager)
        return load_style(base, override)
    return get_style


def cmd_analyze(args, config_manager: ConfigManager) -> int:
    bitmap, meta = load_png_with_metadata(args.png)
    style = meta.style
    if not style.is_loaded:
        logger.info("analyze: capture carries no style, using style.conf")
        style = _style_getter(config_manager)()
    zoom = meta.zoom if args.zoom is None else args.zoom
    result = analyze(bitmap, style, zoom)
    logger.info("analyze: %s (zoom=%d, recorded status=%s)", result.status.label, zoom, meta.status.label)
    _print_json(result.to_dict())
    if args.annotate:
        annotated = annotate_result(bitmap, result)
        if not cv2.imwrite(args.annotate, annotated.bgr):
            raise LocatorError(f"could not write {args.annotate}")
        logger.info("analyze: annotated capture written to %s", args.annotate)
    return 0 if result.status == DetectionStatus.SUCCESS else 1


def cmd_locate(args, config_manager: ConfigManager) -> int:
    window_class = config_manager.get("window_class") or "aviutl2Manager"
    zoom = config_manager.get_int("default_zoom", -1) if args.zoom is None else args.zoom
    save = args.save or config_manager.get_bool("save_captures")
    keep = config_manager.get_int("capture_keep", 10)

    def on_complete(ctx: SaveContext, status: DetectionStatus) -> None:
        if not save:
            return
        out_dir = get_artifacts_dir(config_manager, "captures")
        path = ctx.save_to_file(out_dir / capture_filename(ctx.timestamp))
        logger.info("locate: capture saved to %s (%s)", str(path), status.label)
        prune_captures(out_dir, keep=keep)

    analyzer = TimelineAnalyzer(
        capture=capture_window,
        list_windows=lambda max_count: list_windows(max_count, window_class),
        get_style=_style_getter(config_manager),
    )
    try:
        result = analyzer.run(zoom, on_complete=on_complete)
    except TimelineNotFoundError as e:
        logger.info("locate: %s", e)
        _print_json({"status": e.status.label})
        return 1
    doc = result.to_dict()
    doc["window"] = result.window
    _print_json(doc)
    return 0


def cmd_style(args, config_manager: ConfigManager) -> int:
    _print_json(style_to_dict(_style_getter(config_manager)()))
    return 0


COMMANDS = {
    "analyze": cmd_analyze,
    "locate": cmd_locate,
    "style": cmd_style,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, set up config and logging, and run a subcommand."""
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.config)
    setup_logging(config_manager, level=args.log_level)

    # Log unhandled exceptions before the default hook prints them
    def _excepthook(exc_type, exc, tb):
        logging.getLogger(__name__).exception("Unhandled exception:", exc_info=(exc_type, exc, tb))
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _excepthook

    try:
        return COMMANDS[args.command](args, config_manager)
    except (LocatorError, OSError) as e:
        logger.error("%s: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Saved captures: PNG images carrying the detection context as JSON.

A capture file is an RGB PNG with two text chunks: ``Software`` and
``X-GCMZ-Metadata``. The metadata JSON holds the status label, the zoom value,
an ISO-8601 ``creation_time`` and the complete Style (colors as ``#rrggbb``).
The key names match the captures written by the host plugin, so its debug
images can be re-analyzed here as well.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Tuple, Union
import json
import logging

import numpy as np
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from .bitmap import Bitmap
from .types import Color, DetectionStatus, InvalidArgumentError, MetadataError, Style

logger = logging.getLogger(__name__)

METADATA_KEY = "X-GCMZ-Metadata"
SOFTWARE = "timeline-locator"
CAPTURE_PREFIX = "capture-"

# Style attribute -> JSON key
_COLOR_FIELDS = {
    "active_normal": "active_normal",
    "active_hover": "active_hover",
    "inactive_normal": "inactive_normal",
    "inactive_hover": "inactive_hover",
    "background": "background",
    "frame_cursor": "frame_cursor",
    "frame_cursor_wide": "frame_cursor_wide",
}
_INT_FIELDS = {
    "time_gauge_height": "time_gauge_height",
    "layer_header_width": "layer_header_width",
    "scroll_bar_size": "scroll_bar_size",
    "layer_height": "layer_height",
    "gauge_margin": "zoom_bar_margin",
    "gauge_block_width": "zoom_bar_block_width",
    "gauge_block_gap": "zoom_bar_block_gap",
}

PathLike = Union[str, Path]


@dataclass
class CaptureMetadata:
    zoom: int = 0
    status: DetectionStatus = DetectionStatus.INVALID
    creation_time: datetime = field(default_factory=lambda: datetime.now().astimezone())
    style: Style = field(default_factory=Style)


def style_to_dict(style: Style) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for attr, key in _COLOR_FIELDS.items():
        out[key] = getattr(style, attr).to_hex()
    for attr, key in _INT_FIELDS.items():
        out[key] = int(getattr(style, attr))
    return out


def style_from_dict(data: Dict[str, Any]) -> Style:
    """Decode a style object; missing or mistyped fields become zero values."""
    kwargs: Dict[str, Any] = {}
    for attr, key in _COLOR_FIELDS.items():
        value = data.get(key)
        if isinstance(value, str):
            kwargs[attr] = Color.from_hex(value)
    for attr, key in _INT_FIELDS.items():
        value = data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            kwargs[attr] = value
    return Style(**kwargs)


def metadata_to_json(meta: CaptureMetadata) -> str:
    doc = {
        "status": meta.status.label,
        "zoom": int(meta.zoom),
        "creation_time": meta.creation_time.isoformat(timespec="seconds"),
        "style": style_to_dict(meta.style),
    }
    return json.dumps(doc, separators=(",", ":"))


def metadata_from_json(text: str) -> CaptureMetadata:
    try:
        doc = json.loads(text)
    except ValueError as e:
        raise MetadataError(f"malformed capture metadata: {e}") from e
    if not isinstance(doc, dict):
        raise MetadataError("capture metadata is not a JSON object")

    meta = CaptureMetadata()
    status = doc.get("status")
    if isinstance(status, str):
        meta.status = DetectionStatus.from_label(status)
    zoom = doc.get("zoom")
    if isinstance(zoom, int) and not isinstance(zoom, bool):
        meta.zoom = zoom
    created = doc.get("creation_time")
    if isinstance(created, str):
        try:
            meta.creation_time = datetime.fromisoformat(created.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("metadata: unparsable creation_time %r", created)
    style = doc.get("style")
    if isinstance(style, dict):
        meta.style = style_from_dict(style)
    return meta


def save_png_with_metadata(path: PathLike, bitmap: Bitmap, meta: CaptureMetadata) -> Path:
    """Write bitmap as an RGB PNG with metadata text chunks."""
    if bitmap is None or meta is None or not path:
        raise InvalidArgumentError("path, bitmap and metadata are required")
    out = Path(path)
    info = PngInfo()
    info.add_text("Software", SOFTWARE)
    info.add_text(METADATA_KEY, metadata_to_json(meta))
    Image.fromarray(bitmap.to_rgb()).save(out, format="PNG", pnginfo=info)
    logger.debug("metadata: saved capture %s (%s)", str(out), bitmap)
    return out


def load_png_with_metadata(path: PathLike) -> Tuple[Bitmap, CaptureMetadata]:
    """Read a capture written by save_png_with_metadata (or by the host plugin)."""
    if not path:
        raise InvalidArgumentError("path is required")
    with Image.open(path) as img:
        text = getattr(img, "text", None) or {}
        raw = text.get(METADATA_KEY) or img.info.get(METADATA_KEY)
        rgb = np.asarray(img.convert("RGB"))
    if not raw:
        raise MetadataError(f"{path}: no {METADATA_KEY} chunk")
    bitmap = Bitmap(np.ascontiguousarray(rgb[:, :, ::-1]))
    return bitmap, metadata_from_json(raw)


def capture_filename(when: datetime) -> str:
    return f"{CAPTURE_PREFIX}{when.strftime('%Y%m%d_%H%M%S_%f')}.png"


def prune_captures(directory: PathLike, keep: int = 10) -> int:
    """Keep only the most recent ``keep`` capture files in directory.

    Returns the number of files removed.
    """
    removed = 0
    try:
        root = Path(directory)
        files = [p for p in root.iterdir() if p.is_file() and p.name.startswith(CAPTURE_PREFIX) and p.suffix == ".png"]
        files.sort(key=lambda p: (p.stat().st_mtime, p.name), reverse=True)
        for old in files[max(0, keep):]:
            try:
                old.unlink()
                removed += 1
            except OSError:
                logger.debug("metadata: could not remove %s", str(old), exc_info=True)
    except OSError:
        logger.debug("metadata: capture directory %s not readable", str(directory), exc_info=True)
    return removed

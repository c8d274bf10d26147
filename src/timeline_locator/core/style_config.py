"""core.style_config
Reads the host editor's style.conf into a Style.

style.conf is an INI file with a [Layout] section (integer sizes) and a
[Color] section (hex colors, RRGGBB or RRGGBBAA). A base file ships with the
host; an optional override file replaces individual keys. Keys missing from
both files, or holding malformed values, fall back to the host's defaults.
Translucent colors are composited over the background color.
"""
from __future__ import annotations

import logging
import os
from configparser import ConfigParser, Error as ConfigParserError
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..config.vision import GAUGE_BLOCK_GAP, GAUGE_BLOCK_WIDTH, GAUGE_MARGIN
from ..vision.types import BLACK, Color, LocatorError, Style

logger = logging.getLogger(__name__)

STYLE_FILE_NAME = "style.conf"
SECTION_LAYOUT = "Layout"
SECTION_COLOR = "Color"

LAYOUT_DEFAULTS = {
    "ScrollBarSize": 20,
    "TimeGaugeHeight": 16,
    "LayerHeaderWidth": 100,
    "LayerHeight": 24,
}

COLOR_DEFAULTS = {
    "ZoomGauge": Color(96, 160, 255),
    "ZoomGaugeHover": Color(128, 192, 255),
    "ZoomGaugeOff": Color(32, 64, 128),
    "ZoomGaugeOffHover": Color(48, 96, 160),
    "Background": Color(32, 32, 32),
    "FrameCursor": Color(200, 48, 48),
    "FrameCursorWide": Color(200, 48, 48),
}

PathLike = Union[str, Path]

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class StyleConfigError(LocatorError):
    """Raised when a present style.conf cannot be parsed."""


def parse_color(value: Optional[str]) -> Optional[Tuple[int, int, int, int]]:
    """Parse 'RRGGBB' or 'RRGGBBAA' into (r, g, b, a); None if malformed."""
    if value is None:
        return None
    text = value.strip()
    if len(text) not in (6, 8) or any(c not in _HEX_DIGITS for c in text):
        return None
    channels = [int(text[i:i + 2], 16) for i in range(0, len(text), 2)]
    if len(channels) == 3:
        channels.append(255)
    return channels[0], channels[1], channels[2], channels[3]


def parse_integer(value: Optional[str]) -> Optional[int]:
    """Parse a decimal integer with optional sign and surrounding blanks."""
    if value is None:
        return None
    text = value.strip(" \t")
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if not text or not text.isdigit() or not text.isascii():
        return None
    return sign * int(text)


def blend(r: int, g: int, b: int, a: int, background: Color) -> Color:
    """Composite an RGBA color over background (integer rounding as the host does)."""
    if a >= 255:
        return Color(r, g, b)
    inv = 255 - a

    def mix(fg: int, bg: int) -> int:
        return ((a * fg + inv * bg) * 32897) >> 23

    return Color(mix(r, background.r), mix(g, background.g), mix(b, background.b))


def _read_ini(path: Optional[PathLike]) -> Optional[ConfigParser]:
    if not path:
        return None
    p = Path(path)
    if not p.is_file():
        return None
    parser = ConfigParser(strict=False, interpolation=None)
    parser.optionxform = str  # keep key case
    try:
        parser.read(p, encoding="utf-8-sig")
    except (ConfigParserError, UnicodeDecodeError) as e:
        raise StyleConfigError(f"{p}: {e}") from e
    logger.debug("style_config: loaded %s", str(p))
    return parser


class StyleConfig:
    """Layered lookup over a base and an optional override style.conf."""

    def __init__(self, base_path: Optional[PathLike] = None, override_path: Optional[PathLike] = None) -> None:
        self.base_path = Path(base_path) if base_path else None
        self.override_path = Path(override_path) if override_path else None
        self._layers: List[ConfigParser] = [
            cfg for cfg in (_read_ini(self.override_path), _read_ini(self.base_path)) if cfg is not None
        ]
        # The background itself is composited over black
        self.background = BLACK
        self.background = self.color("Background")

    def _raw(self, section: str, key: str, parse):
        for cfg in self._layers:
            if cfg.has_option(section, key):
                parsed = parse(cfg.get(section, key))
                if parsed is not None:
                    return parsed
        return None

    def integer(self, key: str, default: Optional[int] = None) -> int:
        value = self._raw(SECTION_LAYOUT, key, parse_integer)
        if value is None:
            return LAYOUT_DEFAULTS[key] if default is None else default
        return value

    def color(self, key: str, default: Optional[Color] = None) -> Color:
        raw = self._raw(SECTION_COLOR, key, parse_color)
        if raw is None:
            return COLOR_DEFAULTS.get(key, BLACK) if default is None else default
        return blend(raw[0], raw[1], raw[2], raw[3], self.background)

    def to_style(self) -> Style:
        return Style(
            active_normal=self.color("ZoomGauge"),
            active_hover=self.color("ZoomGaugeHover"),
            inactive_normal=self.color("ZoomGaugeOff"),
            inactive_hover=self.color("ZoomGaugeOffHover"),
            background=self.background,
            frame_cursor=self.color("FrameCursor"),
            frame_cursor_wide=self.color("FrameCursorWide"),
            time_gauge_height=self.integer("TimeGaugeHeight"),
            layer_header_width=self.integer("LayerHeaderWidth"),
            scroll_bar_size=self.integer("ScrollBarSize"),
            layer_height=self.integer("LayerHeight"),
            gauge_margin=GAUGE_MARGIN,
            gauge_block_width=GAUGE_BLOCK_WIDTH,
            gauge_block_gap=GAUGE_BLOCK_GAP,
        )


def default_style_paths(config_manager=None) -> Tuple[Optional[Path], Optional[Path]]:
    """Return (base, override) style.conf paths.

    Base comes from the ``style_config`` setting. The override is the
    ``style_override`` setting, else data/style.conf next to the base file,
    else %PROGRAMDATA%/aviutl2/style.conf.
    """
    get = getattr(config_manager, "get", lambda *_: None)
    base_val = (get("style_config") or "").strip()
    base = Path(base_val) if base_val else None

    override_val = (get("style_override") or "").strip()
    if override_val:
        return base, Path(override_val)
    candidates = []
    if base is not None:
        candidates.append(base.parent / "data" / STYLE_FILE_NAME)
    program_data = os.environ.get("PROGRAMDATA", "").strip()
    if program_data:
        candidates.append(Path(program_data) / "aviutl2" / STYLE_FILE_NAME)
    for candidate in candidates:
        if candidate.is_file():
            return base, candidate
    return base, None


def load_style(base_path: Optional[PathLike] = None, override_path: Optional[PathLike] = None) -> Style:
    """Build a Style from style.conf files; defaults apply for anything missing."""
    style = StyleConfig(base_path, override_path).to_style()
    logger.info(
        "style_config: scroll_bar=%d time_gauge=%d header=%d layer=%d background=%s",
        style.scroll_bar_size,
        style.time_gauge_height,
        style.layer_header_width,
        style.layer_height,
        style.background.to_hex(),
    )
    return style

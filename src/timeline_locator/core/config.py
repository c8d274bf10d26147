"""core.config
Configuration core: load/save helpers for config.ini.

This module provides a tiny ConfigManager used by the application to read
and persist simple key/value settings. It purposely keeps a small API:
ConfigManager.load(), get(key, fallback), get_bool(), get_int() and save().
"""

import os
from configparser import ConfigParser
from pathlib import Path
from typing import Optional


DEFAULTS = {
    "log_level": "INFO",
    # Window class of the host's top-level windows that may hold the timeline
    "window_class": "aviutl2Manager",
    # style.conf locations; empty means the host's default locations
    "style_config": "",
    "style_override": "",
    # Persist each capture (PNG + metadata) into the log session artifacts
    "save_captures": "False",
    "capture_keep": "10",
    # Zoom used by the CLI when none is given (-1 skips the active-count check)
    "default_zoom": "-1",
}

# Keys that are never taken from the environment
FILE_ONLY_KEYS = {"window_class"}


class ConfigManager:
    """Simple configuration manager backed by an INI file.

    Behaviour:
    - Uses a single DEFAULT section for lookups.
    - Creates the file with sensible defaults if it does not exist.
    - Defaults to a per-user config path (%APPDATA% on Windows,
      XDG_CONFIG_HOME or ~/.config on other systems) unless an explicit
      path is provided.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        if config_path:
            self.config_path = Path(config_path)
        else:
            if os.name == "nt":
                base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
            else:
                base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            self.config_path = base.joinpath("TimelineLocator", "config.ini")

        self.config = ConfigParser()
        self.load()

    def load(self) -> None:
        """Load configuration from disk, creating defaults when needed."""
        existed = self.config_path.exists()
        if existed:
            self.config.read(self.config_path, encoding="utf-8")

        missing = [key for key in DEFAULTS if key not in self.config["DEFAULT"]]
        for key in missing:
            self.config["DEFAULT"][key] = DEFAULTS[key]

        if not existed or missing:
            self.save()

    def get(self, key: str, fallback=None):
        """Get a configuration value.

        Precedence is env > config.ini > fallback, except for FILE_ONLY_KEYS
        which are always read from the config file.
        """
        if str(key).lower() not in FILE_ONLY_KEYS:
            for ek in (f"TL_{str(key).upper()}", str(key).upper(), str(key)):
                val = os.environ.get(ek)
                if val is not None and str(val) != "":
                    return val
        return self.config["DEFAULT"].get(key, fallback)

    def get_bool(self, key: str, fallback: bool = False) -> bool:
        val = self.get(key)
        if val is None or str(val).strip() == "":
            return fallback
        return str(val).strip().lower() in {"1", "true", "yes", "on"}

    def get_int(self, key: str, fallback: int = 0) -> int:
        val = self.get(key)
        try:
            return int(str(val).strip())
        except (TypeError, ValueError):
            return fallback

    def save(self) -> None:
        """Persist current configuration to disk (creates parent directories)."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with self.config_path.open("w", encoding="utf-8") as fh:
            self.config.write(fh)

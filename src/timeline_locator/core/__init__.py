"""Core subpackage: application configuration, logging and style loading.

- config: ConfigManager over the per-user config.ini
- logging_setup: session-based logging and artifact directories
- style_config: reads the host's style.conf into a Style
"""
from .config import ConfigManager
from .logging_setup import get_artifacts_dir, setup_logging
from .style_config import StyleConfig, StyleConfigError, default_style_paths, load_style

__all__ = [
    "ConfigManager",
    "get_artifacts_dir",
    "setup_logging",
    "StyleConfig",
    "StyleConfigError",
    "default_style_paths",
    "load_style",
]

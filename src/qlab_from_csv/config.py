"""
Configuration for cue sheet conversion.

Loaded from:
1. Defaults (this file)
2. Config file (~/.config/qlab-from-csv/config.toml) if exists
3. Environment variables (QLAB_CSV_*) override file
4. CLI flags override everything
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionConfig:
    """Settings for one conversion."""
    template: str = "simple"
    patch: int = 1  # which mixer the x32 template addresses
    log_file: str = ""  # empty disables log cues
    pre_wait: Optional[float] = None  # None keeps the template's own pre-wait
    sheet: Optional[str] = None  # workbook sheet name; first sheet when None

    def merged(self, **overrides: Any) -> "ConversionConfig":
        """Return a copy with every non-``None`` override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "qlab-from-csv" / "config.toml"
    return Path.home() / ".config" / "qlab-from-csv" / "config.toml"


def load_config(path: Path | None = None) -> ConversionConfig:
    """Load config from file if exists, else return defaults."""
    config = ConversionConfig()
    path = path or get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        else:
            config = _apply_toml(config, data)

    return _apply_env(config)


def _non_negative_float(value: Any) -> float:
    number = float(value)
    if number < 0:
        raise ValueError(f"{number!r} is negative")
    return number


_FIELDS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "template": ("QLAB_CSV_TEMPLATE", str),
    "patch": ("QLAB_CSV_PATCH", int),
    "log_file": ("QLAB_CSV_LOG_FILE", str),
    "pre_wait": ("QLAB_CSV_PRE_WAIT", _non_negative_float),
    "sheet": ("QLAB_CSV_SHEET", str),
}


def _apply_toml(config: ConversionConfig, data: dict) -> ConversionConfig:
    """Apply the [conversion] table of a toml document."""
    c = data.get("conversion", {})
    for attr, (_, conv) in _FIELDS.items():
        if attr not in c:
            continue
        try:
            config = replace(config, **{attr: conv(c[attr])})
        except (TypeError, ValueError):
            logger.warning("Ignoring config key %s=%r: not a valid value", attr, c[attr])
    return config


def _apply_env(config: ConversionConfig) -> ConversionConfig:
    """Apply environment variable overrides."""
    for attr, (env_key, conv) in _FIELDS.items():
        val = os.environ.get(env_key)
        if val is not None:
            try:
                config = replace(config, **{attr: conv(val)})
            except ValueError:
                logger.warning("Ignoring %s=%r: not a valid value", env_key, val)

    return config

"""Tailing settings: a frozen Config, loaded from env vars and an optional YAML file.

load_config() is the entry point; open_file() uses it when no Config is given.
"""

import os
import logging
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    poll_interval: float = 1.0          # seconds, polling-only mode
    watch_poll_interval: float = 60.0   # seconds, safety net while an observer runs
    read_size: int = 64 * 1024
    observer_join_timeout: float = 5.0


CONFIG_PATH_ENV = "TAIL_CONFIG"

# field name -> (env var, converter)
_FIELDS = {
    "poll_interval": ("TAIL_POLL_INTERVAL", float),
    "watch_poll_interval": ("TAIL_WATCH_POLL_INTERVAL", float),
    "read_size": ("TAIL_READ_SIZE", int),
    "observer_join_timeout": ("TAIL_OBSERVER_JOIN_TIMEOUT", float),
}


def load_yaml_config(path: str | None = None) -> dict:
    """Read tailing settings from YAML at *path*, or at $TAIL_CONFIG if no path.

    Only the Config field names are kept; anything else is logged and ignored.
    """
    path = path or os.environ.get(CONFIG_PATH_ENV)
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of settings, got {type(data).__name__}")

    unknown = sorted(str(k) for k in data if k not in _FIELDS)
    if unknown:
        logger.warning("Ignoring unknown settings in %s: %s", path, ", ".join(unknown))
    logger.info("Loaded tailing settings from %s", path)
    return {k: v for k, v in data.items() if k in _FIELDS}


def load_config(yaml_data: dict | None = None) -> Config:
    """Build Config from env vars, then YAML data, then dataclass defaults.

    Without *yaml_data* the YAML file named by $TAIL_CONFIG (if any) is read.
    open_file() calls this when no Config is passed.
    """
    if yaml_data is None:
        yaml_data = load_yaml_config()
    values = {}
    for name, (env_var, convert) in _FIELDS.items():
        raw = os.environ.get(env_var)
        if raw is None:
            raw = yaml_data.get(name, getattr(Config, name))
        values[name] = convert(raw)

    config = Config(**values)
    validate_config(config)
    return config


def validate_config(config: Config):
    """Reject non-positive intervals and sizes."""
    for name in _FIELDS:
        value = getattr(config, name)
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value!r}")

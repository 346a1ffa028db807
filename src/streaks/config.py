"""Loader configuration read from ``streaks.yaml``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from streaks.errors import ConfigError

CONFIG_FILENAME = "streaks.yaml"

DEFAULT_CONFIG = {
    "inference_sample_rows": 20,
    "cache_sheet_data": True,
    "max_workers": 4,
    "log_dir": "logs",
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}


def load_config(root: Path | None = None) -> dict[str, Any]:
    """Load configuration from ``<root>/streaks.yaml``, with defaults.

    Args:
        root: Directory holding the config file.  ``None`` returns the
            defaults.

    Returns:
        Merged configuration dict.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    if root is None:
        return config

    config_path = Path(root) / CONFIG_FILENAME
    if config_path.exists():
        try:
            user_config = yaml.safe_load(config_path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid {CONFIG_FILENAME}: {exc}") from exc
        if not isinstance(user_config, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping")
        config.update(user_config)

    return config


def resolve_log_dir(root: Path, config: dict[str, Any]) -> Path:
    """Return the absolute log directory for *config* under *root*."""
    log_dir = Path(config.get("log_dir") or DEFAULT_CONFIG["log_dir"])
    return log_dir if log_dir.is_absolute() else root / log_dir


def configure_logging(root: Path, config: dict[str, Any]) -> Path:
    """Point the event sink at the configured log directory.

    Returns:
        The log directory in use.
    """
    from streaks.logging import set_log_dir

    log_dir = resolve_log_dir(root, config)
    set_log_dir(
        log_dir,
        fsync=bool(config.get("logging_fsync", False)),
        tail_bytes=int(config.get("logging_tail_bytes") or DEFAULT_CONFIG["logging_tail_bytes"]),
    )
    return log_dir

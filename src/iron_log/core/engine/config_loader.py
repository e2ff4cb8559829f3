"""
YAML → config loader.

Loads tunable constants from defaults.yaml (bundled with the package) and
optionally merges user overrides from ``<data dir>/config.yaml``.

Usage:
    from iron_log.core.engine.config_loader import load_model_config
    cfg = load_model_config()
    bar = cfg.get("plates", {}).get("bar_weight", 45.0)

If the bundled YAML cannot be read, all lookups return the Python defaults
from config.py.  If the user override file exists but has parse errors, a
warning is logged and the file is ignored.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

HOME_ENV_VAR = "IRON_LOG_HOME"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; return {} (and log) when it is unusable."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring config file %s: %s", path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level is not a mapping", path)
        return {}
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_data_dir() -> Path:
    """Return the data directory: $IRON_LOG_HOME, else ~/.iron-log."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".iron-log"


def get_bundled_yaml_path(name: str = "defaults.yaml") -> Path | None:
    """Return the path to a YAML file shipped inside the package, or None."""
    # config_loader.py lives at src/iron_log/core/engine/config_loader.py
    candidate = Path(__file__).resolve().parent.parent.parent / name
    return candidate if candidate.exists() else None


def get_user_yaml_path(data_dir: Path | None = None) -> Path | None:
    """Return <data dir>/config.yaml if it exists, else None."""
    p = (data_dir or get_data_dir()) / "config.yaml"
    return p if p.exists() else None


def load_model_config(data_dir: Path | None = None) -> dict[str, Any]:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/iron_log/defaults.yaml
    2. User override at <data dir>/config.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path(data_dir)
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            logger.debug("Merging user config from %s", user)
            config = _deep_merge(config, user_cfg)

    return config

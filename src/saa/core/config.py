"""3-layer configuration system.

Loads and merges configuration from:
1. Default settings (built-in)
2. Config file (saa.yaml in the working directory, or an explicit path)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "saa.yaml"

DEFAULT_CONFIG: dict = {
    "catalogue": {
        "path": "",
    },
    "output": {
        "format": "table",
        "include_evidence_guidance": False,
        "show_tailoring_notes": True,
    },
    "logging": {
        "level": "WARNING",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_config_file(config_path: Path) -> dict:
    """Load a YAML config file; missing, empty or unreadable files give {}."""
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a mapping", config_path)
        return {}
    return data


def get_effective_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
    search_dir: Optional[Path] = None,
) -> dict:
    """Get the fully resolved configuration.

    Without an explicit ``config_path``, ``saa.yaml`` is looked up in
    ``search_dir`` (default: the current directory).
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is None:
        config_path = (search_dir or Path.cwd()) / CONFIG_FILENAME
    file_config = load_config_file(config_path)
    if file_config:
        config = deep_merge(config, file_config)
        config["_config_path"] = str(config_path)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    return config


def get_catalogue_dir(config: dict) -> Optional[Path]:
    """Alternate catalogue directory from config, relative to the config file."""
    path = (config.get("catalogue") or {}).get("path")
    if not path:
        return None
    catalogue_dir = Path(path)
    if not catalogue_dir.is_absolute() and config.get("_config_path"):
        catalogue_dir = Path(config["_config_path"]).parent / catalogue_dir
    return catalogue_dir

"""Indexing configuration (campaign folder, progress thresholds).

Stored as JSON at {vault}/.solo-notation.json. get_config() returns the
defaults merged with whatever is stored; unknown keys are ignored.
"""

import json
import logging
from pathlib import Path
from typing import Any

from solo_notation.parser.progress import NEAR_COMPLETE_THRESHOLD, TIMER_URGENT_THRESHOLD

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".solo-notation.json"

_CONFIG_DEFAULTS: dict[str, Any] = {
    "enable_indexing": True,
    "campaign_folder": "",
    "near_complete_threshold": NEAR_COMPLETE_THRESHOLD,
    "timer_urgent_threshold": TIMER_URGENT_THRESHOLD,
}


def _config_path(vault_dir: Path) -> Path:
    return vault_dir / CONFIG_FILENAME


def default_config() -> dict[str, Any]:
    return dict(_CONFIG_DEFAULTS)


def get_config(vault_dir: Path | None) -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config = default_config()
    if vault_dir is None:
        return config
    path = _config_path(vault_dir)
    if not path.is_file():
        return config
    try:
        stored = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return config
    if not isinstance(stored, dict):
        return config
    for key in _CONFIG_DEFAULTS:
        if key in stored:
            config[key] = stored[key]
    config["campaign_folder"] = str(config["campaign_folder"] or "").strip("/")
    return config


def update_config(vault_dir: Path, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge known fields into config and persist. Returns full config."""
    config = get_config(vault_dir)
    for key in _CONFIG_DEFAULTS:
        if key in fields:
            config[key] = fields[key]
    _config_path(vault_dir).write_text(json.dumps(config, indent=2), encoding="utf-8")
    return config

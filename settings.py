# settings.py
from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = [
    "get_settings_path",
    "load_settings",
    "save_settings",
    "reset_cache",
    "get",
    "set_",
    "get_log_dir",
]

logger = logging.getLogger("invoicebook.settings")

# ---- location & defaults ----------------------------------------------------

APP_NAME = "invoicebook"
FILE_NAME = "settings.json"


def get_config_dir() -> Path:
    """
    Per-user config directory:
    Windows: %APPDATA%\\invoicebook
    macOS:   ~/Library/Application Support/invoicebook
    Linux:   $XDG_CONFIG_HOME/invoicebook (~/.config/invoicebook)
    """
    if os.name == "nt":
        return Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")) / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / APP_NAME


DEFAULTS: Dict[str, Any] = {
    "version": 1,
    "general": {
        "seed_sample_invoices": True,
        "log_level": "INFO",
        "log_dir": str(get_config_dir() / "logs"),
    },
    "ui": {
        "thousand_separators": True,
        "currency_suffix": "đ",
    },
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def get_settings_path() -> Path:
    base = get_config_dir()
    base.mkdir(parents=True, exist_ok=True)
    return base / FILE_NAME


# ---- core load/save ----------------------------------------------------------

_cache: Optional[Dict[str, Any]] = None


def _defaults_copy() -> Dict[str, Any]:
    return json.loads(json.dumps(DEFAULTS))


def _deep_merge(dst: Dict[str, Any], src: Dict[str, Any]) -> Dict[str, Any]:
    """Fill keys missing from dst with the values in src; dst wins on conflicts."""
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _deep_merge(dst[k], v)
        else:
            dst.setdefault(k, v)
    return dst


def _migrate(data: Dict[str, Any]) -> Dict[str, Any]:
    """Bring an older settings dict up to DEFAULTS["version"]."""
    # version 1 is the first schema; later bumps transform keys here
    data = _deep_merge(data, _defaults_copy())
    data["version"] = DEFAULTS["version"]
    return data


def load_settings() -> Dict[str, Any]:
    """Settings dict, read once from disk and cached for the process."""
    global _cache
    if _cache is not None:
        return _cache

    path = get_settings_path()
    if not path.exists():
        _cache = _defaults_copy()
        save_settings(_cache)
        return _cache

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        data = _migrate(data if isinstance(data, dict) else {})
    except (OSError, ValueError) as e:
        # keep the unreadable file on disk for the user to inspect
        logger.warning("Could not read %s (%s); using defaults", path, e)
        data = _defaults_copy()

    _cache = data
    return _cache


def save_settings(data: Dict[str, Any]) -> None:
    """Write settings atomically and refresh the cache."""
    global _cache
    path = get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = _migrate(dict(data))

    fd, tmp = tempfile.mkstemp(prefix="ib_settings_", suffix=".json", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)

    _cache = data


def reset_cache() -> None:
    global _cache
    _cache = None


# ---- convenience getters/setters --------------------------------------------

def get(path: str, default: Any = None) -> Any:
    """
    Read a value by 'dot.path', e.g.:
      get("ui.currency_suffix", "đ")
    """
    node: Any = load_settings()
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def set_(path: str, value: Any) -> None:
    """Write a value by 'dot.path', creating intermediate dicts, and save."""
    data = load_settings()
    node = data
    parts = path.split(".")
    for key in parts[:-1]:
        node = node.setdefault(key, {})
        if not isinstance(node, dict):
            raise TypeError(f"Cannot set {path}: {key} is not a dict in settings.")
    node[parts[-1]] = value
    save_settings(data)
    logger.debug("Setting %s = %r", path, value)


def get_log_dir(create: bool = True) -> Path:
    """
    Configured log directory. If it cannot be created, falls back to the
    default one; an OSError from that is left to the caller.
    """
    p = Path(str(get("general.log_dir", DEFAULTS["general"]["log_dir"])))
    if not create:
        return p
    try:
        p.mkdir(parents=True, exist_ok=True)
        return p
    except OSError as e:
        fallback = Path(DEFAULTS["general"]["log_dir"])
        if fallback == p:
            raise
        logger.warning("Cannot use log dir %s (%s); falling back to %s", p, e, fallback)
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback

"""In-memory cache for resolver settings loaded from JSON."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

from utils.log_utils import tprint

DEFAULT_SETTINGS_PATH = "config/resolver_settings.json"
SETTINGS_ENV_VAR = "MIRROR_RESOLVER_SETTINGS"

_lock = threading.Lock()
_settings_cache: dict[str, Any] = {}
_loaded = False


def settings_path() -> Path:
    """Return the settings file path, honouring the environment override."""
    return Path(os.getenv(SETTINGS_ENV_VAR) or DEFAULT_SETTINGS_PATH)


def _read_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        tprint(f"[SETTINGS][WARN] Ignoring unreadable settings file {path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def load_settings_file(path: str | Path) -> dict[str, Any]:
    """Replace the cached settings with the contents of ``path``."""
    global _loaded
    data = _read_json(Path(path))
    with _lock:
        _settings_cache.clear()
        _settings_cache.update(data)
        _loaded = True
        return dict(_settings_cache)


def refresh_settings() -> dict[str, Any]:
    """Reload settings from disk and replace the cache."""
    return load_settings_file(settings_path())


def update_settings(**overrides: Any) -> dict[str, Any]:
    """Overlay values on the cached settings (used by the CLI flags)."""
    global _loaded
    with _lock:
        if not _loaded:
            _settings_cache.update(_read_json(settings_path()))
            _loaded = True
        _settings_cache.update(overrides)
        return dict(_settings_cache)


def get_settings() -> dict[str, Any]:
    """Return a copy of the cached settings."""
    global _loaded
    with _lock:
        if not _loaded:
            _settings_cache.update(_read_json(settings_path()))
            _loaded = True
        return dict(_settings_cache)


def is_deep_logging() -> bool:
    """Return True when log_level requests deep tracing."""
    level = str(get_settings().get("log_level", "")).upper()
    return level in {"DEEP"}


def deep_log(message: str) -> None:
    """Emit a trace line when deep logging is enabled."""
    if is_deep_logging():
        tprint(message)

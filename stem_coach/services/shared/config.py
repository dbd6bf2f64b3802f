"""Configuration for Stem Coach.

Settings are read from ``settings.yaml``.  A handful of keys can be
overridden per deployment through environment variables, which may in turn
come from .env files.  Priority, lowest first:

  1. settings.yaml
  2. ~/.stem_coach/.env
  3. <repo>/.env
  4. Process environment
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_SETTINGS_PATH = Path(__file__).parent.parent.parent / "config" / "settings.yaml"
SETTINGS_ENV_VAR = "STEM_COACH_SETTINGS"

# dotted settings key → environment variable that overrides it
ENV_OVERRIDES: Dict[str, str] = {
    "analysis.window_size": "STEM_COACH_WINDOW_SIZE",
    "analysis.hop_size":    "STEM_COACH_HOP_SIZE",
    "analysis.max_seconds": "STEM_COACH_MAX_SECONDS",
    "analysis.max_workers": "STEM_COACH_MAX_WORKERS",
    "logging.level":        "STEM_COACH_LOG_LEVEL",
    "logging.file":         "STEM_COACH_LOG_FILE",
}

_MISSING = object()
_config_instance: Optional["Config"] = None


def _env_files() -> list:
    return [
        Path.home() / ".stem_coach" / ".env",
        Path(__file__).parent.parent.parent.parent / ".env",
    ]


class Config:
    """settings.yaml plus environment overrides, with dot-notation lookup."""

    def __init__(self, config_path: str):
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file must be a YAML mapping, got: {type(data)}")
        self._data: dict = data
        self.path = path

        # override=False: variables already in the process environment win
        for env_file in _env_files():
            if env_file.exists():
                load_dotenv(env_file, override=False)

    def _lookup(self, key: str) -> Any:
        val: Any = self._data
        for part in key.split("."):
            if not isinstance(val, dict) or part not in val:
                return _MISSING
            val = val[part]
        return val

    def get(self, key: str, default: Any = None) -> Any:
        """Dot-notation access, environment override first.

        Example::

            config.get("analysis.hop_size")         # 2048, or $STEM_COACH_HOP_SIZE
            config.get("missing.key", "fallback")   # "fallback"

        Override values are parsed as YAML scalars, so "1024" comes back as
        an int and "null" as None.
        """
        env_name = ENV_OVERRIDES.get(key)
        if env_name and os.environ.get(env_name, "") != "":
            return yaml.safe_load(os.environ[env_name])

        val = self._lookup(key)
        return default if val is _MISSING else val

    def section(self, key: str) -> Dict[str, Any]:
        """Return a mapping section with its environment overrides applied."""
        raw = self._lookup(key)
        if raw is _MISSING:
            return {}
        if not isinstance(raw, dict):
            raise TypeError(f"Config key {key!r} is not a mapping")
        return {name: self.get(f"{key}.{name}") for name in raw}

    def get_env(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return os.environ.get(name, default)


# ── module-level singleton ────────────────────────────────────────────────────


def get_config(config_path: Optional[str] = None) -> Config:
    """Return the singleton Config instance.

    The first call loads ``config_path``, else ``$STEM_COACH_SETTINGS``, else
    the bundled ``config/settings.yaml``.  Later calls return the same
    instance and ignore ``config_path``.
    """
    global _config_instance
    if _config_instance is None:
        path = config_path or os.environ.get(SETTINGS_ENV_VAR) or str(DEFAULT_SETTINGS_PATH)
        _config_instance = Config(path)
    return _config_instance


def reset_config() -> None:
    """Clear the singleton (mainly for testing)."""
    global _config_instance
    _config_instance = None

# WSH — Interactive Shell with Context-Aware Completion
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Configuration loading and data root resolution for WSH.

Handles:
- Packaged YAML defaults (wsh/defaults/system.yaml)
- User YAML overrides (-f PATH, $WSH_CONFIG, ~/.wsh.yaml)
- Data root resolution (WSH_DATA_HOME, ~/.local/share) for the crash log
- ANSI coloring constants and prompt formatting
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import yaml

from importlib import resources as importlib_resources

from .completion import ForcedKind
from .utils import contract_user


# -----------------------
# UI constants
# -----------------------

ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[38;5;69;1m",
    "pink": "\033[38;5;169;1m",
    "magenta": "\033[38;5;126;1m",
    "yellow": "\033[38;5;226;1m",
    "purple": "\033[38;5;96;1m",
    "reset": "\033[0m",
    "dim": "\033[2m",
    "green": "\033[32m",
    "red": "\033[31m",
}

USER_CONFIG_NAME = ".wsh.yaml"


class ConfigError(ValueError):
    """Invalid or unreadable configuration file."""


def colorize(text: str, color: str, enabled: bool = True) -> str:
    if not enabled or color not in ANSI_COLORS:
        return text
    return f"{ANSI_COLORS[color]}{text}{ANSI_COLORS['reset']}"


def format_prompt(template: str, cwd: str, home: str | None = None) -> str:
    """Fill ``{cwd}`` with the working directory, home shown as ``~``."""
    return template.replace("{cwd}", contract_user(cwd, home))


# -----------------------
# Config model wrapper
# -----------------------


class ShellConfig:
    """Merged configuration with typed accessors."""

    def __init__(self, config_dict: dict[str, Any], source: str = ""):
        self._config = config_dict
        self.source = source
        # Session-local copy; the alias builtin adds to it
        self.aliases: dict[str, str] = self._read_aliases()
        self.forced_kinds: dict[str, ForcedKind] = self._read_forced_kinds()
        self._validate()

    def _fail(self, message: str) -> ConfigError:
        where = f" ({self.source})" if self.source else ""
        return ConfigError(f"{message}{where}")

    def _read_aliases(self) -> dict[str, str]:
        raw = self._config.get("aliases") or {}
        if not isinstance(raw, dict):
            raise self._fail("'aliases' must be a mapping")
        return {str(k): str(v) for k, v in raw.items()}

    def _read_forced_kinds(self) -> dict[str, ForcedKind]:
        raw = self.get_path("completion.forced_kinds", {}) or {}
        if not isinstance(raw, dict):
            raise self._fail("'completion.forced_kinds' must be a mapping")
        kinds: dict[str, ForcedKind] = {}
        for name, value in raw.items():
            try:
                kinds[str(name)] = ForcedKind(str(value).lower())
            except ValueError:
                allowed = ", ".join(k.value for k in ForcedKind)
                raise self._fail(
                    f"completion kind for '{name}' must be one of {allowed}, "
                    f"got {value!r}"
                ) from None
        return kinds

    def _validate(self) -> None:
        size = self._config.get("history_size", 1000)
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise self._fail(
                f"'history_size' must be a non-negative integer, got {size!r}"
            )
        if not isinstance(self._config.get("prompt", ""), str):
            raise self._fail("'prompt' must be a string")

    @property
    def prompt(self) -> str:
        return self._config.get("prompt", "$ ")

    @property
    def history_size(self) -> int:
        return self._config.get("history_size", 1000)

    @property
    def enable_colors(self) -> bool:
        return bool(self._config.get("enable_colors", True))

    @property
    def prompt_color(self) -> str:
        return str(self.get_path("colors.prompt", "green"))

    @property
    def error_color(self) -> str:
        return str(self.get_path("colors.error", "red"))

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Nested lookup using dot-separated path.
        Example: get_path("completion.forced_kinds", {})
        """
        if not path:
            return default

        cur: Any = self._config
        for part in path.split("."):
            if not isinstance(cur, dict):
                return default
            if part not in cur:
                return default
            cur = cur[part]
        return cur


# -----------------------
# Data root
# -----------------------


def get_data_root() -> Path:
    """Get the data root directory for WSH.

    Resolution order:
    1. WSH_DATA_HOME environment variable (if set)
    2. ~/.local/share (default)
    """
    wsh_data_home = os.getenv("WSH_DATA_HOME")
    if wsh_data_home:
        root = Path(wsh_data_home)
    else:
        root = Path.home() / ".local" / "share"

    root.mkdir(parents=True, exist_ok=True)
    return root


def crash_log_path(data_root: Path) -> Path:
    """<data_root>/wsh/logs/crash.log"""
    return data_root / "wsh" / "logs" / "crash.log"


# -----------------------
# YAML loading
# -----------------------


def _defaults_dir() -> Path:
    return Path(
        importlib_resources.files("wsh.defaults")
    )  # type: ignore[arg-type]


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must load to a mapping/dict.")
    return data


def load_defaults_yaml(filename: str = "system.yaml") -> dict[str, Any]:
    """Load a YAML file from wsh/defaults/."""
    defaults_dir = _defaults_dir()
    path = defaults_dir / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Missing defaults YAML: {filename} "
            f"(looked in {defaults_dir})"
        )
    return _read_yaml(path)


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict:
    """Deep-merge ``override`` onto ``base`` (mappings merge, rest replaces)."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def user_config_path(explicit: Path | None = None) -> Path | None:
    """Which user file to load, or None for defaults only.

    Order: explicit path, $WSH_CONFIG, ~/.wsh.yaml (if it exists).
    An explicit path is returned even if missing so the caller can warn.
    """
    if explicit is not None:
        return explicit
    env_path = os.getenv("WSH_CONFIG")
    if env_path:
        return Path(env_path)
    default = Path.home() / USER_CONFIG_NAME
    return default if default.exists() else None


def load_config(path: Path | None = None) -> ShellConfig:
    """Load packaged defaults merged with the user's YAML file."""
    data = load_defaults_yaml("system.yaml")
    source = "defaults"

    user_path = user_config_path(path)
    if user_path is not None:
        if user_path.exists():
            data = merge_config(data, _read_yaml(user_path))
            source = str(user_path)
        else:
            print(
                f"Config file not found at {user_path}, using defaults",
                file=sys.stderr,
            )

    return ShellConfig(data, source=source)

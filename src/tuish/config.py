# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Filesystem locations and packaged defaults for tuish.

Handles:
- Config root resolution (TUISH_CONFIG_HOME, platform config dir)
- Alias file and crash log paths
- Platform default shell + the flag that makes it run one command
- Packaged YAML defaults loading (tuish.defaults/ui.yaml)
"""

from __future__ import annotations

import os
from importlib import resources as importlib_resources
from pathlib import Path, PureWindowsPath
from typing import Any

import yaml
from platformdirs import user_config_dir


APP_NAME = "tuish"
CONFIG_FILENAME = "cnfg.json"

POSIX_DEFAULT_SHELL = "/bin/bash"
FALLBACK_SHELL = "sh"


# -----------------------
# Presentation settings
# -----------------------


class YAMLConfig:
    """Presentation settings (labels, sizes, styles) loaded from YAML."""

    def __init__(self, settings: dict[str, Any]):
        self._settings = settings

    @property
    def ui(self) -> dict[str, Any]:
        section = self._settings.get("ui")
        return section if isinstance(section, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._settings.get(key, default)

    def get_path(self, path: str, default: Any = None) -> Any:
        """Look up a dotted key, e.g. ``get_path("ui.actions.add_alias")``.

        Any missing segment (or a non-mapping on the way) yields ``default``.
        """
        node: Any = self._settings
        for segment in path.split(".") if path else ():
            if not isinstance(node, dict) or segment not in node:
                return default
            node = node[segment]
        return node if path else default


# -----------------------
# Config root + file helpers
# -----------------------


def get_config_root() -> Path:
    """Get the configuration directory for tuish.

    Resolution order:
    1. TUISH_CONFIG_HOME environment variable (if set)
    2. platform user config dir (e.g. ~/.config/tuish)
    """
    tuish_home = os.getenv("TUISH_CONFIG_HOME")
    if tuish_home:
        root = Path(tuish_home)
    else:
        root = Path(user_config_dir(APP_NAME, appauthor=False))

    root.mkdir(parents=True, exist_ok=True)
    return root


def config_file_path(config_root: Path) -> Path:
    """<config_root>/cnfg.json"""
    return config_root / CONFIG_FILENAME


def crash_log_path(config_root: Path) -> Path:
    """<config_root>/logs/crash.log"""
    return config_root / "logs" / "crash.log"


# -----------------------
# Shell defaults
# -----------------------


def default_shell_path() -> str:
    """Shell written into a freshly created config."""
    if os.name == "nt":
        return os.environ.get("COMSPEC") or "cmd.exe"
    return POSIX_DEFAULT_SHELL


def fallback_shell_path() -> str:
    """Shell used when the config file exists but cannot be parsed."""
    if os.name == "nt":
        return default_shell_path()
    return os.environ.get("SHELL") or FALLBACK_SHELL


def shell_command_flag(shell_path: str) -> str:
    """Flag that makes ``shell_path`` run a single command string.

    Windows paths are split on both separators whatever the host OS.
    """
    name = PureWindowsPath(shell_path).name.lower()
    if name in ("cmd", "cmd.exe"):
        return "/c"
    return "-c"


# -----------------------
# Packaged defaults
# -----------------------


def _defaults_dir() -> Path:
    """Directory holding the YAML files shipped in ``tuish.defaults``."""
    return Path(str(importlib_resources.files("tuish.defaults")))


def load_defaults_yaml(filename: str) -> dict[str, Any]:
    """Parse one packaged YAML file; its top level must be a mapping."""
    source = _defaults_dir() / filename
    if not source.is_file():
        raise FileNotFoundError(f"tuish defaults file not found: {source}")

    with source.open("r", encoding="utf-8") as fh:
        loaded = yaml.safe_load(fh)

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{source} must contain a YAML mapping at top level")
    return loaded


def load_ui_config() -> YAMLConfig:
    """Labels, layout sizes and styles for TerminalScreen (ui.yaml)."""
    return YAMLConfig(load_defaults_yaml("ui.yaml"))

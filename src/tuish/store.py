# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
JSON-file storage implementation for tuish.

Owns the on-disk representation of the alias table and default shell:

    {
      "aliases": {"<name>": {"command": "...", "keybind": "x" | null}},
      "default-shell": "/bin/bash"
    }
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import default_shell_path


@dataclass(frozen=True)
class Alias:
    name: str
    command: str
    keybind: str | None = None


@dataclass
class Configuration:
    """Alias table (insertion ordered) plus the shell used to run it."""

    aliases: dict[str, Alias] = field(default_factory=dict)
    default_shell: str = field(default_factory=default_shell_path)


# ----------------------------------------------------------------
# Errors
# ----------------------------------------------------------------


class ConfigError(Exception):
    """Base class for configuration storage failures."""


class ConfigNotFoundError(ConfigError):
    """No config file exists yet (first run)."""

    def __init__(self, path: Path):
        super().__init__(f"No config file at {path}")
        self.path = path


class ConfigFormatError(ConfigError):
    """The config file exists but does not hold a valid configuration."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid config file {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigSaveError(ConfigError):
    """Writing the config file failed; the previous file is untouched."""

    def __init__(self, path: Path, error: OSError):
        super().__init__(f"Could not save config to {path}: {error}")
        self.path = path
        self.error = error


# ----------------------------------------------------------------
# Serialization
# ----------------------------------------------------------------


def is_visible_keybind(key: str) -> bool:
    """A keybind is one printable, non-whitespace character."""
    return len(key) == 1 and key.isprintable() and not key.isspace()


def _normalize_keybind(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"keybind must be a string or null, got {value!r}")
    # Only the first character of a longer token is meaningful; one that
    # could never be typed as a binding loads unbound.
    key = value[:1]
    return key if is_visible_keybind(key) else None


def configuration_to_dict(cfg: Configuration) -> dict[str, Any]:
    return {
        "aliases": {
            name: {"command": alias.command, "keybind": alias.keybind}
            for name, alias in cfg.aliases.items()
        },
        "default-shell": cfg.default_shell,
    }


def configuration_from_dict(data: Any) -> Configuration:
    """Build a Configuration from decoded JSON.

    Raises:
        ValueError: if the structure does not match the file format
    """
    if not isinstance(data, dict):
        raise ValueError("top level must be an object")

    raw_aliases = data.get("aliases", {})
    if raw_aliases is None:
        raw_aliases = {}
    if not isinstance(raw_aliases, dict):
        raise ValueError("'aliases' must be an object")

    aliases: dict[str, Alias] = {}
    claimed: set[str] = set()
    for name, entry in raw_aliases.items():
        if not isinstance(entry, dict):
            raise ValueError(f"alias {name!r} must be an object")
        command = entry.get("command")
        if not isinstance(command, str):
            raise ValueError(f"alias {name!r} has no command string")
        keybind = _normalize_keybind(entry.get("keybind"))
        # First alias in file order keeps a contested keybind.
        if keybind is not None and keybind in claimed:
            keybind = None
        if keybind is not None:
            claimed.add(keybind)
        aliases[name] = Alias(name=name, command=command, keybind=keybind)

    shell = data.get("default-shell")
    if shell is not None and not isinstance(shell, str):
        raise ValueError("'default-shell' must be a string")
    if not shell or not shell.strip():
        shell = default_shell_path()

    return Configuration(aliases=aliases, default_shell=shell)


# ----------------------------------------------------------------
# Store
# ----------------------------------------------------------------


class JSONConfigStore:
    """JSON file implementation of ConfigStore protocol."""

    def __init__(self, path: Path):
        """Initialize store with the config file path.

        Args:
            path: Path to the JSON config file (need not exist yet)
        """
        self.path = path

    def load(self) -> Configuration:
        """Read the config file.

        Raises:
            ConfigNotFoundError: file is absent (first run)
            ConfigFormatError: file is unreadable or malformed
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigNotFoundError(self.path) from None
        except OSError as e:
            raise ConfigFormatError(self.path, str(e)) from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigFormatError(self.path, str(e)) from e

        try:
            return configuration_from_dict(data)
        except ValueError as e:
            raise ConfigFormatError(self.path, str(e)) from e

    def save(self, cfg: Configuration) -> None:
        """Persist atomically: temp file in the same dir, then replace.

        Raises:
            ConfigSaveError: the write failed (previous file left intact)
        """
        content = json.dumps(configuration_to_dict(cfg), indent=2) + "\n"

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
        except OSError as e:
            raise ConfigSaveError(self.path, e) from e

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise ConfigSaveError(self.path, e) from e

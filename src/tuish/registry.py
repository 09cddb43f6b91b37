# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
In-memory alias table with validation.

Every mutation is validated first, applied to the owned Configuration,
then persisted through the injected ConfigStore. A failed save leaves the
in-memory change in place and propagates ConfigSaveError.
"""

from __future__ import annotations

from .interfaces import ConfigStore
from .store import Alias, Configuration, is_visible_keybind


class AliasError(Exception):
    """Base class for alias validation failures."""


class DuplicateAliasError(AliasError):
    def __init__(self, name: str):
        super().__init__(f"An alias named '{name}' already exists")
        self.name = name


class KeybindInUseError(AliasError):
    def __init__(self, keybind: str, owner: str):
        super().__init__(f"Keybind '{keybind}' is already used by '{owner}'")
        self.keybind = keybind
        self.owner = owner


class AliasNotFoundError(AliasError):
    def __init__(self, name: str):
        super().__init__(f"No alias named '{name}'")
        self.name = name


class InvalidAliasError(AliasError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


def validate_keybind(keybind: str | None) -> str | None:
    """Return the keybind unchanged, or raise InvalidAliasError."""
    if keybind is None:
        return None
    if not is_visible_keybind(keybind):
        raise InvalidAliasError(
            "keybind", "Keybind must be a single visible character"
        )
    return keybind


class AliasRegistry:
    """Alias table keyed by name with unique keybinds."""

    def __init__(self, store: ConfigStore, configuration: Configuration):
        self.store = store
        self._config = configuration
        self._by_keybind: dict[str, str] = {}
        self._reindex()

    # ----------------------------------------------------------------
    # Read side
    # ----------------------------------------------------------------

    @property
    def default_shell(self) -> str:
        return self._config.default_shell

    def __len__(self) -> int:
        return len(self._config.aliases)

    def __contains__(self, name: object) -> bool:
        return name in self._config.aliases

    def get(self, name: str) -> Alias | None:
        return self._config.aliases.get(name)

    def list(self) -> list[Alias]:
        """Aliases in insertion order (the order shown in the panel)."""
        return list(self._config.aliases.values())

    def index_of(self, name: str) -> int | None:
        for i, alias_name in enumerate(self._config.aliases):
            if alias_name == name:
                return i
        return None

    def resolve_by_keybind(self, key: str) -> Alias | None:
        name = self._by_keybind.get(key)
        if name is None:
            return None
        return self._config.aliases.get(name)

    # ----------------------------------------------------------------
    # Mutations
    # ----------------------------------------------------------------

    def add(self, name: str, command: str, keybind: str | None = None) -> Alias:
        self._validate_fields(name, command, keybind)
        if name in self:
            raise DuplicateAliasError(name)
        self._check_keybind(keybind, owner=None)

        alias = Alias(name=name, command=command, keybind=keybind)
        self._config.aliases[name] = alias
        self._reindex()
        self._persist()
        return alias

    def edit(
        self, name: str, new_command: str, new_keybind: str | None = None
    ) -> Alias:
        if name not in self:
            raise AliasNotFoundError(name)
        self._validate_fields(name, new_command, new_keybind)
        self._check_keybind(new_keybind, owner=name)

        alias = Alias(name=name, command=new_command, keybind=new_keybind)
        # Assigning to an existing key keeps its position.
        self._config.aliases[name] = alias
        self._reindex()
        self._persist()
        return alias

    def remove(self, name: str) -> Alias:
        if name not in self:
            raise AliasNotFoundError(name)
        alias = self._config.aliases.pop(name)
        self._reindex()
        self._persist()
        return alias

    def save(self) -> None:
        """Persist the current table (retry after a failed save)."""
        self._persist()

    # ----------------------------------------------------------------
    # Internals
    # ----------------------------------------------------------------

    def _validate_fields(
        self, name: str, command: str, keybind: str | None
    ) -> None:
        if not name or not name.strip():
            raise InvalidAliasError("name", "Alias name cannot be empty")
        if not command or not command.strip():
            raise InvalidAliasError("command", "Command cannot be empty")
        validate_keybind(keybind)

    def _check_keybind(self, keybind: str | None, owner: str | None) -> None:
        if keybind is None:
            return
        holder = self._by_keybind.get(keybind)
        if holder is not None and holder != owner:
            raise KeybindInUseError(keybind, holder)

    def _reindex(self) -> None:
        self._by_keybind = {}
        for alias in self._config.aliases.values():
            if alias.keybind is not None:
                self._by_keybind.setdefault(alias.keybind, alias.name)

    def _persist(self) -> None:
        self.store.save(self._config)

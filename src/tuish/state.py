# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""Session state owned by the SessionController (never persisted)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .store import Alias


class Focus(Enum):
    ALIASES = "aliases"
    ACTIONS = "actions"


class Mode(Enum):
    BROWSING = "browsing"
    ADDING_ALIAS = "adding_alias"
    EDITING_ALIAS = "editing_alias"
    CONFIRMING_REMOVAL = "confirming_removal"
    RUNNING_PROCESS = "running_process"


TEXT_ENTRY_MODES = frozenset({Mode.ADDING_ALIAS, Mode.EDITING_ALIAS})

ADD_FIELDS = ("name", "command", "keybind")
EDIT_FIELDS = ("command", "keybind")


@dataclass
class AliasForm:
    """Field-by-field capture buffer for the add/edit popup."""

    fields: tuple[str, ...]
    field_index: int = 0
    name: str = ""
    command: str = ""
    keybind: str | None = None
    # Set when editing; the name is then read-only.
    original_name: str | None = None

    @classmethod
    def for_add(cls) -> AliasForm:
        return cls(fields=ADD_FIELDS)

    @classmethod
    def for_edit(cls, alias: Alias) -> AliasForm:
        return cls(
            fields=EDIT_FIELDS,
            name=alias.name,
            command=alias.command,
            keybind=alias.keybind,
            original_name=alias.name,
        )

    @property
    def is_edit(self) -> bool:
        return self.original_name is not None

    @property
    def current_field(self) -> str:
        return self.fields[self.field_index]

    @property
    def on_last_field(self) -> bool:
        return self.field_index == len(self.fields) - 1

    def value_of(self, name: str) -> str:
        if name == "keybind":
            return self.keybind or ""
        return getattr(self, name)

    def type_char(self, char: str) -> None:
        current = self.current_field
        if current == "keybind":
            self.keybind = char
        else:
            setattr(self, current, getattr(self, current) + char)

    def delete_char(self) -> None:
        current = self.current_field
        if current == "keybind":
            self.keybind = None
        else:
            setattr(self, current, getattr(self, current)[:-1])

    def advance(self) -> None:
        if not self.on_last_field:
            self.field_index += 1

    def focus_field(self, name: str) -> None:
        if name in self.fields:
            self.field_index = self.fields.index(name)


@dataclass
class SessionState:
    focus: Focus = Focus.ACTIONS
    mode: Mode = Mode.BROWSING
    selected_alias_index: int = 0
    selected_action_index: int = 0
    form: AliasForm | None = None
    banner: str | None = None


def clamp_index(index: int, count: int) -> int:
    """Clamp into [0, count-1]; 0 when there is nothing to select."""
    if count <= 0:
        return 0
    return max(0, min(index, count - 1))

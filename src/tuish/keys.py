# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Key event → session Action mapping.

Keys arrive as string tokens ("up", "enter", "c-c", or a single printed
character). Which Action a key means depends only on the session mode
and panel focus; alias keybinds are consulted in Browsing mode only, so
typing into the add/edit form never fires an alias.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .registry import AliasRegistry
from .state import TEXT_ENTRY_MODES, Focus, Mode
from .store import Alias

UP = "up"
DOWN = "down"
TAB = "tab"
BACKTAB = "s-tab"
ENTER = "enter"
ESCAPE = "escape"
BACKSPACE = "backspace"
CTRL_C = "c-c"

CONFIRM_KEYS = frozenset({"y", "Y", ENTER})
DECLINE_KEYS = frozenset({"n", "N", ESCAPE, CTRL_C})


@dataclass(frozen=True)
class MoveSelection:
    delta: int


@dataclass(frozen=True)
class SwitchFocus:
    pass


@dataclass(frozen=True)
class Activate:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class TextInput:
    char: str


@dataclass(frozen=True)
class DeleteChar:
    pass


@dataclass(frozen=True)
class RunAliasByKeybind:
    alias: Alias


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class NoOp:
    pass


Action = Union[
    MoveSelection,
    SwitchFocus,
    Activate,
    Cancel,
    TextInput,
    DeleteChar,
    RunAliasByKeybind,
    Quit,
    NoOp,
]


def is_text_char(key: str) -> bool:
    """True for a single printable character (space included)."""
    return len(key) == 1 and key.isprintable()


class KeyDispatcher:
    """Translate key tokens into Actions for the current mode."""

    def __init__(self, registry: AliasRegistry):
        self.registry = registry

    def dispatch(self, mode: Mode, focus: Focus, key: str) -> Action:
        if mode == Mode.BROWSING:
            return self._browsing(key)
        if mode in TEXT_ENTRY_MODES:
            return self._text_entry(key)
        if mode == Mode.CONFIRMING_REMOVAL:
            return self._confirming(key)
        return NoOp()

    def _browsing(self, key: str) -> Action:
        if key == UP:
            return MoveSelection(-1)
        if key == DOWN:
            return MoveSelection(+1)
        if key in (TAB, BACKTAB):
            return SwitchFocus()
        if key == ENTER:
            return Activate()
        if key == ESCAPE:
            return Cancel()
        if key == CTRL_C:
            return Quit()
        if is_text_char(key):
            alias = self.registry.resolve_by_keybind(key)
            if alias is not None:
                return RunAliasByKeybind(alias)
        return NoOp()

    def _text_entry(self, key: str) -> Action:
        if key == ENTER:
            return Activate()
        if key in (ESCAPE, CTRL_C):
            return Cancel()
        if key == BACKSPACE:
            return DeleteChar()
        if is_text_char(key):
            return TextInput(key)
        return NoOp()

    def _confirming(self, key: str) -> Action:
        if key in CONFIRM_KEYS:
            return Activate()
        if key in DECLINE_KEYS:
            return Cancel()
        if key == UP:
            return MoveSelection(-1)
        if key == DOWN:
            return MoveSelection(+1)
        return NoOp()

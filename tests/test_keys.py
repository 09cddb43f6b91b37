"""
Tests for KeyDispatcher: the key → Action table per session mode.
"""

from __future__ import annotations

import pytest

from conftest import FakeStore
from tuish.keys import (
    Activate,
    Cancel,
    DeleteChar,
    KeyDispatcher,
    MoveSelection,
    NoOp,
    Quit,
    RunAliasByKeybind,
    SwitchFocus,
    TextInput,
    is_text_char,
)
from tuish.registry import AliasRegistry
from tuish.state import Focus, Mode


@pytest.fixture
def registry(fake_store: FakeStore) -> AliasRegistry:
    reg = AliasRegistry(fake_store, fake_store.load())
    reg.add("Build", "make", "b")
    reg.add("Test", "make test", None)
    return reg


@pytest.fixture
def dispatcher(registry: AliasRegistry) -> KeyDispatcher:
    return KeyDispatcher(registry)


# ----------------------------------------------------------------
# Browsing
# ----------------------------------------------------------------


@pytest.mark.parametrize(
    "key, expected",
    [
        ("up", MoveSelection(-1)),
        ("down", MoveSelection(1)),
        ("tab", SwitchFocus()),
        ("s-tab", SwitchFocus()),
        ("enter", Activate()),
        ("escape", Cancel()),
        ("c-c", Quit()),
        ("left", NoOp()),
        ("z", NoOp()),
    ],
)
@pytest.mark.parametrize("focus", [Focus.ALIASES, Focus.ACTIONS])
def test_browsing_controls(dispatcher: KeyDispatcher, focus: Focus, key: str, expected) -> None:
    assert dispatcher.dispatch(Mode.BROWSING, focus, key) == expected


@pytest.mark.parametrize("focus", [Focus.ALIASES, Focus.ACTIONS])
def test_browsing_keybind_runs_alias_regardless_of_focus(
    dispatcher: KeyDispatcher, registry: AliasRegistry, focus: Focus
) -> None:
    action = dispatcher.dispatch(Mode.BROWSING, focus, "b")

    assert action == RunAliasByKeybind(registry.get("Build"))


def test_browsing_keybind_sees_latest_registry_state(
    dispatcher: KeyDispatcher, registry: AliasRegistry
) -> None:
    registry.edit("Build", "make all", "m")

    assert dispatcher.dispatch(Mode.BROWSING, Focus.ACTIONS, "b") == NoOp()
    action = dispatcher.dispatch(Mode.BROWSING, Focus.ACTIONS, "m")
    assert isinstance(action, RunAliasByKeybind)
    assert action.alias.command == "make all"


# ----------------------------------------------------------------
# Text entry
# ----------------------------------------------------------------


@pytest.mark.parametrize("mode", [Mode.ADDING_ALIAS, Mode.EDITING_ALIAS])
def test_text_entry_never_fires_keybinds(dispatcher: KeyDispatcher, mode: Mode) -> None:
    assert dispatcher.dispatch(mode, Focus.ACTIONS, "b") == TextInput("b")


@pytest.mark.parametrize(
    "key, expected",
    [
        ("enter", Activate()),
        ("escape", Cancel()),
        ("c-c", Cancel()),
        ("backspace", DeleteChar()),
        (" ", TextInput(" ")),
        ("'", TextInput("'")),
        ("up", NoOp()),
        ("tab", NoOp()),
    ],
)
def test_text_entry_controls(dispatcher: KeyDispatcher, key: str, expected) -> None:
    assert dispatcher.dispatch(Mode.ADDING_ALIAS, Focus.ACTIONS, key) == expected


# ----------------------------------------------------------------
# Confirming removal / running
# ----------------------------------------------------------------


@pytest.mark.parametrize(
    "key, expected",
    [
        ("y", Activate()),
        ("Y", Activate()),
        ("enter", Activate()),
        ("n", Cancel()),
        ("escape", Cancel()),
        ("up", MoveSelection(-1)),
        ("down", MoveSelection(1)),
        ("b", NoOp()),
    ],
)
def test_confirming_removal_controls(dispatcher: KeyDispatcher, key: str, expected) -> None:
    assert dispatcher.dispatch(Mode.CONFIRMING_REMOVAL, Focus.ACTIONS, key) == expected


@pytest.mark.parametrize("key", ["enter", "b", "escape", "up"])
def test_running_process_ignores_keys(dispatcher: KeyDispatcher, key: str) -> None:
    assert dispatcher.dispatch(Mode.RUNNING_PROCESS, Focus.ACTIONS, key) == NoOp()


def test_is_text_char() -> None:
    assert is_text_char("a")
    assert is_text_char(" ")
    assert not is_text_char("up")
    assert not is_text_char("\x1b")

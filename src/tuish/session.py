# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
tuish session controller.

Core implementation of tuish:
- panel focus + selection
- add / edit / remove alias workflows
- running an alias or an interactive shell

Important boundary:
- The controller never touches the terminal directly except through the
  injected Terminal (for the "press any key" acknowledgement) and never
  writes files except through the AliasRegistry.

Each Mode has exactly one handler in ``_handlers``; a handler receives the
Action the KeyDispatcher produced for the key and performs the transition.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from . import config as cfg_module
from .executor import ProcessRunner, SpawnError
from .interfaces import Terminal
from .keys import (
    Action,
    Activate,
    Cancel,
    DeleteChar,
    KeyDispatcher,
    MoveSelection,
    Quit,
    RunAliasByKeybind,
    SwitchFocus,
    TextInput,
)
from .registry import (
    AliasError,
    AliasRegistry,
    DuplicateAliasError,
    InvalidAliasError,
    KeybindInUseError,
)
from .state import AliasForm, Focus, Mode, SessionState, clamp_index
from .store import Alias, ConfigSaveError

ACKNOWLEDGE_PROMPT = "Press any key to return to the menu..."


def write_crash_log(
    error: Exception,
    mode: str = "",
    key: str = "",
    alias: str = "",
    config_path: Path | None = None,
) -> None:
    """Append one record to ``<config root>/logs/crash.log``.

    Used for config save failures, unreadable config files and exceptions
    that escape a key handler. The logs directory is created on first use.
    Never raises.
    """
    context = {
        "mode": mode,
        "key": key,
        "alias": alias,
        "config_path": str(config_path) if config_path else "",
    }
    record = [datetime.now().isoformat()]
    record += [
        f"{name}={value}"
        for name, value in context.items()
        if value or name == "mode"
    ]
    record.append(f"error={type(error).__name__}: {error}")
    record.append("traceback:")
    record.append(traceback.format_exc().rstrip("\n"))
    record.append("----")

    try:
        log_path = cfg_module.crash_log_path(cfg_module.get_config_root())
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as log:
            log.write("\n".join(record) + "\n")
    except OSError:
        # Already handling a failure; nothing sensible left to report to.
        pass


class MenuAction(Enum):
    """Fixed entries of the Actions panel, in display order."""

    ADD_ALIAS = "add_alias"
    EDIT_ALIAS = "edit_alias"
    REMOVE_ALIAS = "remove_alias"
    GO_TO_SHELL = "go_to_shell"
    EXIT_SHELL = "exit_shell"


MENU_ACTIONS: tuple[MenuAction, ...] = tuple(MenuAction)


@dataclass(frozen=True)
class SessionView:
    """Snapshot of everything the terminal needs to draw one frame."""

    aliases: tuple[Alias, ...]
    actions: tuple[MenuAction, ...]
    focus: Focus
    mode: Mode
    selected_alias_index: int
    selected_action_index: int
    form: AliasForm | None
    removal_target: Alias | None
    banner: str | None


@dataclass
class SessionController:
    """tuish session engine."""

    registry: AliasRegistry
    runner: ProcessRunner
    terminal: Terminal | None = None

    state: SessionState = field(default_factory=SessionState)
    running: bool = True

    dispatcher: KeyDispatcher = field(init=False)

    def __post_init__(self) -> None:
        self.dispatcher = KeyDispatcher(self.registry)
        self._handlers = {
            Mode.BROWSING: self._on_browsing,
            Mode.ADDING_ALIAS: self._on_form,
            Mode.EDITING_ALIAS: self._on_form,
            Mode.CONFIRMING_REMOVAL: self._on_confirming,
            Mode.RUNNING_PROCESS: self._on_running,
        }
        self._clamp_selection()

    # -----------------------
    # Public API
    # -----------------------

    def handle_key(self, key: str) -> None:
        """Process one key event to completion."""
        action = self.dispatcher.dispatch(self.state.mode, self.state.focus, key)
        self.state.banner = None
        self._handlers[self.state.mode](action)

    def show_error(self, message: str) -> None:
        self.state.banner = message

    def view(self) -> SessionView:
        aliases = tuple(self.registry.list())
        return SessionView(
            aliases=aliases,
            actions=MENU_ACTIONS,
            focus=self.state.focus,
            mode=self.state.mode,
            selected_alias_index=self.state.selected_alias_index,
            selected_action_index=self.state.selected_action_index,
            form=self.state.form,
            removal_target=self._removal_target(),
            banner=self.state.banner,
        )

    def selected_alias(self) -> Alias | None:
        aliases = self.registry.list()
        if not aliases:
            return None
        return aliases[clamp_index(self.state.selected_alias_index, len(aliases))]

    # -----------------------
    # Mode handlers
    # -----------------------

    def _on_browsing(self, action: Action) -> None:
        if isinstance(action, MoveSelection):
            self._move_selection(action.delta)
        elif isinstance(action, SwitchFocus):
            self.state.focus = (
                Focus.ALIASES
                if self.state.focus == Focus.ACTIONS
                else Focus.ACTIONS
            )
            self._clamp_selection()
        elif isinstance(action, Activate):
            if self.state.focus == Focus.ACTIONS:
                self._activate_menu(MENU_ACTIONS[self.state.selected_action_index])
            else:
                alias = self.selected_alias()
                if alias is not None:
                    self._run_alias(alias)
        elif isinstance(action, RunAliasByKeybind):
            self._run_alias(action.alias)
        elif isinstance(action, Quit):
            self._exit()

    def _on_form(self, action: Action) -> None:
        form = self.state.form
        if form is None:
            self._return_to_browsing()
            return

        if isinstance(action, TextInput):
            form.type_char(action.char)
        elif isinstance(action, DeleteChar):
            form.delete_char()
        elif isinstance(action, Cancel):
            self._return_to_browsing()
        elif isinstance(action, Activate):
            if not form.on_last_field:
                self._advance_form(form)
            else:
                self._submit_form(form)

    def _on_confirming(self, action: Action) -> None:
        if isinstance(action, MoveSelection):
            self._move_alias_selection(action.delta)
        elif isinstance(action, Cancel):
            self._return_to_browsing()
        elif isinstance(action, Activate):
            target = self._removal_target()
            if target is None:
                self._return_to_browsing()
                return
            try:
                self.registry.remove(target.name)
            except AliasError as e:
                self.state.banner = str(e)
            except ConfigSaveError as e:
                self._report_save_error(e, alias=target.name)
            self._return_to_browsing()

    def _on_running(self, action: Action) -> None:
        # Runs are synchronous; keys only arrive here after a failed
        # transition, so fall back to a usable state.
        self._return_to_browsing()

    # -----------------------
    # Actions panel
    # -----------------------

    def _activate_menu(self, item: MenuAction) -> None:
        if item == MenuAction.ADD_ALIAS:
            self.state.form = AliasForm.for_add()
            self.state.mode = Mode.ADDING_ALIAS
        elif item == MenuAction.EDIT_ALIAS:
            alias = self.selected_alias()
            if alias is None:
                self.state.banner = "No aliases to edit"
                return
            self.state.form = AliasForm.for_edit(alias)
            self.state.mode = Mode.EDITING_ALIAS
        elif item == MenuAction.REMOVE_ALIAS:
            if self.selected_alias() is None:
                self.state.banner = "No aliases to remove"
                return
            self.state.mode = Mode.CONFIRMING_REMOVAL
        elif item == MenuAction.GO_TO_SHELL:
            self._run_shell()
        elif item == MenuAction.EXIT_SHELL:
            self._exit()

    # -----------------------
    # Form workflow
    # -----------------------

    def _advance_form(self, form: AliasForm) -> None:
        current = form.current_field
        if current in ("name", "command") and not form.value_of(current).strip():
            label = "Alias name" if current == "name" else "Command"
            self.state.banner = f"{label} cannot be empty"
            return
        form.advance()

    def _submit_form(self, form: AliasForm) -> None:
        try:
            if form.is_edit:
                alias = self.registry.edit(
                    form.original_name, form.command, form.keybind
                )
            else:
                alias = self.registry.add(form.name, form.command, form.keybind)
        except DuplicateAliasError as e:
            form.focus_field("name")
            self.state.banner = str(e)
            return
        except KeybindInUseError as e:
            form.focus_field("keybind")
            self.state.banner = str(e)
            return
        except InvalidAliasError as e:
            form.focus_field(e.field)
            self.state.banner = str(e)
            return
        except AliasError as e:
            # Alias vanished while editing.
            self.state.banner = str(e)
            self._return_to_browsing()
            return
        except ConfigSaveError as e:
            # In-memory change is kept; only the file is stale.
            self._report_save_error(e, alias=form.name)
            alias = self.registry.get(form.original_name or form.name)

        if alias is not None:
            index = self.registry.index_of(alias.name)
            if index is not None:
                self.state.selected_alias_index = index
        self._return_to_browsing()

    # -----------------------
    # Process execution
    # -----------------------

    def _run_alias(self, alias: Alias) -> None:
        self.state.mode = Mode.RUNNING_PROCESS
        try:
            status = self.runner.run(
                alias.command, self.registry.default_shell, interactive=False
            )
        except SpawnError as e:
            self.state.banner = str(e)
        else:
            if self.terminal is not None:
                self.terminal.wait_for_key(
                    f"{status.describe()}\n{ACKNOWLEDGE_PROMPT}"
                )
        finally:
            self._return_to_browsing()

    def _run_shell(self) -> None:
        self.state.mode = Mode.RUNNING_PROCESS
        try:
            self.runner.run("", self.registry.default_shell, interactive=True)
        except SpawnError as e:
            self.state.banner = str(e)
        finally:
            self._return_to_browsing()

    def _exit(self) -> None:
        self.state.form = None
        self.state.mode = Mode.BROWSING
        self.running = False

    # -----------------------
    # Selection helpers
    # -----------------------

    def _move_selection(self, delta: int) -> None:
        if self.state.focus == Focus.ALIASES:
            self._move_alias_selection(delta)
        else:
            self.state.selected_action_index = clamp_index(
                self.state.selected_action_index + delta, len(MENU_ACTIONS)
            )

    def _move_alias_selection(self, delta: int) -> None:
        self.state.selected_alias_index = clamp_index(
            self.state.selected_alias_index + delta, len(self.registry)
        )

    def _removal_target(self) -> Alias | None:
        if self.state.mode != Mode.CONFIRMING_REMOVAL:
            return None
        return self.selected_alias()

    def _clamp_selection(self) -> None:
        self.state.selected_alias_index = clamp_index(
            self.state.selected_alias_index, len(self.registry)
        )
        self.state.selected_action_index = clamp_index(
            self.state.selected_action_index, len(MENU_ACTIONS)
        )

    def _return_to_browsing(self) -> None:
        self.state.form = None
        self.state.mode = Mode.BROWSING
        self._clamp_selection()

    def _report_save_error(self, error: ConfigSaveError, alias: str = "") -> None:
        write_crash_log(
            error,
            mode=self.state.mode.value,
            alias=alias,
            config_path=error.path,
        )
        self.state.banner = str(error)

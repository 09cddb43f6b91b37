# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Full-screen terminal built on prompt_toolkit's Input/Output layer.

prompt_toolkit does the terminal work (raw mode, VT100 key decoding,
alternate screen, styled output); this module only lays out the two
panels, the add/edit/remove popup and the banner line.
"""

from __future__ import annotations

import select
import sys
from collections import deque
from contextlib import ExitStack
from typing import TYPE_CHECKING, Any

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from prompt_toolkit.output import Output, create_output
from prompt_toolkit.styles import Style

from .config import YAMLConfig
from .state import Focus, Mode

if TYPE_CHECKING:
    from .session import SessionView  # pragma: no cover

# Time to wait for the rest of an escape sequence before a lone ESC counts.
ESCAPE_FLUSH_SECONDS = 0.05

_KEY_NAMES: dict[str, str] = {
    Keys.Up: "up",
    Keys.Down: "down",
    Keys.Left: "left",
    Keys.Right: "right",
    Keys.ControlI: "tab",
    Keys.BackTab: "s-tab",
    Keys.ControlM: "enter",
    Keys.ControlJ: "enter",
    Keys.Escape: "escape",
    Keys.ControlH: "backspace",
    Keys.ControlC: "c-c",
}

_IGNORED_KEYS = frozenset(
    {
        Keys.CPRResponse,
        Keys.Vt100MouseEvent,
        Keys.WindowsMouseEvent,
        Keys.BracketedPaste,
        Keys.Ignore,
    }
)


def key_token(key_press: KeyPress) -> str | None:
    """Map a prompt_toolkit KeyPress to a tuish key token.

    Returns None for terminal chatter that is not a key (CPR responses,
    mouse events).
    """
    key = key_press.key
    if key in _IGNORED_KEYS:
        return None
    if key in _KEY_NAMES:
        return _KEY_NAMES[key]
    if isinstance(key, Keys):
        return key.value
    return key


def _default_style_dict() -> dict[str, str]:
    return {
        "tuish.header": "fg:ansimagenta bold",
        "tuish.border": "",
        "tuish.border.focused": "fg:ansigreen",
        "tuish.alias": "fg:ansicyan",
        "tuish.alias.empty": "fg:ansibrightblack",
        "tuish.action": "",
        "tuish.selected": "fg:ansiyellow bold",
        "tuish.alias.selected": "fg:ansiyellow",
        "tuish.popup": "",
        "tuish.popup.field": "fg:ansiyellow",
        "tuish.banner": "fg:ansired bold",
        "tuish.warning": "fg:ansired bold",
    }


def _build_style(ui_config: YAMLConfig | None) -> Style:
    base = _default_style_dict()
    if ui_config is not None:
        overrides = ui_config.get_path("ui.theme.style", {})
        if isinstance(overrides, dict):
            # only keep string->string
            for k, v in overrides.items():
                if isinstance(k, str) and isinstance(v, str):
                    base[k] = v
    return Style.from_dict(base)


def _fit(text: str, width: int) -> str:
    if width <= 0:
        return ""
    text = text.replace("\n", " ")
    if len(text) <= width:
        return text.ljust(width)
    if width == 1:
        return text[:1]
    return text[: width - 1] + "…"


class TerminalScreen:
    """Terminal protocol implementation on a real (or injected) TTY."""

    def __init__(
        self,
        ui_config: YAMLConfig | None = None,
        input: Input | None = None,
        output: Output | None = None,
    ) -> None:
        self.ui_config = ui_config
        self.input = input or create_input()
        self.output = output or create_output()
        self._style = _build_style(ui_config)
        self._color_depth = self.output.get_default_color_depth()
        self._raw = ExitStack()
        self._pending: deque[KeyPress] = deque()
        self._in_alternate_screen = False
        self._started = False

    # ---------- config helpers ----------

    def _cfg(self, path: str, default: Any) -> Any:
        if self.ui_config is None:
            return default
        val = self.ui_config.get_path(path, default)
        return default if val is None else val

    def _label(self, path: str, default: str) -> str:
        return str(self._cfg(path, default))

    # ---------- lifecycle ----------

    def __enter__(self) -> TerminalScreen:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def start(self) -> None:
        self._started = True
        self._enter_raw_mode()
        self._enter_alternate_screen()

    def close(self) -> None:
        if not self._started:
            return
        self._started = False
        self._leave_alternate_screen()
        self._leave_raw_mode()

    def suspend(self) -> None:
        self._leave_alternate_screen()
        self._leave_raw_mode()

    def resume(self) -> None:
        # The alternate screen comes back with the next render, so
        # anything the child printed stays visible until then.
        self._enter_raw_mode()

    def _enter_raw_mode(self) -> None:
        self._raw.close()
        self._raw = ExitStack()
        self._raw.enter_context(self.input.raw_mode())

    def _leave_raw_mode(self) -> None:
        self._raw.close()

    def _enter_alternate_screen(self) -> None:
        if self._in_alternate_screen:
            return
        self.output.enter_alternate_screen()
        self.output.hide_cursor()
        self.output.flush()
        self._in_alternate_screen = True

    def _leave_alternate_screen(self) -> None:
        self.output.reset_attributes()
        self.output.show_cursor()
        if self._in_alternate_screen:
            self.output.quit_alternate_screen()
            self._in_alternate_screen = False
        self.output.flush()

    # ---------- input ----------

    def read_key(self) -> str:
        while True:
            while not self._pending:
                if self.input.closed:
                    raise EOFError("terminal input closed")
                if self._input_ready(ESCAPE_FLUSH_SECONDS):
                    self._pending.extend(self.input.read_keys())
                else:
                    self._pending.extend(self.input.flush_keys())
            token = key_token(self._pending.popleft())
            if token is not None:
                return token

    def _input_ready(self, timeout: float) -> bool:
        if sys.platform == "win32":
            # Console handles cannot be select()ed.
            from prompt_toolkit.eventloop.win32 import wait_for_handles

            handle = self.input.handle  # type: ignore[attr-defined]
            return wait_for_handles([handle], int(timeout * 1000)) is not None
        ready, _, _ = select.select([self.input.fileno()], [], [], timeout)
        return bool(ready)

    def wait_for_key(self, message: str) -> None:
        self.output.reset_attributes()
        for line in message.splitlines():
            self.output.write(line)
            self.output.write_raw("\r\n")
        self.output.flush()
        self.read_key()

    # ---------- output ----------

    def clear(self) -> None:
        self.output.reset_attributes()
        self.output.erase_screen()
        self.output.cursor_goto(1, 1)
        self.output.flush()

    def draw(
        self,
        panel: str,
        content: list[tuple[str, str]],
        top: int,
        left: int,
        width: int,
        height: int,
        focused: bool = False,
    ) -> None:
        """Draw a titled box with one (style, text) pair per inner row."""
        if width < 2 or height < 2:
            return
        border = "class:tuish.border.focused" if focused else "class:tuish.border"
        inner = width - 2
        title = f" {panel} " if panel else ""
        top_line = "┌" + title[:inner] + "─" * max(0, inner - len(title)) + "┐"
        self._write_at(top, left, top_line, border)
        for i in range(height - 2):
            row = top + 1 + i
            self._write_at(row, left, "│", border)
            style, text = content[i] if i < len(content) else ("", "")
            self._write_at(row, left + 1, _fit(text, inner), style)
            self._write_at(row, left + width - 1, "│", border)
        self._write_at(top + height - 1, left, "└" + "─" * inner + "┘", border)

    def render(self, view: SessionView) -> None:
        self._enter_alternate_screen()
        size = self.output.get_size()
        rows, cols = size.rows, size.columns
        self.output.reset_attributes()
        self.output.erase_screen()

        min_w = int(self._cfg("ui.min_width", 40))
        min_h = int(self._cfg("ui.min_height", 13))
        if cols < min_w or rows < min_h:
            msg = f"Terminal too small: need at least {min_w}x{min_h}"
            self._write_at(0, 0, msg[:cols], "class:tuish.warning")
            self.output.flush()
            return

        # One-cell margin, title row, aliases box, actions box, banner row.
        left, width = 1, cols - 2
        actions_h = int(self._cfg("ui.actions_height", 7))
        actions_top = rows - 1 - actions_h
        aliases_top = 2
        aliases_h = max(3, actions_top - aliases_top)

        self._write_at(1, left, self._label("ui.title", "tuish"), "class:tuish.header")
        self.draw(
            self._label("ui.panels.aliases", "Aliases"),
            self._alias_rows(view, aliases_h - 2),
            aliases_top, left, width, aliases_h,
            focused=view.focus == Focus.ALIASES,
        )
        self.draw(
            self._label("ui.panels.actions", "Actions"),
            self._action_rows(view),
            actions_top, left, width, actions_h,
            focused=view.focus == Focus.ACTIONS,
        )

        if view.form is not None:
            self._render_form(view, rows, cols)
        elif view.mode == Mode.CONFIRMING_REMOVAL and view.removal_target:
            self._render_confirm(view, rows, cols)

        if view.banner:
            self._write_at(rows - 1, left, _fit(view.banner, width), "class:tuish.banner")

        self.output.flush()

    # ---------- layout pieces ----------

    def _marker(self) -> str:
        return self._label("ui.highlight_symbol", "-> ")

    def _alias_rows(self, view: SessionView, visible: int) -> list[tuple[str, str]]:
        if not view.aliases:
            empty = self._label("ui.panels.empty_aliases", "(no aliases)")
            return [("class:tuish.alias.empty", empty)]

        # Scroll so the selection stays visible.
        offset = 0
        if visible > 0 and view.selected_alias_index >= visible:
            offset = view.selected_alias_index - visible + 1

        marker = self._marker()
        pad = " " * len(marker)
        active = view.focus == Focus.ALIASES or view.mode == Mode.CONFIRMING_REMOVAL
        # Edit and Remove act on this row even while Actions has focus.
        selected_style = "class:tuish.selected" if active else "class:tuish.alias.selected"
        out: list[tuple[str, str]] = []
        for i, alias in enumerate(view.aliases[offset:offset + max(visible, 0)], start=offset):
            kb = f" [{alias.keybind}]" if alias.keybind else ""
            text = f"{alias.name}{kb} - {alias.command}"
            if i == view.selected_alias_index:
                out.append((selected_style, marker + text))
            else:
                out.append(("class:tuish.alias", pad + text))
        return out

    def _action_rows(self, view: SessionView) -> list[tuple[str, str]]:
        marker = self._marker()
        pad = " " * len(marker)
        out: list[tuple[str, str]] = []
        for i, item in enumerate(view.actions):
            label = self._label(f"ui.actions.{item.value}", item.value)
            if i == view.selected_action_index and view.focus == Focus.ACTIONS:
                out.append(("class:tuish.selected", marker + label))
            else:
                out.append(("class:tuish.action", pad + label))
        return out

    def _popup_box(self, rows: int, cols: int, height: int) -> tuple[int, int, int]:
        width = max(20, cols * 2 // 3)
        left = max(0, (cols - width) // 2)
        top = max(0, (rows - height) // 2)
        return top, left, min(width, cols)

    def _render_form(self, view: SessionView, rows: int, cols: int) -> None:
        form = view.form
        assert form is not None
        labels = {
            "name": self._label("ui.forms.name_label", "Name: "),
            "command": self._label("ui.forms.command_label", "Command: "),
            "keybind": self._label(
                "ui.forms.keybind_label", "Keybind (single char, or empty): "
            ),
        }
        content: list[tuple[str, str]] = []
        if form.is_edit:
            content.append(("class:tuish.popup", labels["name"] + form.name))
        for name in form.fields:
            text = labels[name] + form.value_of(name)
            if name == form.current_field:
                content.append(("class:tuish.popup.field", "> " + text + "_"))
            else:
                content.append(("class:tuish.popup", "  " + text))

        title = (
            self._label("ui.forms.edit_title", "Edit alias")
            if form.is_edit
            else self._label("ui.forms.add_title", "Add alias")
        )
        height = len(content) + 2
        top, left, width = self._popup_box(rows, cols, height)
        self.draw(title, content, top, left, width, height, focused=True)

    def _render_confirm(self, view: SessionView, rows: int, cols: int) -> None:
        target = view.removal_target
        assert target is not None
        content = [
            ("class:tuish.popup", f"Remove '{target.name}'?"),
            ("class:tuish.popup.field", "[y/Enter] remove   [n/Esc] cancel"),
        ]
        title = self._label("ui.forms.remove_title", "Remove alias")
        top, left, width = self._popup_box(rows, cols, 4)
        self.draw(title, content, top, left, width, 4, focused=True)

    def _write_at(self, row: int, col: int, text: str, style: str = "") -> None:
        # cursor_goto is 1-based.
        self.output.cursor_goto(row + 1, col + 1)
        if style:
            attrs = self._style.get_attrs_for_style_str(style)
            self.output.set_attributes(attrs, self._color_depth)
        else:
            self.output.reset_attributes()
        self.output.write(text)
        self.output.reset_attributes()



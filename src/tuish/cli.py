# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
tuish entry point and control loop.

Design:
- CLI owns process startup and config resolution.
- SessionController is the state machine (registry + runner injected).
- TerminalScreen owns the TTY; leaving its context restores the terminal
  on every exit path.
"""

from __future__ import annotations

from pathlib import Path

from . import config
from .executor import ProcessRunner
from .init import ensure_config
from .interfaces import Terminal
from .registry import AliasRegistry
from .session import SessionController, write_crash_log
from .store import JSONConfigStore
from .ui import TerminalScreen


def run_session(
    controller: SessionController,
    terminal: Terminal,
    config_path: Path | None = None,
) -> None:
    """Render, read one key, apply it; until the session stops."""
    while controller.running:
        terminal.render(controller.view())
        try:
            key = terminal.read_key()
        except EOFError:
            break

        try:
            controller.handle_key(key)
        except Exception as e:
            # Unhandled exception - write crash log, keep the session
            write_crash_log(
                e,
                mode=controller.state.mode.value,
                key=key,
                config_path=config_path,
            )
            controller.show_error(
                f"[ERROR] Unhandled exception: {type(e).__name__}: {e}"
            )


def build_controller(
    config_path: Path, terminal: Terminal | None
) -> SessionController:
    """Explicit wiring: store -> registry, terminal -> runner -> controller."""
    store = JSONConfigStore(config_path)
    cfg, warning = ensure_config(store)
    registry = AliasRegistry(store, cfg)
    runner = ProcessRunner(terminal=terminal)
    controller = SessionController(
        registry=registry, runner=runner, terminal=terminal
    )
    if warning:
        controller.show_error(warning)
    return controller


def main() -> None:
    """Main entry point for the tuish CLI."""
    config_path = config.config_file_path(config.get_config_root())
    ui_config = config.load_ui_config()

    with TerminalScreen(ui_config) as screen:
        controller = build_controller(config_path, screen)
        run_session(controller, screen, config_path=config_path)

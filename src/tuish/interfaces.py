# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces keep the session state machine independent of the
config file, the real terminal, and child process creation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .session import SessionView  # pragma: no cover
    from .store import Configuration  # pragma: no cover


class ConfigStore(Protocol):
    """Protocol for configuration persistence."""

    def load(self) -> Configuration:
        """Load the configuration.

        Raises ConfigNotFoundError when nothing has been saved yet.
        """
        ...

    def save(self, cfg: Configuration) -> None:
        """Persist the configuration; raises ConfigSaveError on failure."""
        ...


class Terminal(Protocol):
    """Protocol for the terminal the session draws on and reads from."""

    def render(self, view: SessionView) -> None:
        """Draw both panels plus any popup/banner for the given view."""
        ...

    def clear(self) -> None:
        """Erase the screen."""
        ...

    def read_key(self) -> str:
        """Block until one key is pressed and return its token."""
        ...

    def suspend(self) -> None:
        """Hand the terminal to a child: main screen, cooked mode."""
        ...

    def resume(self) -> None:
        """Take the terminal back: raw mode again."""
        ...

    def wait_for_key(self, message: str) -> None:
        """Show ``message`` and block until any key is pressed."""
        ...


class Spawner(Protocol):
    """Protocol for starting a child process that inherits the terminal."""

    def __call__(self, argv: list[str]) -> Any:
        """Start ``argv``; the result must provide ``wait() -> int``."""
        ...

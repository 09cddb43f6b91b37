# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Subprocess-backed runner for alias commands and interactive shells.

The child inherits stdin/stdout/stderr and owns the real TTY for its whole
lifetime. Around the child the UI terminal is suspended (main screen,
cooked mode) and resumed (raw mode) again, on every exit path.
"""

from __future__ import annotations

import signal
import subprocess
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from .config import shell_command_flag
from .interfaces import Spawner, Terminal


class SpawnError(Exception):
    """The shell could not be started (missing or not executable)."""

    def __init__(self, shell_path: str, error: OSError):
        super().__init__(f"Failed to run {shell_path}: {error.strerror or error}")
        self.shell_path = shell_path
        self.error = error


@dataclass(frozen=True)
class ExitStatus:
    """Result from a terminal-owning run (no output capture)."""

    returncode: int
    started_at: str
    duration_ms: int

    @property
    def signal_number(self) -> int | None:
        """Signal that killed the child, if it did not exit normally."""
        return -self.returncode if self.returncode < 0 else None

    @property
    def exit_code(self) -> int:
        """Shell-style exit code (128 + signal for signal deaths)."""
        if self.signal_number is not None:
            return 128 + self.signal_number
        return self.returncode

    def describe(self) -> str:
        if self.signal_number is not None:
            try:
                name = signal.Signals(self.signal_number).name
            except ValueError:
                name = str(self.signal_number)
            return f"Command terminated by signal {name}"
        return f"Command exited with: {self.returncode}"


def _spawn_inheriting_terminal(argv: list[str]) -> subprocess.Popen:
    return subprocess.Popen(
        argv,
        stdin=None,  # inherit from parent
        stdout=None,  # inherit from parent
        stderr=None,  # inherit from parent
    )


def _ignore_interrupt(signum, frame) -> None:
    # A Python-level handler (unlike SIG_IGN) is reset to the default
    # in the child on exec, so Ctrl-C still reaches the child.
    return None


@contextmanager
def _interrupts_go_to_child() -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, _ignore_interrupt)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


class ProcessRunner:
    """Runs one foreground child at a time with full terminal control."""

    def __init__(
        self,
        terminal: Terminal | None = None,
        spawn: Spawner | None = None,
    ):
        """Initialize runner.

        Args:
            terminal: UI terminal to suspend/resume around the child
                (None when there is no UI, e.g. in tests)
            spawn: process factory; defaults to subprocess.Popen with
                inherited stdio
        """
        self.terminal = terminal
        self.spawn = spawn or _spawn_inheriting_terminal

    @staticmethod
    def build_argv(
        command_line: str, shell_path: str, interactive: bool
    ) -> list[str]:
        if interactive:
            return [shell_path]
        return [shell_path, shell_command_flag(shell_path), command_line]

    @contextmanager
    def terminal_handoff(self) -> Iterator[None]:
        """Give the TTY to a child; always take it back afterwards."""
        if self.terminal is None:
            yield
            return
        self.terminal.suspend()
        try:
            yield
        finally:
            self.terminal.resume()

    def run(
        self, command_line: str, shell_path: str, interactive: bool = False
    ) -> ExitStatus:
        """Run ``command_line`` through ``shell_path`` (or the bare shell).

        Blocks until the child terminates; there is no timeout.

        Raises:
            SpawnError: the shell could not be executed
        """
        argv = self.build_argv(command_line, shell_path, interactive)
        started_at = datetime.now().isoformat()
        start_ts = time.time()

        with self.terminal_handoff(), _interrupts_go_to_child():
            try:
                proc = self.spawn(argv)
            except OSError as e:
                raise SpawnError(shell_path, e) from e
            returncode = proc.wait()

        duration_ms = int((time.time() - start_ts) * 1000)
        return ExitStatus(
            returncode=returncode,
            started_at=started_at,
            duration_ms=duration_ms,
        )

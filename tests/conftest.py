"""
Shared fixtures and fakes for the tuish test suite.

Every test runs with TUISH_CONFIG_HOME pointed at a temporary directory so
crash-log writes never touch the real user config dir.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tuish.store import Configuration, ConfigNotFoundError, ConfigSaveError


@pytest.fixture(autouse=True)
def tuish_config_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "tuish_config_home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("TUISH_CONFIG_HOME", str(home))
    return home


class FakeStore:
    """In-memory ConfigStore that records every saved snapshot."""

    def __init__(self, cfg: Configuration | None = None, fail_saves: bool = False):
        self.cfg = cfg
        self.fail_saves = fail_saves
        self.saves: list[dict[str, tuple[str, str | None]]] = []

    def load(self) -> Configuration:
        if self.cfg is None:
            raise ConfigNotFoundError(Path("/fake/cnfg.json"))
        return self.cfg

    def save(self, cfg: Configuration) -> None:
        if self.fail_saves:
            raise ConfigSaveError(Path("/fake/cnfg.json"), OSError(28, "No space left on device"))
        self.cfg = cfg
        self.saves.append(
            {name: (a.command, a.keybind) for name, a in cfg.aliases.items()}
        )


class FakeTerminal:
    """Terminal double: scripted keys, recorded calls, raw-mode flag."""

    def __init__(self, keys: list[str] | None = None):
        self.keys = list(keys or [])
        self.calls: list[str] = []
        self.messages: list[str] = []
        self.views: list = []
        self.raw = True

    def render(self, view) -> None:
        self.calls.append("render")
        self.views.append(view)

    def clear(self) -> None:
        self.calls.append("clear")

    def read_key(self) -> str:
        self.calls.append("read_key")
        if not self.keys:
            raise EOFError("no more keys")
        return self.keys.pop(0)

    def suspend(self) -> None:
        self.calls.append("suspend")
        self.raw = False

    def resume(self) -> None:
        self.calls.append("resume")
        self.raw = True

    def wait_for_key(self, message: str) -> None:
        self.calls.append("wait_for_key")
        self.messages.append(message)


class FakeProcess:
    def __init__(self, returncode: int = 0):
        self.returncode = returncode

    def wait(self) -> int:
        return self.returncode


class FakeSpawner:
    """Records argv lists; optionally fails like a missing executable."""

    def __init__(self, returncode: int = 0, error: OSError | None = None, on_spawn=None):
        self.returncode = returncode
        self.error = error
        self.on_spawn = on_spawn
        self.argvs: list[list[str]] = []

    def __call__(self, argv: list[str]) -> FakeProcess:
        self.argvs.append(list(argv))
        if self.on_spawn is not None:
            self.on_spawn(argv)
        if self.error is not None:
            raise self.error
        return FakeProcess(self.returncode)


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore(Configuration(aliases={}, default_shell="/bin/bash"))


@pytest.fixture
def fake_terminal() -> FakeTerminal:
    return FakeTerminal()


@pytest.fixture
def fake_spawner() -> FakeSpawner:
    return FakeSpawner()

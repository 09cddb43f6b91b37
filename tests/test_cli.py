from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeSpawner, FakeStore, FakeTerminal
from tuish import cli
from tuish.cli import build_controller, run_session
from tuish.executor import ProcessRunner
from tuish.registry import AliasRegistry
from tuish.session import SessionController
from tuish.state import Mode
from tuish.store import Alias, Configuration


def _controller(terminal: FakeTerminal, store: FakeStore | None = None) -> SessionController:
    store = store or FakeStore(
        Configuration(aliases={"a": Alias("a", "echo a", "a")}, default_shell="/bin/sh")
    )
    registry = AliasRegistry(store, store.load())
    runner = ProcessRunner(terminal=terminal, spawn=FakeSpawner())
    return SessionController(registry=registry, runner=runner, terminal=terminal)


# ----------------------------------------------------------------
# run_session loop
# ----------------------------------------------------------------


def test_run_session_renders_before_each_key_and_stops_on_quit() -> None:
    terminal = FakeTerminal(["down", "tab", "c-c", "down"])
    controller = _controller(terminal)

    run_session(controller, terminal)

    assert not controller.running
    assert terminal.calls.count("render") == 3
    assert terminal.keys == ["down"]


def test_run_session_ends_on_end_of_input() -> None:
    terminal = FakeTerminal(["down"])
    controller = _controller(terminal)

    run_session(controller, terminal)

    assert controller.running
    assert terminal.calls[-1] == "read_key"


def test_run_session_survives_unhandled_exception(
    tuish_config_home: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    terminal = FakeTerminal(["x", "down"])
    controller = _controller(terminal)
    original = controller.handle_key

    def flaky(key: str) -> None:
        if key == "x":
            raise RuntimeError("kaboom")
        original(key)

    monkeypatch.setattr(controller, "handle_key", flaky)

    run_session(controller, terminal, config_path=Path("/tmp/cnfg.json"))

    banners = [v.banner for v in terminal.views]
    assert "[ERROR] Unhandled exception: RuntimeError: kaboom" in banners
    assert controller.state.mode == Mode.BROWSING

    log = (tuish_config_home / "logs" / "crash.log").read_text(encoding="utf-8")
    assert "key=x" in log
    assert "RuntimeError: kaboom" in log
    assert "config_path=/tmp/cnfg.json" in log


def test_run_session_runs_alias_by_keybind() -> None:
    terminal = FakeTerminal(["a", "c-c"])
    controller = _controller(terminal)

    run_session(controller, terminal)

    assert terminal.messages and "Command exited with: 0" in terminal.messages[0]


# ----------------------------------------------------------------
# Wiring
# ----------------------------------------------------------------


def test_build_controller_bootstraps_config_file(tmp_path: Path) -> None:
    cfg_path = tmp_path / "tuish" / "cnfg.json"

    controller = build_controller(cfg_path, None)

    assert cfg_path.exists()
    assert len(controller.registry) == 0
    assert controller.state.banner is None


def test_build_controller_shows_warning_for_malformed_file(tmp_path: Path) -> None:
    cfg_path = tmp_path / "cnfg.json"
    cfg_path.write_text("not json", encoding="utf-8")

    controller = build_controller(cfg_path, None)

    assert "starting with no aliases" in controller.state.banner
    assert cfg_path.read_text(encoding="utf-8") == "not json"


def test_main_wires_screen_and_session(
    tuish_config_home: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    terminal = FakeTerminal(["c-c"])
    entered: list[object] = []

    class FakeScreen:
        def __init__(self, ui_config=None):
            entered.append(ui_config)

        def __enter__(self) -> FakeTerminal:
            return terminal

        def __exit__(self, *exc) -> None:
            terminal.calls.append("closed")

    monkeypatch.setattr(cli, "TerminalScreen", FakeScreen)

    cli.main()

    assert entered and entered[0] is not None
    assert (tuish_config_home / "cnfg.json").exists()
    assert terminal.calls[-1] == "closed"

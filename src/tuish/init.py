# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
First-run bootstrap for the alias configuration.

- Missing file: materialize the default configuration and save it.
- Malformed file: keep it on disk untouched, run with an in-memory
  fallback configuration, and note the problem in the crash log.
"""

from __future__ import annotations

from .config import default_shell_path, fallback_shell_path
from .interfaces import ConfigStore
from .session import write_crash_log
from .store import (
    Configuration,
    ConfigFormatError,
    ConfigNotFoundError,
    ConfigSaveError,
)


def default_configuration() -> Configuration:
    return Configuration(aliases={}, default_shell=default_shell_path())


def ensure_config(store: ConfigStore) -> tuple[Configuration, str | None]:
    """Load the configuration, creating it on first run.

    Returns:
        (configuration, warning) where warning is a user-facing message
        when the session starts on a fallback configuration, else None
    """
    try:
        return store.load(), None
    except ConfigNotFoundError:
        cfg = default_configuration()
        try:
            store.save(cfg)
        except ConfigSaveError as e:
            write_crash_log(e, mode="bootstrap", config_path=e.path)
            return cfg, str(e)
        return cfg, None
    except ConfigFormatError as e:
        write_crash_log(e, mode="bootstrap", config_path=e.path)
        cfg = Configuration(aliases={}, default_shell=fallback_shell_path())
        return cfg, f"{e} (starting with no aliases)"

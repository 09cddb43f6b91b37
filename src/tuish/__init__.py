# tuish: Two-Panel Terminal Alias Launcher
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
tuish core package.

A two-panel terminal launcher: named shell-command aliases with optional
single-key bindings, persisted to JSON, run through the configured shell.
"""
from .session import SessionController as SessionController  # noqa: F401 (re-export)

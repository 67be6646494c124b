# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/utils/execution.py

from dataclasses import dataclass

@dataclass(frozen=True)
class ExecutionContext:
    """
    per-run switches shared by every connection

    dry_run: check mode, mutating commands and writes are logged and skipped
    command_timeout: seconds before a single command is given up on
        (package builds and full upgrades can take a while)
    """

    dry_run: bool = False
    command_timeout: int = 3600

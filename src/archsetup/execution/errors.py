# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/execution/errors.py
from __future__ import annotations

from typing import Sequence


class CommandError(RuntimeError):
    """Raised when a checked command exits non-zero."""

    def __init__(self, argv: Sequence[str], returncode: int, stdout: str = "", stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = (stderr or stdout or "").strip()
        super().__init__(
            f"command failed (rc={returncode}): {' '.join(self.argv)}" + (f"\n{detail}" if detail else "")
        )


class HostUnreachable(RuntimeError):
    """Raised when a target host cannot be reached."""

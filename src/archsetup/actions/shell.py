# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/actions/shell.py

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Union

from ..engine.task import Action, PreconditionFailed, TaskContext
from ..execution.base import Connection

log = logging.getLogger("archsetup")

ChangedWhen = Union[bool, Callable[[str, str], bool]]


def command(
    conn: Connection,
    argv: Sequence[str],
    *,
    user: Optional[str] = None,
    changed_when: ChangedWhen = True,
) -> bool:
    """
    Run a command that has no built-in probe. ``changed_when`` is either a
    constant or ``f(stdout, stderr) -> bool``.
    """
    cp = conn.run(argv, become_user=user, check=True)
    if callable(changed_when):
        return bool(changed_when(cp.stdout or "", cp.stderr or ""))
    return changed_when


def script(
    conn: Connection,
    source: str,
    *,
    user: Optional[str] = None,
    changed_when: ChangedWhen = True,
) -> bool:
    return command(conn, ["bash", "-lc", source], user=user, changed_when=changed_when)


def debug(message: Union[str, Callable[[TaskContext], str]]) -> Action:
    def _action(ctx: TaskContext) -> bool:
        text = message(ctx) if callable(message) else message
        for line in text.splitlines():
            log.info("%s", line)
        return False
    return _action


def fail(message: str) -> Action:
    def _action(ctx: TaskContext) -> bool:
        raise PreconditionFailed(message)
    return _action

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/common.py

from __future__ import annotations

import posixpath

from ..engine.task import TaskContext
from ..host import probes


def on_arch(ctx: TaskContext) -> bool:
    return ctx.facts.is_arch


def home_path(ctx: TaskContext, *parts: str) -> str:
    return posixpath.join(ctx.home, *parts)


def missing_path(*parts: str):
    """Guard: true when ``<home>/<parts>`` does not exist yet."""
    def _guard(ctx: TaskContext) -> bool:
        return not probes.path_exists(ctx.conn, home_path(ctx, *parts))
    return _guard

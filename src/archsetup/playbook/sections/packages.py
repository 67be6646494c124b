# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/packages.py

from __future__ import annotations

from ...actions import pacman, systemd
from ...engine.task import Section, Task


def bluetooth() -> Section:
    return Section(
        name="bluetooth",
        tags=["bluetooth", "services"],
        items=[
            Task(
                "Enable Bluetooth service",
                lambda ctx: systemd.enabled_and_started(ctx.conn, "bluetooth.service"),
                register="bluetooth_status",
            ),
        ],
    )


def packages() -> Section:
    return Section(
        name="packages",
        tags=["packages"],
        description="system, development and utility package sets",
        items=[
            Task("Install system packages", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.system)),
            Task("Install development packages", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.dev)),
            Task("Install utility packages", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.util)),
        ],
    )

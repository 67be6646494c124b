# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/flatpak.py

from __future__ import annotations

from ...actions import flatpak, pacman
from ...engine.task import Section, Task


def section() -> Section:
    return Section(
        name="flatpak",
        tags=["flatpak", "packages"],
        items=[
            Task("Install Flatpak", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.flatpak)),
            Task(
                "Add Flathub repository for user",
                lambda ctx: flatpak.remote(ctx.conn, "flathub", ctx.config.urls.flathub_repo, user=ctx.user),
                register="flathub_add",
                ignore_errors=True,
            ),
            Task(
                "Install Flatpak applications",
                lambda ctx: flatpak.apps(ctx.conn, ctx.config.packages.flatpak_apps, user=ctx.user),
            ),
        ],
    )

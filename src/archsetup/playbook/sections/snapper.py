# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/snapper.py

from __future__ import annotations

from ...actions import files, pacman
from ...actions.aur import aur_packages
from ...actions.shell import fail
from ...engine.task import Block, Section, Task, TaskContext
from ..common import on_arch

NOT_BTRFS_MESSAGE = "Error: Root filesystem is not BTRFS. Snapper requires BTRFS."

GRUB_BTRFSD_UNITS = (
    "/etc/systemd/system/grub-btrfsd.service",
    "/etc/systemd/system/multi-user.target.wants/grub-btrfsd.service",
)


def _remove_units(ctx: TaskContext) -> bool:
    changed = False
    for path in GRUB_BTRFSD_UNITS:
        changed = files.absent(ctx.conn, path) or changed
    return changed


def section() -> Section:
    return Section(
        name="snapper",
        tags=["snapper"],
        description="Snapper + btrfs-assistant in place of grub-btrfs/timeshift (btrfs root only)",
        items=[
            Block(
                name="Set up Snapper with BTRFS Assistant",
                when=on_arch,
                tasks=[
                    Task(
                        "Fail if root is not BTRFS",
                        fail(NOT_BTRFS_MESSAGE),
                        when=lambda ctx: ctx.facts.root_fstype != "btrfs",
                    ),
                    Task(
                        "Remove existing grub-btrfs if present",
                        lambda ctx: pacman.absent(ctx.conn, ["grub-btrfs"]),
                    ),
                    Task("Remove existing systemd service files for grub-btrfsd", _remove_units),
                    Task(
                        "Remove timeshift and timeshift-autosnap if present",
                        lambda ctx: pacman.absent(ctx.conn, ["timeshift", "timeshift-autosnap"]),
                    ),
                    Task(
                        "Install snapper-support and btrfs-assistant from AUR",
                        aur_packages(lambda cfg: cfg.packages.aur_snapper),
                    ),
                ],
            ),
        ],
    )

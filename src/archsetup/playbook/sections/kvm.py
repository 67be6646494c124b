# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/kvm.py

from __future__ import annotations

import logging

from ...actions import pacman, systemd, users
from ...engine.task import Block, Section, Task, TaskContext
from ...host import probes
from ..common import on_arch

log = logging.getLogger("archsetup")

DEFAULT_NETWORK = "default"


def _services(ctx: TaskContext) -> bool:
    changed = False
    for unit in ctx.config.virt_services:
        changed = systemd.enabled_and_started(ctx.conn, unit) or changed
    return changed


def default_network(ctx: TaskContext) -> bool:
    """Define, start and autostart libvirt's default NAT network as needed."""
    conn = ctx.conn
    changed = False

    info = probes.libvirt_network(conn, DEFAULT_NETWORK)
    if not info:
        conn.run(["virsh", "net-define", ctx.config.paths.libvirt_default_network], check=True)
        changed = True
        info = probes.libvirt_network(conn, DEFAULT_NETWORK)

    if info.get("active") != "yes":
        conn.run(["virsh", "net-start", DEFAULT_NETWORK], check=True)
        changed = True

    if info.get("autostart") != "yes":
        conn.run(["virsh", "net-autostart", DEFAULT_NETWORK], check=True)
        changed = True

    return changed


def section() -> Section:
    return Section(
        name="kvm",
        tags=["kvm", "virtualization"],
        items=[
            Block(
                name="Install KVM/libvirt",
                when=on_arch,
                tasks=[
                    Task("Install KVM and libvirt packages", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.kvm)),
                    Task("Enable and start virtualization services", _services),
                    Task("Add user to libvirt group", lambda ctx: users.in_groups(ctx.conn, ctx.user, ["libvirt"])),
                    Task("Configure default network", default_network),
                ],
            ),
        ],
    )

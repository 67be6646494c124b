# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/containers.py

from __future__ import annotations

from ...actions import files, pacman, systemd, users
from ...actions.shell import command
from ...engine.task import Block, Section, Task, TaskContext
from ..common import on_arch

REGISTRIES_HEADER = "# Registries configuration file - setup by installation script"


def registries_block(registries: list[str]) -> str:
    quoted = ", ".join(f"'{r}'" for r in registries)
    return f"{REGISTRIES_HEADER}\n\n[registries.search]\nregistries = [{quoted}]\n"


def _configure_registries(ctx: TaskContext) -> bool:
    return files.blockinfile(
        ctx.conn,
        ctx.config.paths.containers_registries_conf,
        registries_block(ctx.config.container_registries),
    )


def docker() -> Section:
    return Section(
        name="docker",
        tags=["docker", "containers"],
        items=[
            Block(
                name="Install Docker",
                when=on_arch,
                tasks=[
                    Task("Install Docker packages", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.docker)),
                    Task(
                        "Enable and start Docker service",
                        lambda ctx: systemd.enabled_and_started(ctx.conn, "docker.service"),
                    ),
                    Task("Create docker group", lambda ctx: users.group_present(ctx.conn, "docker")),
                    Task("Add user to docker group", lambda ctx: users.in_groups(ctx.conn, ctx.user, ["docker"])),
                    Task(
                        "Verify Docker installation",
                        lambda ctx: command(ctx.conn, ["docker", "run", "--rm", "hello-world"], changed_when=False),
                        register="docker_test",
                        ignore_errors=True,
                    ),
                ],
            ),
        ],
    )


def podman() -> Section:
    return Section(
        name="podman",
        tags=["podman", "containers"],
        items=[
            Block(
                name="Install Podman",
                when=on_arch,
                tasks=[
                    Task("Install Podman packages", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.podman)),
                    Task(
                        "Enable podman.socket service if available",
                        lambda ctx: systemd.enabled_and_started(ctx.conn, "podman.socket"),
                        register="podman_socket",
                        ignore_errors=True,
                    ),
                    Task(
                        "Create containers config directory",
                        lambda ctx: files.directory(ctx.conn, "/etc/containers", mode=0o755),
                    ),
                    Task("Configure Podman registries", _configure_registries),
                ],
            ),
        ],
    )

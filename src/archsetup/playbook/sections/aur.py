# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/aur.py

from __future__ import annotations

from ...actions import files, git, pacman
from ...actions.aur import aur_packages, scoped_pacman_grant
from ...actions.shell import script
from ...engine.task import Block, Section, Task, TaskContext
from ...host import probes
from ..common import on_arch


def _yay_missing(ctx: TaskContext) -> bool:
    return on_arch(ctx) and not probes.command_exists(ctx.conn, "yay", user=ctx.user)


def _build_yay(ctx: TaskContext) -> bool:
    build_dir = ctx.config.paths.yay_build_dir
    # makepkg -si calls sudo pacman -U as the user
    with scoped_pacman_grant(ctx.conn, ctx.user, sudoers_dir=ctx.config.paths.sudoers_dir):
        ctx.conn.shell(f"cd {build_dir} && makepkg -si --noconfirm", become_user=ctx.user, check=True)
    return True


def section() -> Section:
    return Section(
        name="aur",
        tags=["aur", "packages"],
        description="yay from source, then the AUR package sets",
        items=[
            Block(
                name="Install AUR helper (yay)",
                when=_yay_missing,
                tasks=[
                    Task("Install git and base-devel", lambda ctx: pacman.present(ctx.conn, ["git", "base-devel"])),
                    Task(
                        "Create build directory for yay",
                        lambda ctx: files.directory(ctx.conn, ctx.config.paths.yay_build_dir, owner=ctx.user),
                    ),
                    Task(
                        "Clone yay repository",
                        lambda ctx: git.clone(
                            ctx.conn, ctx.config.urls.yay_repo, ctx.config.paths.yay_build_dir, user=ctx.user
                        ),
                    ),
                    Task("Build and install yay", _build_yay),
                    Task("Clean up build directory", lambda ctx: files.absent(ctx.conn, ctx.config.paths.yay_build_dir)),
                ],
            ),
            Task("Install AUR packages", aur_packages(lambda cfg: cfg.packages.aur), when=on_arch),
            Task(
                "Install gaming device udev rules from AUR",
                aur_packages(lambda cfg: cfg.packages.aur_game_devices),
                when=on_arch,
                register="game_devices",
            ),
            Task(
                "Reload udev rules after installing gaming device rules",
                lambda ctx: script(ctx.conn, "udevadm control --reload-rules && udevadm trigger"),
                when=lambda ctx: on_arch(ctx) and ctx.changed("game_devices"),
            ),
            Task(
                "Install Google Chrome Beta from AUR",
                aur_packages(lambda cfg: cfg.packages.aur_chrome_beta),
                when=on_arch,
            ),
        ],
    )

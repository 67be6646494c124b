# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/shell.py

"""Neovim, fish and Fisher."""

from __future__ import annotations

from ...actions import files, git, pacman, users
from ...actions.shell import script
from ...engine.task import Block, Section, Task, TaskContext
from ...host import probes
from ...utils.template_renderer import TemplateRenderer
from ..common import home_path, missing_path, on_arch
from .languages import user_block, user_dir

NEOVIM_MARKER = "# {mark} NEOVIM ALIASES"
NEOVIM_ALIASES = """\
# Neovim aliases
alias vim='nvim'
alias vi='nvim'
"""

FISH_SHELL = "/usr/bin/fish"


def _initial_fish_config(ctx: TaskContext) -> bool:
    content = TemplateRenderer().render("config.fish.j2", {"editor": "nvim"})
    return files.copy_if_absent(ctx.conn, home_path(ctx, ".config/fish/config.fish"), content, owner=ctx.user)


def _install_fisher(ctx: TaskContext) -> bool:
    return script(
        ctx.conn,
        f"curl -sL {ctx.config.urls.fisher_script} | fish -c 'source && fisher install jorgebucaran/fisher'",
        user=ctx.user,
    )


def neovim() -> Section:
    return Section(
        name="neovim",
        tags=["neovim", "shell"],
        items=[
            Block(
                name="Install Neovim",
                when=on_arch,
                tasks=[
                    Task("Install Neovim and dependencies", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.neovim)),
                    Task(
                        "Set up kickstart.nvim",
                        lambda ctx: git.clone(
                            ctx.conn, ctx.config.urls.kickstart_repo, home_path(ctx, ".config/nvim"), user=ctx.user
                        ),
                        when=missing_path(".config/nvim/init.lua"),
                    ),
                    Task(
                        "Set up Neovim aliases in fish config",
                        user_block(".config/fish/config.fish", NEOVIM_ALIASES, NEOVIM_MARKER),
                    ),
                    Task("Set up Neovim aliases in bash config", user_block(".bashrc", NEOVIM_ALIASES, NEOVIM_MARKER)),
                ],
            ),
        ],
    )


def fish() -> Section:
    return Section(
        name="fish",
        tags=["fish", "shell"],
        items=[
            Block(
                name="Configure fish shell",
                when=on_arch,
                tasks=[
                    Task("Install fish shell", lambda ctx: pacman.present(ctx.conn, ["fish"])),
                    Task("Set fish as default shell", lambda ctx: users.login_shell(ctx.conn, ctx.user, FISH_SHELL)),
                    Task("Create fish config directory", user_dir(".config/fish")),
                    Task("Create initial fish config", _initial_fish_config),
                ],
            ),
        ],
    )


def fisher() -> Section:
    return Section(
        name="fisher",
        tags=["fisher", "fish", "shell"],
        items=[
            Block(
                name="Install Fisher plugin manager",
                when=on_arch,
                tasks=[
                    Task(
                        "Install Fisher plugin manager for Fish",
                        _install_fisher,
                        when=lambda ctx: not probes.fish_function_exists(ctx.conn, "fisher", user=ctx.user),
                    ),
                ],
            ),
        ],
    )

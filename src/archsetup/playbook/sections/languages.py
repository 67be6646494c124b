# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/languages.py

"""pyenv, mise and Lua toolchains."""

from __future__ import annotations

from ...actions import files, pacman
from ...actions.shell import script
from ...engine.task import Block, Section, Task, TaskContext
from ...host import probes
from ..common import home_path, missing_path, on_arch

PYENV_MARKER = "# {mark} PYENV CONFIGURATION"
MISE_MARKER = "# {mark} MISE CONFIGURATION"

PYENV_BASH = """\
# pyenv setup
export PYENV_ROOT="$HOME/.pyenv"
[[ -d $PYENV_ROOT/bin ]] && export PATH="$PYENV_ROOT/bin:$PATH"
eval "$(pyenv init -)"
"""

PYENV_FISH = """\
# pyenv setup
set -gx PYENV_ROOT $HOME/.pyenv
fish_add_path $PYENV_ROOT/bin
status --is-interactive; and pyenv init - | source
"""

MISE_FISH = """\
# mise activation
~/.local/bin/mise activate fish | source
"""


def user_block(rel: str, block: str, marker: str):
    """Action: managed block in a file under the user's home, owned by the user."""
    def _action(ctx: TaskContext) -> bool:
        return files.blockinfile(ctx.conn, home_path(ctx, rel), block, marker=marker, owner=ctx.user)
    return _action


def user_dir(rel: str):
    def _action(ctx: TaskContext) -> bool:
        return files.directory(ctx.conn, home_path(ctx, rel), owner=ctx.user)
    return _action


def _mise_missing(ctx: TaskContext) -> bool:
    if probes.path_exists(ctx.conn, home_path(ctx, ".local/bin/mise")):
        return False
    return not probes.command_exists(ctx.conn, "mise", user=ctx.user)


def pyenv() -> Section:
    return Section(
        name="pyenv",
        tags=["pyenv", "languages"],
        items=[
            Block(
                name="Install pyenv",
                when=on_arch,
                tasks=[
                    Task("Install pyenv and dependencies", lambda ctx: pacman.present(ctx.conn, ctx.config.packages.pyenv)),
                    Task("Set up pyenv in .bashrc", user_block(".bashrc", PYENV_BASH, PYENV_MARKER)),
                    Task("Create fish configuration directory", user_dir(".config/fish")),
                    Task("Set up pyenv in fish config", user_block(".config/fish/config.fish", PYENV_FISH, PYENV_MARKER)),
                ],
            ),
        ],
    )


def mise() -> Section:
    return Section(
        name="mise",
        tags=["mise", "languages"],
        items=[
            Block(
                name="Install mise",
                when=on_arch,
                tasks=[
                    Task("Create fish config directories", user_dir(".config/fish/completions")),
                    Task(
                        "Run mise installer",
                        lambda ctx: script(ctx.conn, f"curl -fsSL {ctx.config.urls.mise_installer} | sh", user=ctx.user),
                        when=_mise_missing,
                    ),
                    Task("Add mise activation to fish config", user_block(".config/fish/config.fish", MISE_FISH, MISE_MARKER)),
                    Task(
                        "Generate mise completions for fish",
                        lambda ctx: script(
                            ctx.conn,
                            "~/.local/bin/mise completion fish > ~/.config/fish/completions/mise.fish",
                            user=ctx.user,
                        ),
                        when=missing_path(".config/fish/completions/mise.fish"),
                    ),
                ],
            ),
        ],
    )


def lua() -> Section:
    return Section(
        name="lua",
        tags=["lua", "languages"],
        items=[
            Block(
                name="Install Lua and LuaRocks",
                when=on_arch,
                tasks=[
                    Task(
                        "Install Lua and dependencies",
                        lambda ctx: pacman.present(ctx.conn, ["lua", "luarocks", *ctx.config.packages.lua_dependencies]),
                    ),
                ],
            ),
        ],
    )

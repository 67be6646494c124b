# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/finalize.py

from __future__ import annotations

from ...actions import pacman
from ...actions.shell import debug
from ...engine.task import Block, Section, Task
from ...utils.template_renderer import TemplateRenderer
from ..common import on_arch


def completion_message() -> str:
    return TemplateRenderer().render("completion_message.txt.j2")


def section() -> Section:
    return Section(
        name="finalize",
        tags=["finalize"],
        items=[
            Block(
                name="Perform final system update",
                when=on_arch,
                tasks=[
                    Task("Update and upgrade all packages", lambda ctx: pacman.upgrade(ctx.conn), register="final_update"),
                    Task("Clean package cache", lambda ctx: pacman.clean_cache(ctx.conn)),
                ],
            ),
            Task("Print completion message", debug(completion_message())),
        ],
    )

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/sections/system.py

from __future__ import annotations

import logging
import os
from datetime import datetime

from ...actions import pacman
from ...actions.shell import debug
from ...engine.task import Block, Section, Task, TaskContext
from ..certificates import certificate_block

log = logging.getLogger("archsetup")

MIRROR_RESCUE_MESSAGE = "Mirror update failed, continuing with existing mirrors"


def _servers(text: str | None) -> list[str]:
    """Ranked ``Server =`` lines; reflector's comment header changes on every run."""
    return [ln.strip() for ln in (text or "").splitlines() if ln.strip().startswith("Server")]


def refresh_mirrors(ctx: TaskContext) -> bool:
    """
    Rank mirrors into a scratch file and swap it in only when the server
    list differs, keeping a timestamped backup of the previous list.
    """
    conn = ctx.conn
    mirrorlist = ctx.config.paths.mirrorlist
    opts = ctx.config.mirrors
    staged = f"{mirrorlist}.archsetup.new"

    conn.run(
        [
            "reflector",
            "--protocol", opts.protocol,
            "--latest", str(opts.latest),
            "--fastest", str(opts.fastest),
            "--score", str(opts.score),
            "--sort", opts.sort,
            "--save", staged,
            "--verbose",
            "--country", opts.country,
            "--age", str(opts.age),
        ],
        check=True,
    )
    if conn.dry_run:
        return True

    ranked = conn.read_text(staged)
    current = conn.read_text(mirrorlist)
    if not _servers(ranked):
        conn.remove(staged)
        raise RuntimeError("reflector produced an empty mirror list")
    if _servers(ranked) == _servers(current):
        conn.remove(staged)
        log.debug("mirrorlist unchanged")
        return False

    if current is not None:
        backup = f"{mirrorlist}.backup.{datetime.now().strftime('%Y%m%d%H%M%S')}"
        conn.write_text(backup, current, mode=0o644)
        log.info("mirrorlist backed up to %s", os.path.basename(backup))
    conn.rename(staged, mirrorlist)
    return True


def section() -> Section:
    return Section(
        name="system",
        tags=["system", "certificates", "mirrors"],
        description="CA trust, mirror ranking and a full upgrade",
        items=[
            certificate_block(),
            Block(
                name="Update package mirrors",
                tasks=[Task("Update mirrorlist with reflector", refresh_mirrors)],
                rescue=[Task("Log mirror update failure", debug(MIRROR_RESCUE_MESSAGE))],
            ),
            Task("Update system packages", lambda ctx: pacman.upgrade(ctx.conn)),
        ],
    )

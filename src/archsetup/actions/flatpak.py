# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from typing import Iterable

from ..execution.base import Connection
from ..host import probes
from .pacman import dedupe

log = logging.getLogger("archsetup")


def remote(conn: Connection, name: str, url: str, *, user: str) -> bool:
    if probes.flatpak_remote_exists(conn, name, user=user):
        return False
    conn.run(
        ["flatpak", "remote-add", "--user", "--if-not-exists", name, url],
        become_user=user,
        check=True,
    )
    return True


def apps(conn: Connection, app_ids: Iterable[str], *, user: str, remote_name: str = "flathub") -> bool:
    """
    Install each missing app for *user*. A failing app is logged and the
    rest still install.
    """
    changed = False
    for app_id in dedupe(app_ids):
        if probes.flatpak_app_installed(conn, app_id, user=user):
            continue
        cp = conn.run(
            ["flatpak", "install", "--user", "-y", "--noninteractive", remote_name, app_id],
            become_user=user,
        )
        if cp.returncode != 0:
            log.warning("flatpak: %s failed to install (rc=%s): %s", app_id, cp.returncode, cp.stderr.strip())
            continue
        changed = True
    return changed

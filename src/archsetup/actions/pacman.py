# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/actions/pacman.py

from __future__ import annotations

import logging
from typing import Iterable, List

from ..execution.base import Connection
from ..host import probes

log = logging.getLogger("archsetup")

PKG_CACHE_DIR = "/var/cache/pacman/pkg"
NOTHING_TO_DO = "there is nothing to do"


def dedupe(names: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for n in names:
        if n and n not in seen:
            seen.add(n)
            out.append(n)
    return out


def present(conn: Connection, names: Iterable[str]) -> bool:
    missing = [n for n in dedupe(names) if not probes.package_installed(conn, n)]
    if not missing:
        return False
    log.info("pacman: installing %s", " ".join(missing))
    conn.run(["pacman", "-S", "--needed", "--noconfirm", *missing], check=True)
    return True


def absent(conn: Connection, names: Iterable[str]) -> bool:
    installed = [n for n in dedupe(names) if probes.package_installed(conn, n)]
    if not installed:
        return False
    log.info("pacman: removing %s", " ".join(installed))
    conn.run(["pacman", "-R", "--noconfirm", *installed], check=True)
    return True


def _upgrade(conn: Connection, flags: str) -> bool:
    cp = conn.run(["pacman", flags, "--noconfirm"], check=True)
    return NOTHING_TO_DO not in (cp.stdout or "")


def upgrade(conn: Connection) -> bool:
    """Refresh the sync databases and upgrade everything."""
    return _upgrade(conn, "-Syu")


def download_upgrades(conn: Connection) -> bool:
    """Refresh the sync databases and download pending upgrades only."""
    return _upgrade(conn, "-Syuw")


def upgrade_without_refresh(conn: Connection) -> bool:
    return _upgrade(conn, "-Su")


def _cached_files(conn: Connection) -> set[str]:
    cp = conn.run(["find", PKG_CACHE_DIR, "-maxdepth", "1", "-type", "f"], readonly=True)
    if cp.returncode != 0:
        return set()
    return set(cp.stdout.split())


def clean_cache(conn: Connection) -> bool:
    before = _cached_files(conn)
    conn.run(["pacman", "-Sc", "--noconfirm"], check=True)
    if conn.dry_run:
        return bool(before)
    return _cached_files(conn) != before

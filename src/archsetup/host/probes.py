# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/host/probes.py

"""
Best-effort checks of live host state.

Every probe answers "is it already there?". A probe that cannot run
(missing binary, permission problem, transport hiccup) answers "no";
nothing here raises.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..execution.base import Connection

log = logging.getLogger("archsetup")


def _rc(conn: Connection, argv: List[str], *, become_user: Optional[str] = None) -> int:
    try:
        return conn.run(argv, become_user=become_user, readonly=True).returncode
    except Exception as e:
        log.debug("probe %s failed: %s", argv, e)
        return 1


def _stdout(conn: Connection, argv: List[str]) -> Optional[str]:
    try:
        cp = conn.run(argv, readonly=True)
    except Exception as e:
        log.debug("probe %s failed: %s", argv, e)
        return None
    return cp.stdout if cp.returncode == 0 else None


def command_exists(conn: Connection, name: str, *, user: Optional[str] = None) -> bool:
    return _rc(conn, ["bash", "-lc", f"command -v {name}"], become_user=user) == 0


def package_installed(conn: Connection, name: str) -> bool:
    return _rc(conn, ["pacman", "-Qi", name]) == 0


def installed_packages(conn: Connection) -> frozenset[str]:
    out = _stdout(conn, ["pacman", "-Qq"])
    if out is None:
        return frozenset()
    return frozenset(line.strip() for line in out.splitlines() if line.strip())


def path_exists(conn: Connection, path: str) -> bool:
    try:
        return conn.exists(path)
    except Exception as e:
        log.debug("probe exists(%s) failed: %s", path, e)
        return False


def root_fstype(conn: Connection) -> str:
    out = _stdout(conn, ["findmnt", "-n", "-o", "FSTYPE", "/"])
    return (out or "").strip()


def service_enabled(conn: Connection, unit: str) -> bool:
    return _rc(conn, ["systemctl", "is-enabled", "--quiet", unit]) == 0


def service_active(conn: Connection, unit: str) -> bool:
    return _rc(conn, ["systemctl", "is-active", "--quiet", unit]) == 0


def group_exists(conn: Connection, group: str) -> bool:
    return _rc(conn, ["getent", "group", group]) == 0


def user_groups(conn: Connection, user: str) -> set[str]:
    out = _stdout(conn, ["id", "-nG", user])
    return set((out or "").split())


def user_shell(conn: Connection, user: str) -> Optional[str]:
    out = _stdout(conn, ["getent", "passwd", user])
    if not out:
        return None
    fields = out.strip().split(":")
    return fields[6] if len(fields) >= 7 else None


def flatpak_remote_exists(conn: Connection, remote: str, *, user: str) -> bool:
    try:
        cp = conn.run(
            ["flatpak", "remotes", "--user", "--columns=name"],
            become_user=user,
            readonly=True,
        )
    except Exception as e:
        log.debug("probe flatpak remotes failed: %s", e)
        return False
    return cp.returncode == 0 and remote in cp.stdout.split()


def flatpak_app_installed(conn: Connection, app_id: str, *, user: str) -> bool:
    return _rc(conn, ["flatpak", "info", "--user", app_id], become_user=user) == 0


def fish_function_exists(conn: Connection, name: str, *, user: str) -> bool:
    return _rc(conn, ["fish", "-c", f"type -q {name}"], become_user=user) == 0


def libvirt_network(conn: Connection, name: str) -> Dict[str, str]:
    """``virsh net-info`` as a dict (lower-cased keys); empty when undefined."""
    out = _stdout(conn, ["virsh", "net-info", name])
    info: Dict[str, str] = {}
    for line in (out or "").splitlines():
        key, sep, value = line.partition(":")
        if sep:
            info[key.strip().lower()] = value.strip()
    return info

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/host/facts.py

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..execution.base import Connection
from ..execution.runner import LocalConnection
from . import probes

log = logging.getLogger("archsetup")


@dataclass(frozen=True)
class HostFacts:
    """
    Ambient facts, gathered once per run and read-only afterwards.
    Nothing is cached between runs.
    """
    hostname: str
    distribution: str                 # os-release ID, e.g. "arch", "endeavouros"
    distribution_like: tuple[str, ...]
    current_user: str
    user_home: str
    root_fstype: str
    packages: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_arch(self) -> bool:
        return self.distribution == "arch" or "arch" in self.distribution_like

    def summary(self) -> Dict[str, object]:
        return {
            "hostname": self.hostname,
            "distribution": self.distribution,
            "distribution_like": list(self.distribution_like),
            "is_arch": self.is_arch,
            "current_user": self.current_user,
            "user_home": self.user_home,
            "root_fstype": self.root_fstype,
            "package_count": len(self.packages),
        }


def parse_os_release(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        try:
            parts = shlex.split(v)
        except ValueError:
            parts = [v]
        out[k.strip()] = parts[0] if parts else ""
    return out


def resolve_invoking_user(conn: Connection) -> str:
    """
    The non-root user the run is for: SUDO_USER, then logname, then whoever
    the connection runs as.
    """
    sudo_user = os.environ.get("SUDO_USER")
    if sudo_user and sudo_user != "root" and isinstance(conn, LocalConnection):
        return sudo_user

    try:
        cp = conn.run(["logname"], readonly=True)
        name = cp.stdout.strip()
        if cp.returncode == 0 and name and name != "root":
            return name
    except Exception as e:
        log.debug("logname failed: %s", e)

    return getattr(conn, "username", None) or conn.effective_user


def gather_facts(
    conn: Connection,
    *,
    user: Optional[str] = None,
    home: Optional[str] = None,
) -> HostFacts:
    os_release = parse_os_release(conn.read_text("/etc/os-release") or "")
    current_user = user or resolve_invoking_user(conn)

    try:
        hostname = conn.run(["hostname"], readonly=True).stdout.strip() or conn.name
    except Exception:
        hostname = conn.name

    facts = HostFacts(
        hostname=hostname,
        distribution=os_release.get("ID", "unknown"),
        distribution_like=tuple(os_release.get("ID_LIKE", "").split()),
        current_user=current_user,
        user_home=home or ("/root" if current_user == "root" else f"/home/{current_user}"),
        root_fstype=probes.root_fstype(conn),
        packages=probes.installed_packages(conn),
    )
    log.info(
        "Facts: distribution=%s user=%s root_fs=%s packages=%d",
        facts.distribution, facts.current_user, facts.root_fstype, len(facts.packages),
    )
    return facts

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Iterable

from ..execution.base import Connection
from ..host import probes


def group_present(conn: Connection, group: str) -> bool:
    if probes.group_exists(conn, group):
        return False
    conn.run(["groupadd", group], check=True)
    return True


def in_groups(conn: Connection, user: str, groups: Iterable[str]) -> bool:
    """Append *user* to *groups* (never removes memberships)."""
    missing = sorted(set(groups) - probes.user_groups(conn, user))
    if not missing:
        return False
    conn.run(["usermod", "-aG", ",".join(missing), user], check=True)
    return True


def login_shell(conn: Connection, user: str, shell: str) -> bool:
    if probes.user_shell(conn, user) == shell:
        return False
    conn.run(["usermod", "-s", shell, user], check=True)
    return True

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import posixpath
from typing import Optional

from ..execution.base import Connection


def clone(conn: Connection, repo: str, dest: str, *, user: Optional[str] = None) -> bool:
    """Clone *repo* into *dest* unless a checkout is already there."""
    if conn.exists(posixpath.join(dest, ".git")):
        return False
    conn.run(["git", "clone", repo, dest], become_user=user, check=True)
    return True


def clone_or_pull(conn: Connection, repo: str, dest: str, *, user: Optional[str] = None) -> bool:
    if not conn.exists(posixpath.join(dest, ".git")):
        conn.run(["git", "clone", repo, dest], become_user=user, check=True)
        return True
    cp = conn.run(["git", "-C", dest, "pull", "--ff-only"], become_user=user, check=True)
    return "Already up to date" not in (cp.stdout or "")

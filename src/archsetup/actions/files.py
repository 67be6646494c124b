# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/actions/files.py

from __future__ import annotations

from typing import Optional

from ..execution.base import Connection

# same markers as blocks written by the earlier Ansible playbook
DEFAULT_MARKER = "# {mark} ANSIBLE MANAGED BLOCK"


def absent(conn: Connection, path: str) -> bool:
    return conn.remove(path)


def directory(
    conn: Connection,
    path: str,
    *,
    mode: Optional[int] = None,
    owner: Optional[str] = None,
) -> bool:
    if conn.is_dir(path):
        return False
    conn.makedirs(path, mode=mode, owner=owner)
    return True


def copy_if_absent(
    conn: Connection,
    path: str,
    content: str,
    *,
    mode: Optional[int] = None,
    owner: Optional[str] = None,
) -> bool:
    """Write *content* only when nothing exists at *path* (never clobbers)."""
    if conn.exists(path):
        return False
    conn.write_text(path, content, mode=mode, owner=owner)
    return True


def apply_block(text: str, block: str, marker: str = DEFAULT_MARKER) -> str:
    """
    Return *text* with *block* placed between the BEGIN/END marker lines,
    replacing an existing marked block or appending a new one.
    """
    begin = marker.format(mark="BEGIN")
    end = marker.format(mark="END")
    body = block.rstrip("\n").splitlines()
    managed = [begin, *body, end]

    lines = text.splitlines()
    try:
        start = lines.index(begin)
        stop = lines.index(end, start)
    except ValueError:
        start = stop = -1

    if start >= 0:
        new_lines = lines[:start] + managed + lines[stop + 1:]
    else:
        new_lines = lines + managed

    return "\n".join(new_lines) + "\n"


def blockinfile(
    conn: Connection,
    path: str,
    block: str,
    *,
    marker: str = DEFAULT_MARKER,
    create: bool = True,
    owner: Optional[str] = None,
    mode: Optional[int] = None,
) -> bool:
    current = conn.read_text(path)
    if current is None:
        if not create:
            raise FileNotFoundError(path)
        current = ""
    updated = apply_block(current, block, marker)
    if updated == current:
        return False
    conn.write_text(path, updated, mode=mode, owner=owner)
    return True

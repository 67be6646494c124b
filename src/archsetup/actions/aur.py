# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/actions/aur.py

"""
AUR installs through yay.

yay must run as the unprivileged user but calls ``sudo pacman`` itself, so
the user needs a password-less pacman grant for the duration of the install.
The grant is a sudoers drop-in that exists only inside
:func:`scoped_pacman_grant` and only when there is something to install.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List

from ..config.models import PlaybookConfig
from ..engine.task import Action, TaskContext
from ..execution.base import Connection
from ..execution.errors import CommandError
from ..host import probes
from .pacman import dedupe

log = logging.getLogger("archsetup")

PACMAN_BIN = "/usr/bin/pacman"


@dataclass
class AurInstallResult:
    installed: List[str] = field(default_factory=list)
    already_present: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.installed)


def grant_path(user: str, sudoers_dir: str = "/etc/sudoers.d") -> str:
    return os.path.join(sudoers_dir, f"10_{user}_temp")


@contextmanager
def scoped_pacman_grant(conn: Connection, user: str, *, sudoers_dir: str = "/etc/sudoers.d") -> Iterator[str]:
    """
    Allow *user* to run pacman through sudo without a password until the
    block exits.

    sudo skips files in sudoers.d whose name contains a dot, so the rule is
    staged under ``.<name>.tmp``, syntax-checked with ``visudo -cf`` and
    renamed into place. The drop-in is removed on every exit path.
    """
    final = grant_path(user, sudoers_dir)
    staged = os.path.join(sudoers_dir, f".{os.path.basename(final)}.tmp")
    rule = f"{user} ALL=(ALL) NOPASSWD: {PACMAN_BIN}\n"

    conn.write_text(staged, rule, mode=0o440)
    try:
        conn.run(["visudo", "-cf", staged], check=True)
    except CommandError:
        conn.remove(staged)
        raise

    conn.rename(staged, final)
    log.warning("Temporary sudoers grant active for %s: %s", user, final)
    try:
        yield final
    finally:
        conn.remove(final)
        log.info("Temporary sudoers grant removed: %s", final)


def install_aur_packages(
    conn: Connection,
    names: Iterable[str],
    user: str,
    *,
    sudoers_dir: str = "/etc/sudoers.d",
) -> AurInstallResult:
    result = AurInstallResult()
    for name in dedupe(names):
        if probes.package_installed(conn, name):
            result.already_present.append(name)
    missing = [n for n in dedupe(names) if n not in result.already_present]

    if not missing:
        log.debug("aur: nothing to install (%s)", ", ".join(result.already_present) or "-")
        return result

    with scoped_pacman_grant(conn, user, sudoers_dir=sudoers_dir):
        for name in missing:
            log.info("aur: yay -S %s", name)
            cp = conn.run(["yay", "-S", name, "--noconfirm"], become_user=user)
            if cp.returncode != 0:
                log.warning("aur: %s failed (rc=%s): %s", name, cp.returncode, (cp.stderr or "").strip())
                result.failed.append(name)
            else:
                result.installed.append(name)

    return result


def aur_packages(pick: Callable[[PlaybookConfig], Iterable[str]]) -> Action:
    """Task action installing the package set *pick* selects from the vars."""

    def _action(ctx: TaskContext) -> bool:
        res = install_aur_packages(
            ctx.conn, pick(ctx.config), ctx.user, sudoers_dir=ctx.config.paths.sudoers_dir
        )
        return res.changed
    return _action

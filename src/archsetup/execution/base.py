# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/execution/base.py

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from abc import ABC, abstractmethod
from typing import Mapping, Optional, Sequence

from ..utils.execution import ExecutionContext
from .errors import CommandError

log = logging.getLogger("archsetup")


class Connection(ABC):
    """
    Everything a task may do to a host goes through a Connection.

    - run(): execute argv, optionally as another user (sudo -u <user> -H)
    - file helpers: exists/read_text/write_text/remove/rename/makedirs/chown
    - dry-run: mutating calls are logged and skipped, readonly probes still run
    """

    name: str = "localhost"

    def __init__(self, ctx: Optional[ExecutionContext] = None):
        self.ctx = ctx or ExecutionContext()

    @property
    def dry_run(self) -> bool:
        return self.ctx.dry_run

    # ------------------------- to implement -------------------------

    @property
    @abstractmethod
    def effective_user(self) -> str:
        """User that commands run as when no become_user is given."""

    @abstractmethod
    def _exec(
        self,
        argv: Sequence[str],
        *,
        input: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess: ...

    @abstractmethod
    def _exists(self, path: str) -> bool: ...

    @abstractmethod
    def _is_dir(self, path: str) -> bool: ...

    @abstractmethod
    def _read_text(self, path: str) -> Optional[str]: ...

    @abstractmethod
    def _write_text(self, path: str, content: str, mode: Optional[int]) -> None: ...

    @abstractmethod
    def _remove(self, path: str) -> None: ...

    @abstractmethod
    def _rename(self, src: str, dst: str) -> None: ...

    @abstractmethod
    def _makedirs(self, path: str, mode: Optional[int]) -> None: ...

    @abstractmethod
    def _chown(self, path: str, owner: str, group: Optional[str], recursive: bool) -> None: ...

    def close(self) -> None:
        pass

    # ------------------------- commands -------------------------

    def wrap_become(self, argv: Sequence[str], become_user: Optional[str]) -> list[str]:
        if not become_user or become_user == self.effective_user:
            return list(argv)
        return ["sudo", "-u", become_user, "-H", "--", *argv]

    def run(
        self,
        argv: Sequence[str],
        *,
        become_user: Optional[str] = None,
        check: bool = False,
        readonly: bool = False,
        input: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        final = self.wrap_become(argv, become_user)
        cmd_str = shlex.join(final)

        if self.dry_run and not readonly:
            log.info("[%s] check mode: would run $ %s", self.name, cmd_str)
            return subprocess.CompletedProcess(args=final, returncode=0, stdout="", stderr="")

        log.debug("[%s] $ %s", self.name, cmd_str)
        start = time.time()
        cp = self._exec(final, input=input, env=env)
        duration = time.time() - start

        if cp.stdout:
            log.debug("[%s][stdout]\n%s", self.name, cp.stdout.rstrip())
        if cp.stderr:
            log.debug("[%s][stderr]\n%s", self.name, cp.stderr.rstrip())
        log.debug("[%s][exit %s] (%.2fs)", self.name, cp.returncode, duration)

        if check and cp.returncode != 0:
            raise CommandError(final, cp.returncode, cp.stdout or "", cp.stderr or "")
        return cp

    def shell(self, script: str, **kwargs) -> subprocess.CompletedProcess:
        """Run a bash snippet through a login shell (pipes, redirects, ~)."""
        return self.run(["bash", "-lc", script], **kwargs)

    # ------------------------- files -------------------------

    def exists(self, path: str) -> bool:
        return self._exists(str(path))

    def is_dir(self, path: str) -> bool:
        return self._is_dir(str(path))

    def read_text(self, path: str) -> Optional[str]:
        """File content, or None when the file does not exist."""
        return self._read_text(str(path))

    def write_text(
        self,
        path: str,
        content: str,
        *,
        mode: Optional[int] = None,
        owner: Optional[str] = None,
        group: Optional[str] = None,
    ) -> None:
        path = str(path)
        if self.dry_run:
            log.info("[%s] check mode: would write %s", self.name, path)
            return
        log.debug("[%s] write %s (%d bytes)", self.name, path, len(content))
        self._write_text(path, content, mode)
        if owner:
            self._chown(path, owner, group, False)

    def remove(self, path: str) -> bool:
        """Remove a file or directory tree; returns whether it existed."""
        path = str(path)
        existed = self._exists(path)
        if not existed:
            return False
        if self.dry_run:
            log.info("[%s] check mode: would remove %s", self.name, path)
            return True
        log.debug("[%s] rm %s", self.name, path)
        self._remove(path)
        return True

    def rename(self, src: str, dst: str) -> None:
        if self.dry_run:
            log.info("[%s] check mode: would move %s -> %s", self.name, src, dst)
            return
        log.debug("[%s] mv %s %s", self.name, src, dst)
        self._rename(str(src), str(dst))

    def makedirs(
        self,
        path: str,
        *,
        mode: Optional[int] = None,
        owner: Optional[str] = None,
        group: Optional[str] = None,
    ) -> None:
        path = str(path)
        if self.dry_run:
            log.info("[%s] check mode: would create directory %s", self.name, path)
            return
        log.debug("[%s] mkdir -p %s", self.name, path)
        self._makedirs(path, mode)
        if owner:
            self._chown(path, owner, group, False)

    def chown(self, path: str, owner: str, group: Optional[str] = None, *, recursive: bool = False) -> None:
        if self.dry_run:
            log.info("[%s] check mode: would chown %s %s", self.name, owner, path)
            return
        self._chown(str(path), owner, group, recursive)

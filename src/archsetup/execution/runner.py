# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import os
import pwd
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence

from ..utils.execution import ExecutionContext
from .base import Connection


class LocalConnection(Connection):
    """Runs commands with subprocess and touches files with pathlib."""

    def __init__(self, ctx: Optional[ExecutionContext] = None, *, name: str = "localhost"):
        super().__init__(ctx)
        self.name = name

    @property
    def effective_user(self) -> str:
        return pwd.getpwuid(os.geteuid()).pw_name

    def _exec(
        self,
        argv: Sequence[str],
        *,
        input: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)
        try:
            return subprocess.run(
                list(argv),
                capture_output=True,
                check=False,
                text=True,
                input=input,
                env=full_env,
                timeout=self.ctx.command_timeout,
            )
        except FileNotFoundError as e:
            # mirror the shell: unknown binary -> rc 127
            return subprocess.CompletedProcess(args=list(argv), returncode=127, stdout="", stderr=str(e))

    def _exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def _is_dir(self, path: str) -> bool:
        return Path(path).is_dir()

    def _read_text(self, path: str) -> Optional[str]:
        p = Path(path)
        if not p.is_file():
            return None
        return p.read_text(encoding="utf-8", errors="replace")

    def _write_text(self, path: str, content: str, mode: Optional[int]) -> None:
        p = Path(path)
        p.write_text(content, encoding="utf-8")
        if mode is not None:
            os.chmod(p, mode)

    def _remove(self, path: str) -> None:
        p = Path(path)
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        else:
            p.unlink()

    def _rename(self, src: str, dst: str) -> None:
        os.replace(src, dst)

    def _makedirs(self, path: str, mode: Optional[int]) -> None:
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)
        if mode is not None:
            os.chmod(p, mode)

    def _chown(self, path: str, owner: str, group: Optional[str], recursive: bool) -> None:
        group = group or owner
        shutil.chown(path, owner, group)
        if recursive and Path(path).is_dir():
            for root, dirs, files in os.walk(path):
                for name in dirs + files:
                    shutil.chown(os.path.join(root, name), owner, group)

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/execution/ssh_runner.py

from __future__ import annotations

import itertools
import os
import shlex
import subprocess
from typing import Mapping, Optional, Sequence

import paramiko

from ..utils.execution import ExecutionContext
from .base import Connection
from .errors import CommandError, HostUnreachable

_counter = itertools.count(1)


def open_ssh(
    *,
    address: str,
    username: str,
    port: int = 22,
    key_path: Optional[str] = None,
    host_key_checking: bool = False,
    connect_timeout: float = 20.0,
) -> paramiko.SSHClient:
    client = paramiko.SSHClient()
    if host_key_checking:
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.RejectPolicy())
    else:
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    pkey = None
    if key_path:
        for key_cls in (
            paramiko.Ed25519Key,
            paramiko.RSAKey,
            paramiko.ECDSAKey,
        ):
            try:
                pkey = key_cls.from_private_key_file(key_path)
                break
            except paramiko.SSHException:
                continue

    try:
        client.connect(
            hostname=address,
            port=port,
            username=username,
            pkey=pkey,
            timeout=connect_timeout,
            allow_agent=True,
            look_for_keys=pkey is None,
        )
    except (paramiko.SSHException, OSError) as e:
        raise HostUnreachable(f"Failed to SSH into {address} as '{username}': {e}") from e

    return client


class SSHConnection(Connection):
    """
    Connection over an established paramiko client.

    Commands go through `sudo -n` when become is on; files are staged with
    SFTP under /tmp and moved into place with `install`.
    """

    def __init__(
        self,
        client: paramiko.SSHClient,
        *,
        name: str,
        username: str,
        become: bool = True,
        ctx: Optional[ExecutionContext] = None,
    ):
        super().__init__(ctx)
        self.client = client
        self.name = name
        self.username = username
        self.become = become

    @property
    def effective_user(self) -> str:
        return "root" if self.become else self.username

    def _exec(
        self,
        argv: Sequence[str],
        *,
        input: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        cmd = shlex.join(argv)
        if env:
            cmd = "env " + " ".join(f"{k}={shlex.quote(str(v))}" for k, v in env.items()) + " " + cmd
        if self.become:
            cmd = f"sudo -n {cmd}"

        stdin, stdout, stderr = self.client.exec_command(cmd, timeout=self.ctx.command_timeout)
        if input is not None:
            stdin.write(input)
            stdin.flush()
            stdin.channel.shutdown_write()
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        rc = stdout.channel.recv_exit_status()
        return subprocess.CompletedProcess(args=list(argv), returncode=rc, stdout=out, stderr=err)

    def _test(self, flag: str, path: str) -> bool:
        return self._exec(["test", flag, path]).returncode == 0

    def _exists(self, path: str) -> bool:
        return self._test("-e", path) or self._test("-L", path)

    def _is_dir(self, path: str) -> bool:
        return self._test("-d", path)

    def _read_text(self, path: str) -> Optional[str]:
        if not self._test("-f", path):
            return None
        cp = self._exec(["cat", path])
        return cp.stdout if cp.returncode == 0 else None

    def _write_text(self, path: str, content: str, mode: Optional[int]) -> None:
        tmp_remote = f"/tmp/.archsetup_tmp_{os.getpid()}_{next(_counter)}"
        sftp = self.client.open_sftp()
        try:
            with sftp.open(tmp_remote, "w") as f:
                f.write(content)
        finally:
            sftp.close()

        argv = ["install"]
        if mode is not None:
            argv += ["-m", oct(mode)[2:]]
        argv += [tmp_remote, path]
        try:
            self._checked(argv)
        finally:
            self._exec(["rm", "-f", tmp_remote])

    def _remove(self, path: str) -> None:
        self._checked(["rm", "-rf", path])

    def _rename(self, src: str, dst: str) -> None:
        self._checked(["mv", "-f", src, dst])

    def _makedirs(self, path: str, mode: Optional[int]) -> None:
        argv = ["install", "-d"]
        if mode is not None:
            argv += ["-m", oct(mode)[2:]]
        self._checked(argv + [path])

    def _chown(self, path: str, owner: str, group: Optional[str], recursive: bool) -> None:
        argv = ["chown"] + (["-R"] if recursive else []) + [f"{owner}:{group or owner}", path]
        self._checked(argv)

    def _checked(self, argv: Sequence[str]) -> None:
        cp = self._exec(argv)
        if cp.returncode != 0:
            raise CommandError(argv, cp.returncode, cp.stdout, cp.stderr)

    def close(self) -> None:
        self.client.close()

import os
import types

import pytest

from archsetup.execution.errors import CommandError
from archsetup.execution.runner import LocalConnection
from archsetup.execution.ssh_runner import SSHConnection
from archsetup.utils.execution import ExecutionContext

from conftest import FakeConnection


def test_local_run_captures_output():
    cp = LocalConnection().run(["echo", "hi"])
    assert cp.returncode == 0
    assert cp.stdout.strip() == "hi"


def test_local_missing_binary_is_rc_127():
    assert LocalConnection().run(["definitely-not-a-binary-xyz"]).returncode == 127


def test_check_raises_command_error():
    with pytest.raises(CommandError) as ei:
        LocalConnection().run(["false"], check=True)
    assert ei.value.returncode == 1


def test_local_file_ops(tmp_path):
    conn = LocalConnection()
    target = tmp_path / "a" / "b.txt"
    conn.makedirs(str(target.parent))
    conn.write_text(str(target), "x\n", mode=0o600)
    assert conn.read_text(str(target)) == "x\n"
    assert (os.stat(target).st_mode & 0o777) == 0o600
    conn.rename(str(target), str(tmp_path / "c.txt"))
    assert conn.read_text(str(target)) is None
    assert conn.remove(str(tmp_path / "a")) is True
    assert not (tmp_path / "a").exists()


def test_dry_run_skips_mutations_but_runs_probes(tmp_path):
    conn = LocalConnection(ExecutionContext(dry_run=True))
    f = tmp_path / "f"
    conn.write_text(str(f), "x")
    assert not f.exists()
    assert conn.run(["false"], check=True).returncode == 0
    assert conn.run(["false"], readonly=True).returncode == 1


def test_become_wraps_with_sudo():
    conn = FakeConnection(user="root")
    conn.run(["yay", "-S", "x"], become_user="alice")
    conn.run(["id"], become_user="root")
    assert conn.cmdlines() == ["sudo -u alice -H -- yay -S x", "id"]


# ----------------- Fakes for paramiko -----------------

class _Chan:
    def __init__(self, rc): self._rc = rc
    def recv_exit_status(self): return self._rc
    def shutdown_write(self): pass


class _Buf:
    def __init__(self, s="", rc=0):
        self._s = s
        self.channel = _Chan(rc)
    def read(self): return self._s.encode()


class _RemoteFile:
    def __init__(self, store, path): self.store, self.path, self.parts = store, path, []
    def write(self, data): self.parts.append(data)
    def __enter__(self): return self
    def __exit__(self, *a): self.store[self.path] = "".join(self.parts)


class FakeSFTP:
    def __init__(self, store): self.store = store
    def open(self, path, mode): return _RemoteFile(self.store, path)
    def close(self): pass


class FakeSSHClient:
    def __init__(self, responses=None):
        self.log = []
        self.uploads = {}
        self.responses = responses or {}
    def exec_command(self, cmd, timeout=None):
        self.log.append(cmd)
        out, err, rc = self.responses.get(cmd, ("", "", 0))
        stdin = types.SimpleNamespace(write=lambda *a: None, flush=lambda: None, channel=_Chan(0))
        return stdin, _Buf(out, rc), _Buf(err, rc)
    def open_sftp(self): return FakeSFTP(self.uploads)
    def close(self): self.log.append("close")


def test_ssh_commands_use_sudo_when_become():
    client = FakeSSHClient({"sudo -n pacman -Qi yay": ("", "error: package 'yay' was not found", 1)})
    conn = SSHConnection(client, name="desk", username="me")
    cp = conn.run(["pacman", "-Qi", "yay"], readonly=True)
    assert cp.returncode == 1
    assert client.log == ["sudo -n pacman -Qi yay"]
    assert conn.effective_user == "root"


def test_ssh_write_goes_through_sftp_then_install():
    client = FakeSSHClient()
    conn = SSHConnection(client, name="desk", username="me", become=False)
    conn.write_text("/etc/containers/registries.conf", "x\n", mode=0o644)
    (tmp,) = client.uploads
    assert client.uploads[tmp] == "x\n"
    assert f"install -m 644 {tmp} /etc/containers/registries.conf" in client.log
    assert client.log[-1] == f"rm -f {tmp}"


def test_ssh_close():
    client = FakeSSHClient()
    SSHConnection(client, name="desk", username="me").close()
    assert client.log == ["close"]

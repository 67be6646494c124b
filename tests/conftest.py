# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import posixpath
import subprocess
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from archsetup.config.loader import load_vars
from archsetup.engine.task import TaskContext
from archsetup.execution.base import Connection
from archsetup.host.facts import HostFacts
from archsetup.utils.execution import ExecutionContext

# ----------------- Fake connection -----------------


def _cp(argv, rc=0, out="", err=""):
    return subprocess.CompletedProcess(args=list(argv), returncode=rc, stdout=out, stderr=err)


def strip_become(argv: Sequence[str]) -> Tuple[Optional[str], List[str]]:
    argv = list(argv)
    if argv[:2] == ["sudo", "-u"] and "--" in argv:
        return argv[2], argv[argv.index("--") + 1:]
    return None, argv


class FakeConnection(Connection):
    """
    Records every command and keeps an in-memory filesystem.

    Responses are registered with ``respond(substring, rc, out, err)``; the
    most recent matching registration wins, everything else returns rc 0.
    """

    def __init__(self, *, user: str = "root", files: Optional[Dict[str, str]] = None,
                 dirs=(), ctx: Optional[ExecutionContext] = None, name: str = "fakehost"):
        super().__init__(ctx)
        self.name = name
        self.user = user
        self.files: Dict[str, str] = dict(files or {})
        self.dirs = set(dirs)
        self.modes: Dict[str, Optional[int]] = {}
        self.owners: Dict[str, str] = {}
        self.commands: List[List[str]] = []
        self.responses: List[Tuple[str, Callable]] = []
        self.closed = False

    @property
    def effective_user(self) -> str:
        return self.user

    # -- scripting --
    def respond(self, needle: str, rc: int = 0, out: str = "", err: str = "") -> None:
        self.responses.append((needle, lambda argv: _cp(argv, rc, out, err)))

    def handle(self, argv: List[str]) -> Optional[subprocess.CompletedProcess]:
        cmd = " ".join(argv)
        for needle, fn in reversed(self.responses):
            if needle in cmd:
                return fn(argv)
        return None

    def _exec(self, argv, *, input=None, env=None):
        argv = list(argv)
        self.commands.append(argv)
        return self.handle(argv) or _cp(argv)

    # -- inspection --
    def cmdlines(self) -> List[str]:
        return [" ".join(c) for c in self.commands]

    def ran(self, needle: str) -> List[str]:
        return [c for c in self.cmdlines() if needle in c]

    # -- filesystem --
    def _children(self, path: str) -> List[str]:
        prefix = path.rstrip("/") + "/"
        return [p for p in list(self.files) + list(self.dirs) if p.startswith(prefix)]

    def _exists(self, path):
        return path in self.files or path in self.dirs or bool(self._children(path))

    def _is_dir(self, path):
        return path in self.dirs or bool(self._children(path))

    def _read_text(self, path):
        return self.files.get(path)

    def _write_text(self, path, content, mode):
        self.files[path] = content
        self.modes[path] = mode

    def _remove(self, path):
        for p in self._children(path) + [path]:
            self.files.pop(p, None)
            self.dirs.discard(p)

    def _rename(self, src, dst):
        self.files[dst] = self.files.pop(src)
        if src in self.modes:
            self.modes[dst] = self.modes.pop(src)

    def _makedirs(self, path, mode):
        self.dirs.add(path)

    def _chown(self, path, owner, group, recursive):
        self.owners[path] = owner

    def close(self):
        self.closed = True


# ----------------- Simulated Arch host -----------------

OLD_MIRRORS = "# stock list\nServer = https://old.example/$repo/os/$arch\n"
RANKED_MIRRORS = "Server = https://fast.example/$repo/os/$arch\n"


class SimulatedHost(FakeConnection):
    """
    A FakeConnection that interprets pacman/systemctl/user/flatpak/... so
    running the whole play mutates (and then re-probes) a coherent state.
    """

    def __init__(self, *, user: str = "alice", root_fstype: str = "btrfs", **kw):
        home = f"/home/{user}"
        files = {
            "/etc/os-release": 'NAME="Arch Linux"\nID=arch\n',
            "/etc/pacman.d/mirrorlist": OLD_MIRRORS,
            "/etc/ssl/certs/ca-certificates.crt": "BUNDLE\n",
            f"{home}/.bashrc": "# bashrc\n",
        }
        files.update(kw.pop("files", {}))
        super().__init__(files=files, dirs={home}, **kw)
        self.login = user
        self.home = home
        self.root_fstype = root_fstype
        self.packages = {"base", "linux", "ca-certificates", "grub-btrfs", "timeshift"}
        self.pending_upgrades = True
        self.pkg_cache = {"/var/cache/pacman/pkg/old-1.0.pkg.tar.zst", "/var/cache/pacman/pkg/cur-2.0.pkg.tar.zst"}
        self.enabled: set = set()
        self.active: set = set()
        self.groups = {"wheel", user}
        self.memberships = {user: {user, "wheel"}}
        self.shells = {user: "/bin/bash"}
        self.remotes: set = set()
        self.apps: set = set()
        self.binaries: set = set()
        self.fisher = False
        self.network = {"defined": False, "active": False, "autostart": False}
        self.reflector_runs = 0

    def handle(self, argv):
        scripted = super().handle(argv)
        if scripted is not None:
            return scripted
        user, argv = strip_become(argv)
        return self.interpret(argv, user or self.user)

    def _expand(self, path: str) -> str:
        return self.home + path[1:] if path.startswith("~") else path

    def interpret(self, argv: List[str], user: str):
        prog, args = argv[0], argv[1:]
        handler = getattr(self, "_" + prog.replace("-", "_"), None)
        if handler is None:
            return _cp(argv)
        return handler(argv, args)

    # -- pacman --
    def _pacman(self, argv, args):
        flag = args[0]
        names = [a for a in args[1:] if not a.startswith("-")]
        if flag == "-Qi":
            return _cp(argv, 0 if names[0] in self.packages else 1)
        if flag == "-Qq":
            return _cp(argv, 0, "\n".join(sorted(self.packages)) + "\n")
        if flag == "-S":
            self.packages.update(names)
            if "ca-certificates" in names:
                self.files.setdefault("/etc/ssl/certs/ca-certificates.crt", "BUNDLE\n")
            return _cp(argv, 0, "installing\n")
        if flag == "-R":
            self.packages.difference_update(names)
            return _cp(argv)
        if flag in ("-Syu", "-Su"):
            if self.pending_upgrades:
                self.pending_upgrades = False
                return _cp(argv, 0, ":: Starting full system upgrade...\nupgrading linux\n")
            return _cp(argv, 0, ":: Starting full system upgrade...\n there is nothing to do\n")
        if flag == "-Syuw":
            return _cp(argv, 0, " there is nothing to do\n" if not self.pending_upgrades else "downloading\n")
        if flag == "-Sc":
            self.pkg_cache = {p for p in self.pkg_cache if "/old-" not in p}
            return _cp(argv)
        return _cp(argv)

    def _find(self, argv, args):
        return _cp(argv, 0, "\n".join(sorted(self.pkg_cache)) + "\n")

    def _findmnt(self, argv, args):
        return _cp(argv, 0, self.root_fstype + "\n")

    def _hostname(self, argv, args):
        return _cp(argv, 0, "simhost\n")

    def _logname(self, argv, args):
        return _cp(argv, 0, self.login + "\n")

    # -- systemd --
    def _systemctl(self, argv, args):
        unit = args[-1]
        if args[0] == "is-enabled":
            return _cp(argv, 0 if unit in self.enabled else 1)
        if args[0] == "is-active":
            return _cp(argv, 0 if unit in self.active else 3)
        if args[0] == "enable":
            self.enabled.add(unit)
            self.active.add(unit)
        return _cp(argv)

    # -- users --
    def _getent(self, argv, args):
        db, key = args
        if db == "group":
            return _cp(argv, 0 if key in self.groups else 2, f"{key}:x:1001:\n")
        shell = self.shells.get(key)
        if shell is None:
            return _cp(argv, 2)
        return _cp(argv, 0, f"{key}:x:1000:1000::{self.home}:{shell}\n")

    def _groupadd(self, argv, args):
        self.groups.add(args[0])
        return _cp(argv)

    def _id(self, argv, args):
        return _cp(argv, 0, " ".join(sorted(self.memberships.get(args[-1], set()))) + "\n")

    def _usermod(self, argv, args):
        who = args[-1]
        if args[0] == "-aG":
            self.memberships.setdefault(who, set()).update(args[1].split(","))
        elif args[0] == "-s":
            self.shells[who] = args[1]
        return _cp(argv)

    # -- flatpak --
    def _flatpak(self, argv, args):
        if args[0] == "remotes":
            return _cp(argv, 0, "\n".join(sorted(self.remotes)) + "\n")
        if args[0] == "remote-add":
            self.remotes.add(args[-2])
            return _cp(argv)
        if args[0] == "info":
            return _cp(argv, 0 if args[-1] in self.apps else 1)
        if args[0] == "install":
            self.apps.add(args[-1])
        return _cp(argv)

    # -- misc tools --
    def _yay(self, argv, args):
        self.packages.add(args[1])
        return _cp(argv)

    def _git(self, argv, args):
        if args[0] == "clone":
            dest = args[2]
            self.files[posixpath.join(dest, ".git", "HEAD")] = "ref: refs/heads/main\n"
            if "kickstart" in args[1]:
                self.files[posixpath.join(dest, "init.lua")] = "-- kickstart\n"
        return _cp(argv, 0, "Already up to date.\n")

    def _reflector(self, argv, args):
        self.reflector_runs += 1
        save = args[args.index("--save") + 1]
        self.files[save] = f"# Retrieved run {self.reflector_runs}\n" + RANKED_MIRRORS
        return _cp(argv)

    def _update_ca_trust(self, argv, args):
        self.files.setdefault("/etc/ssl/certs/ca-certificates.crt", "BUNDLE\n")
        return _cp(argv)

    def _virsh(self, argv, args):
        sub = args[0]
        if sub == "net-info":
            if not self.network["defined"]:
                return _cp(argv, 1, "", "error: network not found\n")
            yes = lambda k: "yes" if self.network[k] else "no"
            return _cp(argv, 0, f"Name:           default\nActive:         {yes('active')}\n"
                                f"Autostart:      {yes('autostart')}\n")
        if sub == "net-define":
            self.network["defined"] = True
        elif sub == "net-start":
            self.network["active"] = True
        elif sub == "net-autostart":
            self.network["autostart"] = True
        return _cp(argv)

    def _fish(self, argv, args):
        if "type -q fisher" in args[-1]:
            return _cp(argv, 0 if self.fisher else 1)
        return _cp(argv)

    def _bash(self, argv, args):
        script = args[-1]
        if script.startswith("command -v "):
            name = script.split()[-1]
            return _cp(argv, 0 if name in self.binaries else 1)
        if "makepkg" in script:
            self.packages.add("yay")
            self.binaries.add("yay")
        elif "mise.run" in script:
            self.files[f"{self.home}/.local/bin/mise"] = "#!mise\n"
            self.binaries.add("mise")
        elif "mise completion fish" in script:
            self.files[self._expand("~/.config/fish/completions/mise.fish")] = "complete -c mise\n"
        elif "fisher install" in script:
            self.fisher = True
        return _cp(argv)


# ----------------- Fixtures -----------------

def make_facts(**kw) -> HostFacts:
    data = dict(
        hostname="fakehost",
        distribution="arch",
        distribution_like=(),
        current_user="alice",
        user_home="/home/alice",
        root_fstype="btrfs",
        packages=frozenset(),
    )
    data.update(kw)
    return HostFacts(**data)


@pytest.fixture
def config():
    return load_vars()


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def task_ctx(fake_conn, config):
    return TaskContext(conn=fake_conn, facts=make_facts(), config=config)


class Capture:
    def __init__(self): self.events = []
    def notify(self, event): self.events.append(event)
    def of(self, cls): return [e for e in self.events if isinstance(e, cls)]

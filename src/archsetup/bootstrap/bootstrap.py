# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/bootstrap/bootstrap.py

"""
One-shot preparation of a machine so ``archsetup run`` can be used by the
invoking (non-root) user.

Steps run in order and the first failure stops the bootstrap. Generated
files are only written when absent, so a second run leaves user edits alone.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Mapping, Optional, Tuple

from ..actions import files, git
from ..engine.task import PreconditionFailed
from ..execution.base import Connection
from ..utils.template_renderer import TemplateRenderer
from .models import PATH_LINE, BootstrapOptions, BootstrapPlan

log = logging.getLogger("archsetup")

NOT_ROOT_MESSAGE = "This script must be run as root"


def invoking_user(conn: Connection, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """logname, then $SUDO_USER, then $USER."""
    env = os.environ if environ is None else environ
    cp = conn.run(["logname"], readonly=True)
    name = (cp.stdout or "").strip() if cp.returncode == 0 else ""
    return name or env.get("SUDO_USER") or env.get("USER")


class Bootstrapper:
    def __init__(
        self,
        conn: Connection,
        options: BootstrapOptions,
        *,
        renderer: Optional[TemplateRenderer] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.conn = conn
        self.options = options
        self.renderer = renderer or TemplateRenderer()
        self.environ = environ
        self.changed: List[str] = []

    # ------------------------------------------------------------------

    def plan(self) -> BootstrapPlan:
        if self.conn.effective_user != "root":
            raise PreconditionFailed(NOT_ROOT_MESSAGE)

        user = self.options.user or invoking_user(self.conn, self.environ)
        if not user or user == "root":
            raise PreconditionFailed("Could not determine the invoking non-root user (run through sudo)")

        home = self.options.home or f"/home/{user}"
        return BootstrapPlan(
            user=user,
            home=home,
            repo_dir=self.options.repo_dir or f"{home}/archsetup",
            venv_dir=self.options.venv_dir or f"{home}/.venvs/archsetup",
        )

    def run(self) -> BootstrapPlan:
        plan = self.plan()
        log.info("==> Setting up environment for user: %s", plan.user)

        steps: List[Tuple[str, Callable[[BootstrapPlan], bool]]] = [
            ("Install uv package manager", self.install_uv),
            ("Add ~/.local/bin to PATH in .bashrc", self.ensure_path_line),
            ("Create virtual environment", self.create_venv),
            ("Clone or update the repository", self.sync_repo),
            ("Install archsetup into the environment", self.install_engine),
            ("Write wrapper scripts", self.write_scripts),
            ("Write settings file", self.write_settings),
            ("Write local inventory", self.write_inventory),
        ]
        for title, step in steps:
            log.info("==> %s", title)
            if step(plan):
                self.changed.append(title)

        log.info("==> Bootstrap completed successfully!")
        log.info("To run the play, execute: ~/%s", os.path.basename(plan.run_script))
        log.info("NOTE: You may need to log out and back in for PATH changes to take effect.")
        return plan

    # ------------------------- steps -------------------------

    def install_uv(self, plan: BootstrapPlan) -> bool:
        if self.conn.exists(plan.uv):
            log.info("uv already installed at %s", plan.uv)
            return False
        self.conn.shell(
            f"curl -LsSf {self.options.uv_installer_url} | sh",
            become_user=plan.user,
            check=True,
        )
        return True

    def ensure_path_line(self, plan: BootstrapPlan) -> bool:
        current = self.conn.read_text(plan.bashrc)
        if current is not None and ".local/bin" in current:
            return False
        text = current or ""
        if text and not text.endswith("\n"):
            text += "\n"
        self.conn.write_text(plan.bashrc, text + PATH_LINE + "\n", owner=plan.user, group=plan.user)
        log.info("Added ~/.local/bin to PATH in .bashrc")
        return True

    def create_venv(self, plan: BootstrapPlan) -> bool:
        files.directory(self.conn, os.path.dirname(plan.venv_dir), owner=plan.user)
        if self.conn.exists(f"{plan.venv_dir}/bin/python"):
            return False
        self.conn.run([plan.uv, "venv", plan.venv_dir], become_user=plan.user, check=True)
        return True

    def sync_repo(self, plan: BootstrapPlan) -> bool:
        return git.clone_or_pull(self.conn, self.options.repo_url, plan.repo_dir, user=plan.user)

    def install_engine(self, plan: BootstrapPlan) -> bool:
        target = plan.repo_dir
        if self.options.extras:
            target = f"{target}[{','.join(self.options.extras)}]"
        self.conn.run(
            [plan.uv, "pip", "install", "--python", f"{plan.venv_dir}/bin/python", "-e", target],
            become_user=plan.user,
            check=True,
        )
        return True

    def _render_if_absent(self, plan: BootstrapPlan, path: str, template: str, mode: int) -> bool:
        content = self.renderer.render(
            template,
            {"venv_dir": plan.venv_dir, "repo_dir": plan.repo_dir, "log_dir": self.options.log_dir},
        )
        written = files.copy_if_absent(self.conn, path, content, mode=mode, owner=plan.user)
        if written:
            log.info("Created %s", path)
        else:
            log.info("%s already exists, leaving it alone", path)
        return written

    def write_scripts(self, plan: BootstrapPlan) -> bool:
        run = self._render_if_absent(plan, plan.run_script, "run-archsetup.sh.j2", 0o755)
        shell = self._render_if_absent(plan, plan.shell_script, "archsetup-shell.sh.j2", 0o755)
        return run or shell

    def write_settings(self, plan: BootstrapPlan) -> bool:
        return self._render_if_absent(plan, plan.settings_file, "archsetup.yaml.j2", 0o644)

    def write_inventory(self, plan: BootstrapPlan) -> bool:
        files.directory(self.conn, plan.inventory_dir, owner=plan.user)
        return self._render_if_absent(plan, plan.inventory_file, "inventory.ini.j2", 0o644)

# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/bootstrap/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

UV_INSTALLER_URL = "https://astral.sh/uv/install.sh"
PATH_LINE = 'export PATH="$HOME/.local/bin:$PATH"'


@dataclass
class BootstrapOptions:
    """
    Global options for the bootstrapper. Paths default to locations under
    the invoking user's home. The repository URL is required.
    """
    repo_url: str                              # git URL or path of an archsetup checkout
    repo_dir: Optional[str] = None             # default: <home>/archsetup
    venv_dir: Optional[str] = None             # default: <home>/.venvs/archsetup
    user: Optional[str] = None                 # default: logname / SUDO_USER / USER
    home: Optional[str] = None                 # default: /home/<user>
    extras: List[str] = field(default_factory=lambda: ["remote"])
    uv_installer_url: str = UV_INSTALLER_URL
    log_dir: str = "/tmp"


@dataclass
class BootstrapPlan:
    """Resolved paths for one bootstrap run."""
    user: str
    home: str
    repo_dir: str
    venv_dir: str

    @property
    def uv(self) -> str:
        return f"{self.home}/.local/bin/uv"

    @property
    def bashrc(self) -> str:
        return f"{self.home}/.bashrc"

    @property
    def run_script(self) -> str:
        return f"{self.home}/run-archsetup.sh"

    @property
    def shell_script(self) -> str:
        return f"{self.home}/archsetup-shell.sh"

    @property
    def settings_file(self) -> str:
        return f"{self.repo_dir}/archsetup.yaml"

    @property
    def inventory_dir(self) -> str:
        return f"{self.repo_dir}/inventories"

    @property
    def inventory_file(self) -> str:
        return f"{self.inventory_dir}/local"

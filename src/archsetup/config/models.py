# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/config/models.py

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class PackageSets(BaseModel):
    system: List[str] = Field(default_factory=list)
    dev: List[str] = Field(default_factory=list)
    util: List[str] = Field(default_factory=list)
    aur: List[str] = Field(default_factory=list)
    aur_snapper: List[str] = Field(default_factory=list)
    aur_game_devices: List[str] = Field(default_factory=list)
    aur_chrome_beta: List[str] = Field(default_factory=list)
    flatpak: List[str] = Field(default_factory=list)
    flatpak_apps: List[str] = Field(default_factory=list)
    lua_dependencies: List[str] = Field(default_factory=list)
    docker: List[str] = Field(default_factory=list)
    podman: List[str] = Field(default_factory=list)
    kvm: List[str] = Field(default_factory=list)
    pyenv: List[str] = Field(default_factory=list)
    neovim: List[str] = Field(default_factory=list)


class Urls(BaseModel):
    cert_probe: str = "https://www.archlinux.org"
    flathub_repo: str = "https://flathub.org/repo/flathub.flatpakrepo"
    mise_installer: str = "https://mise.run"
    yay_repo: str = "https://aur.archlinux.org/yay.git"
    kickstart_repo: str = "https://github.com/nvim-lua/kickstart.nvim.git"
    fisher_script: str = "https://raw.githubusercontent.com/jorgebucaran/fisher/main/functions/fisher.fish"


class Paths(BaseModel):
    ca_bundle: str = "/etc/ssl/certs/ca-certificates.crt"
    mirrorlist: str = "/etc/pacman.d/mirrorlist"
    containers_registries_conf: str = "/etc/containers/registries.conf"
    yay_build_dir: str = "/tmp/yay-build"
    sudoers_dir: str = "/etc/sudoers.d"
    libvirt_default_network: str = "/etc/libvirt/qemu/networks/default.xml"


class MirrorOptions(BaseModel):
    """reflector arguments"""
    protocol: str = "https"
    latest: int = 20
    fastest: int = 10
    score: int = 90
    sort: str = "rate"
    country: str = "United States"
    age: int = 12


class PlaybookConfig(BaseModel):
    """Everything the sections read: the playbook vars."""

    current_user: Optional[str] = None      # default: invoking user from facts
    user_home: Optional[str] = None         # default: /home/<current_user>
    log_dir: str = "/tmp"
    packages: PackageSets = PackageSets()
    urls: Urls = Urls()
    paths: Paths = Paths()
    mirrors: MirrorOptions = MirrorOptions()
    container_registries: List[str] = Field(default_factory=lambda: ["docker.io", "quay.io"])
    virt_services: List[str] = Field(default_factory=lambda: ["libvirtd.service", "virtlogd.service"])


class RunSettings(BaseModel):
    """Static settings file (archsetup.yaml) written by the bootstrap."""

    inventory: str = "./inventories/local"
    vars_file: Optional[str] = None
    output: Literal["console", "json"] = "console"
    deprecation_warnings: bool = False
    host_key_checking: bool = False
    log_dir: Optional[str] = None


class InventoryHost(BaseModel):
    name: str
    group: str = "ungrouped"
    connection: Literal["local", "ssh"] = "local"
    address: Optional[str] = None
    user: Optional[str] = None
    port: int = 22
    key: Optional[str] = None
    become: bool = True

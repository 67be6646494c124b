# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/config/loader.py

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Type, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from .models import InventoryHost, PlaybookConfig, RunSettings

log = logging.getLogger("archsetup")

DATA_DIR = Path(__file__).parent / "data"
WORKSPACE_ROOT = Path(__file__).resolve().parents[3]
SETTINGS_FILENAME = "archsetup.yaml"

# flat var names from Ansible-era vars files -> nested location
LEGACY_KEYS: Dict[str, Tuple[str, str]] = {
    "system_packages": ("packages", "system"),
    "dev_packages": ("packages", "dev"),
    "util_packages": ("packages", "util"),
    "aur_packages": ("packages", "aur"),
    "flatpak_packages": ("packages", "flatpak"),
    "flatpak_apps": ("packages", "flatpak_apps"),
    "lua_dependencies": ("packages", "lua_dependencies"),
    "docker_packages": ("packages", "docker"),
    "podman_packages": ("packages", "podman"),
    "kvm_packages": ("packages", "kvm"),
    "containers_registries_conf": ("paths", "containers_registries_conf"),
    "mise_installer": ("urls", "mise_installer"),
    "flathub_repo": ("urls", "flathub_repo"),
}


class ConfigError(ValueError):
    pass


M = TypeVar("M", bound=BaseModel)


def _validate(model: Type[M], data: dict, source: object) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{source}: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    try:
        data = yaml.safe_load(expanded) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def _map_legacy_keys(data: dict, *, warn: bool) -> dict:
    for old, (section, key) in LEGACY_KEYS.items():
        if old not in data:
            continue
        value = data.pop(old)
        data.setdefault(section, {})[key] = value
        if warn:
            log.warning(
                "[DEPRECATION WARNING] var '%s' is deprecated, use '%s.%s' instead",
                old, section, key,
            )
    return data


def find_settings_file(cwd: Optional[Path] = None) -> Optional[Path]:
    """
    Locate archsetup.yaml using this priority:

    1. ARCHSETUP_CONFIG environment variable (explicit override)
    2. archsetup.yaml in the current directory
    3. archsetup.yaml at the repository root (editable installs)
    """
    env = os.environ.get("ARCHSETUP_CONFIG")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("ARCHSETUP_CONFIG=%s does not exist - using defaults", env)
        return None

    for base in (cwd or Path.cwd(), WORKSPACE_ROOT):
        p = base / SETTINGS_FILENAME
        if p.is_file():
            return p

    return None


def load_settings(path: str | Path | None = None) -> Tuple[RunSettings, Optional[Path]]:
    """
    Load the settings file. Returns the settings and the directory relative
    paths inside it resolve against (None when running on defaults).
    """
    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"settings file not found: {path}")
    else:
        path = find_settings_file()

    if path is None:
        log.debug("No %s found - proceeding with default settings", SETTINGS_FILENAME)
        return RunSettings(), None

    log.debug("Loading settings from %s", path)
    return _validate(RunSettings, _load_yaml(path), path), path.parent


def load_vars(
    path: str | Path | None = None,
    *,
    deprecation_warnings: bool = False,
) -> PlaybookConfig:
    """
    Load the playbook vars: shipped defaults (config/data/vars.yaml)
    deep-merged with an optional user vars file.

    Flat names from Ansible-era vars files (``aur_packages``, ``flatpak_apps``,
    ...) are accepted and mapped onto the nested layout.
    """
    data = _load_yaml(DATA_DIR / "vars.yaml")

    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"vars file not found: {path}")
        log.debug("Merging vars from %s", path)
        override = _map_legacy_keys(_load_yaml(path), warn=deprecation_warnings)
        _deep_merge(data, override)

    return _validate(PlaybookConfig, data, path or DATA_DIR / "vars.yaml")


def read_inventory(inv_path: Path) -> List[InventoryHost]:
    """
    Parse an INI-like inventory:

        [local]
        localhost connection=local

        [workstations]
        desk connection=ssh address=10.0.0.5 user=me key=~/.ssh/id_ed25519

    ``ansible_``-prefixed keys are accepted. A missing file means a single
    implicit local host.
    """
    if not inv_path.exists():
        log.debug("no inventory at %s, using implicit localhost", inv_path)
        return [InventoryHost(name="localhost", group="local")]

    hosts: List[InventoryHost] = []
    group = "ungrouped"

    for raw in inv_path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith(";"):
            continue
        if line.startswith("[") and line.endswith("]"):
            group = line[1:-1].strip()
            continue

        parts = line.split()
        fields: Dict[str, str] = {}
        for p in parts[1:]:
            if "=" not in p:
                raise ConfigError(f"{inv_path}: cannot parse host variable {p!r} in line {raw!r}")
            k, v = p.split("=", 1)
            if k.startswith("ansible_"):
                k = k[len("ansible_"):]
            if k == "host":
                k = "address"
            fields[k] = v

        if "key" in fields:
            fields["key"] = os.path.expanduser(fields["key"])

        hosts.append(
            _validate(InventoryHost, {"name": parts[0], "group": group, **fields}, f"{inv_path}: host {parts[0]}")
        )

    return hosts

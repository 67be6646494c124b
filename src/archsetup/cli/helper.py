# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/cli/helper.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..config.models import InventoryHost, RunSettings


def parse_tags(tags: Optional[str]) -> List[str]:
    """
    Emulate Ansible tags: comma-separated, empty means every section.
    """
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


def resolve_path(value: str, base_dir: Optional[Path]) -> Path:
    """Relative paths in the settings file are relative to that file."""
    p = Path(value).expanduser()
    if p.is_absolute() or base_dir is None:
        return p
    return base_dir / p


def inventory_path(settings: RunSettings, base_dir: Optional[Path], override: Optional[Path] = None) -> Path:
    if override is not None:
        return override
    return resolve_path(settings.inventory, base_dir)


def limit_hosts(hosts: List[InventoryHost], limit: Optional[str]) -> List[InventoryHost]:
    """Keep hosts whose name or group is listed in *limit* (comma-separated)."""
    if not limit:
        return hosts
    wanted = {x.strip() for x in limit.split(",") if x.strip()}
    return [h for h in hosts if h.name in wanted or h.group in wanted]

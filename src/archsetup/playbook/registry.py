# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/registry.py

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Tuple

from ..engine.task import Section
from .sections import aur, containers, finalize, flatpak, kvm, languages, packages, shell, snapper, system

ALL_TAG = "all"

# Execution order of the play.
SECTION_BUILDERS: List[Callable[[], Section]] = [
    system.section,
    snapper.section,
    packages.bluetooth,
    packages.packages,
    aur.section,
    flatpak.section,
    containers.docker,
    containers.podman,
    languages.pyenv,
    languages.mise,
    shell.neovim,
    shell.fish,
    shell.fisher,
    languages.lua,
    kvm.section,
    finalize.section,
]


def build_sections() -> List[Section]:
    return [build() for build in SECTION_BUILDERS]


def known_tags(sections: Optional[Iterable[Section]] = None) -> set[str]:
    tags = {ALL_TAG}
    for s in sections if sections is not None else build_sections():
        tags.add(s.name)
        tags.update(s.tags)
    return tags


def select_sections(tags: Optional[Iterable[str]] = None) -> List[Section]:
    """
    Sections whose name or tags intersect *tags*, in play order.
    No tags (or ``all``) selects everything; unknown tags raise ValueError.
    """
    sections = build_sections()
    wanted = {t.strip() for t in (tags or []) if t and t.strip()}
    unknown = wanted - known_tags(sections)
    if unknown:
        raise ValueError(f"Unknown tag(s): {', '.join(sorted(unknown))}")
    if not wanted or ALL_TAG in wanted:
        return sections
    return [s for s in sections if wanted & ({s.name} | set(s.tags))]


def list_sections() -> List[Tuple[str, List[str], str]]:
    return [(s.name, list(s.tags), s.description) for s in build_sections()]

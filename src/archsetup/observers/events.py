# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/observers/events.py

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single run
    host: str         # inventory host name

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(host: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "host": host,
    }


# ---------------------------------------------------------------------
# Facts
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class FactsGathered(BaseEvent):
    distribution: str
    user: str
    root_fstype: str
    package_count: int


# ---------------------------------------------------------------------
# Sections & tasks
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class SectionStarted(BaseEvent):
    name: str
    tags: List[str]

@dataclass(frozen=True)
class TaskStarted(BaseEvent):
    name: str

@dataclass(frozen=True)
class TaskSkipped(BaseEvent):
    name: str

@dataclass(frozen=True)
class TaskFinished(BaseEvent):
    name: str
    changed: bool
    duration_ms: int

@dataclass(frozen=True)
class TaskFailed(BaseEvent):
    name: str
    error: str
    ignored: bool = False


# ---------------------------------------------------------------------
# Block / rescue
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BlockRescued(BaseEvent):
    name: str
    failed_task: str
    error: str


# ---------------------------------------------------------------------
# Run summary
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RunAborted(BaseEvent):
    task: str
    error: str

@dataclass(frozen=True)
class RunSummary(BaseEvent):
    ok: int
    changed: int
    skipped: int
    failed: int
    rescued: int

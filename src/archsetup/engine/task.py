# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/engine/task.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from ..config.models import PlaybookConfig
from ..execution.base import Connection
from ..host.facts import HostFacts


class Status(str, Enum):
    OK = "ok"
    CHANGED = "changed"
    SKIPPED = "skipped"
    FAILED = "failed"
    RESCUED = "rescued"


class PreconditionFailed(RuntimeError):
    """A required host condition does not hold; the message is user-facing."""


class TaskFailed(RuntimeError):
    def __init__(self, task: str, cause: BaseException):
        self.task = task
        self.cause = cause
        super().__init__(f"{task}: {cause}")


@dataclass
class TaskContext:
    conn: Connection
    facts: HostFacts
    config: PlaybookConfig
    registered: Dict[str, "TaskResult"] = field(default_factory=dict)

    @property
    def user(self) -> str:
        return self.config.current_user or self.facts.current_user

    @property
    def home(self) -> str:
        if self.config.user_home:
            return self.config.user_home
        if self.config.current_user:
            return f"/home/{self.config.current_user}"
        return self.facts.user_home

    @property
    def dry_run(self) -> bool:
        return self.conn.dry_run

    def failed(self, key: str) -> bool:
        """True when the task registered under *key* ran and failed."""
        res = self.registered.get(key)
        return res is not None and res.status == Status.FAILED

    def ran(self, key: str) -> bool:
        res = self.registered.get(key)
        return res is not None and res.status != Status.SKIPPED

    def changed(self, key: str) -> bool:
        res = self.registered.get(key)
        return res is not None and res.status == Status.CHANGED


Guard = Callable[[TaskContext], bool]
Action = Callable[[TaskContext], bool]   # returns "changed"


@dataclass
class Task:
    name: str
    action: Action
    when: Optional[Guard] = None
    register: Optional[str] = None
    ignore_errors: bool = False


@dataclass
class Block:
    """
    Ordered group of tasks. When a member fails and ``rescue`` is set, the
    rescue tasks run instead of aborting; otherwise the failure propagates.
    """
    name: str
    tasks: List["Item"]
    when: Optional[Guard] = None
    rescue: List[Task] = field(default_factory=list)


Item = Union[Task, Block]


@dataclass
class Section:
    name: str
    tags: List[str]
    items: List[Item]
    description: str = ""


@dataclass
class TaskResult:
    name: str
    status: Status
    error: Optional[str] = None
    duration_ms: int = 0

    @property
    def changed(self) -> bool:
        return self.status == Status.CHANGED

    @property
    def failed(self) -> bool:
        return self.status == Status.FAILED

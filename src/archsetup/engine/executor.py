# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/engine/executor.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..observers.dispatcher import EventBus
from ..observers.events import (
    BlockRescued,
    RunAborted,
    RunSummary,
    SectionStarted,
    TaskFailed as TaskFailedEvent,
    TaskFinished,
    TaskSkipped,
    TaskStarted,
    new_ctx,
)
from .task import Block, Item, Section, Status, Task, TaskContext, TaskFailed, TaskResult

log = logging.getLogger("archsetup")


@dataclass
class RunReport:
    host: str
    results: List[TaskResult] = field(default_factory=list)
    aborted: bool = False
    failed_task: Optional[str] = None
    error: Optional[str] = None

    def add(self, result: TaskResult) -> None:
        self.results.append(result)

    def count(self, status: Status) -> int:
        return sum(1 for r in self.results if r.status == status)

    def get(self, name: str) -> Optional[TaskResult]:
        """Last result recorded under *name*."""
        for r in reversed(self.results):
            if r.name == name:
                return r
        return None

    def names(self, status: Optional[Status] = None) -> List[str]:
        return [r.name for r in self.results if status is None or r.status == status]

    @property
    def changed(self) -> int:
        return self.count(Status.CHANGED)

    def summary(self) -> str:
        return (
            f"ok={self.count(Status.OK)} changed={self.count(Status.CHANGED)} "
            f"skipped={self.count(Status.SKIPPED)} failed={self.count(Status.FAILED)} "
            f"rescued={self.count(Status.RESCUED)}"
        )


class PlayExecutor:
    """
    Runs sections strictly in declaration order.

    - guard false      -> skipped, no side effect
    - action returns   -> changed / ok
    - action raises    -> failed; ignored when ignore_errors, else TaskFailed
    - TaskFailed in a block with rescue -> rescue runs, run continues
    - TaskFailed anywhere else          -> remaining run aborted
    """

    def __init__(self, ctx: TaskContext, bus: Optional[EventBus] = None, run_id: Optional[str] = None):
        self.ctx = ctx
        self.bus = bus or EventBus()
        self.run_id = new_ctx(ctx.conn.name, run_id)["run_id"]

    def _ev(self) -> dict:
        return new_ctx(self.ctx.conn.name, self.run_id)

    # ------------------------------------------------------------------

    def run(self, sections: Sequence[Section]) -> RunReport:
        report = RunReport(host=self.ctx.conn.name)
        try:
            for section in sections:
                log.info("SECTION [%s]", section.name)
                self.bus.emit(SectionStarted(name=section.name, tags=list(section.tags), **self._ev()))
                for item in section.items:
                    self._run_item(item, report)
        except TaskFailed as e:
            report.aborted = True
            report.failed_task = e.task
            report.error = str(e.cause)
            log.error("Run aborted at '%s': %s", e.task, e.cause)
            self.bus.emit(RunAborted(task=e.task, error=str(e.cause), **self._ev()))
        finally:
            self.bus.emit(
                RunSummary(
                    ok=report.count(Status.OK),
                    changed=report.count(Status.CHANGED),
                    skipped=report.count(Status.SKIPPED),
                    failed=report.count(Status.FAILED),
                    rescued=report.count(Status.RESCUED),
                    **self._ev(),
                )
            )
        return report

    def _run_item(self, item: Item, report: RunReport) -> None:
        if isinstance(item, Block):
            self._run_block(item, report)
        else:
            self._run_task(item, report)

    def _guard(self, name: str, when) -> bool:
        if when is None:
            return True
        try:
            return bool(when(self.ctx))
        except Exception as e:
            raise TaskFailed(name, e) from e

    def _skip(self, name: str, report: RunReport, register: Optional[str] = None) -> None:
        log.debug("skipping: %s", name)
        result = TaskResult(name=name, status=Status.SKIPPED)
        report.add(result)
        if register:
            self.ctx.registered[register] = result
        self.bus.emit(TaskSkipped(name=name, **self._ev()))

    def _run_task(self, task: Task, report: RunReport) -> TaskResult:
        if not self._guard(task.name, task.when):
            self._skip(task.name, report, task.register)
            return report.results[-1]

        log.info("TASK [%s]", task.name)
        self.bus.emit(TaskStarted(name=task.name, **self._ev()))
        t0 = time.time()
        try:
            changed = bool(task.action(self.ctx))
        except Exception as e:
            duration_ms = int((time.time() - t0) * 1000)
            result = TaskResult(name=task.name, status=Status.FAILED, error=str(e), duration_ms=duration_ms)
            report.add(result)
            if task.register:
                self.ctx.registered[task.register] = result
            self.bus.emit(TaskFailedEvent(name=task.name, error=str(e), ignored=task.ignore_errors, **self._ev()))
            if task.ignore_errors:
                log.warning("failed (ignored): %s: %s", task.name, e)
                return result
            raise TaskFailed(task.name, e) from e

        duration_ms = int((time.time() - t0) * 1000)
        result = TaskResult(
            name=task.name,
            status=Status.CHANGED if changed else Status.OK,
            duration_ms=duration_ms,
        )
        report.add(result)
        if task.register:
            self.ctx.registered[task.register] = result
        self.bus.emit(TaskFinished(name=task.name, changed=changed, duration_ms=duration_ms, **self._ev()))
        return result

    def _run_block(self, block: Block, report: RunReport) -> None:
        if not self._guard(block.name, block.when):
            self._skip(block.name, report)
            return

        try:
            for item in block.tasks:
                self._run_item(item, report)
        except TaskFailed as e:
            if not block.rescue:
                raise
            log.warning("Block '%s' failed at '%s': %s - running rescue", block.name, e.task, e.cause)
            self.bus.emit(BlockRescued(name=block.name, failed_task=e.task, error=str(e.cause), **self._ev()))
            for task in block.rescue:
                self._run_task(task, report)
            report.add(TaskResult(name=block.name, status=Status.RESCUED, error=str(e.cause)))


def run_play(
    sections: Sequence[Section],
    ctx: TaskContext,
    bus: Optional[EventBus] = None,
    run_id: Optional[str] = None,
) -> RunReport:
    return PlayExecutor(ctx, bus=bus, run_id=run_id).run(sections)

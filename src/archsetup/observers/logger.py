# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/observers/logger.py
from __future__ import annotations

import logging

from .events import BaseEvent, BlockRescued, RunAborted, TaskFailed


class LoggerObserver:
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in d.items() if k not in ("ts",))

        if isinstance(event, (BlockRescued, RunAborted)) or (
            isinstance(event, TaskFailed) and not event.ignored
        ):
            self.logger.warning("[EVENT] %s: %s", etype, msg)
        else:
            self.logger.debug("[EVENT] %s: %s", etype, msg)

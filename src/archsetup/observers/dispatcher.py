# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/observers/dispatcher.py
from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from .events import BaseEvent

log = logging.getLogger("archsetup")


class Observer(Protocol):
    def notify(self, event: BaseEvent) -> None: ...


class EventBus:
    """Fans run events out to console, log and JSON observers."""

    def __init__(self, observers: Optional[List[Observer]] = None):
        self._observers = list(observers or [])

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception:
                # observers must not break a run
                log.debug("observer %r failed on %s", ob, type(event).__name__, exc_info=True)

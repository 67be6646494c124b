# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/observers/jsonfile.py
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import IO, Optional

from .dispatcher import Observer
from .events import BaseEvent


class JsonFileObserver(Observer):
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, event: BaseEvent) -> None:
        with self.path.open("a") as f:
            json.dump({"type": event.__class__.__name__, **event.dict()}, f)
            f.write("\n")


class JsonStreamObserver(Observer):
    """JSON lines on a stream (stdout by default) for `output: json`."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream

    def notify(self, event: BaseEvent) -> None:
        out = self.stream or sys.stdout
        out.write(json.dumps({"type": event.__class__.__name__, **event.dict()}) + "\n")
        out.flush()

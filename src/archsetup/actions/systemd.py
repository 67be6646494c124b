# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from ..execution.base import Connection
from ..host import probes

log = logging.getLogger("archsetup")


def enabled_and_started(conn: Connection, unit: str) -> bool:
    if probes.service_enabled(conn, unit) and probes.service_active(conn, unit):
        return False
    log.info("systemd: enable --now %s", unit)
    conn.run(["systemctl", "enable", "--now", unit], check=True)
    return True

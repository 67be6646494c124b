# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/playbook/certificates.py

"""
CA trust refresh with a one-shot repair path.

    primary-attempt  -> update-ca-trust, then an HTTPS probe
    fallback-attempt -> only when the probe failed: download upgrades,
                        drop the bundle, upgrade, reinstall ca-certificates
                        if the bundle is gone, refresh trust again
    succeeded        -> the block finished
    logged-failure   -> something in the block failed; the rescue logs it
                        and the play moves on
"""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

from ..actions import files, pacman
from ..actions.shell import command, debug
from ..engine.executor import RunReport
from ..engine.task import Block, Status, Task, TaskContext
from ..execution.runner import LocalConnection
from ..host import probes

log = logging.getLogger("archsetup")

BLOCK_NAME = "Update SSL certificates"
FALLBACK_NAME = "Apply certificate fix if initial update failed"
PROBE_NAME = "Test certificate by downloading a test file"
RESCUE_MESSAGE = "Certificate update failed, continuing with caution"

PRIMARY = "primary-attempt"
FALLBACK = "fallback-attempt"
SUCCEEDED = "succeeded"
LOGGED_FAILURE = "logged-failure"

PROBE_TIMEOUT = 15


def probe_https(ctx: TaskContext) -> bool:
    """
    Fetch the probe URL with certificate validation against the host's own
    trust store. Raises when the TLS handshake or request fails.
    """
    url = ctx.config.urls.cert_probe
    if isinstance(ctx.conn, LocalConnection):
        resp = requests.head(
            url,
            timeout=PROBE_TIMEOUT,
            verify=ctx.config.paths.ca_bundle,
            allow_redirects=True,
        )
        resp.raise_for_status()
        log.debug("certificate probe %s -> %s", url, resp.status_code)
    else:
        ctx.conn.run(
            ["curl", "-fsSI", "--max-time", str(PROBE_TIMEOUT), url],
            readonly=True,
            check=True,
        )
    return False


def _update_trust(ctx: TaskContext) -> bool:
    """update-ca-trust always rewrites the bundle; changed means different content."""
    bundle = ctx.config.paths.ca_bundle
    before = ctx.conn.read_text(bundle)
    command(ctx.conn, ["update-ca-trust", "extract"])
    return ctx.conn.read_text(bundle) != before


def certificate_block() -> Block:
    return Block(
        name=BLOCK_NAME,
        tasks=[
            Task("Update certificate trust anchors", _update_trust, register="cert_update"),
            Task(PROBE_NAME, probe_https, register="cert_test", ignore_errors=True),
            Block(
                name=FALLBACK_NAME,
                when=lambda ctx: ctx.failed("cert_test"),
                tasks=[
                    Task("Download updated packages", lambda ctx: pacman.download_upgrades(ctx.conn)),
                    Task(
                        "Remove potentially conflicting certificate file",
                        lambda ctx: files.absent(ctx.conn, ctx.config.paths.ca_bundle),
                    ),
                    Task("Perform system upgrade", lambda ctx: pacman.upgrade_without_refresh(ctx.conn)),
                    Task(
                        "Reinstall ca-certificates package",
                        lambda ctx: pacman.present(ctx.conn, ["ca-certificates"]),
                        when=lambda ctx: not probes.path_exists(ctx.conn, ctx.config.paths.ca_bundle),
                    ),
                    Task("Update certificate trust anchors again", _update_trust),
                ],
            ),
        ],
        rescue=[Task("Log certificate update failure", debug(RESCUE_MESSAGE))],
    )


def certificate_repair_path(report: RunReport) -> List[str]:
    """States the certificate block went through, in order."""
    if report.get("Update certificate trust anchors") is None:
        return []
    path = [PRIMARY]
    fallback = report.get(FALLBACK_NAME)
    if fallback is None or fallback.status != Status.SKIPPED:
        probe = report.get(PROBE_NAME)
        if probe is not None and probe.status == Status.FAILED:
            path.append(FALLBACK)
    outcome = report.get(BLOCK_NAME)
    path.append(LOGGED_FAILURE if outcome is not None and outcome.status == Status.RESCUED else SUCCEEDED)
    return path


def certificate_repair_state(report: RunReport) -> Optional[str]:
    """Terminal state of the certificate block, or None when it never ran."""
    path = certificate_repair_path(report)
    return path[-1] if path else None

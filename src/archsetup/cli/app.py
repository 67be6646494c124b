# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/archsetup/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
import yaml

from ..bootstrap.bootstrap import Bootstrapper
from ..bootstrap.models import BootstrapOptions
from .helper import inventory_path, limit_hosts, parse_tags, resolve_path
from ..config.loader import ConfigError, load_settings, load_vars, read_inventory
from ..config.models import InventoryHost, RunSettings
from ..engine.executor import RunReport, run_play
from ..engine.task import PreconditionFailed, TaskContext
from ..execution.base import Connection
from ..execution.errors import CommandError, HostUnreachable
from ..execution.runner import LocalConnection
from ..host.facts import gather_facts
from ..logging.log import init_logging
from ..observers.console import ConsoleObserver
from ..observers.dispatcher import EventBus
from ..observers.events import FactsGathered, new_ctx
from ..observers.jsonfile import JsonFileObserver, JsonStreamObserver
from ..observers.logger import LoggerObserver
from ..playbook.registry import list_sections, select_sections
from ..utils.execution import ExecutionContext

# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Arch workstation provisioning")

NOT_ROOT_RUN_MESSAGE = (
    "archsetup run must be run as root (sudo -E \"$(command -v archsetup)\" run), "
    "or with --check to only probe the host"
)


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def open_connection(host: InventoryHost, settings: RunSettings, ctx: ExecutionContext) -> Connection:
    if host.connection == "local":
        return LocalConnection(ctx, name=host.name)

    # paramiko ships with the "remote" extra
    from ..execution.ssh_runner import SSHConnection, open_ssh

    if not host.user:
        raise typer.BadParameter(f"host {host.name}: ssh connection needs user=")
    client = open_ssh(
        address=host.address or host.name,
        username=host.user,
        port=host.port,
        key_path=host.key,
        host_key_checking=settings.host_key_checking,
    )
    return SSHConnection(client, name=host.name, username=host.user, become=host.become, ctx=ctx)


def build_bus(settings: RunSettings, logger, run_id: str, log_path: Path) -> EventBus:
    primary = JsonStreamObserver() if settings.output == "json" else ConsoleObserver()
    return EventBus(
        observers=[
            primary,
            LoggerObserver(logger),
            JsonFileObserver(log_path.with_suffix(".jsonl")),
        ]
    )


def load_run_config(settings_file: Optional[Path], vars_file: Optional[Path]):
    try:
        settings, base_dir = load_settings(settings_file)
        vars_path = vars_file
        if vars_path is None and settings.vars_file:
            vars_path = resolve_path(settings.vars_file, base_dir)
        config = load_vars(vars_path, deprecation_warnings=settings.deprecation_warnings)
    except ConfigError as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    return settings, base_dir, config


def run_host(host: InventoryHost, *, settings, config, sections, ctx, bus, run_id, user) -> RunReport:
    conn = open_connection(host, settings, ctx)
    try:
        # user-level steps drop privileges with sudo -u, everything else needs root
        if not ctx.dry_run and conn.effective_user != "root":
            raise PreconditionFailed(NOT_ROOT_RUN_MESSAGE)
        facts = gather_facts(conn, user=user or config.current_user, home=config.user_home)
        bus.emit(
            FactsGathered(
                distribution=facts.distribution,
                user=facts.current_user,
                root_fstype=facts.root_fstype,
                package_count=len(facts.packages),
                **new_ctx(conn.name, run_id),
            )
        )
        return run_play(sections, TaskContext(conn=conn, facts=facts, config=config), bus=bus, run_id=run_id)
    finally:
        conn.close()


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def run(
    tags: Optional[str] = typer.Option(None, "--tags", help="Comma-separated section tags (default: all)"),
    check: bool = typer.Option(False, "--check", help="Dry run: probe only, change nothing"),
    limit: Optional[str] = typer.Option(None, "--limit", help="Only these hosts or groups"),
    vars_file: Optional[Path] = typer.Option(None, "--vars", help="Vars file merged over the defaults"),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings file (archsetup.yaml)"),
    inventory: Optional[Path] = typer.Option(None, "--inventory", "-i", help="Inventory file"),
    user: Optional[str] = typer.Option(None, "--user", help="Provision for this user instead of the invoking one"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Run the provisioning play against every inventory host."""
    settings, base_dir, config = load_run_config(settings_file, vars_file)

    log_dir = Path(settings.log_dir or config.log_dir).expanduser()
    logger, run_id, log_path = init_logging(base_dir=log_dir, verbose=verbose)

    try:
        sections = select_sections(parse_tags(tags))
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--tags")

    try:
        hosts = limit_hosts(read_inventory(inventory_path(settings, base_dir, inventory)), limit)
    except ConfigError as e:
        typer.secho(f"Inventory error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    if not hosts:
        typer.secho("No hosts matched", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    if settings.output == "console":
        typer.echo("")
        typer.secho("archsetup run started", bold=True)
        typer.echo(f"  Run ID   : {run_id}")
        typer.echo(f"  Logs     : {log_path}")
        typer.echo(f"  Mode     : {'check' if check else 'apply'}")

    ctx = ExecutionContext(dry_run=check)
    bus = build_bus(settings, logger, run_id, log_path)

    failed_hosts: List[str] = []
    for host in hosts:
        try:
            report = run_host(
                host,
                settings=settings,
                config=config,
                sections=sections,
                ctx=ctx,
                bus=bus,
                run_id=run_id,
                user=user,
            )
        except HostUnreachable as e:
            logger.error("%s: unreachable: %s", host.name, e)
            failed_hosts.append(host.name)
            continue
        except PreconditionFailed as e:
            typer.secho(f"{host.name}: {e}", fg=typer.colors.RED, err=True)
            failed_hosts.append(host.name)
            continue
        logger.info("%s: %s", host.name, report.summary())
        if report.aborted:
            failed_hosts.append(host.name)

    if failed_hosts:
        typer.secho(f"\nFailed hosts: {', '.join(failed_hosts)}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command()
def facts(
    limit: Optional[str] = typer.Option(None, "--limit"),
    settings_file: Optional[Path] = typer.Option(None, "--settings"),
    inventory: Optional[Path] = typer.Option(None, "--inventory", "-i"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Print gathered host facts as YAML."""
    settings, base_dir, config = load_run_config(settings_file, None)
    init_logging(base_dir=Path(settings.log_dir or config.log_dir).expanduser(), verbose=verbose)
    try:
        hosts = limit_hosts(read_inventory(inventory_path(settings, base_dir, inventory)), limit)
    except ConfigError as e:
        typer.secho(f"Inventory error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    out = {}
    for host in hosts:
        conn = open_connection(host, settings, ExecutionContext(dry_run=True))
        try:
            out[host.name] = gather_facts(conn, user=config.current_user, home=config.user_home).summary()
        finally:
            conn.close()
    typer.echo(yaml.safe_dump(out, sort_keys=False))


@app.command()
def sections():
    """List the play's sections and their tags in execution order."""
    for name, tags, description in list_sections():
        line = f"{name:<10} tags={','.join(tags)}"
        if description:
            line += f"  # {description}"
        typer.echo(line)


@app.command()
def bootstrap(
    repo_url: str = typer.Option(..., "--repo-url", help="Git URL (or path) of the archsetup repository to install"),
    repo_dir: Optional[str] = typer.Option(None, "--repo-dir", help="Checkout location (default: ~/archsetup)"),
    user: Optional[str] = typer.Option(None, "--user", help="User to bootstrap for (default: invoking user)"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Prepare this machine to run archsetup for the invoking user (run as root)."""
    init_logging(verbose=verbose)
    typer.echo("==> Bootstrapping Arch Linux system for archsetup")

    options = BootstrapOptions(repo_url=repo_url, repo_dir=repo_dir, user=user)
    try:
        Bootstrapper(LocalConnection(), options).run()
    except PreconditionFailed as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except CommandError as e:
        typer.secho(f"Bootstrap failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()

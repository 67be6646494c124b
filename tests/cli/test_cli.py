from pathlib import Path

from typer.testing import CliRunner

from archsetup.cli import app as cli_app
from archsetup.cli.app import app
from archsetup.cli.helper import limit_hosts, parse_tags, resolve_path
from archsetup.config.models import InventoryHost
from archsetup.execution.runner import LocalConnection

runner = CliRunner()


def test_sections_command_lists_in_order():
    result = runner.invoke(app, ["sections"])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].startswith("system")
    assert lines[-1].startswith("finalize")


def test_run_rejects_unknown_tag(tmp_path: Path, monkeypatch):
    settings = tmp_path / "archsetup.yaml"
    settings.write_text(f"log_dir: {tmp_path}\n")
    monkeypatch.setenv("ARCHSETUP_CONFIG", str(settings))
    result = runner.invoke(app, ["run", "--tags", "nope"])
    assert result.exit_code == 2


def test_run_reports_config_errors(tmp_path: Path):
    result = runner.invoke(app, ["run", "--vars", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 2


def test_parse_tags():
    assert parse_tags(None) == []
    assert parse_tags("docker, podman,,") == ["docker", "podman"]


def test_resolve_path_relative_to_settings(tmp_path: Path):
    assert resolve_path("./inventories/local", tmp_path) == tmp_path / "inventories" / "local"
    assert resolve_path("/abs/inv", tmp_path) == Path("/abs/inv")


def test_limit_hosts_by_name_or_group():
    hosts = [InventoryHost(name="a", group="lab"), InventoryHost(name="b", group="home")]
    assert [h.name for h in limit_hosts(hosts, "lab")] == ["a"]
    assert [h.name for h in limit_hosts(hosts, "b")] == ["b"]
    assert limit_hosts(hosts, None) == hosts


def _settings(tmp_path: Path, monkeypatch, extra: str = "") -> Path:
    settings = tmp_path / "archsetup.yaml"
    settings.write_text(f"log_dir: {tmp_path}\ninventory: ./hosts\n{extra}")
    monkeypatch.setenv("ARCHSETUP_CONFIG", str(settings))
    return settings


def test_run_rejects_invalid_settings(tmp_path: Path, monkeypatch):
    _settings(tmp_path, monkeypatch, "output: yaml\n")
    result = runner.invoke(app, ["run"])
    assert result.exit_code == 2
    assert not isinstance(result.exception, ValueError)


def test_invalid_inventory_host_exits_2(tmp_path: Path, monkeypatch):
    _settings(tmp_path, monkeypatch)
    (tmp_path / "hosts").write_text("[local]\nlocalhost connection=smart\n")
    assert runner.invoke(app, ["run"]).exit_code == 2
    assert runner.invoke(app, ["facts"]).exit_code == 2


def test_run_without_root_refuses_to_change_anything(tmp_path: Path, monkeypatch):
    _settings(tmp_path, monkeypatch)
    monkeypatch.setattr(LocalConnection, "effective_user", property(lambda self: "alice"))

    def no_facts(*a, **kw):
        raise AssertionError("facts gathered without root")

    monkeypatch.setattr(cli_app, "gather_facts", no_facts)
    result = runner.invoke(app, ["run"])
    assert result.exit_code == 1
    assert not isinstance(result.exception, AssertionError)


def test_bootstrap_needs_repo_url():
    assert runner.invoke(app, ["bootstrap"]).exit_code == 2

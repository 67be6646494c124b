import pytest

from archsetup.config.loader import load_vars
from archsetup.engine.executor import run_play
from archsetup.engine.task import Status, TaskContext
from archsetup.host.facts import gather_facts
from archsetup.playbook.registry import build_sections, list_sections, select_sections
from archsetup.playbook.sections.snapper import NOT_BTRFS_MESSAGE

from conftest import RANKED_MIRRORS, SimulatedHost


def play(host, sections=None):
    facts = gather_facts(host)
    ctx = TaskContext(conn=host, facts=facts, config=load_vars())
    return run_play(sections or build_sections(), ctx)


def test_first_run_converges_and_second_run_changes_nothing():
    host = SimulatedHost()

    first = play(host)
    assert not first.aborted, first.error
    assert first.changed > 0

    second = play(host)
    assert not second.aborted, second.error
    changed = [r.name for r in second.results if r.status == Status.CHANGED]
    assert changed == []


def test_first_run_reaches_expected_state():
    host = SimulatedHost()
    report = play(host)
    assert not report.aborted

    assert {"yay", "visual-studio-code-bin", "snapper-support", "docker", "neovim"} <= host.packages
    assert "grub-btrfs" not in host.packages and "timeshift" not in host.packages
    assert {"docker", "libvirt"} <= host.memberships["alice"]
    assert host.shells["alice"] == "/usr/bin/fish"
    assert "com.valvesoftware.Steam" in host.apps
    assert host.network == {"defined": True, "active": True, "autostart": True}
    assert host.files["/etc/pacman.d/mirrorlist"].endswith(RANKED_MIRRORS)
    assert any(p.startswith("/etc/pacman.d/mirrorlist.backup.") for p in host.files)
    assert "/tmp/yay-build" not in host.dirs
    assert not any(p.startswith("/etc/sudoers.d/") for p in host.files)

    bashrc = host.files["/home/alice/.bashrc"]
    assert bashrc.count("# BEGIN PYENV CONFIGURATION") == 1
    assert bashrc.count("# BEGIN NEOVIM ALIASES") == 1
    assert "registries = ['docker.io', 'quay.io']" in host.files["/etc/containers/registries.conf"]


def test_udev_reload_follows_game_devices_install():
    host = SimulatedHost()
    play(host)
    assert len(host.ran("udevadm control --reload-rules")) == 1
    play(host)
    assert len(host.ran("udevadm control --reload-rules")) == 1


def test_non_btrfs_root_aborts_at_snapper_check():
    host = SimulatedHost(root_fstype="ext4")
    report = play(host)

    assert report.aborted
    assert report.failed_task == "Fail if root is not BTRFS"
    assert report.error == NOT_BTRFS_MESSAGE
    assert "grub-btrfs" in host.packages
    assert host.ran("yay") == []
    assert report.get("Remove existing grub-btrfs if present") is None
    assert report.get("Enable Bluetooth service") is None


def test_non_btrfs_root_can_deselect_snapper():
    host = SimulatedHost(root_fstype="ext4")
    report = play(host, select_sections(["packages", "bluetooth"]))
    assert not report.aborted
    assert "htop" in host.packages


def test_non_arch_host_skips_arch_only_sections():
    host = SimulatedHost(files={"/etc/os-release": "ID=debian\n"})
    report = play(host)
    assert not report.aborted
    assert report.get("Install Docker").status == Status.SKIPPED
    assert report.get("Set up Snapper with BTRFS Assistant").status == Status.SKIPPED
    assert report.get("Install system packages").status == Status.CHANGED
    assert report.get("Print completion message").status == Status.OK


def test_dry_run_changes_nothing_on_host():
    from archsetup.utils.execution import ExecutionContext

    host = SimulatedHost(ctx=ExecutionContext(dry_run=True))
    before = dict(host.files)
    report = play(host)
    assert not report.aborted
    assert host.files == before
    assert host.ran("pacman -S ") == []
    assert host.ran("pacman -Qi")


def test_sections_in_play_order():
    names = [name for name, _, _ in list_sections()]
    assert names == [
        "system", "snapper", "bluetooth", "packages", "aur", "flatpak", "docker", "podman",
        "pyenv", "mise", "neovim", "fish", "fisher", "lua", "kvm", "finalize",
    ]


def test_select_by_group_tag_keeps_order():
    assert [s.name for s in select_sections(["shell", "containers"])] == ["docker", "podman", "neovim", "fish", "fisher"]


def test_select_all_and_unknown():
    assert len(select_sections(["all"])) == len(select_sections())
    with pytest.raises(ValueError, match="bogus"):
        select_sections(["docker", "bogus"])


def test_completion_message_is_printed_last(task_ctx):
    from archsetup.playbook.sections.finalize import completion_message, section

    last = section().items[-1]
    assert last.name == "Print completion message"
    assert last.when is None
    assert last.action(task_ctx) is False
    assert "SYSTEM UPDATE COMPLETED SUCCESSFULLY" in completion_message()

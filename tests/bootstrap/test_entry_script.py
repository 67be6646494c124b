import os
import shutil
import subprocess
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "bootstrap.sh"


def test_entry_script_installs_checkout_then_hands_over():
    text = SCRIPT.read_text()
    assert 'uv pip install --quiet --python "$STAGE/venv/bin/python" "$SRC_DIR"' in text
    assert text.rstrip().endswith('"$STAGE/venv/bin/archsetup" bootstrap --repo-url "$REPO_URL" "$@"')


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash not installed")
def test_entry_script_is_valid_bash():
    assert subprocess.run(["bash", "-n", str(SCRIPT)]).returncode == 0


@pytest.mark.skipif(shutil.which("bash") is None or os.geteuid() == 0, reason="needs bash and a non-root user")
def test_entry_script_requires_root():
    cp = subprocess.run(["bash", str(SCRIPT)], capture_output=True, text=True)
    assert cp.returncode == 1
    assert "This script must be run as root" in cp.stdout

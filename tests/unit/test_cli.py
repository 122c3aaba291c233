"""
Tests for the ran-handover entry point.
"""
import subprocess
import sys
from pathlib import Path

from handover_engine import cli, runner

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_cli_exports_runner_main():
    assert cli.main is runner.main


def test_module_invocation_propagates_exit_code(tmp_path):
    """python -m handover_engine.cli exits with the runner's status."""
    completed = subprocess.run(
        [sys.executable, "-m", "handover_engine.cli", "--config", str(tmp_path / "missing.yaml")],
        cwd=REPO_ROOT,
        capture_output=True,
        text=True,
        timeout=60,
    )

    assert completed.returncode == 2

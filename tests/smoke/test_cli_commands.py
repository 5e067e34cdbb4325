"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(command: str, timeout: int = 30, env: dict | None = None) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m satprep.cli')
        timeout: Maximum time to wait
        env: Extra environment variables

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m satprep.cli {command}"

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
        env={**os.environ, "COLUMNS": "120", **(env or {})},
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "satprep" in stdout.lower()
        assert "Commands" in stdout

    @pytest.mark.parametrize(
        "command", ["diagnostic", "plan", "task", "adapt", "style", "timer", "stats", "serve", "seed"]
    )
    def test_command_help(self, command):
        code, stdout, stderr = run_cli_command(f"{command} --help")

        assert code == 0, f"{command} help failed: {stderr}"
        assert "Usage" in stdout


class TestCLIOffline:
    """Commands against an unreachable service fail cleanly."""

    OFFLINE = {
        "SATPREP_API__BASE_URL": "http://127.0.0.1:9",
        "SATPREP_API__RETRY_ATTEMPTS": "1",
        "SATPREP_API__RETRY_BACKOFF_SECONDS": "0",
    }

    def test_plan_unreachable(self):
        code, stdout, stderr = run_cli_command("plan", env=self.OFFLINE)

        assert code == 1
        assert "Error" in stdout
        assert "Traceback" not in stderr

    def test_diagnostic_unreachable(self):
        code, stdout, stderr = run_cli_command("diagnostic", env=self.OFFLINE)

        assert code == 1
        assert "could not be loaded" in stdout
        assert "Traceback" not in stderr

import sys

import pytest

from supadeploy.errors import ProvisionError
from supadeploy.services.command_runner import CommandRunner


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProvisionError, match="boom"):
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"],
            capture_output=True,
        )


def test_command_runner_raises_on_nonzero_exit_without_capture():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProvisionError, match=r"Command failed \(3\)"):
        runner.run([sys.executable, "-c", "import sys; sys.exit(3)"])


def test_command_runner_runs_in_requested_directory(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        capture_output=True,
        cwd=str(tmp_path),
    )

    assert result.stdout.strip() == str(tmp_path.resolve())


def test_command_runner_reports_missing_executable():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProvisionError, match="Required command not found"):
        runner.run(["supadeploy-no-such-binary-xyz"])


def test_command_runner_reports_missing_working_directory(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProvisionError, match="Working directory not found"):
        runner.run([sys.executable, "-c", "pass"], cwd=str(tmp_path / "missing"))

"""Tests for the external command runner."""

import subprocess
import sys

import pytest

from pystarter.tools import (
    CommandResult,
    CommandRunner,
    ToolExecutionError,
    ToolNotAvailableError,
    ToolTimeoutError,
)


class TestCommandResult:
    def test_ok_and_command_line(self):
        result = CommandResult(command=["git", "status"], returncode=0)
        assert result.ok
        assert result.command_line == "git status"

    def test_failed(self):
        assert not CommandResult(command=["false"], returncode=1).ok


class TestCommandRunner:
    def test_passes_options_to_subprocess(self, monkeypatch, tmp_path):
        captured = {}

        def fake_run(command, **kwargs):
            captured["command"] = command
            captured.update(kwargs)
            return subprocess.CompletedProcess(command, 0, stdout="out", stderr="")

        monkeypatch.setattr(subprocess, "run", fake_run)
        result = CommandRunner(timeout_seconds=12).run(["echo", tmp_path], cwd=tmp_path)

        assert captured["command"] == ["echo", str(tmp_path)]
        assert captured["timeout"] == 12
        assert captured["cwd"] == str(tmp_path)
        assert captured["capture_output"] is True
        assert result.stdout == "out"
        assert result.ok

    def test_missing_executable(self, monkeypatch):
        def fake_run(command, **kwargs):
            raise FileNotFoundError(command[0])

        monkeypatch.setattr(subprocess, "run", fake_run)
        with pytest.raises(ToolNotAvailableError, match="not-a-tool"):
            CommandRunner().run(["not-a-tool"])

    def test_timeout(self, monkeypatch):
        def fake_run(command, **kwargs):
            raise subprocess.TimeoutExpired(command, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", fake_run)
        with pytest.raises(ToolTimeoutError, match="timed out after 5s"):
            CommandRunner(timeout_seconds=5).run(["sleep", "10"])

    def test_non_zero_exit_raises(self, monkeypatch):
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda command, **kwargs: subprocess.CompletedProcess(command, 2, stdout="", stderr="boom"),
        )
        with pytest.raises(ToolExecutionError) as exc_info:
            CommandRunner().run(["flake8"])
        assert exc_info.value.result.returncode == 2
        assert "boom" in str(exc_info.value)

    def test_non_zero_exit_without_check(self, monkeypatch):
        monkeypatch.setattr(
            subprocess,
            "run",
            lambda command, **kwargs: subprocess.CompletedProcess(command, 1, stdout="E501", stderr=None),
        )
        result = CommandRunner().run(["flake8"], check=False)
        assert result.returncode == 1
        assert result.stderr == ""

    def test_which(self):
        assert CommandRunner.which("definitely-not-installed-tool-xyz") is None


@pytest.mark.integration
class TestRealCommands:
    def test_runs_python(self):
        result = CommandRunner(timeout_seconds=60).run([sys.executable, "-c", "print('hi')"])
        assert result.stdout.strip() == "hi"

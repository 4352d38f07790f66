"""
External Command Runner.

Thin wrapper around subprocess for the tools a project setup relies on
(python -m venv, pip, git, black, flake8, unittest/pytest).
"""

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class ToolError(Exception):
    """Base exception for external tool errors."""

    pass


class ToolNotAvailableError(ToolError):
    """Raised when the executable cannot be found."""

    pass


class ToolTimeoutError(ToolError):
    """Raised when a command exceeds its timeout."""

    pass


class ToolExecutionError(ToolError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, message: str, result: "CommandResult | None" = None) -> None:
        super().__init__(message)
        self.result = result

    def __str__(self) -> str:
        msg = super().__str__()
        if self.result is not None:
            detail = (self.result.stderr or self.result.stdout).strip()
            if detail:
                msg = f"{msg}\n{detail[-2000:]}"
        return msg


@dataclass
class CommandResult:
    """Outcome of a finished command.

    Attributes:
        command: Argument vector that was executed
        returncode: Process exit status
        stdout: Captured standard output
        stderr: Captured standard error
        duration_seconds: Wall-clock run time
    """

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


class CommandRunner:
    """Runs external commands with a timeout and uniform errors.

    Usage:
        runner = CommandRunner(timeout_seconds=120)
        result = runner.run(["git", "status"], cwd=project_root)
    """

    def __init__(self, timeout_seconds: int = 300) -> None:
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def which(name: str) -> str | None:
        """Locate an executable on PATH."""
        return shutil.which(name)

    def run(
        self,
        command: list[str],
        cwd: str | Path | None = None,
        env: dict[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        """Run a command and capture its output.

        Args:
            command: Argument vector
            cwd: Working directory
            env: Full environment for the child (None inherits)
            check: Raise ToolExecutionError on a non-zero exit

        Returns:
            CommandResult

        Raises:
            ToolNotAvailableError: If the executable is missing
            ToolTimeoutError: If the command times out
            ToolExecutionError: If check is set and the command fails
        """
        command = [str(part) for part in command]
        logger.info("Running: %s", " ".join(command))
        start = time.monotonic()
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                cwd=str(cwd) if cwd is not None else None,
                env=env,
            )
        except subprocess.TimeoutExpired:
            raise ToolTimeoutError(
                f"Command timed out after {self.timeout_seconds}s: {' '.join(command)}"
            )
        except FileNotFoundError:
            raise ToolNotAvailableError(f"Command not found: {command[0]}")

        result = CommandResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration_seconds=time.monotonic() - start,
        )
        logger.debug(
            "Finished %s with exit code %d in %.2fs",
            command[0],
            result.returncode,
            result.duration_seconds,
        )

        if check and not result.ok:
            raise ToolExecutionError(
                f"Command failed with exit code {result.returncode}: {result.command_line}",
                result=result,
            )
        return result

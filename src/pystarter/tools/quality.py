"""Formatter, linter and test runner invocations."""

import logging
from pathlib import Path

from pystarter.tools.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

TEST_COMMANDS = {
    "unittest": ["-m", "unittest", "discover", "-s", "tests"],
    "pytest": ["-m", "pytest"],
}


class QualityTools:
    """Runs black, flake8 and the test runner as ``python -m <tool>``.

    Results are returned with check disabled so callers can report the
    output of a failing lint or test run.
    """

    def __init__(
        self,
        runner: CommandRunner,
        python: str | Path,
        formatter: str = "black",
        linter: str = "flake8",
    ) -> None:
        self.runner = runner
        self.python = str(python)
        self.formatter = formatter
        self.linter = linter

    def format(self, paths: list[str], cwd: str | Path | None = None, check: bool = False) -> CommandResult:
        """Run the formatter, or only report with check=True."""
        command = [self.python, "-m", self.formatter]
        if check:
            command.append("--check")
        return self.runner.run(command + list(paths), cwd=cwd, check=False)

    def lint(
        self,
        paths: list[str],
        cwd: str | Path | None = None,
        exclude: list[str] | None = None,
    ) -> CommandResult:
        command = [self.python, "-m", self.linter]
        if exclude:
            command.append(f"--extend-exclude={','.join(exclude)}")
        return self.runner.run(command + list(paths), cwd=cwd, check=False)

    def test(self, runner_name: str = "unittest", cwd: str | Path | None = None) -> CommandResult:
        """Run the project's tests.

        Raises:
            ValueError: For an unknown test runner
        """
        args = TEST_COMMANDS.get(runner_name)
        if args is None:
            raise ValueError(f"Unknown test runner: {runner_name}")
        return self.runner.run([self.python, *args], cwd=cwd, check=False)

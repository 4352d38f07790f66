"""
Git Repository Wrapper.

Runs the handful of git commands a new project needs.
"""

import logging
from pathlib import Path

from pystarter.tools.runner import CommandResult, CommandRunner, ToolExecutionError

logger = logging.getLogger(__name__)


class GitRepository:
    """A working tree driven through the ``git`` executable."""

    def __init__(self, path: str | Path, runner: CommandRunner, executable: str = "git") -> None:
        self.path = Path(path)
        self.runner = runner
        self.executable = executable

    def _git(self, *args: str, check: bool = True) -> CommandResult:
        return self.runner.run([self.executable, *args], cwd=self.path, check=check)

    def is_repository(self) -> bool:
        """True when path is inside a git work tree."""
        if not self.path.is_dir():
            return False
        result = self._git("rev-parse", "--is-inside-work-tree", check=False)
        return result.ok and result.stdout.strip() == "true"

    def init(self, initial_branch: str = "main") -> CommandResult:
        """Initialize a repository, falling back for gits without -b."""
        result = self._git("init", "-b", initial_branch, check=False)
        if result.ok:
            return result
        logger.debug("git init -b unsupported, retrying without it")
        result = self._git("init")
        self._git("symbolic-ref", "HEAD", f"refs/heads/{initial_branch}")
        return result

    def add(self, paths: list[str] | None = None) -> CommandResult:
        """Stage paths (everything when None)."""
        return self._git("add", "--", *(paths or ["."]))

    def commit(self, message: str, author: str | None = None) -> CommandResult:
        """Create a commit.

        Without a configured identity git refuses to commit; a fallback
        identity is supplied only through ``-c`` flags.
        """
        args = []
        if not self._has_identity():
            args += ["-c", "user.name=pystarter", "-c", "user.email=pystarter@localhost"]
        args += ["commit", "-m", message]
        if author:
            args += ["--author", author]
        return self._git(*args)

    def _has_identity(self) -> bool:
        name = self._git("config", "user.name", check=False)
        email = self._git("config", "user.email", check=False)
        return name.ok and email.ok and bool(name.stdout.strip()) and bool(email.stdout.strip())

    def has_commits(self) -> bool:
        """False for a freshly initialized repository without HEAD."""
        return self._git("rev-parse", "--verify", "HEAD", check=False).ok

    def is_tracked(self, path: str | Path) -> bool:
        """True when git tracks the given path."""
        try:
            self._git("ls-files", "--error-unmatch", "--", str(path))
        except ToolExecutionError:
            return False
        return True

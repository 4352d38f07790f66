"""
Virtual Environment and pip Wrappers.

Creates virtual environments with ``python -m venv`` and drives pip
through the environment's own interpreter.
"""

import logging
import os
import sys
from pathlib import Path

from pystarter.tools.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

_ACTIVATION = {
    "bash": "source {posix}/bin/activate",
    "zsh": "source {posix}/bin/activate",
    "sh": ". {posix}/bin/activate",
    "fish": "source {posix}/bin/activate.fish",
    "powershell": "{windows}\\Scripts\\Activate.ps1",
    "cmd": "{windows}\\Scripts\\activate.bat",
}


class VirtualEnv:
    """A virtual environment directory.

    Attributes:
        path: Environment directory
        windows: Use the Windows directory layout (Scripts/, .exe)
    """

    def __init__(self, path: str | Path, windows: bool | None = None) -> None:
        self.path = Path(path)
        self.windows = os.name == "nt" if windows is None else windows

    @property
    def exists(self) -> bool:
        """True when the directory holds a pyvenv.cfg."""
        return (self.path / "pyvenv.cfg").is_file()

    @property
    def bin_dir(self) -> Path:
        return self.path / ("Scripts" if self.windows else "bin")

    @property
    def python(self) -> Path:
        return self.bin_dir / ("python.exe" if self.windows else "python")

    @property
    def pip(self) -> Path:
        return self.bin_dir / ("pip.exe" if self.windows else "pip")

    def create(
        self,
        runner: CommandRunner,
        python: str = sys.executable,
        with_pip: bool = True,
        clear: bool = False,
    ) -> CommandResult | None:
        """Create the environment with ``<python> -m venv``.

        Returns:
            CommandResult, or None when the environment already existed
        """
        if self.exists and not clear:
            logger.info("Virtual environment already exists at %s", self.path)
            return None

        command = [python, "-m", "venv"]
        if not with_pip:
            command.append("--without-pip")
        if clear:
            command.append("--clear")
        command.append(str(self.path))
        return runner.run(command)

    def activation_command(self, shell: str = "bash", relative_to: str | Path | None = None) -> str:
        """Shell command that activates the environment.

        Raises:
            ValueError: For an unsupported shell
        """
        template = _ACTIVATION.get(shell.lower())
        if template is None:
            raise ValueError(
                f"Unsupported shell: {shell}. Choose from {', '.join(sorted(_ACTIVATION))}"
            )
        path = self.path
        if relative_to is not None:
            try:
                path = self.path.relative_to(relative_to)
            except ValueError:
                pass
        text = str(path)
        return template.format(posix=text.replace("\\", "/"), windows=text.replace("/", "\\"))


class Pip:
    """pip invoked as ``<venv python> -m pip``."""

    def __init__(self, venv: VirtualEnv, runner: CommandRunner) -> None:
        self.venv = venv
        self.runner = runner

    def _command(self, *args: str) -> list[str]:
        return [str(self.venv.python), "-m", "pip", *args]

    def install_requirements(self, requirements: str | Path, cwd: str | Path | None = None) -> CommandResult:
        """Run ``pip install -r requirements``."""
        return self.runner.run(self._command("install", "-r", str(requirements)), cwd=cwd)

    def install(self, packages: list[str], cwd: str | Path | None = None) -> CommandResult | None:
        """Install packages; returns None when there is nothing to install."""
        if not packages:
            return None
        return self.runner.run(self._command("install", *packages), cwd=cwd)

    def freeze(self) -> str:
        """Return ``pip freeze`` output."""
        return self.runner.run(self._command("freeze")).stdout

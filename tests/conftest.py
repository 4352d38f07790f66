"""
pystarter Test Configuration and Fixtures

All fixtures avoid real network access and, unless a test is marked
``integration``, real external commands.

Fixture Categories:
- Paths: project root and temporary project directories
- Configuration: default config and isolated environment state
- Fake Command Runner: records commands instead of running them
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from pystarter.config import PystarterConfig, reset_config, reset_environment
from pystarter.config.loader import ENV_VAR_OVERRIDES
from pystarter.tools.runner import CommandResult, ToolExecutionError, ToolNotAvailableError

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Return the repository root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Return an empty directory to scaffold into."""
    path = tmp_path / "hello-world"
    path.mkdir()
    return path


# =============================================================================
# Configuration Fixtures
# =============================================================================


_ISOLATED_ENV_VARS = [
    *ENV_VAR_OVERRIDES,
    "PYSTARTER_CONFIG",
    "PYSTARTER_PYPI_TOKEN",
    "GIT_AUTHOR_NAME",
    "GIT_AUTHOR_EMAIL",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Reset cached configuration and strip PYSTARTER_* variables.

    ensure_dotenv_loaded() is marked as already done so a developer's
    local .env never leaks into tests.
    """
    import pystarter.config.environment as env_module

    reset_config()
    reset_environment()
    for var in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(env_module, "_dotenv_loaded", True)

    yield

    reset_config()
    reset_environment()


@pytest.fixture
def default_config() -> PystarterConfig:
    """Configuration with all defaults."""
    return PystarterConfig()


@pytest.fixture
def offline_config() -> PystarterConfig:
    """Configuration that creates no venv and no git repository."""
    config = PystarterConfig()
    config.python.create_venv = False
    config.git.init = False
    return config


# =============================================================================
# Fake Command Runner
# =============================================================================


class FakeRunner:
    """Stand-in for CommandRunner that records commands.

    Responses are chosen by the first matching handler; a handler is a
    predicate over the argument vector plus the result to return (or an
    exception to raise).
    """

    def __init__(self) -> None:
        self.timeout_seconds = 300
        self.calls: list[tuple[list[str], str | None]] = []
        self._handlers: list[tuple[Callable[[list[str]], bool], object]] = []

    def on(self, predicate: Callable[[list[str]], bool], response) -> "FakeRunner":
        self._handlers.append((predicate, response))
        return self

    def on_args(self, *args: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> "FakeRunner":
        """Respond to commands containing all the given arguments."""
        return self.on(
            lambda command: all(arg in command for arg in args),
            {"returncode": returncode, "stdout": stdout, "stderr": stderr},
        )

    @property
    def commands(self) -> list[list[str]]:
        return [command for command, _ in self.calls]

    def run(self, command, cwd=None, env=None, check=True) -> CommandResult:
        command = [str(part) for part in command]
        self.calls.append((command, str(cwd) if cwd is not None else None))
        response: object = {"returncode": 0}
        for predicate, candidate in self._handlers:
            if predicate(command):
                response = candidate
                break
        if isinstance(response, Exception):
            raise response
        result = CommandResult(command=command, **response)
        if check and not result.ok:
            raise ToolExecutionError("fake failure", result=result)
        return result


@pytest.fixture
def fake_runner() -> FakeRunner:
    """A runner that succeeds for every command."""
    return FakeRunner()


@pytest.fixture
def missing_git_runner() -> FakeRunner:
    """A runner for a machine without git."""
    runner = FakeRunner()
    runner.on(lambda command: command[0] == "git", ToolNotAvailableError("Command not found: git"))
    return runner

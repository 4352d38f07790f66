"""
Secrets and identity from the process environment.

A local ``.env`` is merged into os.environ with python-dotenv before any
configuration is read; exported variables always take precedence.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, SecretStr

_dotenv_loaded: bool = False

# Field name -> environment variable
ENV_VARS = {
    "pypi_url": "PYSTARTER_PYPI_URL",
    "pypi_token": "PYSTARTER_PYPI_TOKEN",
    "git_author_name": "GIT_AUTHOR_NAME",
    "git_author_email": "GIT_AUTHOR_EMAIL",
}


def ensure_dotenv_loaded(env_file: str = ".env") -> bool:
    """Merge env_file into os.environ once per process.

    Returns True when a file was read (or an earlier call already
    handled it), False when no file exists.
    """
    global _dotenv_loaded
    if _dotenv_loaded:
        return True
    _dotenv_loaded = True

    for candidate in (Path(env_file), Path.cwd() / env_file):
        if candidate.is_file():
            load_dotenv(candidate, override=False)
            return True
    return False


class EnvironmentConfig(BaseModel):
    """Values pystarter takes from the environment rather than pystarter.yaml."""

    pypi_url: str | None = None
    pypi_token: SecretStr | None = None
    git_author_name: str | None = None
    git_author_email: str | None = None

    @property
    def has_git_author(self) -> bool:
        return bool(self.git_author_name and self.git_author_email)

    @property
    def git_author(self) -> str | None:
        """``Name <email>`` for ``git commit --author``, if both parts are set."""
        if self.has_git_author:
            return f"{self.git_author_name} <{self.git_author_email}>"
        return None


_cached: EnvironmentConfig | None = None


def load_environment(env_file: str = ".env") -> EnvironmentConfig:
    """Read ENV_VARS into an EnvironmentConfig, cached until reset_environment()."""
    global _cached
    ensure_dotenv_loaded(env_file)
    if _cached is None:
        _cached = EnvironmentConfig(
            **{field: os.environ[var] for field, var in ENV_VARS.items() if os.environ.get(var)}
        )
    return _cached


def reset_environment() -> None:
    """Drop the cached EnvironmentConfig and allow .env to be loaded again.

    Used by tests and after a .env file has changed.
    """
    global _cached, _dotenv_loaded
    _cached = None
    _dotenv_loaded = False

"""
Configuration Data Models.

Defines the configuration schema for project scaffolding using Pydantic
for validation and type safety.
"""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from pystarter.files.requirements import ManifestError, parse_requirement

_VERSION_PATTERN = re.compile(r"^\d+(\.\d+){0,2}$")
_ENV_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Layout(str, Enum):
    """Project source layouts."""

    FLAT = "flat"
    SRC = "src"


class TestRunner(str, Enum):
    """Supported test runners."""

    __test__ = False

    UNITTEST = "unittest"
    PYTEST = "pytest"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ProjectConfig(BaseModel):
    """Descriptive settings for a generated project.

    Attributes:
        description: One-line project description used in the README
        author: Author name used in the README
        layout: Source layout (flat or src)
    """

    description: str = Field(
        default="A new Python project",
        description="Project description",
    )
    author: str = Field(
        default="",
        description="Project author",
    )
    layout: Layout = Field(
        default=Layout.FLAT,
        description="Source layout",
    )


class PythonConfig(BaseModel):
    """Interpreter and virtual environment settings.

    Attributes:
        min_version: Minimum supported Python version (e.g. "3.9")
        venv_dir: Virtual environment directory, relative to the project root
        create_venv: Whether to create the virtual environment
        install_requirements: Whether to pip install requirements into the venv
    """

    min_version: str = Field(
        default="3.9",
        description="Minimum Python version",
    )
    venv_dir: str = Field(
        default="venv",
        description="Virtual environment directory",
    )
    create_venv: bool = Field(
        default=True,
        description="Create a virtual environment",
    )
    install_requirements: bool = Field(
        default=False,
        description="Install requirements after creating the venv",
    )

    @field_validator("min_version", mode="before")
    @classmethod
    def validate_min_version(cls, v: Any) -> str:
        """Accept numbers from YAML and check the dotted format."""
        v = str(v).strip()
        if not _VERSION_PATTERN.match(v):
            raise ValueError(f"Invalid Python version: {v!r}")
        return v

    @field_validator("venv_dir")
    @classmethod
    def validate_venv_dir(cls, v: str) -> str:
        """Venv directory must be a relative, non-empty path."""
        v = v.strip().rstrip("/\\")
        if not v:
            raise ValueError("venv_dir cannot be empty")
        if v.startswith(("/", "\\")) or ".." in v.replace("\\", "/").split("/"):
            raise ValueError("venv_dir must be relative to the project root")
        return v

    @property
    def min_version_tuple(self) -> tuple[int, ...]:
        """Minimum version as an integer tuple."""
        return tuple(int(part) for part in self.min_version.split("."))


class DependenciesConfig(BaseModel):
    """Requirement specifiers written into the generated manifests.

    Attributes:
        requirements: Runtime requirement specifiers
        dev_requirements: Development-only requirement specifiers
    """

    requirements: list[str] = Field(
        default_factory=list,
        description="Runtime requirements",
    )
    dev_requirements: list[str] = Field(
        default_factory=lambda: ["black", "flake8"],
        description="Development requirements",
    )

    @field_validator("requirements", "dev_requirements")
    @classmethod
    def validate_specifiers(cls, v: list[str]) -> list[str]:
        """Each entry must be a single requirement line pip accepts."""
        for number, spec in enumerate(v, start=1):
            try:
                parse_requirement(spec)
            except ManifestError as e:
                raise ValueError(f"entry {number} ({spec!r}): {e}")
        return v


class ToolsConfig(BaseModel):
    """External developer tools.

    Attributes:
        formatter: Formatter module name
        linter: Linter module name
        test_runner: Test runner used by generated projects
        timeout_seconds: Timeout for each external command
    """

    formatter: str = Field(
        default="black",
        description="Formatter",
    )
    linter: str = Field(
        default="flake8",
        description="Linter",
    )
    test_runner: TestRunner = Field(
        default=TestRunner.UNITTEST,
        description="Test runner",
    )
    timeout_seconds: int = Field(
        default=300,
        ge=1,
        description="Command timeout in seconds",
    )


class GitConfig(BaseModel):
    """Git repository initialization settings."""

    init: bool = Field(
        default=True,
        description="Initialize a git repository",
    )
    initial_branch: str = Field(
        default="main",
        description="Name of the initial branch",
    )
    initial_commit: bool = Field(
        default=True,
        description="Create an initial commit",
    )
    commit_message: str = Field(
        default="Initial commit",
        description="Initial commit message",
    )


class EnvConfig(BaseModel):
    """Variables written into the generated .env file."""

    variables: dict[str, str] = Field(
        default_factory=lambda: {"DEBUG": "True", "SECRET_KEY": ""},
        description="Variables for .env",
    )

    @field_validator("variables", mode="before")
    @classmethod
    def validate_variables(cls, v: Any) -> dict[str, str]:
        """Keys must be valid identifiers; values are stringified."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("env.variables must be a mapping")
        result = {}
        for key, value in v.items():
            key = str(key)
            if not _ENV_KEY_PATTERN.match(key):
                raise ValueError(f"Invalid environment variable name: {key!r}")
            if value is None:
                value = ""
            elif isinstance(value, bool):
                value = "True" if value else "False"
            result[key] = str(value)
        return result


class GitIgnoreConfig(BaseModel):
    """Additional .gitignore patterns."""

    extra_patterns: list[str] = Field(
        default_factory=list,
        description="Extra .gitignore patterns",
    )


class PyPIConfig(BaseModel):
    """Package index settings used when pinning requirements."""

    index_url: str = Field(
        default="https://pypi.org/pypi",
        description="JSON API base URL",
    )
    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts per request",
    )

    @field_validator("index_url")
    @classmethod
    def validate_index_url(cls, v: str) -> str:
        """Strip trailing slashes and require an http(s) URL."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("index_url must be an http(s) URL")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level when --verbose is not given
        file: Optional log file path
        format: Format string for the file handler
    """

    level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Log level",
    )
    file: str | None = Field(
        default=None,
        description="Log file path",
    )
    format: str = Field(
        default="%(asctime)s %(name)s [%(levelname)s] %(message)s",
        description="File log format",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lower-case level names."""
        if isinstance(v, str):
            return v.upper()
        return v


class PystarterConfig(BaseModel):
    """Root configuration.

    Every section has defaults so an empty file (or no file) is valid.
    """

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    python: PythonConfig = Field(default_factory=PythonConfig)
    dependencies: DependenciesConfig = Field(default_factory=DependenciesConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    env: EnvConfig = Field(default_factory=EnvConfig)
    gitignore: GitIgnoreConfig = Field(default_factory=GitIgnoreConfig)
    pypi: PyPIConfig = Field(default_factory=PyPIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert to YAML-friendly dictionary.

        Returns:
            Dict suitable for YAML serialization
        """
        return self.model_dump(mode="json", exclude_none=True)

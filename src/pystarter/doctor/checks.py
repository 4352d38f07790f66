"""
Project Checks.

Inspects a project directory against the usual setup checklist:
interpreter version, virtual environment, manifests, README, .gitignore,
tests, .env hygiene and git.
"""

import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pystarter.config.models import PystarterConfig
from pystarter.files.envfile import EnvFileError, read_env_file
from pystarter.files.gitignore import GitIgnore
from pystarter.files.requirements import ManifestError, RequirementsFile
from pystarter.tools.git import GitRepository
from pystarter.tools.runner import CommandRunner, ToolError
from pystarter.tools.venv import VirtualEnv

logger = logging.getLogger(__name__)


class CheckStatus(str, Enum):
    """Outcome of a single check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    SKIP = "skip"


@dataclass
class CheckResult:
    """Result of a single check.

    Attributes:
        name: Check identifier
        status: Outcome
        message: What was found
        hint: How to fix it (empty when passing)
    """

    name: str
    status: CheckStatus
    message: str
    hint: str = ""


@dataclass
class DoctorReport:
    """All check results for a project."""

    root: Path
    results: list[CheckResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no check failed."""
        return all(r.status != CheckStatus.FAIL for r in self.results)

    @property
    def clean(self) -> bool:
        """True when no check failed or warned."""
        return all(r.status in (CheckStatus.PASS, CheckStatus.SKIP) for r in self.results)

    def counts(self) -> dict[str, int]:
        """Number of results per status, including zeros."""
        counter = Counter(r.status.value for r in self.results)
        return {status.value: counter.get(status.value, 0) for status in CheckStatus}

    def get(self, name: str) -> CheckResult | None:
        return next((r for r in self.results if r.name == name), None)


class ProjectDoctor:
    """Runs the project checklist.

    Usage:
        report = ProjectDoctor(Path("."), config).run()
        if not report.ok:
            ...
    """

    def __init__(
        self,
        root: str | Path,
        config: PystarterConfig,
        runner: CommandRunner | None = None,
        python_version: tuple[int, ...] | None = None,
    ) -> None:
        self.root = Path(root)
        self.config = config
        self.runner = runner or CommandRunner(timeout_seconds=config.tools.timeout_seconds)
        self.python_version = python_version or tuple(sys.version_info[:3])

    def run(self) -> DoctorReport:
        """Run every check in order."""
        report = DoctorReport(root=self.root)
        checks = [
            self.check_python_version,
            self.check_virtualenv,
            self.check_requirements,
            self.check_readme,
            self.check_gitignore,
            self.check_tests,
            self.check_env_file,
            self.check_git,
        ]
        for check in checks:
            result = check()
            logger.debug("Check %s: %s (%s)", result.name, result.status.value, result.message)
            report.results.append(result)
        return report

    def check_python_version(self) -> CheckResult:
        """The running interpreter meets python.min_version."""
        required = self.config.python.min_version_tuple
        current = ".".join(str(p) for p in self.python_version)
        if self.python_version[: len(required)] >= required:
            return CheckResult("python-version", CheckStatus.PASS, f"Python {current}")
        return CheckResult(
            "python-version",
            CheckStatus.FAIL,
            f"Python {current} is older than {self.config.python.min_version}",
            hint=f"Install Python {self.config.python.min_version} or newer",
        )

    def check_virtualenv(self) -> CheckResult:
        """A virtual environment exists at the configured venv_dir."""
        venv_dir = self.config.python.venv_dir
        if VirtualEnv(self.root / venv_dir).exists:
            return CheckResult("virtualenv", CheckStatus.PASS, f"{venv_dir}/ found")
        return CheckResult(
            "virtualenv",
            CheckStatus.WARN,
            f"No virtual environment at {venv_dir}/",
            hint=f"python -m venv {venv_dir}",
        )

    def check_requirements(self) -> CheckResult:
        """requirements.txt parses strictly and every entry is pinned."""
        path = self.root / "requirements.txt"
        if not path.exists():
            return CheckResult(
                "requirements",
                CheckStatus.WARN,
                "requirements.txt is missing",
                hint="pip freeze > requirements.txt",
            )
        try:
            manifest = RequirementsFile.load(path, strict=True)
        except ManifestError as e:
            return CheckResult(
                "requirements",
                CheckStatus.FAIL,
                f"requirements.txt is invalid: {e}",
                hint="Fix the line or remove it",
            )
        unpinned = [r.name for r in manifest.unpinned()]
        if unpinned:
            return CheckResult(
                "requirements",
                CheckStatus.WARN,
                f"{len(manifest)} requirements, unpinned: {', '.join(unpinned)}",
                hint="pystarter pin",
            )
        return CheckResult("requirements", CheckStatus.PASS, f"{len(manifest)} requirements, all pinned")

    def check_readme(self) -> CheckResult:
        """README.md exists and is not blank."""
        path = self.root / "README.md"
        if not path.exists():
            return CheckResult("readme", CheckStatus.FAIL, "README.md is missing", hint="pystarter init")
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            return CheckResult(
                "readme",
                CheckStatus.FAIL,
                "README.md is not valid UTF-8",
                hint="Save README.md as UTF-8",
            )
        if not text.strip():
            return CheckResult(
                "readme",
                CheckStatus.WARN,
                "README.md is empty",
                hint="Describe the project, setup and usage",
            )
        return CheckResult("readme", CheckStatus.PASS, "README.md found")

    def check_gitignore(self) -> CheckResult:
        """.gitignore covers the venv, __pycache__ and .env."""
        path = self.root / ".gitignore"
        if not path.exists():
            return CheckResult("gitignore", CheckStatus.FAIL, ".gitignore is missing", hint="pystarter init")
        try:
            ignore = GitIgnore.load(path)
        except UnicodeDecodeError:
            return CheckResult(
                "gitignore",
                CheckStatus.FAIL,
                ".gitignore is not valid UTF-8",
                hint="Save .gitignore as UTF-8",
            )
        required = [
            (self.config.python.venv_dir, True),
            ("__pycache__", True),
            (".env", False),
        ]
        missing = [name for name, is_dir in required if not ignore.is_ignored(name, is_dir=is_dir)]
        if missing:
            return CheckResult(
                "gitignore",
                CheckStatus.FAIL,
                f".gitignore does not ignore: {', '.join(missing)}",
                hint="pystarter init merges the missing patterns",
            )
        return CheckResult("gitignore", CheckStatus.PASS, ".gitignore covers venv, bytecode and .env")

    def check_tests(self) -> CheckResult:
        """A tests/ directory with at least one test_*.py module."""
        tests_dir = self.root / "tests"
        if not tests_dir.is_dir():
            return CheckResult("tests", CheckStatus.FAIL, "tests/ directory is missing", hint="pystarter init")
        test_files = sorted(tests_dir.rglob("test_*.py"))
        if not test_files:
            return CheckResult(
                "tests",
                CheckStatus.WARN,
                "tests/ contains no test_*.py files",
                hint="Add tests/test_main.py",
            )
        return CheckResult("tests", CheckStatus.PASS, f"{len(test_files)} test module(s)")

    def check_env_file(self) -> CheckResult:
        """.env parses and shares its keys with .env.example."""
        env_path = self.root / ".env"
        if not env_path.exists():
            return CheckResult("env-file", CheckStatus.SKIP, "No .env file")
        try:
            values = read_env_file(env_path)
        except EnvFileError as e:
            return CheckResult("env-file", CheckStatus.FAIL, str(e))

        example_path = self.root / ".env.example"
        if not example_path.exists():
            return CheckResult(
                "env-file",
                CheckStatus.WARN,
                f".env has {len(values)} keys but .env.example is missing",
                hint="Commit a .env.example with the same keys and empty values",
            )
        try:
            example = read_env_file(example_path)
        except EnvFileError as e:
            return CheckResult("env-file", CheckStatus.FAIL, str(e))
        missing = sorted(set(values) - set(example))
        extra = sorted(set(example) - set(values))
        if missing or extra:
            parts = []
            if missing:
                parts.append(f"missing from .env.example: {', '.join(missing)}")
            if extra:
                parts.append(f"missing from .env: {', '.join(extra)}")
            return CheckResult(
                "env-file",
                CheckStatus.WARN,
                "; ".join(parts),
                hint="Keep .env and .env.example keys in sync",
            )
        return CheckResult("env-file", CheckStatus.PASS, f".env and .env.example agree on {len(values)} keys")

    def check_git(self) -> CheckResult:
        """Warn outside a repository; fail when .env is tracked."""
        repo = GitRepository(self.root, self.runner)
        try:
            if not repo.is_repository():
                return CheckResult(
                    "git",
                    CheckStatus.WARN,
                    "Not a git repository",
                    hint="git init",
                )
            if (self.root / ".env").exists() and repo.is_tracked(".env"):
                return CheckResult(
                    "git",
                    CheckStatus.FAIL,
                    ".env is tracked by git",
                    hint="git rm --cached .env",
                )
        except ToolError as e:
            return CheckResult("git", CheckStatus.SKIP, f"git unavailable: {e}")
        return CheckResult("git", CheckStatus.PASS, "Git repository, .env not tracked")

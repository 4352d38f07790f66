"""
Scaffold Plan Models.

A plan is the ordered list of filesystem and command actions needed to
bring a directory up to the standard project layout. Plans are pure data
so they can be shown in a dry run before anything is written.
"""

import keyword
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from pystarter.tools.runner import CommandResult


class ScaffoldError(Exception):
    """Raised when a project cannot be scaffolded at the target."""

    pass


class ActionKind(str, Enum):
    """Kind of scaffold action."""

    MKDIR = "mkdir"
    WRITE = "write"
    MERGE = "merge"
    SKIP = "skip"
    COMMAND = "command"


class MergeStrategy(str, Enum):
    """How an existing file is combined with generated content."""

    REQUIREMENTS = "requirements"
    GITIGNORE = "gitignore"
    ENV = "env"


@dataclass
class ScaffoldAction:
    """A single step of a scaffold plan.

    Attributes:
        kind: Action kind
        target: Path relative to the project root (or a command label)
        detail: Human readable description
        content: File content for write/merge actions
        strategy: Merge strategy for merge actions
    """

    kind: ActionKind
    target: str
    detail: str = ""
    content: str | None = None
    strategy: MergeStrategy | None = None


@dataclass
class ScaffoldPlan:
    """Ordered scaffold actions."""

    actions: list[ScaffoldAction] = field(default_factory=list)

    def add(self, action: ScaffoldAction) -> None:
        self.actions.append(action)

    def of_kind(self, kind: ActionKind) -> list[ScaffoldAction]:
        return [a for a in self.actions if a.kind == kind]

    def targets(self, kind: ActionKind | None = None) -> list[str]:
        return [a.target for a in self.actions if kind is None or a.kind == kind]

    def summary(self) -> dict[str, int]:
        """Count of actions per kind."""
        counts = Counter(a.kind.value for a in self.actions)
        return {kind.value: counts.get(kind.value, 0) for kind in ActionKind}


@dataclass
class ScaffoldReport:
    """Outcome of applying a plan.

    Attributes:
        created: Paths written or directories created
        merged: Path -> entries added to an existing file
        skipped: Existing paths left untouched
        commands: Results of external commands
        warnings: Non-fatal problems (e.g. git missing)
        dry_run: Nothing was written
    """

    created: list[str] = field(default_factory=list)
    merged: dict[str, list[str]] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    commands: list[CommandResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.warnings


def derive_package_name(project_name: str) -> str:
    """Derive an importable package name from a project name.

    Raises:
        ScaffoldError: If no usable characters remain
    """
    name = re.sub(r"[^a-z0-9]+", "_", project_name.strip().lower()).strip("_")
    if not name:
        raise ScaffoldError(f"Cannot derive a package name from {project_name!r}")
    if name[0].isdigit():
        name = f"_{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name

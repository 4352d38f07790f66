"""
Scaffold Module.

Plans and applies the standard Python project layout.
"""

from pystarter.scaffold.plan import (
    ActionKind,
    MergeStrategy,
    ScaffoldAction,
    ScaffoldError,
    ScaffoldPlan,
    ScaffoldReport,
    derive_package_name,
)
from pystarter.scaffold.scaffolder import ProjectScaffolder

__all__ = [
    "ActionKind",
    "MergeStrategy",
    "ScaffoldAction",
    "ScaffoldError",
    "ScaffoldPlan",
    "ScaffoldReport",
    "ProjectScaffolder",
    "derive_package_name",
]

"""
External Tools Module.

Subprocess wrappers for the tools used while setting up a project.
Nothing here reimplements those tools; each wrapper only builds the
command line and reports the outcome.
"""

from pystarter.tools.git import GitRepository
from pystarter.tools.quality import TEST_COMMANDS, QualityTools
from pystarter.tools.runner import (
    CommandResult,
    CommandRunner,
    ToolError,
    ToolExecutionError,
    ToolNotAvailableError,
    ToolTimeoutError,
)
from pystarter.tools.venv import Pip, VirtualEnv

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ToolError",
    "ToolExecutionError",
    "ToolNotAvailableError",
    "ToolTimeoutError",
    "VirtualEnv",
    "Pip",
    "GitRepository",
    "QualityTools",
    "TEST_COMMANDS",
]

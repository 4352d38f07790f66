"""
pystarter: set up Python projects the conventional way.

Automates the usual first steps of a Python project and checks existing
projects against the same checklist:

- Virtual environment created with ``python -m venv``
- requirements.txt / requirements-dev.txt manifests
- README.md, .gitignore, .env and .env.example
- A first module with a unit test, flat or src layout
- Git repository with an initial commit

Example:
    from pathlib import Path

    from pystarter.config import PystarterConfig
    from pystarter.scaffold import ProjectScaffolder

    scaffolder = ProjectScaffolder(PystarterConfig(), Path("hello-world"))
    report = scaffolder.apply()
"""

from pystarter.version import __version__

__all__ = [
    "__version__",
]

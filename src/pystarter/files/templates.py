"""
Project File Template Engine.

Renders the source, test and documentation files of a new project.
Templates use ``string.Template`` placeholders (``${name}``); a literal
dollar sign is written as ``$$``.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from string import Template

from pydantic import BaseModel, Field


class TemplateError(Exception):
    """Raised when a template is unknown or cannot be rendered."""

    pass


class TemplateFile(BaseModel):
    """A file template definition.

    Attributes:
        name: Template name
        path: Relative path template
        content: Content template
        layouts: Layouts the template applies to
    """

    name: str
    path: str
    content: str
    layouts: list[str] = Field(default_factory=lambda: ["flat", "src"])


@dataclass
class TemplateContext:
    """Variables available to templates.

    Attributes:
        project_name: Human project name (directory name)
        package_name: Importable package/module name
        description: One-line description
        author: Author name
        python_version: Minimum Python version
        venv_dir: Virtual environment directory
        layout: "flat" or "src"
        test_runner: "unittest" or "pytest"
        formatter: Formatter command
        linter: Linter command
        env_keys: Keys written to .env (used by the settings module)
        year: Current year
    """

    project_name: str
    package_name: str
    description: str = "A new Python project"
    author: str = ""
    python_version: str = "3.9"
    venv_dir: str = "venv"
    layout: str = "flat"
    test_runner: str = "unittest"
    formatter: str = "black"
    linter: str = "flake8"
    env_keys: list[str] = field(default_factory=list)
    year: int = field(default_factory=lambda: date.today().year)

    @property
    def source_dir(self) -> str:
        """Directory holding main.py, relative to the project root."""
        if self.layout == "src":
            return f"src/{self.package_name}"
        return "."

    @property
    def test_command(self) -> str:
        if self.test_runner == "pytest":
            return "python -m pytest"
        return "python -m unittest discover -s tests"

    @property
    def run_command(self) -> str:
        if self.layout == "src":
            return f"python -m {self.package_name}.main"
        return "python main.py"

    def variables(self) -> dict[str, str]:
        """Flatten into template variables, including derived blocks."""
        values = {k: str(v) for k, v in asdict(self).items() if k != "env_keys"}
        values.update(
            source_dir=self.source_dir,
            test_command=self.test_command,
            run_command=self.run_command,
            greet_import=(
                f"from {self.package_name}.main import greet"
                if self.layout == "src"
                else "from main import greet"
            ),
            src_path_setup=_SRC_PATH_SETUP if self.layout == "src" else "",
            settings_body=_settings_body(self.env_keys),
            author_line=f"Author: {self.author}\n\n" if self.author else "",
            src_layout_note=(
                f"Source code lives in `src/{self.package_name}/`.\n\n"
                if self.layout == "src"
                else ""
            ),
        )
        return values


_SRC_PATH_SETUP = """import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

"""


def _settings_body(keys: list[str]) -> str:
    if not keys:
        return "# Read settings with os.getenv(\"NAME\", \"default\")\n"
    lines = []
    for key in keys:
        if key == "DEBUG":
            lines.append('DEBUG = os.getenv("DEBUG", "False") == "True"')
        else:
            lines.append(f'{key} = os.getenv("{key}", "")')
    return "\n".join(lines) + "\n"


MAIN_TEMPLATE = TemplateFile(
    name="main",
    path="${source_dir}/main.py",
    content='''def greet():
    print("Hello, World!")


if __name__ == "__main__":
    greet()
''',
)

PACKAGE_INIT_TEMPLATE = TemplateFile(
    name="package_init",
    path="src/${package_name}/__init__.py",
    content='''"""${description}"""
''',
    layouts=["src"],
)

SETTINGS_TEMPLATE = TemplateFile(
    name="settings",
    path="${source_dir}/settings.py",
    content='''"""Settings loaded from the .env file."""

import os

from dotenv import load_dotenv

load_dotenv()

${settings_body}''',
)

TESTS_INIT_TEMPLATE = TemplateFile(
    name="tests_init",
    path="tests/__init__.py",
    content="",
)

TEST_MAIN_TEMPLATE = TemplateFile(
    name="test_main",
    path="tests/test_main.py",
    content='''${src_path_setup}import unittest

${greet_import}


class TestGreet(unittest.TestCase):
    def test_greet_returns_none(self):
        self.assertIsNone(greet())


if __name__ == "__main__":
    unittest.main()
''',
)

README_TEMPLATE = TemplateFile(
    name="readme",
    path="README.md",
    content='''# ${project_name}

${description}

${author_line}## Requirements

- Python ${python_version} or newer

## Setup

Create and activate a virtual environment:

```bash
python -m venv ${venv_dir}
source ${venv_dir}/bin/activate      # macOS / Linux
${venv_dir}\\Scripts\\activate         # Windows
```

Install the dependencies:

```bash
pip install -r requirements.txt
pip install -r requirements-dev.txt
```

Copy `.env.example` to `.env` and fill in the values. The `.env` file is
ignored by git and must never be committed.

## Usage

${src_layout_note}```bash
${run_command}
```

## Tests

```bash
${test_command}
```

## Code style

```bash
${formatter} .
${linter} .
```
''',
)

BUILTIN_TEMPLATES = [
    MAIN_TEMPLATE,
    PACKAGE_INIT_TEMPLATE,
    SETTINGS_TEMPLATE,
    TESTS_INIT_TEMPLATE,
    TEST_MAIN_TEMPLATE,
    README_TEMPLATE,
]


def _normalize_path(path: str) -> str:
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
    return "/".join(parts)


def _ensure_trailing_newline(text: str) -> str:
    if not text:
        return ""
    return text.rstrip("\n") + "\n"


class TemplateEngine:
    """Renders project files from templates.

    Usage:
        engine = TemplateEngine()
        context = TemplateContext(project_name="demo", package_name="demo")
        path, content = engine.render("main", context)
    """

    def __init__(self) -> None:
        """Initialize the engine with the built-in templates."""
        self._templates: dict[str, TemplateFile] = {t.name: t for t in BUILTIN_TEMPLATES}

    @property
    def names(self) -> list[str]:
        return list(self._templates)

    def register_template(self, template: TemplateFile) -> None:
        """Register (or replace) a template."""
        self._templates[template.name] = template

    def get_template(self, name: str) -> TemplateFile | None:
        """Registered template by name, or None."""
        return self._templates.get(name)

    def applies(self, name: str, layout: str) -> bool:
        template = self._require(name)
        return layout in template.layouts

    def _require(self, name: str) -> TemplateFile:
        template = self._templates.get(name)
        if template is None:
            raise TemplateError(f"Template not found: {name}")
        return template

    def render(self, name: str, context: TemplateContext) -> tuple[str, str]:
        """Render one template.

        Returns:
            Tuple of (relative path, content)

        Raises:
            TemplateError: If the template is unknown or a variable is missing
        """
        template = self._require(name)
        variables = context.variables()
        try:
            path = Template(template.path).substitute(variables)
            content = Template(template.content).substitute(variables)
        except KeyError as e:
            raise TemplateError(f"Missing template variable {e} in {name}") from e
        except ValueError as e:
            raise TemplateError(f"Invalid placeholder in {name}: {e}") from e
        return _normalize_path(path), _ensure_trailing_newline(content)

    def render_all(
        self,
        context: TemplateContext,
        names: list[str] | None = None,
    ) -> list[tuple[str, str]]:
        """Render every template that applies to the context's layout."""
        rendered = []
        for name in names or self.names:
            if not self.applies(name, context.layout):
                continue
            rendered.append(self.render(name, context))
        return rendered

"""
.gitignore Handling.

Builds, merges and queries .gitignore files. Matching implements the
commonly used subset of gitignore semantics: directory-only patterns,
anchoring, ``*``/``?``/``[]``/``**`` wildcards and ``!`` negation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

# Section comment -> patterns
DEFAULT_PYTHON_PATTERNS: list[tuple[str, list[str]]] = [
    ("Virtual environments", ["venv/", ".venv/", "env/", "ENV/"]),
    ("Byte-compiled files", ["__pycache__/", "*.py[cod]", "*$py.class"]),
    ("Distribution / packaging", ["build/", "dist/", "*.egg-info/", ".eggs/"]),
    ("Test and coverage reports", [".pytest_cache/", ".coverage", "htmlcov/", ".tox/"]),
    ("Environment variables and secrets", [".env"]),
    ("Editors and OS files", [".vscode/", ".idea/", ".DS_Store", "Thumbs.db"]),
]


@dataclass(frozen=True)
class _Rule:
    pattern: str
    regex: re.Pattern[str]
    negated: bool
    dir_only: bool


def _translate(glob: str) -> str:
    """Translate a gitignore glob (without anchors) to a regex body."""
    out = []
    i = 0
    n = len(glob)
    while i < n:
        if glob.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif glob.startswith("/**", i) and i + 3 == n:
            out.append("(?:/.*)?")
            i += 3
        elif glob.startswith("**", i):
            out.append(".*")
            i += 2
        elif glob[i] == "*":
            out.append("[^/]*")
            i += 1
        elif glob[i] == "?":
            out.append("[^/]")
            i += 1
        elif glob[i] == "[":
            end = glob.find("]", i + 1)
            if end == -1:
                out.append(re.escape("["))
                i += 1
            else:
                body = glob[i + 1:end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end + 1
        elif glob[i] == "\\" and i + 1 < n:
            out.append(re.escape(glob[i + 1]))
            i += 2
        else:
            out.append(re.escape(glob[i]))
            i += 1
    return "".join(out)


def _compile(pattern: str) -> _Rule | None:
    text = pattern.strip()
    if not text or text.startswith("#"):
        return None

    negated = text.startswith("!")
    if negated:
        text = text[1:]
    dir_only = text.endswith("/")
    text = text.rstrip("/")
    if not text:
        return None

    anchored = "/" in text
    text = text.lstrip("/")
    body = _translate(text)
    prefix = "^" if anchored else "^(?:.*/)?"
    return _Rule(pattern, re.compile(f"{prefix}{body}$"), negated, dir_only)


class GitIgnore:
    """An ordered .gitignore file.

    Lines are kept verbatim so comments and grouping survive a merge.
    """

    def __init__(self, lines: list[str] | None = None) -> None:
        self.lines: list[str] = list(lines or [])

    @classmethod
    def parse(cls, text: str) -> GitIgnore:
        return cls([line.rstrip() for line in text.splitlines()])

    @classmethod
    def load(cls, path: str | Path, missing_ok: bool = True) -> GitIgnore:
        """Load a .gitignore file.

        Raises:
            FileNotFoundError: If missing and missing_ok is False
        """
        path = Path(path)
        if not path.exists():
            if missing_ok:
                return cls()
            raise FileNotFoundError(f".gitignore not found: {path}")
        return cls.parse(path.read_text(encoding="utf-8"))

    @classmethod
    def build_default(cls, venv_dir: str = "venv", extra: list[str] | None = None) -> GitIgnore:
        """Default Python patterns plus the configured venv dir and extras."""
        ignore = cls()
        for section, patterns in DEFAULT_PYTHON_PATTERNS:
            for pattern in patterns:
                ignore.add(pattern, section=section)

        venv_pattern = venv_dir.strip("/").replace("\\", "/") + "/"
        ignore.add(venv_pattern, section="Virtual environments")
        for pattern in extra or []:
            ignore.add(pattern, section="Project specific")
        return ignore

    @property
    def patterns(self) -> list[str]:
        """Patterns without comments and blank lines."""
        return [
            line.strip() for line in self.lines
            if line.strip() and not line.strip().startswith("#")
        ]

    def __contains__(self, pattern: str) -> bool:
        return pattern.strip() in self.patterns

    def add(self, pattern: str, section: str | None = None) -> bool:
        """Add a pattern unless present.

        When a section is given, the pattern is appended to that section
        (created at the end of the file if missing).

        Returns:
            True if the pattern was added
        """
        pattern = pattern.strip()
        if not pattern or pattern in self:
            return False

        if section is None:
            self.lines.append(pattern)
            return True

        header = f"# {section}"
        if header not in self.lines:
            if self.lines and self.lines[-1].strip():
                self.lines.append("")
            self.lines.extend([header, pattern])
            return True

        index = self.lines.index(header) + 1
        while index < len(self.lines) and self.lines[index].strip() and not self.lines[index].startswith("#"):
            index += 1
        self.lines.insert(index, pattern)
        return True

    def merge(self, other: GitIgnore) -> list[str]:
        """Add other's patterns that are missing, keeping other's sections.

        Returns:
            Patterns that were added
        """
        added = []
        section = None
        for line in other.lines:
            stripped = line.strip()
            if stripped.startswith("#"):
                section = stripped[1:].strip()
                continue
            if stripped and self.add(stripped, section=section):
                added.append(stripped)
        return added

    def _rules(self) -> list[_Rule]:
        return [rule for rule in (_compile(line) for line in self.lines) if rule]

    @staticmethod
    def _match(rules: list[_Rule], path: str, is_dir: bool) -> bool | None:
        result = None
        for rule in rules:
            if rule.dir_only and not is_dir:
                continue
            if rule.regex.match(path):
                result = not rule.negated
        return result

    def is_ignored(self, relative_path: str | Path, is_dir: bool = False) -> bool:
        """Check whether a path (relative to the repo root) is ignored.

        A path inside an ignored directory is ignored; negations cannot
        re-include it, as in git.
        """
        path = PurePosixPath(str(relative_path).replace("\\", "/").lstrip("/"))
        parts = path.parts
        if not parts or parts == (".",):
            return False

        rules = self._rules()
        for depth in range(1, len(parts)):
            if self._match(rules, "/".join(parts[:depth]), is_dir=True):
                return True
        return bool(self._match(rules, "/".join(parts), is_dir=is_dir))

    def dumps(self) -> str:
        """Render the lines with a trailing newline."""
        lines = list(self.lines)
        while lines and not lines[-1].strip():
            lines.pop()
        return "\n".join(lines) + "\n" if lines else ""

    def save(self, path: str | Path) -> None:
        """Write dumps() to path as UTF-8."""
        Path(path).write_text(self.dumps(), encoding="utf-8")

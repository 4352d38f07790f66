"""
Requirements File Handling.

Reads and writes pip requirement files (one specifier per line) while
keeping comments, blank lines and option lines exactly where they were.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Raised when a requirements file or line is invalid."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number

    def __str__(self) -> str:
        msg = super().__str__()
        if self.line_number is not None:
            msg = f"line {self.line_number}: {msg}"
        return msg


NAME_PATTERN = re.compile(r"^([A-Z0-9]|[A-Z0-9][A-Z0-9._-]*[A-Z0-9])$", re.IGNORECASE)

_LINE_PATTERN = re.compile(
    r"^(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)"
    r"\s*(?:\[(?P<extras>[^\]]*)\])?"
    r"\s*(?P<rest>.*)$"
)

_CLAUSE_PATTERN = re.compile(r"^(?P<op>~=|===|==|!=|<=|>=|<|>)\s*(?P<version>[A-Za-z0-9.*+!_-]+)$")

_NORMALIZE_PATTERN = re.compile(r"[-_.]+")


def normalize_name(name: str) -> str:
    """Normalize a project name (PEP 503)."""
    return _NORMALIZE_PATTERN.sub("-", name).lower()


@dataclass
class Requirement:
    """A single requirement specifier.

    Attributes:
        name: Project name as written
        extras: Requested extras
        specifier: Version clauses joined with commas (e.g. ">=2,<3"),
            or "@ <url>" for direct references
        marker: Environment marker (text after ';')
        comment: Inline comment text, without the '#'
        line: Original line text, used verbatim when writing back
    """

    name: str
    extras: list[str] = field(default_factory=list)
    specifier: str = ""
    marker: str = ""
    comment: str = ""
    line: str | None = None

    @property
    def normalized_name(self) -> str:
        """PEP 503 normalized name."""
        return normalize_name(self.name)

    @property
    def is_pinned(self) -> bool:
        """True when the specifier is a single exact '==' clause."""
        if not self.specifier or "," in self.specifier:
            return False
        match = _CLAUSE_PATTERN.match(self.specifier)
        if not match:
            return False
        return match.group("op") == "==" and "*" not in match.group("version")

    @property
    def pinned_version(self) -> str | None:
        """Exact version when pinned, else None."""
        if not self.is_pinned:
            return None
        return _CLAUSE_PATTERN.match(self.specifier).group("version")

    def with_specifier(self, specifier: str) -> Requirement:
        """Return a copy with a new specifier, rendered canonically."""
        return replace(self, specifier=specifier, line=None)

    def canonical(self) -> str:
        """Render the canonical line form."""
        text = self.name
        if self.extras:
            text += f"[{','.join(self.extras)}]"
        if self.specifier.startswith("@"):
            text += f" {self.specifier}"
        else:
            text += self.specifier
        if self.marker:
            text += f"; {self.marker}"
        if self.comment:
            text += f"  # {self.comment}"
        return text

    def __str__(self) -> str:
        return self.line if self.line is not None else self.canonical()


def _split_comment(text: str) -> tuple[str, str]:
    """Split an inline comment (a '#' preceded by whitespace)."""
    match = re.search(r"(^|\s)#", text)
    if not match:
        return text, ""
    return text[: match.start()].rstrip(), text[match.end():].strip()


def _parse_specifier(rest: str, line_number: int | None) -> str:
    rest = rest.strip()
    if not rest:
        return ""
    if rest.startswith("@"):
        url = rest[1:].strip()
        if not url:
            raise ManifestError("Direct reference is missing a URL", line_number)
        return f"@ {url}"

    clauses = []
    for raw_clause in rest.split(","):
        clause = raw_clause.strip()
        match = _CLAUSE_PATTERN.match(clause)
        if not match:
            raise ManifestError(f"Malformed version specifier: {rest!r}", line_number)
        clauses.append(f"{match.group('op')}{match.group('version')}")
    return ",".join(clauses)


def parse_requirement(line: str, line_number: int | None = None) -> Requirement:
    """Parse one requirement line.

    Args:
        line: Requirement text such as ``requests[socks]>=2.31; python_version>"3.8"``
        line_number: Line number used in error messages

    Returns:
        Parsed Requirement

    Raises:
        ManifestError: If the name or specifier is invalid
    """
    original = line.rstrip("\r\n")
    body, comment = _split_comment(original.strip())
    if not body:
        raise ManifestError("Empty requirement", line_number)

    marker = ""
    if ";" in body:
        body, marker = body.split(";", 1)
        marker = marker.strip()
        body = body.strip()

    match = _LINE_PATTERN.match(body)
    if not match or not NAME_PATTERN.match(match.group("name")):
        raise ManifestError(f"Invalid requirement name in {body!r}", line_number)

    extras = []
    if match.group("extras") is not None:
        extras = [e.strip() for e in match.group("extras").split(",") if e.strip()]
        for extra in extras:
            if not NAME_PATTERN.match(extra):
                raise ManifestError(f"Invalid extra {extra!r}", line_number)

    specifier = _parse_specifier(match.group("rest"), line_number)

    return Requirement(
        name=match.group("name"),
        extras=extras,
        specifier=specifier,
        marker=marker,
        comment=comment,
        line=original.strip(),
    )


def _is_raw_line(stripped: str) -> bool:
    """Comments, blanks and pip option lines (-r, -e, --index-url)."""
    return not stripped or stripped.startswith("#") or stripped.startswith("-")


def _join_continuations(text: str) -> list[tuple[int, str]]:
    """Join backslash continuations, keeping the first line number."""
    logical: list[tuple[int, str]] = []
    buffer = ""
    start = 0
    for number, line in enumerate(text.splitlines(), start=1):
        if not buffer:
            start = number
        if line.endswith("\\"):
            buffer += line[:-1].rstrip() + " "
            continue
        logical.append((start, buffer + line))
        buffer = ""
    if buffer:
        logical.append((start, buffer.rstrip()))
    return logical


class RequirementsFile:
    """An ordered requirements manifest.

    Entries are Requirement objects or raw strings (comments, blank
    lines and option lines) so that writing back preserves the layout.

    Usage:
        manifest = RequirementsFile.load("requirements.txt", missing_ok=True)
        manifest.add(parse_requirement("requests>=2.31"))
        manifest.save("requirements.txt")
    """

    def __init__(self, entries: list[Requirement | str] | None = None) -> None:
        self.entries: list[Requirement | str] = list(entries or [])

    @classmethod
    def parse(cls, text: str, strict: bool = False) -> RequirementsFile:
        """Parse requirements text.

        Args:
            text: File contents
            strict: Reject duplicate project names

        Raises:
            ManifestError: On an invalid line, or a duplicate in strict mode
        """
        entries: list[Requirement | str] = []
        seen: dict[str, int] = {}
        for number, line in _join_continuations(text):
            stripped = line.strip()
            if _is_raw_line(stripped):
                entries.append(line.rstrip())
                continue
            req = parse_requirement(line, number)
            key = req.normalized_name
            if key in seen and strict:
                raise ManifestError(
                    f"Duplicate requirement {req.name!r} (first on line {seen[key]})", number
                )
            seen.setdefault(key, number)
            entries.append(req)
        return cls(entries)

    @classmethod
    def load(cls, path: str | Path, missing_ok: bool = False, strict: bool = False) -> RequirementsFile:
        """Load a requirements file from disk.

        Raises:
            FileNotFoundError: If the file is missing and missing_ok is False
            ManifestError: On invalid or undecodable content
        """
        path = Path(path)
        if not path.exists():
            if missing_ok:
                return cls()
            raise FileNotFoundError(f"Requirements file not found: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ManifestError(f"{path.name} is not valid UTF-8 (byte {e.start})") from e
        return cls.parse(text, strict=strict)

    @property
    def requirements(self) -> list[Requirement]:
        """Requirement entries in file order."""
        return [e for e in self.entries if isinstance(e, Requirement)]

    @property
    def names(self) -> list[str]:
        return [r.name for r in self.requirements]

    def __len__(self) -> int:
        return len(self.requirements)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def _index_of(self, name: str) -> int | None:
        key = normalize_name(name)
        found = None
        for index, entry in enumerate(self.entries):
            if isinstance(entry, Requirement) and entry.normalized_name == key:
                found = index
        return found

    def get(self, name: str) -> Requirement | None:
        """Look up a requirement by (normalized) name; last occurrence wins."""
        index = self._index_of(name)
        return None if index is None else self.entries[index]

    def add(self, requirement: Requirement | str, replace: bool = True) -> bool:
        """Add a requirement, replacing an existing one in place.

        Args:
            requirement: Requirement or requirement line
            replace: Replace an existing entry with the same name

        Returns:
            True if the manifest changed
        """
        if isinstance(requirement, str):
            requirement = parse_requirement(requirement)
        index = self._index_of(requirement.name)
        if index is None:
            self.entries.append(requirement)
            logger.debug("Added requirement %s", requirement)
            return True
        if not replace:
            return False
        if str(self.entries[index]) == str(requirement):
            return False
        self.entries[index] = requirement
        logger.debug("Replaced requirement %s", requirement)
        return True

    def remove(self, name: str) -> bool:
        """Remove every entry with the given name."""
        key = normalize_name(name)
        before = len(self.entries)
        self.entries = [
            e for e in self.entries
            if not (isinstance(e, Requirement) and e.normalized_name == key)
        ]
        return len(self.entries) != before

    def merge(self, other: RequirementsFile) -> list[str]:
        """Append requirements from other that are not already present.

        Returns:
            Names that were added
        """
        added = []
        for req in other.requirements:
            if self.add(req, replace=False):
                added.append(req.name)
        return added

    def unpinned(self) -> list[Requirement]:
        """Requirements without an exact pin (direct references excluded)."""
        return [
            r for r in self.requirements
            if not r.is_pinned and not r.specifier.startswith("@")
        ]

    def dumps(self) -> str:
        """Serialize to text with a single trailing newline."""
        lines = [str(e) for e in self.entries]
        while lines and not lines[-1].strip():
            lines.pop()
        return "\n".join(lines) + "\n" if lines else ""

    def save(self, path: str | Path) -> None:
        """Write dumps() to path as UTF-8."""
        Path(path).write_text(self.dumps(), encoding="utf-8")


def parse_freeze_output(text: str) -> RequirementsFile:
    """Parse ``pip freeze`` output into a manifest of pinned requirements.

    Editable installs and lines without an exact pin are skipped.
    """
    manifest = RequirementsFile()
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-e", "-")) or "==" not in stripped:
            continue
        try:
            manifest.add(parse_requirement(stripped))
        except ManifestError:
            logger.debug("Skipping unparseable freeze line: %s", stripped)
    return manifest

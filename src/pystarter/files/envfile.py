"""
.env File Handling.

Reads ``KEY=VALUE`` files with python-dotenv and writes them back in a
form python-dotenv parses unchanged. Values are read without ${VAR}
interpolation so they survive a read and write cycle verbatim.
"""

import logging
import re
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SECRET_MARKERS = ("KEY", "SECRET", "TOKEN", "PASSWORD", "PASS")

MASK = "****"


class EnvFileError(Exception):
    """Raised when a .env file cannot be read or written."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        msg = super().__str__()
        if self.path:
            msg = f"{msg} (file: {self.path})"
        return msg


def read_env_file(path: str | Path) -> dict[str, str | None]:
    """Read a .env file without touching os.environ.

    Keys declared without '=' map to None. References such as ${HOME}
    are returned as written.

    Raises:
        EnvFileError: If the file does not exist or is not valid UTF-8
    """
    path = Path(path)
    if not path.is_file():
        raise EnvFileError("Environment file not found", path=path)
    try:
        return dict(dotenv_values(path, interpolate=False))
    except UnicodeDecodeError as e:
        raise EnvFileError(f"Environment file is not valid UTF-8 (byte {e.start})", path=path) from e


def _quote(value: str) -> str:
    if value == "":
        return ""
    if re.search(r"[\s#'\"\\]", value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return value


def format_env(values: dict[str, str | None], header: str | None = None) -> str:
    """Render KEY=VALUE lines.

    Raises:
        EnvFileError: On an invalid key
    """
    lines = []
    if header:
        lines.extend(f"# {line}" if line else "#" for line in header.splitlines())
    for key, value in values.items():
        if not KEY_PATTERN.match(key):
            raise EnvFileError(f"Invalid environment variable name: {key!r}")
        lines.append(f"{key}={_quote('' if value is None else str(value))}")
    return "\n".join(lines) + "\n" if lines else ""


def write_env_file(
    path: str | Path,
    values: dict[str, str | None],
    header: str | None = None,
) -> None:
    """Write (overwrite) a .env file."""
    path = Path(path)
    path.write_text(format_env(values, header=header), encoding="utf-8")
    logger.debug("Wrote %d variables to %s", len(values), path)


def merge_env_file(path: str | Path, values: dict[str, str | None]) -> list[str]:
    """Append keys missing from an existing .env file.

    Existing values are never overwritten. A missing file is created.

    Returns:
        Keys that were added
    """
    path = Path(path)
    if not path.exists():
        write_env_file(path, values)
        return list(values)

    existing = read_env_file(path)
    missing = {k: v for k, v in values.items() if k not in existing}
    if not missing:
        return []

    text = path.read_text(encoding="utf-8")
    if text and not text.endswith("\n"):
        text += "\n"
    path.write_text(text + format_env(missing), encoding="utf-8")
    return list(missing)


def is_secret_key(key: str) -> bool:
    """True for names containing KEY, SECRET, TOKEN or PASS(WORD)."""
    upper = key.upper()
    return any(marker in upper for marker in SECRET_MARKERS)


def mask_value(key: str, value: str | None) -> str | None:
    """Mask values of keys that look like secrets.

    Short secrets are fully masked; longer ones keep two leading characters.
    """
    if value is None or not is_secret_key(key):
        return value
    if value == "":
        return ""
    if len(value) <= 4:
        return MASK
    return value[:2] + MASK


def example_env(values: dict[str, str | None]) -> dict[str, str]:
    """Same keys with empty values, for .env.example."""
    return {key: "" for key in values}

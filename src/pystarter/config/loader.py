"""
Configuration Loader.

Reads ``pystarter.yaml`` (or the file named by PYSTARTER_CONFIG), expands
``${VAR}`` references, applies PYSTARTER_* overrides and validates the
result against PystarterConfig.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pystarter.config.environment import load_environment
from pystarter.config.models import PystarterConfig

# Searched in the current directory, first match wins
DEFAULT_CONFIG_PATHS = [
    "pystarter.yaml",
    "pystarter.yml",
    ".pystarter.yaml",
    ".pystarter.yml",
]

CONFIG_ENV_VAR = "PYSTARTER_CONFIG"

# Env var -> dotted config path
ENV_VAR_OVERRIDES = {
    "PYSTARTER_LAYOUT": "project.layout",
    "PYSTARTER_AUTHOR": "project.author",
    "PYSTARTER_PYTHON_MIN_VERSION": "python.min_version",
    "PYSTARTER_VENV_DIR": "python.venv_dir",
    "PYSTARTER_CREATE_VENV": "python.create_venv",
    "PYSTARTER_INSTALL_REQUIREMENTS": "python.install_requirements",
    "PYSTARTER_TEST_RUNNER": "tools.test_runner",
    "PYSTARTER_TOOL_TIMEOUT": "tools.timeout_seconds",
    "PYSTARTER_GIT_INIT": "git.init",
    "PYSTARTER_GIT_BRANCH": "git.initial_branch",
    "PYSTARTER_PYPI_URL": "pypi.index_url",
    "PYSTARTER_LOG_LEVEL": "logging.level",
    "PYSTARTER_LOG_FILE": "logging.file",
}

# "3.10" must not become 3.1, "0" must not become an int author
_STRING_OVERRIDES = {"python.min_version", "project.author", "python.venv_dir"}

# ${NAME}, ${NAME:-fallback} or ${NAME:fallback}
_REFERENCE = re.compile(r"\$\{(\w+)(?::-?([^}]*))?\}")

_TRUE_WORDS = ("true", "yes", "on")
_FALSE_WORDS = ("false", "no", "off")

_MAX_REPORTED_ERRORS = 5


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be used.

    Attributes:
        errors: Pydantic error dicts (empty for YAML problems)
        path: Offending file, if any
    """

    def __init__(
        self,
        message: str,
        errors: list[dict] | None = None,
        path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.path = path

    def __str__(self) -> str:
        text = super().__str__()
        if self.path:
            text += f" (file: {self.path})"
        lines = [
            f"  - {'.'.join(str(part) for part in err.get('loc', []))}: {err.get('msg', 'Unknown error')}"
            for err in self.errors[:_MAX_REPORTED_ERRORS]
        ]
        hidden = len(self.errors) - _MAX_REPORTED_ERRORS
        if hidden > 0:
            lines.append(f"  ... and {hidden} more errors")
        if lines:
            text += "\n" + "\n".join(lines)
        return text


def coerce_value(text: str) -> Any:
    """Interpret an environment string as bool, int, float or None.

    Anything else is returned unchanged. "1" and "0" stay integers.
    """
    if text == "":
        return None
    lowered = text.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    number_type = float if ("." in text or "e" in lowered) else int
    try:
        return number_type(text)
    except ValueError:
        return text


def _expand(text: str) -> Any:
    whole = _REFERENCE.fullmatch(text)
    if whole:
        name, fallback = whole.groups()
        value = os.environ.get(name, fallback)
        return text if value is None else coerce_value(value)

    def lookup(match: re.Match[str]) -> str:
        name, fallback = match.groups()
        value = os.environ.get(name, fallback)
        return match.group(0) if value is None else value

    return _REFERENCE.sub(lookup, text)


def substitute_env_vars(data: Any) -> Any:
    """Expand ``${VAR}`` references in every string of a YAML document.

    A string that is exactly one reference is type-coerced; references
    inside longer strings are replaced as text. Unknown variables
    without a fallback are left as written.
    """
    if isinstance(data, dict):
        return {key: substitute_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [substitute_env_vars(item) for item in data]
    if isinstance(data, str):
        return _expand(data)
    return data


def _drop_none(data: Any) -> Any:
    # Empty YAML sections parse as None; pydantic should see them as absent
    if isinstance(data, dict):
        return {key: _drop_none(value) for key, value in data.items() if value is not None}
    if isinstance(data, list):
        return [_drop_none(item) for item in data]
    return data


def _assign(data: dict[str, Any], dotted: str, value: Any) -> None:
    *parents, leaf = dotted.split(".")
    node = data
    for key in parents:
        child = node.get(key)
        if not isinstance(child, dict):
            child = node[key] = {}
        node = child
    node[leaf] = value


def apply_env_overrides(data: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Write PYSTARTER_* values into the raw config mapping (in place)."""
    environ = os.environ if environ is None else environ
    for var, dotted in ENV_VAR_OVERRIDES.items():
        if var not in environ:
            continue
        raw = environ[var]
        _assign(data, dotted, raw if dotted in _STRING_OVERRIDES else coerce_value(raw))
    return data


class ConfigLoader:
    """Finds, reads and validates a pystarter configuration.

    Usage:
        config = ConfigLoader("pystarter.yaml").load()

        # PYSTARTER_CONFIG, then the default locations, then defaults
        config = ConfigLoader().load_from_env()
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        env_file: str = ".env",
    ) -> None:
        self._config_path = Path(config_path) if config_path else None
        self._env_file = env_file
        self._config: PystarterConfig | None = None
        self._loaded_from_path: Path | None = None

    @property
    def config_path(self) -> Path | None:
        return self._config_path

    @property
    def loaded_from_path(self) -> Path | None:
        """File the current configuration came from (None for defaults)."""
        return self._loaded_from_path

    @property
    def config(self) -> PystarterConfig | None:
        return self._config

    def get(self) -> PystarterConfig:
        """Return the loaded configuration.

        Raises:
            RuntimeError: Before load() or load_from_env()
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() or load_from_env() first.")
        return self._config

    def load(self, path: str | Path | None = None) -> PystarterConfig:
        """Validate the configuration at path (or defaults when no path is set).

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: On invalid YAML or failed validation
        """
        if path is not None:
            self._config_path = Path(path)
        load_environment(self._env_file)

        raw = self._read(self._config_path) if self._config_path else {}
        self._loaded_from_path = self._config_path

        values = _drop_none(apply_env_overrides(substitute_env_vars(raw)))
        try:
            self._config = PystarterConfig(**values)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e.error_count()} errors",
                errors=e.errors(),
                path=self._loaded_from_path,
            )
        return self._config

    def load_from_env(self) -> PystarterConfig:
        """Load from PYSTARTER_CONFIG, else the first default file, else defaults.

        Raises:
            FileNotFoundError: If PYSTARTER_CONFIG names a missing file
            ConfigurationError: If the configuration is invalid
        """
        load_environment(self._env_file)
        self._config_path = self._locate()
        return self.load()

    def reload(self) -> PystarterConfig:
        """Load again from the file used last time."""
        self._config = None
        return self.load(self._loaded_from_path)

    def save(self, path: str | Path | None = None) -> None:
        """Write the loaded configuration as YAML.

        Raises:
            ValueError: If nothing is loaded or there is no target path
        """
        if self._config is None:
            raise ValueError("No configuration loaded")
        target = Path(path) if path else self._config_path
        if target is None:
            raise ValueError("No path specified for saving")
        target.write_text(
            yaml.safe_dump(self._config.to_yaml_dict(), default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )

    @staticmethod
    def _locate() -> Path | None:
        explicit = os.environ.get(CONFIG_ENV_VAR)
        if explicit:
            if not Path(explicit).exists():
                raise FileNotFoundError(
                    f"Config file specified by {CONFIG_ENV_VAR} not found: {explicit}"
                )
            return Path(explicit)
        return next((Path(p) for p in DEFAULT_CONFIG_PATHS if Path(p).exists()), None)

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}", path=path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping", path=path)
        return data


# Process-wide loader used by the CLI
_loader: ConfigLoader | None = None


def load_config(config_path: str | Path | None = None, env_file: str = ".env") -> PystarterConfig:
    """Load the process-wide configuration from a file (defaults when None)."""
    global _loader
    _loader = ConfigLoader(config_path, env_file)
    return _loader.load()


def load_config_from_env(env_file: str = ".env") -> PystarterConfig:
    """Load the process-wide configuration using the search order."""
    global _loader
    _loader = ConfigLoader(env_file=env_file)
    return _loader.load_from_env()


def get_config() -> PystarterConfig:
    """Return the process-wide configuration.

    Raises:
        RuntimeError: If nothing has been loaded
    """
    if _loader is None or _loader.config is None:
        raise RuntimeError(
            "Configuration not loaded. Call load_config() or load_config_from_env() first."
        )
    return _loader.config


def reload_config() -> PystarterConfig:
    """Re-read the process-wide configuration from its file."""
    if _loader is None:
        raise RuntimeError(
            "Cannot reload: no configuration loaded. "
            "Call load_config() or load_config_from_env() first."
        )
    return _loader.reload()


def reset_config() -> None:
    """Forget the process-wide configuration."""
    global _loader
    _loader = None


def get_loader() -> ConfigLoader | None:
    """The loader behind get_config(), or None before the first load."""
    return _loader

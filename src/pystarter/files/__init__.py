"""
Project Files Module.

Readers and writers for the conventional files of a Python project:

- requirements.txt manifests
- .gitignore pattern files
- .env KEY=VALUE files
- Source, test and README templates
"""

from pystarter.files.envfile import (
    EnvFileError,
    example_env,
    format_env,
    is_secret_key,
    mask_value,
    merge_env_file,
    read_env_file,
    write_env_file,
)
from pystarter.files.gitignore import DEFAULT_PYTHON_PATTERNS, GitIgnore
from pystarter.files.requirements import (
    ManifestError,
    Requirement,
    RequirementsFile,
    normalize_name,
    parse_freeze_output,
    parse_requirement,
)
from pystarter.files.templates import (
    TemplateContext,
    TemplateEngine,
    TemplateError,
    TemplateFile,
)

__all__ = [
    # Requirements
    "ManifestError",
    "Requirement",
    "RequirementsFile",
    "normalize_name",
    "parse_requirement",
    "parse_freeze_output",
    # .gitignore
    "DEFAULT_PYTHON_PATTERNS",
    "GitIgnore",
    # .env
    "EnvFileError",
    "read_env_file",
    "write_env_file",
    "merge_env_file",
    "format_env",
    "mask_value",
    "is_secret_key",
    "example_env",
    # Templates
    "TemplateContext",
    "TemplateEngine",
    "TemplateError",
    "TemplateFile",
]

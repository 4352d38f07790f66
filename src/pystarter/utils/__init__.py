"""
Utilities Module.

- Logging setup with Rich formatting
- Async PyPI JSON API client used to pin requirements
"""

from pystarter.utils.logging_config import setup_logging
from pystarter.utils.pypi_client import (
    PYPI_BASE_URL,
    PackageIndexClient,
    PackageIndexError,
    PackageNotFoundError,
    PinReport,
    pin_requirements,
)

__all__ = [
    "setup_logging",
    "PYPI_BASE_URL",
    "PackageIndexClient",
    "PackageIndexError",
    "PackageNotFoundError",
    "PinReport",
    "pin_requirements",
]

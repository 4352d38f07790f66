"""
Package Index Client.

Async client for the PyPI JSON API, used to pin requirements to their
newest release.

Features:
- Automatic retry with exponential backoff using tenacity
- Concurrent lookups for a whole requirements file
- Per-package failures reported without aborting the batch
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from pystarter.files.requirements import RequirementsFile, normalize_name

logger = logging.getLogger(__name__)

PYPI_BASE_URL = "https://pypi.org/pypi"


class PackageIndexError(Exception):
    """Raised for index errors that may succeed on retry."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PackageNotFoundError(PackageIndexError):
    """Raised when the index has no such project."""

    pass


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, PackageIndexError) and not isinstance(error, PackageNotFoundError)


@dataclass
class PinReport:
    """Result of pinning a requirements file.

    Attributes:
        pinned: Normalized name -> version that was pinned
        failed: Normalized name -> error message
        unchanged: Names that were already pinned and left alone
    """

    pinned: dict[str, str] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)
    unchanged: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class PackageIndexClient:
    """Async client for a PyPI-compatible JSON API.

    Example:
        async with PackageIndexClient() as client:
            version = await client.latest_version("requests")
    """

    def __init__(
        self,
        base_url: str = PYPI_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        wait_multiplier: float = 1.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: JSON API base URL (``{base_url}/{name}/json``)
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per lookup
            token: Optional bearer token for private indexes
            transport: Custom httpx transport (tests)
            wait_multiplier: Backoff multiplier in seconds
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._token = token
        self._transport = transport
        self._wait_multiplier = wait_multiplier
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> PackageIndexClient:
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def project_info(self, name: str) -> dict[str, Any]:
        """Fetch the JSON document for a project.

        Raises:
            PackageNotFoundError: On 404
            PackageIndexError: On other failures after retries
        """
        client = await self._ensure_client()
        url = f"{self._base_url}/{normalize_name(name)}/json"

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=self._wait_multiplier, min=0, max=30),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                attempt_num = attempt.retry_state.attempt_number
                logger.info(f"GET {url} (attempt {attempt_num}/{self._max_retries})")
                try:
                    response = await client.get(url)
                except httpx.TransportError as e:
                    raise PackageIndexError(f"Request to {url} failed: {e}")
                return self._handle_response(name, response)

        raise PackageIndexError(f"No attempts made for {name}")

    def _handle_response(self, name: str, response: httpx.Response) -> dict[str, Any]:
        if response.status_code == 404:
            raise PackageNotFoundError(f"Package not found: {name}", status_code=404)
        if response.status_code == 429 or response.status_code >= 500:
            raise PackageIndexError(
                f"Index returned {response.status_code} for {name}",
                status_code=response.status_code,
            )
        if response.status_code != 200:
            # Client errors other than 404/429 are not worth retrying
            raise PackageNotFoundError(
                f"Index returned {response.status_code} for {name}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise PackageIndexError(f"Invalid JSON for {name}: {e}")

    async def latest_version(self, name: str) -> str:
        """Latest release version of a project (``info.version``)."""
        data = await self.project_info(name)
        version = (data.get("info") or {}).get("version")
        if not version:
            raise PackageIndexError(f"No version information for {name}")
        return version


async def pin_requirements(
    manifest: RequirementsFile,
    client: PackageIndexClient,
    only_unpinned: bool = True,
) -> PinReport:
    """Pin requirements to the latest release, in place.

    Extras, markers and comments are preserved. Direct URL references
    are never touched. A lookup that fails for any reason is recorded in
    ``failed`` and the remaining requirements are still pinned.
    """
    report = PinReport()
    targets = []
    for req in manifest.requirements:
        if req.specifier.startswith("@"):
            report.unchanged.append(req.name)
        elif only_unpinned and req.is_pinned:
            report.unchanged.append(req.name)
        else:
            targets.append(req)

    results = await asyncio.gather(
        *(client.latest_version(req.name) for req in targets),
        return_exceptions=True,
    )

    for req, result in zip(targets, results):
        key = req.normalized_name
        if isinstance(result, PackageIndexError):
            logger.warning("Could not pin %s: %s", req.name, result)
            report.failed[key] = str(result)
            continue
        if isinstance(result, Exception):
            logger.warning("Unexpected error pinning %s: %r", req.name, result, exc_info=result)
            report.failed[key] = f"{type(result).__name__}: {result}"
            continue
        if isinstance(result, BaseException):
            raise result
        manifest.add(req.with_specifier(f"=={result}"))
        report.pinned[key] = result

    return report

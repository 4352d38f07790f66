"""Tests for the package index client."""

import httpx
import pytest
import respx
from httpx import Response

from pystarter.files import RequirementsFile
from pystarter.utils import (
    PackageIndexClient,
    PackageIndexError,
    PackageNotFoundError,
    pin_requirements,
)

INDEX_URL = "https://index.test/pypi"


def project_json(name: str, version: str) -> Response:
    return Response(200, json={"info": {"name": name, "version": version}})


def mock_releases(router: respx.MockRouter, **releases: str) -> None:
    """Route ``/<name>/json`` for each release; anything else is a 404."""
    for name, version in releases.items():
        router.get(f"{INDEX_URL}/{name}/json").mock(return_value=project_json(name, version))
    router.get(url__startswith=INDEX_URL).mock(return_value=Response(404, json={"message": "Not Found"}))


@pytest.fixture
def index_router():
    with respx.mock(assert_all_called=False) as router:
        yield router


def make_client(**kwargs) -> PackageIndexClient:
    return PackageIndexClient(base_url=f"{INDEX_URL}/", wait_multiplier=0, **kwargs)


class TestPackageIndexClient:
    """Tests for PackageIndexClient (mocked HTTP)."""

    @pytest.mark.asyncio
    async def test_latest_version(self, index_router):
        mock_releases(index_router, requests="2.31.0")

        async with make_client() as client:
            assert await client.latest_version("requests") == "2.31.0"

    @pytest.mark.asyncio
    @respx.mock
    async def test_name_is_normalized_in_url(self):
        route = respx.get(f"{INDEX_URL}/python-dotenv/json").mock(
            return_value=project_json("python-dotenv", "1.0.1")
        )

        async with make_client() as client:
            await client.latest_version("Python_Dotenv")

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_not_found_is_not_retried(self):
        route = respx.get(f"{INDEX_URL}/nope/json").mock(return_value=Response(404))

        async with make_client(max_retries=3) as client:
            with pytest.raises(PackageNotFoundError):
                await client.latest_version("nope")

        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_is_retried(self):
        route = respx.get(f"{INDEX_URL}/flask/json").mock(
            side_effect=[Response(503), Response(429), project_json("flask", "3.0.2")]
        )

        async with make_client(max_retries=3) as client:
            assert await client.latest_version("flask") == "3.0.2"

        assert route.call_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_gives_up_after_max_retries(self):
        route = respx.get(f"{INDEX_URL}/requests/json").mock(return_value=Response(500))

        async with make_client(max_retries=2) as client:
            with pytest.raises(PackageIndexError) as exc_info:
                await client.latest_version("requests")

        assert exc_info.value.status_code == 500
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error(self):
        respx.get(f"{INDEX_URL}/requests/json").mock(side_effect=httpx.ConnectError)

        async with make_client(max_retries=1) as client:
            with pytest.raises(PackageIndexError, match="failed"):
                await client.latest_version("requests")

    @pytest.mark.asyncio
    @respx.mock
    async def test_invalid_json(self):
        respx.get(f"{INDEX_URL}/requests/json").mock(return_value=Response(200, text="<html>"))

        async with make_client(max_retries=1) as client:
            with pytest.raises(PackageIndexError, match="Invalid JSON"):
                await client.project_info("requests")

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_version(self):
        respx.get(f"{INDEX_URL}/requests/json").mock(return_value=Response(200, json={"info": {}}))

        async with make_client() as client:
            with pytest.raises(PackageIndexError, match="No version"):
                await client.latest_version("requests")

    @pytest.mark.asyncio
    @respx.mock
    async def test_token_sent_as_bearer(self):
        route = respx.get(f"{INDEX_URL}/requests/json").mock(
            return_value=project_json("requests", "2.31.0")
        )

        async with make_client(token="s3cret") as client:
            await client.latest_version("requests")

        assert route.calls.last.request.headers["Authorization"] == "Bearer s3cret"

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, index_router):
        mock_releases(index_router, requests="2.31.0")
        client = make_client()
        await client.latest_version("requests")
        await client.close()
        await client.close()


class TestPinRequirements:
    """Tests for pin_requirements."""

    @pytest.mark.asyncio
    async def test_pins_unpinned_only(self, index_router):
        mock_releases(index_router, requests="2.31.0", flask="3.0.2", **{"python-dotenv": "1.0.1"})
        manifest = RequirementsFile.parse(
            "# deps\nrequests>=2  # http\npython-dotenv==0.21.0\nflask\n"
        )

        async with make_client() as client:
            report = await pin_requirements(manifest, client)

        assert report.ok
        assert report.pinned == {"requests": "2.31.0", "flask": "3.0.2"}
        assert report.unchanged == ["python-dotenv"]
        assert manifest.dumps() == (
            "# deps\nrequests==2.31.0  # http\npython-dotenv==0.21.0\nflask==3.0.2\n"
        )

    @pytest.mark.asyncio
    async def test_pin_all(self, index_router):
        mock_releases(index_router, **{"python-dotenv": "1.0.1"})
        manifest = RequirementsFile.parse("python-dotenv==0.21.0\n")

        async with make_client() as client:
            report = await pin_requirements(manifest, client, only_unpinned=False)

        assert report.pinned == {"python-dotenv": "1.0.1"}
        assert manifest.get("python-dotenv").pinned_version == "1.0.1"

    @pytest.mark.asyncio
    async def test_failures_do_not_abort(self, index_router):
        mock_releases(index_router, requests="2.31.0")
        manifest = RequirementsFile.parse("requests\nno-such-package\n")

        async with make_client() as client:
            report = await pin_requirements(manifest, client)

        assert not report.ok
        assert "no-such-package" in report.failed
        assert report.pinned == {"requests": "2.31.0"}
        assert str(manifest.get("no-such-package")) == "no-such-package"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_recorded(self, index_router):
        index_router.get(f"{INDEX_URL}/broken/json").mock(side_effect=RuntimeError("boom"))
        mock_releases(index_router, requests="2.31.0")
        manifest = RequirementsFile.parse("broken\nrequests\n")

        async with make_client() as client:
            report = await pin_requirements(manifest, client)

        assert report.failed == {"broken": "RuntimeError: boom"}
        assert report.pinned == {"requests": "2.31.0"}
        assert manifest.dumps() == "broken\nrequests==2.31.0\n"

    @pytest.mark.asyncio
    async def test_direct_references_untouched(self):
        manifest = RequirementsFile.parse("mylib @ https://example.org/mylib.zip\n")

        async with make_client() as client:
            report = await pin_requirements(manifest, client, only_unpinned=False)

        assert report.unchanged == ["mylib"]
        assert report.pinned == {}

from __future__ import annotations

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from depshift.core.registry import NpmRegistry, package_url
from depshift.exceptions import (
    NetworkError,
    RegistryError,
    RegistryPackageNotFoundError,
)
from depshift.utils.http import HTTPClient

REGISTRY = "https://registry.example.com/npm/"


def _packument(name: str, version: str = "1.0.0") -> Dict[str, Any]:
    return {
        "name": name,
        "dist-tags": {"latest": version},
        "versions": {version: {"name": name, "version": version}},
    }


def _http(responses: Dict[str, Any]) -> MagicMock:
    """HTTPClient double answering ``get_json`` from ``url -> packument | error``."""

    async def get_json(url: str) -> Dict[str, Any]:
        result = responses[url]
        if isinstance(result, BaseException):
            raise result
        return result

    client = MagicMock(spec=HTTPClient)
    client.get_json = AsyncMock(side_effect=get_json)
    return client


@pytest.mark.unit
class TestPackageUrl:
    def test_plain_name(self) -> None:
        assert package_url(REGISTRY, "rxjs") == "https://registry.example.com/npm/rxjs"

    def test_scoped_name_escapes_slash(self) -> None:
        assert (
            package_url("https://registry.npmjs.org", "@angular/core")
            == "https://registry.npmjs.org/@angular%2Fcore"
        )


@pytest.mark.unit
class TestFetchSnapshot:
    @pytest.mark.asyncio
    async def test_parses_packument(self) -> None:
        http = _http({package_url(REGISTRY, "rxjs"): _packument("rxjs", "7.8.1")})

        snapshot = await NpmRegistry(http, REGISTRY).fetch_snapshot("rxjs")

        assert snapshot.name == "rxjs"
        assert snapshot.tagged_version("latest") == "7.8.1"
        assert "7.8.1" in snapshot.versions

    @pytest.mark.asyncio
    async def test_404_means_package_not_found(self) -> None:
        url = package_url(REGISTRY, "private")
        http = _http({url: RegistryError("Resource not found", url=url, status_code=404)})

        with pytest.raises(RegistryPackageNotFoundError) as exc_info:
            await NpmRegistry(http, REGISTRY).fetch_snapshot("private")

        assert exc_info.value.package_name == "private"

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self) -> None:
        url = package_url(REGISTRY, "rxjs")
        http = _http({url: NetworkError("boom", url=url, status_code=500)})

        with pytest.raises(NetworkError) as exc_info:
            await NpmRegistry(http, REGISTRY).fetch_snapshot("rxjs")

        assert not isinstance(exc_info.value, RegistryPackageNotFoundError)


@pytest.mark.unit
class TestFetchSnapshots:
    @pytest.mark.asyncio
    async def test_keeps_input_order_and_collects_missing(self) -> None:
        missing_url = package_url(REGISTRY, "private")
        http = _http(
            {
                package_url(REGISTRY, "b"): _packument("b"),
                missing_url: RegistryError("gone", url=missing_url, status_code=404),
                package_url(REGISTRY, "a"): _packument("a"),
            }
        )

        result = await NpmRegistry(http, REGISTRY).fetch_snapshots(["b", "private", "a", "b"])

        assert list(result.snapshots) == ["b", "a"]
        assert list(result.missing) == ["private"]
        assert isinstance(result.missing["private"], RegistryPackageNotFoundError)
        assert http.get_json.await_count == 3

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_raised(self) -> None:
        http = _http({package_url(REGISTRY, "a"): RuntimeError("bug")})

        with pytest.raises(RuntimeError, match="bug"):
            await NpmRegistry(http, REGISTRY).fetch_snapshots(["a"])

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        result = await NpmRegistry(_http({}), REGISTRY).fetch_snapshots([])

        assert result.snapshots == {}
        assert result.missing == {}

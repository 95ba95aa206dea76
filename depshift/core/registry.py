"""npm registry access for depshift.

Fetches one packument (``GET {registry}/{name}``) per package and parses
it into a :class:`RegistrySnapshot`. :meth:`NpmRegistry.fetch_snapshots`
issues every request concurrently and only returns once all of them have
finished, so nothing downstream ever sees a partially filled map.

Typical usage::

    from depshift.utils.http import HTTPClient
    from depshift.core.registry import NpmRegistry

    async with HTTPClient() as client:
        registry = NpmRegistry(client)
        result = await registry.fetch_snapshots(["@angular/core", "rxjs"])
        print(result.snapshots["rxjs"].dist_tags["latest"])
        print(result.missing)           # names that could not be fetched
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Sequence
from urllib.parse import quote

from depshift.constants import DEFAULT_REGISTRY_URL
from depshift.exceptions import (
    NetworkError,
    RegistryError,
    RegistryPackageNotFoundError,
)
from depshift.models.manifest import RegistrySnapshot
from depshift.utils.http import HTTPClient
from depshift.utils.logger import get_logger

logger = get_logger("registry")

__all__ = ["FetchResult", "NpmRegistry", "package_url"]


def package_url(registry_url: str, name: str) -> str:
    """Return the packument URL of ``name``.

    Scoped names keep their ``@`` but escape the ``/``.

    Example::

        >>> package_url("https://registry.npmjs.org/", "@angular/core")
        'https://registry.npmjs.org/@angular%2Fcore'
    """
    return f"{registry_url.rstrip('/')}/{quote(name, safe='@')}"


@dataclass
class FetchResult:
    """Outcome of a concurrent fetch.

    Attributes:
        snapshots: Fetched metadata, in the order the names were given.
        missing: Names whose metadata could not be fetched, with the error.
    """

    snapshots: Dict[str, RegistrySnapshot] = field(default_factory=dict)
    missing: Dict[str, NetworkError] = field(default_factory=dict)


class NpmRegistry:
    """Client for the npm registry's packument API.

    Args:
        http_client: A pre-configured :class:`HTTPClient`.
        registry_url: Registry endpoint.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        registry_url: str = DEFAULT_REGISTRY_URL,
    ) -> None:
        self.http_client = http_client
        self.registry_url = registry_url

    async def fetch_snapshot(self, name: str) -> RegistrySnapshot:
        """Fetch and parse the metadata of one package.

        Raises:
            RegistryPackageNotFoundError: The registry does not know ``name``.
            NetworkError: The request failed for another reason.
        """
        url = package_url(self.registry_url, name)
        try:
            data = await self.http_client.get_json(url)
        except RegistryError as exc:
            if exc.status_code == 404:
                raise RegistryPackageNotFoundError(
                    f"Package {name!r} was not found on the registry",
                    package_name=name,
                    url=url,
                    status_code=404,
                ) from exc
            raise

        snapshot = RegistrySnapshot.from_packument(name, data)
        logger.debug(
            "Fetched %s: %d version(s), dist-tags=%s",
            name,
            len(snapshot.versions),
            dict(snapshot.dist_tags),
        )
        return snapshot

    async def fetch_snapshots(self, names: Sequence[str]) -> FetchResult:
        """Fetch every package concurrently and join the results.

        Per-package failures do not cancel the other requests; they are
        collected in :attr:`FetchResult.missing` for the caller to judge.
        """
        unique: List[str] = list(dict.fromkeys(names))
        logger.info("Fetching metadata of %d package(s) from %s", len(unique), self.registry_url)

        results = await asyncio.gather(
            *(self.fetch_snapshot(name) for name in unique),
            return_exceptions=True,
        )

        fetched = FetchResult()
        for name, result in zip(unique, results):
            if isinstance(result, NetworkError):
                logger.debug("Could not fetch %s: %s", name, result)
                fetched.missing[name] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                fetched.snapshots[name] = result
        return fetched

"""Latest-version lookups against each ecosystem's public registry."""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from packaging.version import InvalidVersion, Version

from .config import Settings
from .models import LATEST_VERSION, UNKNOWN_VERSION, Ecosystem, UnsupportedEcosystemError

logger = logging.getLogger(__name__)


class RegistryClient:
    """Knows one registry's URL layout and response shape."""

    ecosystem: Ecosystem
    needs_request = True

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_request(self, name: str) -> tuple[str, dict[str, str] | None]:
        """Return (url, query params) for the package's metadata."""
        raise NotImplementedError

    def parse_version(self, data: Any, name: str) -> str:
        """Pull the latest version out of a decoded response.

        Raises:
            LookupError, TypeError: The expected field is missing
        """
        raise NotImplementedError


class PyPIClient(RegistryClient):
    ecosystem = Ecosystem.PYTHON

    def build_request(self, name):
        return f"https://pypi.org/pypi/{quote(name, safe='')}/json", None

    def parse_version(self, data, name):
        return data["info"]["version"]


class NpmClient(RegistryClient):
    ecosystem = Ecosystem.NODE

    def build_request(self, name):
        # Scoped names keep the "@" but encode the slash.
        return f"https://registry.npmjs.org/{quote(name, safe='@')}/latest", None

    def parse_version(self, data, name):
        return data["version"]


class PubDevClient(RegistryClient):
    ecosystem = Ecosystem.FLUTTER

    def build_request(self, name):
        return f"https://pub.dev/api/packages/{quote(name, safe='')}", None

    def parse_version(self, data, name):
        return data["latest"]["version"]


class RubyGemsClient(RegistryClient):
    ecosystem = Ecosystem.RUBY

    def build_request(self, name):
        return f"https://rubygems.org/api/v1/versions/{quote(name, safe='')}.json", None

    def parse_version(self, data, name):
        return data[0]["number"]


class PackagistClient(RegistryClient):
    """Packagist p2 metadata; the highest release wins."""

    ecosystem = Ecosystem.PHP

    def build_request(self, name):
        return f"https://repo.packagist.org/p2/{quote(name.lower(), safe='/')}.json", None

    def parse_version(self, data, name):
        releases = data["packages"][name.lower()]
        if isinstance(releases, dict):
            candidates = list(releases.keys())
        else:
            candidates = [release["version"] for release in releases]
        return pick_highest(candidates)


class NuGetClient(RegistryClient):
    ecosystem = Ecosystem.DOTNET

    def build_request(self, name):
        package_id = quote(name.lower(), safe="")
        return f"https://api.nuget.org/v3/registration5-semver1/{package_id}/index.json", None

    def parse_version(self, data, name):
        return data["items"][0]["upper"]


class CratesClient(RegistryClient):
    ecosystem = Ecosystem.RUST

    def build_request(self, name):
        return f"https://crates.io/api/v1/crates/{quote(name, safe='')}", None

    def parse_version(self, data, name):
        return data["crate"]["max_version"]


class MavenClient(RegistryClient):
    """Maven artifacts via libraries.io when an API key is set, else Maven Central search."""

    ecosystem = Ecosystem.JAVA

    def build_request(self, name):
        if self.settings.libraries_io_api_key:
            url = f"https://libraries.io/api/maven/{quote(name, safe=':')}"
            return url, {"api_key": self.settings.libraries_io_api_key}

        group_id, _, artifact_id = name.partition(":")
        return self.settings.maven_search_url, {
            "q": f'g:"{group_id}" AND a:"{artifact_id}"',
            "rows": "1",
            "wt": "json",
        }

    def parse_version(self, data, name):
        if self.settings.libraries_io_api_key:
            return data["latest_release_number"]
        return data["response"]["docs"][0]["latestVersion"]


class ConstantClient(RegistryClient):
    """Ecosystems without a single-version endpoint; always "latest"."""

    needs_request = False

    def __init__(self, settings: Settings, ecosystem: Ecosystem):
        super().__init__(settings)
        self.ecosystem = ecosystem

    def build_request(self, name):
        raise NotImplementedError(f"{self.ecosystem.value} packages are not looked up")

    def parse_version(self, data, name):
        return LATEST_VERSION


def pick_highest(candidates: list[str]) -> str:
    """Highest version among candidates, preferring final releases.

    Raises:
        LookupError: No candidate parses as a version
    """
    parsed = []
    for candidate in candidates:
        try:
            parsed.append((Version(candidate), candidate))
        except InvalidVersion:
            continue  # Branch aliases such as dev-main

    if not parsed:
        raise LookupError("no parseable versions")

    stable = [item for item in parsed if not item[0].is_prerelease]
    return max(stable or parsed, key=lambda item: item[0])[1]


class RegistryResolver:
    """Resolve latest versions across registries with a shared HTTP client.

    Use as an async context manager to reuse one connection pool for a whole
    run; outside a context each lookup opens its own client.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or Settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.clients: dict[Ecosystem, RegistryClient] = {
            client.ecosystem: client
            for client in (
                MavenClient(self.settings),
                PyPIClient(self.settings),
                NpmClient(self.settings),
                PubDevClient(self.settings),
                RubyGemsClient(self.settings),
                PackagistClient(self.settings),
                NuGetClient(self.settings),
                CratesClient(self.settings),
                ConstantClient(self.settings, Ecosystem.GO),
                ConstantClient(self.settings, Ecosystem.R),
            )
        }

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.request_timeout,
            headers={"User-Agent": self.settings.user_agent, "Accept": "application/json"},
            transport=self._transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "RegistryResolver":
        self._client = self._new_client()
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        logger.debug("GET %s", url)
        if self._client is not None:
            response = await self._client.get(url, params=params)
        else:
            async with self._new_client() as client:
                response = await client.get(url, params=params)
        response.raise_for_status()
        return response

    async def get_latest_version(self, name: str, ecosystem: Ecosystem) -> str:
        """Get the latest published version of a package.

        Args:
            name: Package identifier in ecosystem-native form
            ecosystem: Registry to ask

        Returns:
            Version string, "latest" for go/r, or "unknown" on any failure

        Raises:
            UnsupportedEcosystemError: No registry client exists for the ecosystem
        """
        client = self.clients.get(ecosystem)
        if client is None:
            raise UnsupportedEcosystemError(f"Unsupported ecosystem: {ecosystem.value}")
        if not client.needs_request:
            return client.parse_version(None, name)

        try:
            url, params = client.build_request(name)
            response = await self._get(url, params)
            version = client.parse_version(response.json(), name)
        except (httpx.HTTPError, ValueError, LookupError, TypeError) as e:
            logger.warning("Error fetching version for %s (%s): %s", name, ecosystem.value, e)
            return UNKNOWN_VERSION

        if not version:
            logger.warning("Registry returned no version for %s (%s)", name, ecosystem.value)
            return UNKNOWN_VERSION
        return str(version)

    async def search_maven_group(self, group_id: str) -> bytes:
        """Raw Maven Central search results for every artifact in a group.

        Raises:
            httpx.HTTPError: The upstream request failed
        """
        response = await self._get(
            self.settings.maven_search_url, {"q": f"g:{group_id}", "wt": "json"}
        )
        return response.content

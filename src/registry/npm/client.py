"""NPM registry client: fetch publish times and manifests for a package."""

from __future__ import annotations

import logging
import ssl
from typing import Dict, Optional, Union
from urllib.parse import quote

import aiohttp

from constants import Constants
from errors import FetchError, PackageNotFoundError
from common.http_client import get_json
from common.logging_utils import extra_context, safe_url
from versioning.models import RegistryMetadata

from .config import NpmConfig

logger = logging.getLogger(__name__)


class NpmRegistryClient:
    """Client for the npm registry metadata ("packument") endpoint.

    One instance is shared by every poll session of an invocation; it holds
    no per-package state. Responses are never cached.
    """

    def __init__(
        self,
        npm_config: Optional[NpmConfig] = None,
        timeout: float = Constants.REQUEST_TIMEOUT,
    ):
        """Initialize the registry client.

        Args:
            npm_config: Registry, credential and proxy settings.
            timeout: Per-request timeout in seconds.
        """
        self._config = npm_config or NpmConfig()
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=100, ssl=self.ssl_context())
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=connector,
                trust_env=True,
            )

    def ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """TLS setting for the connector; False turns verification off (strict-ssl=false)."""
        if not self._config.strict_ssl:
            return False
        return ssl.create_default_context()

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def package_url(self, package_name: str) -> str:
        """Build the metadata URL; a scope separator is percent-encoded."""
        base = self._config.registry_for(package_name)
        return f"{base}{quote(package_name, safe='@')}"

    def request_headers(self, package_name: str) -> Dict[str, str]:
        """Headers requesting the full, uncached packument."""
        headers = {
            "Accept": "application/json",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            "User-Agent": Constants.USER_AGENT,
        }
        auth = self._config.auth_header(self._config.registry_for(package_name))
        if auth:
            headers["Authorization"] = auth
        return headers

    async def fetch_metadata(self, package_name: str) -> RegistryMetadata:
        """Fetch publish times and per-version manifests for a package.

        Args:
            package_name: Full package name, including any `@scope/`.

        Returns:
            RegistryMetadata: Fresh metadata from the registry.

        Raises:
            PackageNotFoundError: The registry has no release records.
            FetchError: Network/HTTP failure or an undecodable body.
        """
        if self._session is None:
            await self.start()
        assert self._session is not None

        url = self.package_url(package_name)
        kwargs = {}
        proxy = self._config.proxy_for(url)
        if proxy:
            kwargs["proxy"] = proxy

        status, _, data = await get_json(
            self._session,
            url,
            context="npm",
            headers=self.request_headers(package_name),
            **kwargs,
        )

        if status == 404:
            logger.debug(
                "Package not found",
                extra=extra_context(
                    event="http_response",
                    outcome="not_found",
                    status_code=status,
                    target=safe_url(url),
                    package_manager="npm",
                ),
            )
            raise PackageNotFoundError(package_name, url=safe_url(url))
        if not 200 <= status < 300:
            raise FetchError(
                f"npm registry responded with HTTP {status}",
                url=safe_url(url),
                status=status,
            )
        if not isinstance(data, dict):
            raise FetchError(
                "npm registry returned an unexpected document",
                url=safe_url(url),
                status=status,
            )

        times = data.get("time")
        if not isinstance(times, dict) or not times:
            raise PackageNotFoundError(package_name, url=safe_url(url))
        manifests = data.get("versions")
        if not isinstance(manifests, dict):
            manifests = {}
        return RegistryMetadata(times=times, manifests=manifests)

    async def __aenter__(self) -> "NpmRegistryClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()

"""Poll sessions: wait until a package publishes a qualifying release.

A session repeatedly fetches registry metadata and runs the matcher,
sleeping `delay` seconds after every transient miss. When a timeout is
configured the poll task is raced against it with `asyncio.wait_for`, which
cancels the loser so its in-flight request and pending sleep are released.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, Union

from constants import Constants
from errors import MatchErrorKind, PackageNotFoundError, ReleaseMatchError
from versioning.matcher import match_release
from versioning.models import EPOCH, PackageSpec, PollParameters, RegistryMetadata, Release
from versioning.parser import parse_package_spec

from .config import WatchConfig

logger = logging.getLogger(__name__)

ReleaseCallback = Callable[[Release], Awaitable[None]]


class MetadataClient(Protocol):
    async def fetch_metadata(self, package_name: str) -> RegistryMetadata:
        ...


def build_parameters(
    spec: PackageSpec, config: WatchConfig, now: Optional[datetime] = None
) -> PollParameters:
    """Fix the session parameters; the cutoff does not move afterwards."""
    now = now or datetime.now(timezone.utc)
    released_after = max(EPOCH, now - timedelta(seconds=config.grace))
    return PollParameters(
        package_name=spec.name,
        target_range=spec.version_range,
        released_after=released_after,
        delay=config.delay,
        timeout=config.timeout,
        grace=config.grace,
    )


async def lookup_release(
    client: MetadataClient,
    params: PollParameters,
    private_key_prefixes: Sequence[str] = Constants.PRIVATE_KEY_PREFIXES,
) -> Release:
    """Fetch metadata once and match it against the session parameters."""
    try:
        metadata = await client.fetch_metadata(params.package_name)
    except PackageNotFoundError:
        raise ReleaseMatchError(
            "No releases found",
            MatchErrorKind.NO_RELEASES,
            package_name=params.package_name,
            target_range=params.target_range,
            released_after=params.released_after,
        ) from None
    return match_release(
        metadata,
        params.package_name,
        params.target_range,
        params.released_after,
        private_key_prefixes,
    )


async def poll_until_match(
    client: MetadataClient,
    params: PollParameters,
    private_key_prefixes: Sequence[str] = Constants.PRIVATE_KEY_PREFIXES,
) -> Release:
    """Poll until a release matches; only transient misses are retried."""
    retries = 0
    while True:
        if retries:
            logger.info("Polling %s (retries=%d)", params.package_name, retries)
        else:
            logger.info("Polling %s", params.package_name)
        try:
            return await lookup_release(client, params, private_key_prefixes)
        except ReleaseMatchError as exc:
            if not exc.is_transient:
                raise
            logger.info("%s", exc)
        retries += 1
        await asyncio.sleep(params.delay)


async def await_release(
    package: Union[str, PackageSpec],
    client: MetadataClient,
    config: WatchConfig,
    *,
    now: Optional[datetime] = None,
    on_release: Optional[ReleaseCallback] = None,
) -> Release:
    """Run one poll session for `package`.

    Args:
        package: Package identifier or an already parsed spec.
        client: Registry client providing `fetch_metadata`.
        config: Invocation settings (grace, timeout, delay, ...).
        now: Session start time; defaults to the current UTC time.
        on_release: Awaited with the release once matched.

    Returns:
        Release: The matched release.

    Raises:
        ReleaseMatchError: INVALID_SPEC for a malformed identifier, TIMEOUT
            when no release matched within `config.timeout` seconds.
        FetchError: When the registry cannot be queried.
    """
    spec = package if isinstance(package, PackageSpec) else parse_package_spec(package)
    params = build_parameters(spec, config, now)
    logger.info("Looking up package '%s' using version '%s'", spec.name, spec.version_range)

    poll = poll_until_match(client, params, config.private_key_prefixes)
    if params.timeout > 0:
        try:
            release = await asyncio.wait_for(poll, params.timeout)
        except asyncio.TimeoutError:
            raise ReleaseMatchError(
                f"Timeout after {params.timeout:g}s",
                MatchErrorKind.TIMEOUT,
                package_name=params.package_name,
                target_range=params.target_range,
                released_after=params.released_after,
                parameters=params,
            ) from None
    else:
        release = await poll

    if on_release is not None:
        await on_release(release)
    return release


async def await_releases(
    packages: Sequence[Union[str, PackageSpec]],
    client: MetadataClient,
    config: WatchConfig,
    *,
    now: Optional[datetime] = None,
    on_release: Optional[ReleaseCallback] = None,
) -> List[Release]:
    """Run one concurrent session per package.

    Returns the releases in input order. The first session to fail cancels
    the others and its error is re-raised.
    """
    tasks = [
        asyncio.ensure_future(
            await_release(package, client, config, now=now, on_release=on_release)
        )
        for package in packages
    ]
    try:
        for next_done in asyncio.as_completed(tasks):
            await next_done
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    return [task.result() for task in tasks]

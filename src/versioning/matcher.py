"""Release selection: newest range-qualifying release inside the grace window."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import semantic_version

from constants import Constants
from errors import MatchErrorKind, ReleaseMatchError

from .models import LatestRelease, RegistryMetadata, Release, parse_timestamp
from .parser import compile_range


def satisfies(version: str, spec: semantic_version.NpmSpec) -> bool:
    """Return True when `version` is a semantic version inside `spec`.

    Non-semver keys (npm's `created` / `modified` entries) never match.
    """
    try:
        return spec.match(semantic_version.Version(version))
    except ValueError:
        return False


def strip_private_fields(
    manifest: Mapping[str, Any], prefixes: Sequence[str]
) -> Dict[str, Any]:
    """Copy a manifest without keys starting with any of `prefixes`."""
    prefixes = tuple(p for p in prefixes if p)
    if not prefixes:
        return dict(manifest)
    return {k: v for k, v in manifest.items() if not str(k).startswith(prefixes)}


def _ordered_by_time(times: Mapping[str, Any]) -> List[Tuple[str, str]]:
    entries = [(v, t) for v, t in times.items() if isinstance(t, str)]
    # ISO-8601 strings sort chronologically
    entries.sort(key=lambda item: item[1], reverse=True)
    return entries


def match_release(
    metadata: RegistryMetadata,
    package_name: str,
    target_range: str = Constants.ANY_VERSION,
    released_after: Optional[datetime] = None,
    private_key_prefixes: Sequence[str] = Constants.PRIVATE_KEY_PREFIXES,
) -> Release:
    """Pick the most recently published release satisfying the range and cutoff.

    Args:
        metadata: Registry metadata for the package; never modified.
        package_name: Name used for the release and in diagnostics.
        target_range: npm range expression the version must satisfy.
        released_after: Releases published before this instant are too old.
        private_key_prefixes: Manifest keys with these prefixes are dropped.

    Returns:
        Release: The matched release.

    Raises:
        ReleaseMatchError: NO_RELEASES when nothing in range exists, TOO_OLD
            when every release in range predates `released_after`,
            INVALID_SPEC when the range does not compile.
    """
    context = {
        "package_name": package_name,
        "target_range": target_range,
        "released_after": released_after,
    }
    try:
        spec = compile_range(target_range)
    except ValueError:
        raise ReleaseMatchError(
            f"Invalid version range: '{target_range}'",
            MatchErrorKind.INVALID_SPEC,
            **context,
        ) from None

    if not metadata.times:
        raise ReleaseMatchError("No releases found", MatchErrorKind.NO_RELEASES, **context)

    in_range = [
        (version, published, parse_timestamp(published))
        for version, published in _ordered_by_time(metadata.times)
        if satisfies(version, spec)
    ]
    in_range = [entry for entry in in_range if entry[2] is not None]

    for version, _, published_at in in_range:
        if released_after is None or published_at >= released_after:
            manifest = metadata.manifests.get(version)
            if not isinstance(manifest, Mapping):
                manifest = {}
            return Release(
                name=package_name,
                version=version,
                time=published_at,
                manifest=strip_private_fields(manifest, private_key_prefixes),
            )

    if in_range:
        version, _, published_at = in_range[0]
        latest = LatestRelease(version=version, time=published_at)
        raise ReleaseMatchError(
            f"Latest release ({version}) is too old",
            MatchErrorKind.TOO_OLD,
            latest=latest,
            **context,
        )
    raise ReleaseMatchError(
        "No matching releases found", MatchErrorKind.NO_RELEASES, **context
    )

"""Data models for package specs, registry metadata and releases."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a registry ISO-8601 timestamp into an aware UTC datetime.

    Returns None when the value is not a parseable timestamp.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way the npm registry does (UTC, millis, 'Z')."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class PackageSpec:
    """A parsed package identifier."""
    raw: str
    name: str
    scope: Optional[str]
    version_range: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version_range}"


@dataclass(frozen=True)
class RegistryMetadata:
    """Publish times and manifests for one package, as fetched."""
    times: Mapping[str, str] = field(default_factory=dict)
    manifests: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class LatestRelease:
    """Most recent range-qualifying release seen while waiting."""
    version: str
    time: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "time": format_timestamp(self.time)}


@dataclass(frozen=True)
class Release:
    """A release that satisfied the version range and the grace window."""
    name: str
    version: str
    time: datetime
    manifest: Mapping[str, Any] = field(default_factory=dict)

    @property
    def spec(self) -> str:
        return f"{self.name}@{self.version}"

    def to_dict(self) -> Dict[str, Any]:
        """Manifest fields overlaid with the release identity."""
        data: Dict[str, Any] = dict(self.manifest)
        data.update(
            {
                "name": self.name,
                "version": self.version,
                "time": format_timestamp(self.time),
                "spec": self.spec,
            }
        )
        return data


@dataclass(frozen=True)
class PollParameters:
    """Parameters of one poll session, fixed when the session starts."""
    package_name: str
    target_range: str
    released_after: datetime
    delay: float
    timeout: float
    grace: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package_name": self.package_name,
            "target_range": self.target_range,
            "released_after": format_timestamp(self.released_after),
            "delay": self.delay,
            "timeout": self.timeout,
            "grace": self.grace,
        }

"""Error types raised while resolving releases.

`ReleaseMatchError` is the single error for every "no acceptable release"
outcome; its `kind` tells callers whether polling should continue.
Transport problems are reported separately as `FetchError`.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from versioning.models import LatestRelease, PollParameters


class MatchErrorKind(Enum):
    """Reasons a release lookup did not produce a match."""

    INVALID_SPEC = "invalid_spec"
    NO_RELEASES = "no_releases"
    TOO_OLD = "too_old"
    TIMEOUT = "timeout"


TRANSIENT_KINDS = frozenset({MatchErrorKind.NO_RELEASES, MatchErrorKind.TOO_OLD})


class ReleaseMatchError(Exception):
    """No qualifying release was (yet) found for a package spec."""

    def __init__(
        self,
        message: str,
        kind: MatchErrorKind,
        *,
        package_name: str,
        target_range: str,
        released_after: Optional[datetime] = None,
        latest: Optional["LatestRelease"] = None,
        parameters: Optional["PollParameters"] = None,
    ):
        self.reason = message
        self.kind = kind
        self.package_name = package_name
        self.target_range = target_range
        self.released_after = released_after
        self.latest = latest
        self.parameters = parameters
        super().__init__(f"{message} ({package_name}@{target_range})")

    @property
    def is_transient(self) -> bool:
        """True when another poll may still produce a match."""
        return self.kind in TRANSIENT_KINDS

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the diagnostic payload."""
        data: Dict[str, Any] = {
            "message": str(self),
            "kind": self.kind.value,
            "package_name": self.package_name,
            "target_range": self.target_range,
            "released_after": (
                self.released_after.isoformat() if self.released_after else None
            ),
        }
        if self.latest is not None:
            data["latest"] = self.latest.to_dict()
        if self.parameters is not None:
            data["parameters"] = self.parameters.to_dict()
        return data


class FetchError(Exception):
    """The registry could not be queried (network, HTTP or decoding failure)."""

    def __init__(self, message: str, *, url: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(message)


class PackageNotFoundError(Exception):
    """The registry has no publish-time records for a package."""

    def __init__(self, package_name: str, *, url: str):
        self.package_name = package_name
        self.url = url
        super().__init__(f"Package not found: {package_name}")


class ActionError(Exception):
    """A post-match action exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int):
        self.command: List[str] = list(command)
        self.returncode = returncode
        super().__init__(
            f"Command '{' '.join(self.command)}' exited with status {returncode}"
        )

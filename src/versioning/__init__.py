"""Package spec parsing and release matching."""

from .matcher import match_release, satisfies, strip_private_fields
from .models import (
    LatestRelease,
    PackageSpec,
    PollParameters,
    RegistryMetadata,
    Release,
)
from .parser import PACKAGE_SPEC_REGEX, parse_package_spec

__all__ = [
    "match_release",
    "satisfies",
    "strip_private_fields",
    "LatestRelease",
    "PackageSpec",
    "PollParameters",
    "RegistryMetadata",
    "Release",
    "PACKAGE_SPEC_REGEX",
    "parse_package_spec",
]

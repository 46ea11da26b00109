"""Package identifier parsing."""

import re
from typing import Optional

import semantic_version

from constants import Constants
from errors import MatchErrorKind, ReleaseMatchError

from .models import PackageSpec

# Groups: @scope/package-name, @scope, package-name, version range
PACKAGE_SPEC_REGEX = re.compile(
    r"^((?:(@[a-z0-9\-~][a-z0-9\-._~]*)/)?([a-z0-9\-~][a-z0-9\-._~]*))(?:@([^@]+))?$"
)


def normalize_range(version_range: str) -> str:
    """Collapse runs of whitespace so NpmSpec sees single-space separators."""
    return " ".join(version_range.split())


def compile_range(version_range: str) -> semantic_version.NpmSpec:
    """Compile an npm range expression.

    Raises:
        ValueError: if the expression is not a valid npm range.
    """
    return semantic_version.NpmSpec(normalize_range(version_range))


def _invalid(token: str, target_range: Optional[str] = None) -> ReleaseMatchError:
    return ReleaseMatchError(
        f"Invalid package string: '{token}'",
        MatchErrorKind.INVALID_SPEC,
        package_name=token,
        target_range=target_range or "?",
    )


def parse_package_spec(token: str) -> PackageSpec:
    """Parse `[@scope/]name[@range]` into a PackageSpec.

    A missing range means any published version.

    Raises:
        ReleaseMatchError: with kind INVALID_SPEC for malformed input.
    """
    if not isinstance(token, str):
        raise _invalid(str(token))
    match = PACKAGE_SPEC_REGEX.match(token.strip())
    if not match:
        raise _invalid(token)

    name, scope, _, raw_range = match.groups()
    version_range = normalize_range(raw_range) if raw_range else Constants.ANY_VERSION
    if not version_range:
        raise _invalid(token)
    try:
        compile_range(version_range)
    except ValueError:
        raise _invalid(token, version_range) from None

    return PackageSpec(raw=token, name=name, scope=scope, version_range=version_range)

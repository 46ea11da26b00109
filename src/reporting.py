"""Rendering of resolved releases for the CLI."""

import json
import sys
from typing import Iterable, List, Optional, TextIO

from constants import OutputStyles
from versioning.models import Release


def format_release_line(release: Release) -> str:
    """One human-readable line, with the publish time in local time."""
    local = release.time.astimezone()
    return f"- {release.spec} (released {local.strftime('%Y-%m-%d %H:%M:%S %Z').strip()})"


def render_default(releases: Iterable[Release]) -> str:
    return "\n".join(format_release_line(r) for r in releases)


def render_json(releases: Iterable[Release]) -> str:
    return json.dumps([r.to_dict() for r in releases], ensure_ascii=False, indent=2)


def render(releases: List[Release], style: OutputStyles) -> Optional[str]:
    """Render releases in the given style; None means print nothing."""
    if style == OutputStyles.NONE:
        return None
    if style == OutputStyles.JSON:
        return render_json(releases)
    return render_default(releases)


def emit(releases: List[Release], style: OutputStyles, stream: Optional[TextIO] = None) -> None:
    text = render(releases, style)
    if text:
        print(text, file=stream or sys.stdout)

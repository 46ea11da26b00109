"""Post-match actions: install the release or run a templated command.

Exec templates understand these placeholders:

    %p  package name
    %s  package spec ("name@version")
    %t  publish time (ISO-8601, UTC)
    %v  version
    %%  a literal percent sign
"""

from __future__ import annotations

import asyncio
import logging
import re
import shlex
from typing import Callable, Dict, List, Optional, Sequence

from errors import ActionError
from versioning.models import Release, format_timestamp
from watch.config import WatchConfig

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"%(.)", re.DOTALL)

_PLACEHOLDERS: Dict[str, Callable[[Release], str]] = {
    "p": lambda release: release.name,
    "s": lambda release: release.spec,
    "t": lambda release: format_timestamp(release.time),
    "v": lambda release: release.version,
    "%": lambda release: "%",
}


def interpolate(template: str, release: Release) -> str:
    """Substitute placeholders in `template`; unknown ones are kept as-is."""

    def _sub(match: "re.Match[str]") -> str:
        render = _PLACEHOLDERS.get(match.group(1))
        return render(release) if render else match.group(0)

    return _PLACEHOLDER_RE.sub(_sub, template)


def validate_exec_template(template: str) -> Optional[str]:
    """Return an error message when `template` cannot be split into a command."""
    try:
        tokens = shlex.split(template)
    except ValueError as exc:
        return f"Invalid exec template '{template}': {exc}"
    if not tokens:
        return "Empty exec template"
    return None


def build_exec_command(template: str, release: Release) -> List[str]:
    """Split the template with shell rules, then interpolate each argument.

    Splitting first keeps substituted values as single arguments.

    Raises:
        ValueError: if the template has unbalanced quotes or is empty.
    """
    tokens = shlex.split(template)
    if not tokens:
        raise ValueError("Empty exec template")
    return [interpolate(token, release) for token in tokens]


def build_install_command(install_command: Sequence[str], release: Release) -> List[str]:
    return list(install_command) + [release.spec]


async def run_command(command: Sequence[str]) -> int:
    """Run a command with inherited stdio and return its exit status."""
    logger.info("Running: %s", " ".join(shlex.quote(c) for c in command))
    try:
        process = await asyncio.create_subprocess_exec(*command)
    except FileNotFoundError:
        logger.error("Command not found: %s", command[0])
        return 127
    try:
        return await process.wait()
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise


async def run_actions(release: Release, config: WatchConfig) -> None:
    """Run the configured install and exec actions for a matched release.

    Raises:
        ActionError: when a command exits with a non-zero status.
    """
    commands = []
    if config.install:
        commands.append(build_install_command(config.install_command, release))
    if config.exec_template:
        commands.append(build_exec_command(config.exec_template, release))

    for command in commands:
        returncode = await run_command(command)
        if returncode != 0:
            raise ActionError(command, returncode)


def make_release_callback(config: WatchConfig):
    """Return a session callback running the configured actions, or None."""
    if not config.has_actions:
        return None

    async def _on_release(release: Release) -> None:
        await run_actions(release, config)

    return _on_release

"""await-release - wait for an npm package to publish a fresh release.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import sys
import traceback
from typing import List, Optional

from args import build_parser
from cli_actions import make_release_callback, validate_exec_template
from cli_config import build_watch_config, load_config_file, resolve_log_level
from common.logging_utils import configure_logging
from constants import ExitCodes, OutputStyles
from errors import ActionError, ReleaseMatchError
from registry.npm.client import NpmRegistryClient
from reporting import emit
from versioning.models import Release
from versioning.parser import parse_package_spec
from watch.config import WatchConfig
from watch.session import await_releases

logger = logging.getLogger(__name__)


def validate_packages(tokens: List[str]) -> Optional[str]:
    """Return an error message for the first unusable identifier, else None."""
    for token in tokens:
        if "%" in token:
            return f"Invalid package string: '{token}' (literal '%' is not allowed)"
        try:
            parse_package_spec(token)
        except ReleaseMatchError as exc:
            return str(exc)
    return None


async def watch(packages: List[str], config: WatchConfig) -> List[Release]:
    """Poll all packages concurrently, running configured actions on match."""
    async with NpmRegistryClient(config.npm) as client:
        return await await_releases(
            packages,
            client,
            config,
            on_release=make_release_callback(config),
        )


def main(argv: Optional[List[str]] = None) -> None:
    """Main function of the program."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.packages:
        parser.print_help()
        sys.exit(ExitCodes.SUCCESS.value)

    configure_logging(
        resolve_log_level(args, OutputStyles(args.OUTPUT or OutputStyles.DEFAULT.value)),
        args.LOG_FILE,
    )

    error = validate_packages(args.packages)
    if error:
        sys.stderr.write(error + "\n")
        sys.exit(ExitCodes.INVALID_PACKAGE.value)

    if args.EXEC is not None:
        error = validate_exec_template(args.EXEC)
        if error:
            parser.error(error)

    config = build_watch_config(args, load_config_file(args.CONFIG))
    level = resolve_log_level(args, config.output)
    if level:
        logging.getLogger().setLevel(level)

    try:
        releases = asyncio.run(watch(args.packages, config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(ExitCodes.INTERRUPTED.value)
    except ReleaseMatchError as exc:
        sys.stderr.write(str(exc) + "\n")
        sys.exit(ExitCodes.RELEASE_MATCH_ERROR.value)
    except ActionError as exc:
        sys.stderr.write(str(exc) + "\n")
        sys.exit(ExitCodes.UNEXPECTED_ERROR.value)
    except Exception:  # pylint: disable=broad-exception-caught
        traceback.print_exc(file=sys.stderr)
        sys.exit(ExitCodes.UNEXPECTED_ERROR.value)

    emit(releases, config.output)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()

"""Argument parsing functionality for await-release."""

import argparse
from typing import List, Optional

from constants import Constants

VERSION = "1.0.0"


def _decimal(value: str) -> float:
    """Parse a seconds value; nan/inf are accepted and replaced by defaults later."""
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of seconds: '{value}'") from None


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="await-release",
        description=(
            "Poll the npm registry until the requested package(s) has a new release.\n\n"
            "Package identifiers may optionally include:\n"
            "  * scope (@org/pkg)\n"
            "  * semver version range (pkg@16, pkg@1.x, etc.)"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=True,
    )

    parser.add_argument("packages",
                        metavar="package",
                        help="Package identifier: [@scope/]name[@range]",
                        nargs="*")

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Output format (" + "/".join(Constants.OUTPUT_STYLES) + ")",
                        action="store",
                        type=str.lower,
                        choices=Constants.OUTPUT_STYLES)
    parser.add_argument("-g", "--grace",
                        dest="GRACE",
                        help="Accept versions released up to X seconds before invocation "
                             f"(default: {Constants.DEFAULT_GRACE_SEC:g})",
                        action="store",
                        type=_decimal)
    parser.add_argument("-t", "--timeout",
                        dest="TIMEOUT",
                        help="Exit if no release matches after X seconds, 0 waits forever "
                             f"(default: {Constants.DEFAULT_TIMEOUT_SEC:g})",
                        action="store",
                        type=_decimal)
    parser.add_argument("-d", "--delay",
                        dest="DELAY",
                        help="Time between polling requests in seconds "
                             f"(default: {Constants.DEFAULT_DELAY_SEC:g})",
                        action="store",
                        type=_decimal)
    parser.add_argument("-i", "--install",
                        dest="INSTALL",
                        help="Install the matched release (npm install <name>@<version>)",
                        action="store_true")
    parser.add_argument("-e", "--exec",
                        dest="EXEC",
                        help="Run a command for each matched release; placeholders: "
                             "%%p name, %%s spec, %%t time, %%v version, %%%% literal %%",
                        action="store",
                        type=str)

    parser.add_argument("--registry",
                        dest="REGISTRY",
                        help="Registry URL (overrides npm configuration)",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=Constants.LOG_LEVELS)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-V", "--version",
                        action="version",
                        version=f"%(prog)s {VERSION}")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)

"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    INVALID_PACKAGE = 1
    RELEASE_MATCH_ERROR = 3
    UNEXPECTED_ERROR = 4
    INTERRUPTED = 130


class OutputStyles(Enum):
    """Output styles supported by the CLI.

    Args:
        Enum (string): Output styles supported by the CLI.
    """

    DEFAULT = "default"
    VERBOSE = "verbose"
    NONE = "none"
    JSON = "json"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration defaults; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    ANY_VERSION = ">=0"
    DEFAULT_GRACE_SEC = 10.0
    DEFAULT_TIMEOUT_SEC = 0.0
    DEFAULT_DELAY_SEC = 2.0
    PRIVATE_KEY_PREFIXES = ("_",)
    INSTALL_COMMAND = ("npm", "install")
    OUTPUT_STYLES = [style.value for style in OutputStyles]
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    REQUEST_TIMEOUT = 30  # Timeout in seconds for each registry request
    USER_AGENT = "await-release/1.0"

    ENV_LOG_LEVEL = "AWAIT_RELEASE_LOG_LEVEL"
    ENV_NPM_PREFIX = "npm_config_"
    NPMRC_FILE = ".npmrc"

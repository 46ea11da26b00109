"""Configuration file loading and WatchConfig construction.

Precedence is CLI flag, then configuration file, then built-in defaults.
"""

from __future__ import annotations

import logging
import os
import shlex
from typing import Any, Dict, Optional, Tuple

import yaml

from constants import Constants, OutputStyles
from registry.npm.config import NpmConfig, load_npm_config
from watch.config import WatchConfig, finite_or_default

logger = logging.getLogger(__name__)

CONFIG_KEYS = {
    "grace",
    "timeout",
    "delay",
    "output",
    "registry",
    "private_key_prefixes",
    "install_command",
}


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load settings from a YAML (or JSON) file.

    Returns an empty dict when no path is given, the file is missing, or it
    cannot be parsed.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config: %s", e)
        return {}

    if not isinstance(data, dict):
        if data is not None:
            logger.error("Config file must contain a mapping: %s", config_path)
        return {}

    unknown = sorted(str(k) for k in data if k not in CONFIG_KEYS)
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
    return {k: v for k, v in data.items() if k in CONFIG_KEYS}


def _pick(cli_value: Any, file_config: Dict[str, Any], key: str) -> Any:
    return cli_value if cli_value is not None else file_config.get(key)


def _as_tuple(value: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return tuple(shlex.split(value))
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    logger.warning("Ignoring invalid list value: %r", value)
    return default


def _output_style(value: Any) -> OutputStyles:
    if value is None:
        return OutputStyles.DEFAULT
    try:
        return OutputStyles(str(value).lower())
    except ValueError:
        logger.warning("Unknown output style '%s'; using default", value)
        return OutputStyles.DEFAULT


def build_watch_config(
    args: Any,
    file_config: Optional[Dict[str, Any]] = None,
    npm_config: Optional[NpmConfig] = None,
) -> WatchConfig:
    """Build the immutable invocation configuration from parsed CLI args."""
    file_config = file_config or {}
    if npm_config is None:
        npm_config = load_npm_config()
    registry = _pick(getattr(args, "REGISTRY", None), file_config, "registry")
    npm_config = npm_config.with_registry(registry)

    prefixes = file_config.get("private_key_prefixes")
    if isinstance(prefixes, str):
        prefixes = [prefixes]

    install_command = _as_tuple(
        file_config.get("install_command"), Constants.INSTALL_COMMAND
    ) or Constants.INSTALL_COMMAND

    return WatchConfig(
        grace=finite_or_default(
            _pick(getattr(args, "GRACE", None), file_config, "grace"),
            Constants.DEFAULT_GRACE_SEC,
        ),
        timeout=finite_or_default(
            _pick(getattr(args, "TIMEOUT", None), file_config, "timeout"),
            Constants.DEFAULT_TIMEOUT_SEC,
        ),
        delay=finite_or_default(
            _pick(getattr(args, "DELAY", None), file_config, "delay"),
            Constants.DEFAULT_DELAY_SEC,
        ),
        output=_output_style(_pick(getattr(args, "OUTPUT", None), file_config, "output")),
        private_key_prefixes=_as_tuple(prefixes, Constants.PRIVATE_KEY_PREFIXES),
        install=bool(getattr(args, "INSTALL", False)),
        install_command=install_command,
        exec_template=getattr(args, "EXEC", None) or None,
        npm=npm_config,
    )


def resolve_log_level(args: Any, output: OutputStyles) -> Optional[str]:
    """Pick the log level: --loglevel, env, then verbose output means INFO."""
    level = getattr(args, "LOG_LEVEL", None)
    if level:
        return str(level).upper()
    if os.environ.get(Constants.ENV_LOG_LEVEL):
        return None
    return "INFO" if output == OutputStyles.VERBOSE else "WARNING"

"""Per-invocation watch configuration."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

from constants import Constants, OutputStyles
from registry.npm.config import NpmConfig


def finite_or_default(value: Optional[float], default: float) -> float:
    """Return `value` as float unless it is missing or not finite."""
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


@dataclass(frozen=True)
class WatchConfig:
    """Immutable settings shared by every poll session of one invocation."""

    grace: float = Constants.DEFAULT_GRACE_SEC
    timeout: float = Constants.DEFAULT_TIMEOUT_SEC
    delay: float = Constants.DEFAULT_DELAY_SEC
    output: OutputStyles = OutputStyles.DEFAULT
    private_key_prefixes: Tuple[str, ...] = Constants.PRIVATE_KEY_PREFIXES
    install: bool = False
    install_command: Tuple[str, ...] = Constants.INSTALL_COMMAND
    exec_template: Optional[str] = None
    npm: NpmConfig = field(default_factory=NpmConfig)

    def __post_init__(self) -> None:
        grace = max(0.0, finite_or_default(self.grace, Constants.DEFAULT_GRACE_SEC))
        timeout = max(0.0, finite_or_default(self.timeout, Constants.DEFAULT_TIMEOUT_SEC))
        delay = max(0.0, finite_or_default(self.delay, Constants.DEFAULT_DELAY_SEC))
        object.__setattr__(self, "grace", grace)
        object.__setattr__(self, "timeout", timeout)
        object.__setattr__(self, "delay", delay)
        object.__setattr__(self, "private_key_prefixes", tuple(self.private_key_prefixes))
        object.__setattr__(self, "install_command", tuple(self.install_command))

    @property
    def has_actions(self) -> bool:
        return self.install or bool(self.exec_template)

"""Poll sessions that wait for package releases."""

from .config import WatchConfig
from .session import await_release, await_releases, poll_until_match

__all__ = ["WatchConfig", "await_release", "await_releases", "poll_until_match"]

"""npm registry access: configuration loading and metadata client."""

from .client import NpmRegistryClient
from .config import NpmConfig, load_npm_config

__all__ = ["NpmRegistryClient", "NpmConfig", "load_npm_config"]

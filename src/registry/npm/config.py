"""npm configuration loading (`.npmrc` files and `npm_config_*` variables).

Only the settings the registry client needs are interpreted: registry
URLs (including per-scope registries), credentials keyed by registry
"nerf dart" (`//host/path/:_authToken`), proxies and TLS strictness.
"""

from __future__ import annotations

import base64
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional
from urllib.parse import urlsplit

from constants import Constants

logger = logging.getLogger(__name__)

_ENV_REF_RE = re.compile(r"(\\*)\$\{([^}]+)\}")


def expand_env(value: str, env: Mapping[str, str]) -> str:
    """Replace `${VAR}` references; a backslash-escaped reference stays literal."""

    def _sub(match: "re.Match[str]") -> str:
        slashes, name = match.group(1), match.group(2)
        if len(slashes) % 2:
            return slashes[:-1] + "${" + name + "}"
        return slashes + env.get(name, "")

    return _ENV_REF_RE.sub(_sub, value)


def parse_npmrc(text: str, env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Parse the ini-like `.npmrc` format into a flat key/value mapping."""
    env = os.environ if env is None else env
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", ";")):
            continue
        if line.startswith("[") and line.endswith("]"):
            continue
        if "=" not in line:
            values[expand_env(line, env)] = "true"
            continue
        key, value = line.split("=", 1)
        key = expand_env(key.strip(), env)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        if key.endswith("[]"):
            key = key[:-2]
        values[key] = expand_env(value, env)
    return values


def _env_key(name: str) -> str:
    key = name[len(Constants.ENV_NPM_PREFIX):].lower()
    if key.startswith("_"):
        return "_" + key[1:].replace("_", "-")
    return key.replace("_", "-")


def env_overrides(env: Mapping[str, str]) -> Dict[str, str]:
    """Collect `npm_config_*` variables (prefix matched case-insensitively)."""
    prefix = Constants.ENV_NPM_PREFIX
    return {
        _env_key(name): value
        for name, value in env.items()
        if name.lower().startswith(prefix) and len(name) > len(prefix)
    }


def nerf_dart(url: str) -> str:
    """Reduce a registry URL to the `//host/path/` form used for credentials."""
    parts = urlsplit(url)
    path = parts.path or "/"
    if not path.endswith("/"):
        path = path.rsplit("/", 1)[0] + "/"
    return f"//{parts.netloc}{path}"


def _nerf_candidates(url: str) -> Iterator[str]:
    dart = nerf_dart(url)
    host_end = dart.index("/", 2)
    host, path = dart[:host_end], dart[host_end:]
    segments = [s for s in path.split("/") if s]
    while True:
        yield host + "/" + "".join(f"{s}/" for s in segments)
        if not segments:
            return
        segments.pop()


@dataclass(frozen=True)
class NpmConfig:
    """Read-only view of the merged npm configuration."""

    values: Mapping[str, str] = field(
        default_factory=lambda: {"registry": Constants.REGISTRY_URL_NPM}
    )

    @property
    def registry(self) -> str:
        url = self.values.get("registry") or Constants.REGISTRY_URL_NPM
        return url if url.endswith("/") else url + "/"

    @property
    def strict_ssl(self) -> bool:
        return str(self.values.get("strict-ssl", "true")).lower() != "false"

    def registry_for(self, package_name: str) -> str:
        """Registry base URL for a package, honouring `@scope:registry`."""
        if package_name.startswith("@") and "/" in package_name:
            scope = package_name.split("/", 1)[0]
            scoped = self.values.get(f"{scope}:registry")
            if scoped:
                return scoped if scoped.endswith("/") else scoped + "/"
        return self.registry

    def auth_header(self, registry_url: str) -> Optional[str]:
        """Authorization header value for requests to `registry_url`."""
        for dart in _nerf_candidates(registry_url):
            token = self.values.get(f"{dart}:_authToken")
            if token:
                return f"Bearer {token}"
            basic = self.values.get(f"{dart}:_auth")
            if basic:
                return f"Basic {basic}"
            username = self.values.get(f"{dart}:username")
            password = self.values.get(f"{dart}:_password")
            if username and password:
                try:
                    decoded = base64.b64decode(password).decode("utf-8")
                except (ValueError, UnicodeDecodeError):
                    logger.warning("Ignoring undecodable _password for %s", dart)
                    continue
                pair = base64.b64encode(f"{username}:{decoded}".encode("utf-8"))
                return f"Basic {pair.decode('ascii')}"
        legacy = self.values.get("_auth")
        if legacy and nerf_dart(registry_url) == nerf_dart(self.registry):
            return f"Basic {legacy}"
        return None

    def proxy_for(self, url: str) -> Optional[str]:
        """Proxy URL for `url`, or None when no proxy applies."""
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        no_proxy = self.values.get("noproxy") or ""
        for entry in (e.strip().lower().lstrip(".") for e in no_proxy.split(",")):
            if entry and (entry == "*" or host == entry or host.endswith("." + entry)):
                return None
        if parts.scheme == "https":
            proxy = self.values.get("https-proxy") or self.values.get("proxy")
        else:
            proxy = self.values.get("proxy")
        if not proxy or proxy.lower() in ("false", "null"):
            return None
        return proxy

    def with_registry(self, registry: Optional[str]) -> "NpmConfig":
        """Copy with the default registry replaced."""
        if not registry:
            return self
        merged = dict(self.values)
        merged["registry"] = registry
        return NpmConfig(values=merged)


def _read_npmrc(path: Path, env: Mapping[str, str]) -> Dict[str, str]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("Could not read npm config %s: %s", path, exc)
        return {}
    values = parse_npmrc(text, env)
    logger.debug("Loaded npm config %s (%s)", path, ", ".join(sorted(values)))
    return values


def load_npm_config(
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> NpmConfig:
    """Merge npm configuration the way npm layers it.

    Precedence (lowest first): built-in defaults, global npmrc, user npmrc,
    project `.npmrc`, `npm_config_*` environment variables.
    """
    env = dict(os.environ) if env is None else dict(env)
    cwd = Path.cwd() if cwd is None else Path(cwd)
    home = Path.home() if home is None else Path(home)
    overrides = env_overrides(env)

    values: Dict[str, str] = {"registry": Constants.REGISTRY_URL_NPM}

    global_path = overrides.get("globalconfig")
    if global_path:
        values.update(_read_npmrc(Path(global_path).expanduser(), env))

    user_path = overrides.get("userconfig")
    user_file = Path(user_path).expanduser() if user_path else home / Constants.NPMRC_FILE
    values.update(_read_npmrc(user_file, env))

    project_file = cwd / Constants.NPMRC_FILE
    if project_file != user_file:
        values.update(_read_npmrc(project_file, env))

    values.update(overrides)
    return NpmConfig(values=values)

"""Resolve the remote host/port and the remote working directory."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .errors import ConfigurationError

DEFAULT_PORT = 22
HOST_ENV_VAR = "CARGO_OFFLOAD_HOST"
REMOTE_BASE_DIR = "/tmp/cargo-offload"


def _parse_port(text: str) -> Optional[int]:
    if not text.isdigit():
        return None
    port = int(text)
    if 1 <= port <= 65535:
        return port
    return None


def split_host_port(host_str: str) -> Tuple[str, Optional[int]]:
    """Split ``[user@]host[:port]`` at the *last* colon.

    The suffix is only treated as a port when it parses as one; otherwise the
    whole string is the host (e.g. a bare IPv6 literal).
    """

    if ":" in host_str:
        host_part, _, port_part = host_str.rpartition(":")
        port = _parse_port(port_part)
        if port is not None and host_part:
            return host_part, port
    return host_str, None


def parse_host_and_port(
    host: Optional[str],
    port: Optional[int] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    default_host: Optional[str] = None,
) -> Tuple[str, int]:
    """Return ``(host, port)`` from the CLI flags with env/settings fallback.

    An explicit ``port`` always wins over a port embedded in the host string.
    """

    if env is None:
        env = os.environ

    host_str = (host or "").strip() or (env.get(HOST_ENV_VAR) or "").strip() or (default_host or "").strip()
    if not host_str:
        raise ConfigurationError(f"Host must be specified via --host or {HOST_ENV_VAR} env var")

    if port is not None and not (1 <= int(port) <= 65535):
        raise ConfigurationError(f"Invalid port: {port}")

    host_part, inline_port = split_host_port(host_str)
    if port is not None:
        return host_part, int(port)
    if inline_port is not None:
        return host_part, inline_port
    return host_part, DEFAULT_PORT


def remote_dir_for(project_dir: Path, base_dir: str = REMOTE_BASE_DIR) -> str:
    """Remote working directory for a local project (basename only)."""

    name = Path(project_dir).resolve().name
    if not name:
        raise ConfigurationError(f"Cannot determine folder name of {project_dir}")
    return posixpath.join(base_dir, name)

"""Public API surface.

Re-exports the pieces scripts usually need so they can import a single module.
"""

from __future__ import annotations

from . import __version__

# Resolution
from .connection import parse_host_and_port, remote_dir_for
from .context import OffloadContext, build_context
from .toolchain import parse_toolchain_arg, resolve_toolchain

# Command building
from .commands import (
    BuildInvocation,
    PortForwardSpec,
    build_cargo_command,
    env_prefix,
    inject_target,
    parse_forward_spec,
    quote_env_var,
    split_run_args,
)

# Transport / artifacts / running
from .artifacts import ArtifactRequest, fetch_artifacts, resolve_artifacts, select_runnable, sync_artifacts
from .manifest import Artifact, ArtifactKind, discover_artifacts
from .offload import CargoOffload
from .remote import HostConfig, SSHTransport
from .runner import run_local
from .workdir import ArtifactLayout, artifact_layout, profile_for

# Errors
from .errors import (
    AmbiguousArtifactError,
    ArtifactError,
    ArtifactNotFoundError,
    ConfigurationError,
    OffloadError,
    RemoteCommandError,
    ToolNotFoundError,
)

__all__ = [
    "__version__",
    "parse_host_and_port",
    "remote_dir_for",
    "OffloadContext",
    "build_context",
    "parse_toolchain_arg",
    "resolve_toolchain",
    "BuildInvocation",
    "PortForwardSpec",
    "build_cargo_command",
    "env_prefix",
    "inject_target",
    "parse_forward_spec",
    "quote_env_var",
    "split_run_args",
    "ArtifactRequest",
    "fetch_artifacts",
    "resolve_artifacts",
    "select_runnable",
    "sync_artifacts",
    "Artifact",
    "ArtifactKind",
    "discover_artifacts",
    "CargoOffload",
    "HostConfig",
    "SSHTransport",
    "run_local",
    "ArtifactLayout",
    "artifact_layout",
    "profile_for",
    "AmbiguousArtifactError",
    "ArtifactError",
    "ArtifactNotFoundError",
    "ConfigurationError",
    "OffloadError",
    "RemoteCommandError",
    "ToolNotFoundError",
]

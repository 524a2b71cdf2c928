"""Subcommand pipelines.

Every pipeline is a strict sequence; the first exception aborts the rest::

    sync source -> setup toolchain -> remote cargo -> [copy artifacts -> run]

``clean`` and ``toolchain`` skip the sync/build stages.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from . import commands
from .artifacts import (
    ArtifactRequest,
    fetch_artifacts,
    pick_requested,
    requested_artifacts,
    sync_artifacts,
)
from .context import OffloadContext
from .manifest import Artifact, discover_artifacts
from .remote.ssh_transport import HostConfig, SSHTransport
from .runner import run_local
from .workdir import LOCAL_OFFLOAD_DIR, artifact_layout

LOGGER = logging.getLogger(__name__)

# Relative to the project root (rsync --exclude syntax).
SOURCE_EXCLUDES: List[str] = [
    "target/",
    ".git/",
    "*.swp",
    "*.tmp",
    ".cargo/",
]


class CargoOffload:
    def __init__(self, ctx: OffloadContext, transport: Optional[SSHTransport] = None):
        self.ctx = ctx
        self.transport = transport or SSHTransport(HostConfig.from_context(ctx))

    # -------------------------
    # stages
    # -------------------------
    def sync_source(self) -> None:
        LOGGER.info("Syncing source code to remote...")
        self.transport.run_silent(commands.mkdir_command(self.ctx))
        self.transport.mirror(
            str(self.ctx.project_dir).rstrip("/") + "/",
            self.transport.remote_spec(self.ctx.remote_dir + "/"),
            SOURCE_EXCLUDES,
        )

    def setup_toolchain(self, args: Sequence[str] = ()) -> None:
        install = commands.toolchain_install_command(self.ctx)
        if install:
            LOGGER.info("Setting up toolchain %s on remote...", self.ctx.toolchain)
            self.transport.run_silent(install)

        target = self.effective_target(args)
        LOGGER.info("Ensuring target %s is installed on remote...", target)
        self.transport.run_silent(commands.target_add_command(self.ctx, target))

    def run_cargo(self, invocation: commands.BuildInvocation) -> None:
        LOGGER.info("Running cargo %s on remote...", invocation.subcommand)
        cmd = commands.build_invocation_command(self.ctx, invocation)
        self.transport.run_interactive(cmd, invocation.forward_ports)
        LOGGER.debug("Cargo %s completed successfully on remote", invocation.subcommand)

    def toolchain_remote(self, args: Sequence[str]) -> None:
        LOGGER.debug("Running rustup toolchain command on remote...")
        self.transport.run_interactive(commands.toolchain_passthrough_command(args))

    def effective_target(self, args: Sequence[str]) -> str:
        """A ``--target`` among the cargo arguments wins over the configured one."""

        return commands.target_from_args(args) or self.ctx.target

    def copy_artifacts(self, args: Sequence[str], request: ArtifactRequest) -> List[Path]:
        target = self.effective_target(args)
        layout = artifact_layout(self.ctx.remote_dir, target, args, self.ctx.project_dir)

        if not self.ctx.per_artifact:
            return sync_artifacts(
                self.transport,
                layout,
                request,
                copy_all_artifacts=self.ctx.copy_all_artifacts,
            )

        discovered = [] if request.is_specific else discover_artifacts(self.ctx.project_dir)
        wanted = requested_artifacts(request, discovered)
        required: Optional[Artifact] = wanted[0] if request.is_specific else None
        return fetch_artifacts(
            self.transport,
            layout,
            wanted,
            max_workers=self.ctx.max_workers,
            required=required,
        )

    def clean(self) -> None:
        LOGGER.info("Cleaning remote build directory...")
        self.transport.run_silent(commands.clean_command(self.ctx))

        local_offload_dir = self.ctx.project_dir / LOCAL_OFFLOAD_DIR
        if local_offload_dir.exists():
            LOGGER.info("Cleaning local offload directory...")
            shutil.rmtree(local_offload_dir)
        LOGGER.info("Clean completed successfully")

    # -------------------------
    # pipelines
    # -------------------------
    def prepare(self, invocation: commands.BuildInvocation) -> None:
        # malformed -L specs must fail before the first ssh connection
        commands.forward_args(invocation.forward_ports)
        self.sync_source()
        self.setup_toolchain(invocation.args)

    def build(self, invocation: commands.BuildInvocation) -> List[Path]:
        self.prepare(invocation)
        self.run_cargo(invocation)
        return self.copy_artifacts(invocation.args, ArtifactRequest())

    def check(self, invocation: commands.BuildInvocation) -> None:
        """test / clippy: remote only, nothing to copy back."""

        self.prepare(invocation)
        self.run_cargo(invocation)

    def run(
        self,
        invocation: commands.BuildInvocation,
        request: ArtifactRequest,
        run_args: Sequence[str] = (),
    ) -> int:
        """Build remotely, copy back, run locally; returns the program's exit code."""

        build_args = commands.with_artifact_selector(invocation.args, request)
        build = commands.BuildInvocation(
            subcommand="build",
            args=build_args,
            env_vars=list(invocation.env_vars),
        )
        self.prepare(build)
        self.run_cargo(build)
        paths = self.copy_artifacts(build_args, request)
        return run_local(pick_requested(paths, request), run_args)

    def run_remote(self, invocation: commands.BuildInvocation) -> None:
        """``cargo run`` on the remote host, with optional port forwards."""

        self.prepare(invocation)
        self.run_cargo(invocation)

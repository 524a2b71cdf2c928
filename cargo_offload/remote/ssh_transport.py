"""ssh/rsync transport helpers.

Wraps the *system* ssh and rsync binaries, so the user's SSH config, agent
and keys apply unchanged.

Every process is started through :func:`subprocess.run`; nothing here is
asynchronous and there are no timeouts.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ..commands import forward_args
from ..errors import RemoteCommandError, ToolNotFoundError
from ..log_utils import sanitize_log

if TYPE_CHECKING:
    from ..context import OffloadContext

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostConfig:
    """Remote endpoint (no secrets; auth is left to ssh itself)."""

    host: str
    port: int = 22
    ssh_extra_args: Tuple[str, ...] = field(default_factory=tuple)
    progress_flag: str = "--info=progress2"

    @staticmethod
    def from_context(ctx: "OffloadContext") -> "HostConfig":
        return HostConfig(
            host=ctx.host,
            port=ctx.port,
            ssh_extra_args=tuple(ctx.ssh_extra_args),
            progress_flag=ctx.progress_flag,
        )


class SSHTransport:
    """Thin wrapper around system ssh/rsync.

    Two execution modes:

    * :meth:`run_silent` captures output and only shows it when the command
      fails.
    * :meth:`run_interactive` allocates a pseudo-terminal, streams output live
      and optionally sets up local port forwards.
    """

    def __init__(self, host: HostConfig):
        self.host = host

    # -------------------------
    # command builders
    # -------------------------
    def ssh_argv(
        self,
        command: str,
        *,
        tty: bool = False,
        forward_ports: Sequence[str] = (),
    ) -> List[str]:
        cmd: List[str] = ["ssh"]
        if tty:
            cmd.append("-t")
        if forward_ports:
            cmd += forward_args(forward_ports)
        cmd += ["-p", str(int(self.host.port))]
        cmd += list(self.host.ssh_extra_args)
        cmd += [self.host.host, command]
        return cmd

    def rsync_shell(self) -> str:
        return shlex.join(["ssh", "-p", str(int(self.host.port)), *self.host.ssh_extra_args])

    def rsync_argv(self, src: str, dst: str, excludes: Sequence[str] = ()) -> List[str]:
        cmd: List[str] = [
            "rsync",
            "-a",
            "--delete",
            "--compress",
            "-e",
            self.rsync_shell(),
        ]
        if self.host.progress_flag:
            cmd.append(self.host.progress_flag)
        cmd += [f"--exclude={pat}" for pat in excludes]
        cmd += [src, dst]
        return cmd

    def remote_spec(self, remote_path: str) -> str:
        return f"{self.host.host}:{remote_path}"

    # -------------------------
    # public API
    # -------------------------
    def run_silent(self, command: str) -> None:
        """Run ``command`` remotely; replay its output only on failure."""

        argv = self.ssh_argv(command)
        LOGGER.debug("[ssh] $ %s", command)
        try:
            proc = subprocess.run(argv, capture_output=True)
        except FileNotFoundError as e:
            raise ToolNotFoundError("ssh", str(e)) from e

        if proc.returncode != 0:
            _replay(proc.stdout, proc.stderr)
            raise RemoteCommandError(command, proc.returncode)

    def run_interactive(self, command: str, forward_ports: Sequence[str] = ()) -> None:
        """Run ``command`` with a pty and inherited stdio.

        Forward specs are validated before ssh is started.
        """

        argv = self.ssh_argv(command, tty=True, forward_ports=forward_ports)
        if forward_ports:
            LOGGER.info("Port forwarding: %s", ", ".join(forward_ports))
        LOGGER.debug("[ssh-tty] $ %s", command)
        try:
            proc = subprocess.run(argv)
        except FileNotFoundError as e:
            raise ToolNotFoundError("ssh", str(e)) from e

        if proc.returncode != 0:
            raise RemoteCommandError(command, proc.returncode)

    def mirror(self, src: str, dst: str, excludes: Sequence[str] = ()) -> None:
        """Recursive, deleting, compressed rsync from ``src`` to ``dst``.

        Either side may be a ``host:path`` spec (see :meth:`remote_spec`).
        Progress goes to the inherited stdout; stderr is captured for the
        error message.
        """

        argv = self.rsync_argv(src, dst, excludes)
        LOGGER.debug("[rsync] %s -> %s", src, dst)
        try:
            proc = subprocess.run(argv, stderr=subprocess.PIPE, text=True)
        except FileNotFoundError as e:
            raise ToolNotFoundError("rsync", str(e)) from e

        err = sanitize_log(proc.stderr or "")
        if proc.returncode != 0:
            raise RemoteCommandError(f"rsync {src} {dst}", proc.returncode, err)
        if err:
            LOGGER.debug("[rsync] stderr:\n%s", err)


def _replay(stdout: Optional[bytes], stderr: Optional[bytes]) -> None:
    if stdout:
        _write_stream(sys.stdout, stdout)
    if stderr:
        _write_stream(sys.stderr, stderr)


def _write_stream(stream, data: bytes) -> None:
    buf = getattr(stream, "buffer", None)
    if buf is not None:
        stream.flush()
        buf.write(data)
        buf.flush()
    else:
        stream.write(data.decode("utf-8", errors="replace"))
        stream.flush()

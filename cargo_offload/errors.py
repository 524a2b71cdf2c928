"""Exception types raised by the offload core.

The CLI maps these onto process exit codes; everything else propagates as a
regular traceback.
"""

from __future__ import annotations

from typing import Optional


class OffloadError(Exception):
    """Base class for all errors reported to the user."""

    exit_code = 1


class ConfigurationError(OffloadError):
    """Invalid or missing configuration (host, forward spec, project dir...)."""

    exit_code = 2


class ToolNotFoundError(OffloadError):
    """A local executable (ssh, rsync, cargo) could not be started."""

    def __init__(self, tool: str, detail: str = ""):
        self.tool = tool
        self.detail = detail
        msg = f"{tool} not found"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class RemoteCommandError(OffloadError):
    """The remote shell (or a command it ran) exited with a non-zero status."""

    def __init__(self, command: str, returncode: Optional[int] = None, output: str = ""):
        self.command = command
        self.returncode = returncode
        self.output = output
        msg = f"Remote command failed (rc={returncode}): {command}"
        if output:
            msg += f"\n{output}"
        super().__init__(msg)


class ArtifactError(OffloadError):
    """Artifact retrieval produced nothing usable."""


class ArtifactNotFoundError(ArtifactError):
    """A specifically requested (or any runnable) artifact is missing."""


class AmbiguousArtifactError(ArtifactError):
    """More than one runnable artifact exists and no name was given."""

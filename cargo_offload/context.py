from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .connection import HOST_ENV_VAR, parse_host_and_port, remote_dir_for
from .errors import ConfigurationError
from .toolchain import resolve_toolchain

LOGGER = logging.getLogger(__name__)

DEFAULT_TARGET = "x86_64-unknown-linux-gnu"
PROGRESS_FLAG = "--info=progress2"
DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True)
class OffloadContext:
    """Everything resolved once at startup; read-only afterwards."""

    host: str
    port: int
    remote_dir: str
    project_dir: Path
    toolchain: Optional[str] = None
    target: str = DEFAULT_TARGET
    copy_all_artifacts: bool = False
    per_artifact: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    progress_flag: str = PROGRESS_FLAG
    ssh_extra_args: Tuple[str, ...] = field(default_factory=tuple)


def _split_extra_args(extra: str) -> Tuple[str, ...]:
    extra = (extra or "").strip()
    if not extra:
        return ()
    try:
        return tuple(shlex.split(extra))
    except ValueError as e:
        raise ConfigurationError(f"Cannot parse ssh_extra_args {extra!r}: {e}") from e


def build_context(
    *,
    host: Optional[str],
    port: Optional[int] = None,
    target: Optional[str] = None,
    toolchain: Optional[str] = None,
    copy_all_artifacts: bool = False,
    per_artifact: bool = False,
    project_dir: Optional[Path] = None,
    settings: Optional[Mapping[str, object]] = None,
    env: Optional[Mapping[str, str]] = None,
    probe_cargo: bool = True,
) -> OffloadContext:
    """Fold flags, environment and settings into an :class:`OffloadContext`.

    This is the only place that reads the environment or the current working
    directory.
    """

    settings = dict(settings or {})
    if env is None:
        env = os.environ
    project_dir = Path(project_dir) if project_dir is not None else Path.cwd()

    settings_port = settings.get("port")
    if port is None and settings_port and not host and not env.get(HOST_ENV_VAR):
        port = int(settings_port)  # type: ignore[arg-type]

    resolved_host, resolved_port = parse_host_and_port(
        host,
        port,
        env=env,
        default_host=settings.get("host") or None,  # type: ignore[arg-type]
    )
    LOGGER.info("Executing command on %s:%s", resolved_host, resolved_port)

    resolved_target = target or settings.get("target") or DEFAULT_TARGET
    resolved_toolchain = resolve_toolchain(toolchain, project_dir, probe_cargo=probe_cargo)
    if resolved_toolchain:
        LOGGER.info("Using toolchain %s", resolved_toolchain)

    return OffloadContext(
        host=resolved_host,
        port=resolved_port,
        remote_dir=remote_dir_for(project_dir),
        project_dir=project_dir,
        toolchain=resolved_toolchain,
        target=str(resolved_target),
        copy_all_artifacts=bool(copy_all_artifacts or settings.get("copy_all_artifacts")),
        per_artifact=bool(per_artifact or settings.get("per_artifact")),
        max_workers=max(1, int(settings.get("max_workers") or DEFAULT_MAX_WORKERS)),  # type: ignore[arg-type]
        ssh_extra_args=_split_extra_args(str(settings.get("ssh_extra_args") or "")),
    )

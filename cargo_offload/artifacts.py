"""Retrieve build outputs from the remote host.

Two copy modes are supported:

``mirror`` (default)
    One rsync of the whole remote profile directory into
    ``target/offload/<triple>/<profile>``. Heavy intermediate directories are
    skipped unless ``copy_all_artifacts`` is set.

``per-artifact``
    One rsync per artifact discovered from ``Cargo.toml``, fanned out over a
    bounded thread pool. A failed copy is only a warning; the step fails when
    nothing could be copied or when the artifact that was asked for by name is
    the one missing.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .errors import (
    AmbiguousArtifactError,
    ArtifactError,
    ArtifactNotFoundError,
    ConfigurationError,
    RemoteCommandError,
)
from .manifest import Artifact, ArtifactKind
from .remote.ssh_transport import SSHTransport
from .workdir import EXAMPLES_DIR, ArtifactLayout, ensure_layout

LOGGER = logging.getLogger(__name__)

LIBRARY_PREFIX = "lib"
EXECUTABLE_MODE = 0o755

# Patterns are relative to the profile directory (rsync --exclude syntax).
ALWAYS_EXCLUDE: List[str] = [
    ".cargo-lock",
    "*.d",
]
HEAVY_EXCLUDE: List[str] = [
    "build/",
    "deps/",
    "incremental/",
]


@dataclass(frozen=True)
class ArtifactRequest:
    """Which artifact the caller wants; neither field means "all of them"."""

    bin: Optional[str] = None
    example: Optional[str] = None

    def __post_init__(self) -> None:
        if self.bin and self.example:
            raise ConfigurationError("--bin and --example are mutually exclusive")

    @property
    def is_specific(self) -> bool:
        return bool(self.bin or self.example)


def mirror_excludes(copy_all_artifacts: bool) -> List[str]:
    excludes = list(ALWAYS_EXCLUDE)
    if not copy_all_artifacts:
        excludes += HEAVY_EXCLUDE
    return excludes


def _regular_files(directory: Path) -> List[Path]:
    if not directory.is_dir():
        return []
    out: List[Path] = []
    with os.scandir(directory) as it:
        for entry in it:
            if entry.is_file(follow_symlinks=False):
                out.append(Path(entry.path))
    out.sort(key=lambda p: p.name)
    return out


def make_executable(paths: Iterable[Path]) -> None:
    if os.name == "nt":
        return
    for p in paths:
        try:
            p.chmod(EXECUTABLE_MODE)
        except OSError as e:
            LOGGER.warning("Cannot make %s executable: %s", p, e)


def mark_executables(layout: ArtifactLayout) -> None:
    """chmod 755 every regular file in the profile dir and in ``examples/``."""

    make_executable(_regular_files(layout.local_profile_dir))
    make_executable(_regular_files(layout.local_examples_dir))


def resolve_artifacts(layout: ArtifactLayout, request: ArtifactRequest) -> List[Path]:
    if request.bin:
        path = layout.local_profile_dir / request.bin
        if not path.is_file():
            raise ArtifactNotFoundError(f"Binary '{request.bin}' not found after copy")
        return [path]

    if request.example:
        path = layout.local_examples_dir / request.example
        if not path.is_file():
            raise ArtifactNotFoundError(f"Example '{request.example}' not found after copy")
        return [path]

    result = [p for p in _regular_files(layout.local_profile_dir) if not p.name.startswith(LIBRARY_PREFIX)]
    result += _regular_files(layout.local_examples_dir)
    return result


def is_example_path(path: Path) -> bool:
    return path.parent.name == EXAMPLES_DIR


def select_runnable(paths: Sequence[Path]) -> Path:
    """Pick the single binary to run when no name was given."""

    candidates = [
        p for p in paths
        if not is_example_path(p) and not p.name.startswith(LIBRARY_PREFIX)
    ]
    if not candidates:
        raise ArtifactNotFoundError("No binaries found to run")
    if len(candidates) > 1:
        names = ", ".join(sorted(p.name for p in candidates))
        raise AmbiguousArtifactError(
            f"Multiple binaries found ({names}). Use --bin to specify which one to run"
        )
    return candidates[0]


def pick_requested(paths: Sequence[Path], request: ArtifactRequest) -> Path:
    if request.example:
        for p in paths:
            if is_example_path(p) and p.name == request.example:
                return p
        raise ArtifactNotFoundError(f"Example '{request.example}' not found")
    if request.bin:
        for p in paths:
            if not is_example_path(p) and p.name == request.bin:
                return p
        raise ArtifactNotFoundError(f"Binary '{request.bin}' not found")
    return select_runnable(paths)


# ------------------------------
# mirror mode
# ------------------------------

def sync_artifacts(
    transport: SSHTransport,
    layout: ArtifactLayout,
    request: ArtifactRequest,
    *,
    copy_all_artifacts: bool = False,
) -> List[Path]:
    ensure_layout(layout)
    LOGGER.info("Copying artifacts from remote target directory...")

    transport.mirror(
        transport.remote_spec(layout.remote_profile_dir.rstrip("/") + "/"),
        str(layout.local_profile_dir) + "/",
        mirror_excludes(copy_all_artifacts),
    )
    mark_executables(layout)

    paths = resolve_artifacts(layout, request)
    LOGGER.info("Successfully copied artifacts from remote target directory")
    return paths


# ------------------------------
# per-artifact mode
# ------------------------------

def artifact_paths(layout: ArtifactLayout, artifact: Artifact) -> Tuple[str, Path]:
    """(remote path, local path) for one artifact."""

    if artifact.kind is ArtifactKind.EXAMPLE:
        return f"{layout.remote_examples_dir}/{artifact.name}", layout.local_examples_dir / artifact.name
    return f"{layout.remote_profile_dir}/{artifact.name}", layout.local_profile_dir / artifact.name


def requested_artifacts(request: ArtifactRequest, discovered: Sequence[Artifact]) -> List[Artifact]:
    if request.example:
        return [Artifact(ArtifactKind.EXAMPLE, request.example)]
    if request.bin:
        return [Artifact(ArtifactKind.BINARY, request.bin)]
    return list(discovered)


def _copy_one(
    transport: SSHTransport,
    layout: ArtifactLayout,
    artifact: Artifact,
) -> Tuple[Artifact, Union[Path, RemoteCommandError]]:
    remote_path, local_path = artifact_paths(layout, artifact)
    LOGGER.info("Copying artifact: %s -> %s", artifact.label, local_path)
    try:
        transport.mirror(transport.remote_spec(remote_path), str(local_path))
    except RemoteCommandError as e:
        return artifact, e
    if artifact.kind is not ArtifactKind.LIBRARY:
        make_executable([local_path])
    return artifact, local_path


def fetch_artifacts(
    transport: SSHTransport,
    layout: ArtifactLayout,
    artifacts: Sequence[Artifact],
    *,
    max_workers: int = 8,
    required: Optional[Artifact] = None,
) -> List[Path]:
    """Copy each artifact with its own rsync, in parallel.

    Returns the local paths of the successful copies, in the order the
    artifacts were given.
    """

    ensure_layout(layout)
    layout.local_examples_dir.mkdir(parents=True, exist_ok=True)
    if not artifacts:
        raise ArtifactError("No artifacts to copy")

    copied: dict = {}
    workers = max(1, min(int(max_workers), len(artifacts)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="offload-copy") as pool:
        futures = [pool.submit(_copy_one, transport, layout, a) for a in artifacts]
        for fut in as_completed(futures):
            artifact, outcome = fut.result()
            if isinstance(outcome, Path):
                copied[artifact] = outcome
            elif artifact.kind is ArtifactKind.LIBRARY:
                LOGGER.warning(
                    "Library artifact %s not found (this is normal if crate-type is not configured)",
                    artifact.label,
                )
            else:
                LOGGER.warning("Failed to copy %s: %s", artifact.label, outcome)

    if required is not None and required not in copied:
        kind = "Example" if required.kind is ArtifactKind.EXAMPLE else "Binary"
        raise ArtifactNotFoundError(f"{kind} '{required.name}' not found after copy")
    if not copied:
        raise ArtifactError("No artifacts were successfully copied")

    LOGGER.info("Successfully copied %d artifacts", len(copied))
    return [copied[a] for a in artifacts if a in copied]

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

RELEASE_FLAG = "--release"
LOCAL_OFFLOAD_DIR = Path("target") / "offload"
EXAMPLES_DIR = "examples"


def profile_for(args: Sequence[str]) -> str:
    return "release" if RELEASE_FLAG in args else "debug"


@dataclass(frozen=True)
class ArtifactLayout:
    remote_profile_dir: str
    local_profile_dir: Path
    profile: str

    @property
    def local_examples_dir(self) -> Path:
        return self.local_profile_dir / EXAMPLES_DIR

    @property
    def remote_examples_dir(self) -> str:
        return posixpath.join(self.remote_profile_dir, EXAMPLES_DIR)


def artifact_layout(
    remote_dir: str,
    target: str,
    args: Sequence[str],
    project_dir: Path = Path("."),
) -> ArtifactLayout:
    """Where build outputs live remotely and where they are mirrored to.

    Layout:
      remote: <remote_dir>/target/<target>/<profile>/
      local:  <project_dir>/target/offload/<target>/<profile>/
    """

    profile = profile_for(args)
    return ArtifactLayout(
        remote_profile_dir=posixpath.join(remote_dir, "target", target, profile),
        local_profile_dir=Path(project_dir) / LOCAL_OFFLOAD_DIR / target / profile,
        profile=profile,
    )


def ensure_layout(layout: ArtifactLayout) -> ArtifactLayout:
    layout.local_profile_dir.mkdir(parents=True, exist_ok=True)
    return layout

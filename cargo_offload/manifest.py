"""Discover producible artifacts from ``Cargo.toml``.

Only used by the per-artifact copy mode, which needs to know the artifact names
up front. The regular mirror mode copies whatever the remote build produced.
"""

from __future__ import annotations

import logging
import sys
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

CARGO_TOML = "Cargo.toml"


class ArtifactKind(str, Enum):
    BINARY = "bin"
    EXAMPLE = "example"
    LIBRARY = "lib"


@dataclass(frozen=True)
class Artifact:
    kind: ArtifactKind
    name: str

    @property
    def label(self) -> str:
        if self.kind is ArtifactKind.BINARY:
            return self.name
        return f"{self.kind.value}:{self.name}"


def is_cargo_project(project_dir: Path) -> bool:
    return (Path(project_dir) / CARGO_TOML).is_file()


def _load_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Cannot parse {path}: {e}") from e


def _library_filename(lib_name: str, crate_type: str) -> Optional[str]:
    # cargo normalises dashes in library names
    lib_name = lib_name.replace("-", "_")
    if crate_type == "staticlib":
        return f"lib{lib_name}.a"
    if crate_type == "cdylib":
        if sys.platform == "win32":
            return f"{lib_name}.dll"
        if sys.platform == "darwin":
            return f"lib{lib_name}.dylib"
        return f"lib{lib_name}.so"
    return None


class _Collector:
    def __init__(self) -> None:
        self.items: List[Artifact] = []

    def add(self, kind: ArtifactKind, name: str) -> None:
        artifact = Artifact(kind, name)
        if artifact not in self.items:
            self.items.append(artifact)


def _collect_package(manifest_path: Path, out: _Collector) -> None:
    parsed = _load_toml(manifest_path)
    base = manifest_path.parent
    package = parsed.get("package") or {}
    package_name = package.get("name") if isinstance(package, dict) else None

    if package_name and (base / "src" / "main.rs").is_file():
        out.add(ArtifactKind.BINARY, package_name)

    for entry in parsed.get("bin") or []:
        name = entry.get("name")
        if not name:
            continue
        src = base / entry["path"] if entry.get("path") else base / "src" / "bin" / f"{name}.rs"
        if src.exists():
            out.add(ArtifactKind.BINARY, name)

    bin_dir = base / "src" / "bin"
    if bin_dir.is_dir():
        for p in sorted(bin_dir.glob("*.rs")):
            out.add(ArtifactKind.BINARY, p.stem)

    for entry in parsed.get("example") or []:
        name = entry.get("name")
        if not name:
            continue
        src = base / entry["path"] if entry.get("path") else base / "examples" / f"{name}.rs"
        if src.exists():
            out.add(ArtifactKind.EXAMPLE, name)

    examples_dir = base / "examples"
    if examples_dir.is_dir():
        for p in sorted(examples_dir.glob("*.rs")):
            out.add(ArtifactKind.EXAMPLE, p.stem)

    lib = parsed.get("lib")
    if isinstance(lib, dict):
        lib_name = lib.get("name") or package_name
        for crate_type in lib.get("crate-type") or []:
            filename = _library_filename(lib_name, crate_type) if lib_name else None
            if filename:
                out.add(ArtifactKind.LIBRARY, filename)


def _workspace_member_manifests(project_dir: Path, members: List[str]) -> List[Path]:
    found: List[Path] = []
    for member in members:
        if "*" in member:
            for p in sorted(project_dir.glob(member)):
                if p.is_dir() and (p / CARGO_TOML).is_file():
                    found.append(p / CARGO_TOML)
        elif (project_dir / member / CARGO_TOML).is_file():
            found.append(project_dir / member / CARGO_TOML)
    return found


def discover_artifacts(project_dir: Path) -> List[Artifact]:
    """All binaries, examples and cdylib/staticlib outputs of the project.

    Workspaces are expanded through ``[workspace] members`` (``dir/*`` globs
    included). A workspace root that is also a package contributes its own
    artifacts too.
    """

    project_dir = Path(project_dir)
    root_manifest = project_dir / CARGO_TOML
    if not root_manifest.is_file():
        raise ConfigurationError(f"Not in a Rust project directory ({CARGO_TOML} not found)")

    parsed = _load_toml(root_manifest)
    out = _Collector()

    if "package" in parsed:
        _collect_package(root_manifest, out)

    workspace = parsed.get("workspace")
    if isinstance(workspace, dict):
        for manifest in _workspace_member_manifests(project_dir, list(workspace.get("members") or [])):
            _collect_package(manifest, out)

    LOGGER.debug("Discovered artifacts: %s", ", ".join(a.label for a in out.items) or "<none>")
    return out.items

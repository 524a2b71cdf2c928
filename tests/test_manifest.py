from __future__ import annotations

import sys
from pathlib import Path

import pytest

from cargo_offload.errors import ConfigurationError
from cargo_offload.manifest import Artifact, ArtifactKind, discover_artifacts, is_cargo_project


def _touch(p: Path, text: str = "") -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text)


def test_not_a_cargo_project(tmp_path: Path) -> None:
    assert not is_cargo_project(tmp_path)
    with pytest.raises(ConfigurationError):
        discover_artifacts(tmp_path)


def test_single_package(tmp_path: Path) -> None:
    _touch(
        tmp_path / "Cargo.toml",
        """
[package]
name = "server"

[[bin]]
name = "admin"
path = "tools/admin.rs"

[[bin]]
name = "ghost"

[[example]]
name = "custom"
path = "demos/custom.rs"

[lib]
crate-type = ["cdylib", "staticlib", "rlib"]
""",
    )
    _touch(tmp_path / "src" / "main.rs")
    _touch(tmp_path / "tools" / "admin.rs")
    _touch(tmp_path / "src" / "bin" / "worker.rs")
    _touch(tmp_path / "demos" / "custom.rs")
    _touch(tmp_path / "examples" / "hello.rs")

    found = discover_artifacts(tmp_path)
    bins = [a.name for a in found if a.kind is ArtifactKind.BINARY]
    examples = [a.name for a in found if a.kind is ArtifactKind.EXAMPLE]
    libs = [a.name for a in found if a.kind is ArtifactKind.LIBRARY]

    assert bins == ["server", "admin", "worker"]  # ghost has no source file
    assert examples == ["custom", "hello"]
    assert "libserver.a" in libs
    assert len(libs) == 2
    if sys.platform.startswith("linux"):
        assert "libserver.so" in libs


def test_workspace_members_and_globs(tmp_path: Path) -> None:
    _touch(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["app", "crates/*"]\n')
    _touch(tmp_path / "app" / "Cargo.toml", '[package]\nname = "app"\n')
    _touch(tmp_path / "app" / "src" / "main.rs")
    _touch(tmp_path / "crates" / "cli" / "Cargo.toml", '[package]\nname = "cli"\n')
    _touch(tmp_path / "crates" / "cli" / "src" / "main.rs")
    _touch(tmp_path / "crates" / "core" / "Cargo.toml", '[package]\nname = "core"\n')
    _touch(tmp_path / "crates" / "core" / "src" / "lib.rs")

    assert discover_artifacts(tmp_path) == [
        Artifact(ArtifactKind.BINARY, "app"),
        Artifact(ArtifactKind.BINARY, "cli"),
    ]


def test_duplicates_are_dropped(tmp_path: Path) -> None:
    _touch(tmp_path / "Cargo.toml", '[package]\nname = "x"\n\n[[bin]]\nname = "x"\npath = "src/main.rs"\n')
    _touch(tmp_path / "src" / "main.rs")
    assert discover_artifacts(tmp_path) == [Artifact(ArtifactKind.BINARY, "x")]


def test_broken_manifest(tmp_path: Path) -> None:
    _touch(tmp_path / "Cargo.toml", "[package\n")
    with pytest.raises(ConfigurationError):
        discover_artifacts(tmp_path)

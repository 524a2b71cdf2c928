from __future__ import annotations

from pathlib import Path

import pytest

from cargo_offload.context import DEFAULT_TARGET, build_context
from cargo_offload.errors import ConfigurationError


def _project(tmp_path: Path, name: str = "my-app") -> Path:
    p = tmp_path / name
    p.mkdir()
    (p / "Cargo.toml").write_text('[package]\nname = "my-app"\n')
    return p


def test_flag_beats_env_and_settings(tmp_path: Path) -> None:
    ctx = build_context(
        host="ci@flag:2200",
        project_dir=_project(tmp_path),
        settings={"host": "settings-host", "port": 9999},
        env={"CARGO_OFFLOAD_HOST": "env-host"},
        probe_cargo=False,
    )
    assert (ctx.host, ctx.port) == ("ci@flag", 2200)
    assert ctx.remote_dir == "/tmp/cargo-offload/my-app"
    assert ctx.target == DEFAULT_TARGET
    assert ctx.toolchain is None


def test_env_host_ignores_settings_port(tmp_path: Path) -> None:
    ctx = build_context(
        host=None,
        project_dir=_project(tmp_path),
        settings={"host": "settings-host", "port": 9999},
        env={"CARGO_OFFLOAD_HOST": "env-host"},
        probe_cargo=False,
    )
    assert (ctx.host, ctx.port) == ("env-host", 22)


def test_settings_fill_the_gaps(tmp_path: Path) -> None:
    ctx = build_context(
        host=None,
        project_dir=_project(tmp_path),
        settings={
            "host": "builder",
            "port": 2022,
            "target": "aarch64-unknown-linux-gnu",
            "per_artifact": True,
            "max_workers": 3,
            "ssh_extra_args": "-o StrictHostKeyChecking=accept-new",
        },
        env={},
        probe_cargo=False,
    )
    assert (ctx.host, ctx.port) == ("builder", 2022)
    assert ctx.target == "aarch64-unknown-linux-gnu"
    assert ctx.per_artifact is True
    assert ctx.copy_all_artifacts is False
    assert ctx.max_workers == 3
    assert ctx.ssh_extra_args == ("-o", "StrictHostKeyChecking=accept-new")


def test_explicit_target_and_toolchain(tmp_path: Path) -> None:
    project = _project(tmp_path)
    (project / "rust-toolchain").write_text("stable\n")
    ctx = build_context(
        host="h",
        target="wasm32-unknown-unknown",
        toolchain="nightly",
        project_dir=project,
        env={},
        probe_cargo=False,
    )
    assert ctx.target == "wasm32-unknown-unknown"
    assert ctx.toolchain == "nightly"


def test_toolchain_file_is_used(tmp_path: Path) -> None:
    project = _project(tmp_path)
    (project / "rust-toolchain.toml").write_text('[toolchain]\nchannel = "1.79.0"\n')
    ctx = build_context(host="h", project_dir=project, env={}, probe_cargo=False)
    assert ctx.toolchain == "1.79.0"


def test_no_host_anywhere(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        build_context(host=None, project_dir=_project(tmp_path), env={}, probe_cargo=False)


def test_bad_ssh_extra_args(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        build_context(
            host="h",
            project_dir=_project(tmp_path),
            settings={"ssh_extra_args": "-o 'unterminated"},
            env={},
            probe_cargo=False,
        )

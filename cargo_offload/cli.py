"""Command line interface for cargo-offload."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .artifacts import ArtifactRequest
from .commands import BuildInvocation, split_run_args
from .connection import HOST_ENV_VAR
from .context import DEFAULT_TARGET, build_context
from .errors import ConfigurationError, OffloadError
from .log_utils import configure_logging, format_duration
from .manifest import is_cargo_project
from .offload import CargoOffload
from .settings import SettingsStore
from .toolchain import parse_toolchain_arg

LOGGER = logging.getLogger("cargo_offload")

COMMANDS = {
    "build": "Build the project on remote and copy binaries back",
    "run": "Build on remote, copy binaries back and run locally",
    "run-remote": "Run the project on the remote host (interactive, supports port forwarding)",
    "test": "Run tests on remote",
    "clippy": "Run clippy on remote",
    "toolchain": "Execute rustup toolchain commands on remote",
    "clean": "Clean remote build directory and local binaries",
}


def _build_parser() -> argparse.ArgumentParser:
    epilog = "commands:\n" + "\n".join(f"  {name:<12} {desc}" for name, desc in COMMANDS.items())
    epilog += (
        "\n\nEverything after the command is passed to cargo. A leading +toolchain "
        "(e.g. `cargo-offload +nightly build`) selects the remote toolchain. "
        "For `run`, arguments after `--` go to the program."
    )
    ap = argparse.ArgumentParser(
        prog="cargo-offload",
        usage="%(prog)s [+toolchain] [options] command [cargo args...]",
        description="Build Rust projects on a remote host over ssh and copy the artifacts back.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument("-H", "--host", default=None, help=f"SSH host ([user@]host[:port]); falls back to {HOST_ENV_VAR}")
    ap.add_argument("-p", "--port", type=int, default=None, help="SSH port (overrides a port given in the host)")
    ap.add_argument("--target", default=None, help=f"Target triple (default: {DEFAULT_TARGET})")
    ap.add_argument(
        "-e",
        "--env",
        dest="env_vars",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Environment variable for the remote cargo command (repeatable, e.g. CC=gcc-13)",
    )
    ap.add_argument(
        "-L",
        "--forward",
        dest="forward_ports",
        action="append",
        default=[],
        metavar="LOCAL[:REMOTE]",
        help="Forward a local port to the remote host while cargo runs (repeatable)",
    )
    ap.add_argument(
        "--copy-all-artifacts",
        action="store_true",
        help="Also copy build/, deps/ and incremental/ from the remote target directory",
    )
    ap.add_argument(
        "--per-artifact",
        action="store_true",
        help="Copy each artifact from Cargo.toml with its own rsync instead of one mirror",
    )
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v for progress, -vv for debug output")
    ap.add_argument("command", choices=sorted(COMMANDS), metavar="command")
    return ap


# Global options that consume the following token.
_VALUE_OPTIONS = {"-H", "--host", "-p", "--port", "--target", "-e", "--env", "-L", "--forward"}


def _split_command_line(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split ``argv`` after the command name.

    Everything after the command belongs to cargo verbatim (``--`` included),
    so it never goes through argparse.
    """

    args = list(argv)
    i = 0
    while i < len(args):
        token = args[i]
        if token in COMMANDS:
            return args[: i + 1], args[i + 1:]
        if token in _VALUE_OPTIONS:
            i += 1
        i += 1
    return args, []


def _take_run_selectors(args: Sequence[str]) -> Tuple[ArtifactRequest, List[str]]:
    """Pull leading ``--bin X`` / ``--example X`` off the ``run`` arguments."""

    rest = list(args)
    bin_name: Optional[str] = None
    example: Optional[str] = None
    while rest:
        head = rest[0]
        if head in ("--bin", "--example"):
            if len(rest) < 2:
                raise ConfigurationError(f"{head} requires a value")
            value = rest[1]
            rest = rest[2:]
        elif head.startswith("--bin=") or head.startswith("--example="):
            head, value = head.split("=", 1)
            rest = rest[1:]
        else:
            break
        if head == "--bin":
            bin_name = value
        else:
            example = value
    return ArtifactRequest(bin=bin_name, example=example), rest


def _dispatch(offload: CargoOffload, command: str, ns: argparse.Namespace) -> int:
    cargo_args: List[str] = list(ns.args)

    if command == "build":
        paths = offload.build(BuildInvocation("build", cargo_args, ns.env_vars, ns.forward_ports))
        for p in paths:
            LOGGER.info("Artifact: %s", p)
        return 0

    if command == "run":
        if ns.forward_ports:
            LOGGER.warning(
                "Ignoring port forwarding (%s): `run` executes locally; use `run-remote` to forward ports",
                ", ".join(ns.forward_ports),
            )
        request, rest = _take_run_selectors(cargo_args)
        build_args, run_args = split_run_args(rest)
        return offload.run(BuildInvocation("build", build_args, ns.env_vars), request, run_args)

    if command == "run-remote":
        offload.run_remote(BuildInvocation("run", cargo_args, ns.env_vars, ns.forward_ports))
        return 0

    if command in ("test", "clippy"):
        offload.check(BuildInvocation(command, cargo_args, ns.env_vars, ns.forward_ports))
        return 0

    if command == "toolchain":
        offload.toolchain_remote(cargo_args)
        return 0

    if command == "clean":
        offload.clean()
        return 0

    raise ConfigurationError(f"Unknown command: {command}")


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    # +toolchain must go before argparse sees it
    toolchain, argv = parse_toolchain_arg(argv)
    head, cargo_args = _split_command_line(argv)
    ns = _build_parser().parse_args(head)
    ns.args = cargo_args
    configure_logging(ns.verbose)

    t0 = time.time()
    try:
        project_dir = Path.cwd()
        if not is_cargo_project(project_dir):
            raise ConfigurationError("Not in a Rust project directory (Cargo.toml not found)")

        ctx = build_context(
            host=ns.host,
            port=ns.port,
            target=ns.target,
            toolchain=toolchain,
            copy_all_artifacts=ns.copy_all_artifacts,
            per_artifact=ns.per_artifact,
            project_dir=project_dir,
            settings=SettingsStore.from_env().load(),
            probe_cargo=ns.command not in ("clean", "toolchain"),
        )
        rc = _dispatch(CargoOffload(ctx), ns.command, ns)
    except OffloadError as e:
        LOGGER.error("%s", e)
        return e.exit_code
    except KeyboardInterrupt:
        LOGGER.error("Interrupted")
        return 130

    if rc == 0:
        LOGGER.info("%s completed successfully (took %s)", ns.command, format_duration(time.time() - t0))
    return rc


if __name__ == "__main__":
    raise SystemExit(main())

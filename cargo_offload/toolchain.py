"""Toolchain detection.

Precedence, highest first:

1. ``+toolchain`` given on the command line
2. the version reported by the local ``cargo --version``
3. ``[toolchain] channel`` in ``rust-toolchain.toml``
4. the trimmed contents of a plain ``rust-toolchain`` file

Lower sources are only consulted when the higher ones yield nothing. Failures
of the optional sources are logged and ignored.
"""

from __future__ import annotations

import logging
import subprocess
import tomllib
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

LOGGER = logging.getLogger(__name__)

TOOLCHAIN_TOML = "rust-toolchain.toml"
TOOLCHAIN_FILE = "rust-toolchain"


def parse_toolchain_arg(argv: Sequence[str]) -> Tuple[Optional[str], List[str]]:
    """Strip a leading ``+toolchain`` token from ``argv`` (without program name)."""

    args = list(argv)
    if args and args[0].startswith("+") and len(args[0]) > 1:
        return args[0][1:], args[1:]
    return None, args


def parse_cargo_version(output: str) -> Optional[str]:
    # cargo 1.87.0 (99624be96 2025-05-06)
    parts = output.strip().split()
    if len(parts) >= 2 and parts[0] == "cargo":
        return parts[1]
    return None


def detect_toolchain_from_cargo(cargo: str = "cargo") -> Optional[str]:
    try:
        proc = subprocess.run([cargo, "--version"], capture_output=True, text=True)
    except OSError as e:
        LOGGER.debug("Executing `%s --version` failed: %s", cargo, e)
        return None
    if proc.returncode != 0:
        return None
    version = parse_cargo_version(proc.stdout or "")
    if version:
        LOGGER.debug("Detected toolchain from cargo --version: %s", version)
    return version


def _channel_from_toml(path: Path) -> Optional[str]:
    with open(path, "rb") as f:
        data = tomllib.load(f)
    toolchain = data.get("toolchain")
    if not isinstance(toolchain, dict):
        return None
    channel = toolchain.get("channel")
    if isinstance(channel, str) and channel.strip():
        return channel.strip()
    return None


def detect_toolchain_from_files(project_dir: Path) -> Optional[str]:
    project_dir = Path(project_dir)

    toml_path = project_dir / TOOLCHAIN_TOML
    if toml_path.is_file():
        try:
            channel = _channel_from_toml(toml_path)
        except (OSError, tomllib.TOMLDecodeError) as e:
            LOGGER.debug("Cannot parse %s: %s", toml_path, e)
            channel = None
        if channel:
            LOGGER.debug("Detected toolchain from %s: %s", TOOLCHAIN_TOML, channel)
            return channel

    plain_path = project_dir / TOOLCHAIN_FILE
    if plain_path.is_file():
        try:
            channel = plain_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            LOGGER.debug("Cannot read %s: %s", plain_path, e)
            channel = ""
        if channel:
            LOGGER.debug("Detected toolchain from %s: %s", TOOLCHAIN_FILE, channel)
            return channel

    return None


def resolve_toolchain(
    explicit: Optional[str],
    project_dir: Path,
    *,
    probe_cargo: bool = True,
) -> Optional[str]:
    if explicit:
        return explicit
    if probe_cargo:
        probed = detect_toolchain_from_cargo()
        if probed:
            return probed
    return detect_toolchain_from_files(project_dir)

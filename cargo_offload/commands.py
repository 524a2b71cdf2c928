"""Remote command line construction.

Everything here is plain string/list manipulation: no process is started.
Commands are concatenated into a single string executed by the remote login
shell. Only environment variable values are quoted; other arguments are passed
as given.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from .errors import ConfigurationError

if TYPE_CHECKING:
    from .artifacts import ArtifactRequest
    from .context import OffloadContext

TARGET_FLAG = "--target"
RUN_ARGS_SEPARATOR = "--"

# Characters that force single-quoting of an env var value.
_NEEDS_QUOTING_RE = re.compile(r"[\s\"'$&|]")


@dataclass(frozen=True)
class PortForwardSpec:
    local_port: int
    remote_port: int

    def ssh_arg(self) -> str:
        return f"{self.local_port}:localhost:{self.remote_port}"


@dataclass
class BuildInvocation:
    """One remote cargo call as requested on the command line."""

    subcommand: str
    args: List[str] = field(default_factory=list)
    env_vars: List[str] = field(default_factory=list)
    forward_ports: List[str] = field(default_factory=list)


# -------------------------
# argument rewriting
# -------------------------
def split_run_args(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split at the first literal ``--`` into (build args, program args)."""

    args = list(argv)
    if RUN_ARGS_SEPARATOR in args:
        pos = args.index(RUN_ARGS_SEPARATOR)
        return args[:pos], args[pos + 1:]
    return args, []


def has_target_flag(args: Sequence[str]) -> bool:
    """True when ``--target`` (either spelling) appears anywhere in ``args``."""

    return any(arg == TARGET_FLAG or arg.startswith(TARGET_FLAG + "=") for arg in args)


def inject_target(args: Sequence[str], target: str) -> List[str]:
    """Append ``--target <target>`` unless the user already passed one.

    The flag goes at the end of the cargo arguments, i.e. in front of a ``--``
    separator when one is present so it is not handed to the test harness.
    """

    out = list(args)
    if has_target_flag(out):
        return out
    if RUN_ARGS_SEPARATOR in out:
        pos = out.index(RUN_ARGS_SEPARATOR)
        return out[:pos] + [TARGET_FLAG, target] + out[pos:]
    return out + [TARGET_FLAG, target]


def target_from_args(args: Sequence[str]) -> Optional[str]:
    """The value of a user supplied ``--target`` (either spelling), if any."""

    for i, arg in enumerate(args):
        if arg == RUN_ARGS_SEPARATOR:
            break
        if arg == TARGET_FLAG and i + 1 < len(args):
            return args[i + 1]
        if arg.startswith(TARGET_FLAG + "="):
            return arg.split("=", 1)[1]
    return None


def with_artifact_selector(args: Sequence[str], request: "ArtifactRequest") -> List[str]:
    out = list(args)
    if request.bin:
        out += ["--bin", request.bin]
    elif request.example:
        out += ["--example", request.example]
    return out


# -------------------------
# env var quoting
# -------------------------
def quote_env_var(assignment: str) -> str:
    """Quote the value of a ``NAME=VALUE`` assignment for the remote shell.

    ``FOO=a b`` -> ``FOO='a b'``; ``'`` inside the value becomes ``'\\''``.
    Strings without ``=`` are returned unchanged.
    """

    if "=" not in assignment:
        return assignment
    name, value = assignment.split("=", 1)
    if not _NEEDS_QUOTING_RE.search(value):
        return assignment
    escaped = value.replace("'", "'\\''")
    return f"{name}='{escaped}'"


def env_prefix(env_vars: Sequence[str]) -> str:
    if not env_vars:
        return ""
    return " ".join(quote_env_var(v) for v in env_vars) + " "


# -------------------------
# port forwarding
# -------------------------
def _parse_port(text: str, spec: str) -> int:
    if not text.isdigit() or not (1 <= int(text) <= 65535):
        raise ConfigurationError(f"Invalid port forwarding specification: {spec}")
    return int(text)


def parse_forward_spec(spec: str) -> PortForwardSpec:
    """``"8080"`` -> 8080:8080, ``"8080:80"`` -> 8080:80."""

    parts = spec.strip().split(":")
    if len(parts) == 1:
        port = _parse_port(parts[0], spec)
        return PortForwardSpec(port, port)
    if len(parts) == 2:
        return PortForwardSpec(_parse_port(parts[0], spec), _parse_port(parts[1], spec))
    raise ConfigurationError(f"Invalid port forwarding specification: {spec}")


def forward_args(specs: Sequence[str]) -> List[str]:
    """ssh ``-L`` arguments for all specs; validates every spec first."""

    parsed = [parse_forward_spec(s) for s in specs]
    out: List[str] = []
    for p in parsed:
        out += ["-L", p.ssh_arg()]
    return out


# -------------------------
# command strings
# -------------------------
def cargo_args(ctx: "OffloadContext", subcommand: str, args: Sequence[str]) -> List[str]:
    out: List[str] = []
    if ctx.toolchain:
        out.append(f"+{ctx.toolchain}")
    out.append(subcommand)
    out += inject_target(args, ctx.target)
    return out


def build_cargo_command(
    ctx: "OffloadContext",
    subcommand: str,
    args: Sequence[str],
    env_vars: Sequence[str] = (),
) -> str:
    return f"cd {ctx.remote_dir} && {env_prefix(env_vars)}cargo {' '.join(cargo_args(ctx, subcommand, args))}"


def build_invocation_command(ctx: "OffloadContext", invocation: BuildInvocation) -> str:
    return build_cargo_command(ctx, invocation.subcommand, invocation.args, invocation.env_vars)


def mkdir_command(ctx: "OffloadContext") -> str:
    return f"mkdir -p {ctx.remote_dir}"


def toolchain_install_command(ctx: "OffloadContext") -> Optional[str]:
    if not ctx.toolchain:
        return None
    return f"cd {ctx.remote_dir} && rustup toolchain install {ctx.toolchain}"


def target_add_command(ctx: "OffloadContext", target: Optional[str] = None) -> str:
    cmd = f"cd {ctx.remote_dir} && rustup target add {target or ctx.target}"
    if ctx.toolchain:
        cmd += f" --toolchain {ctx.toolchain}"
    return cmd


def toolchain_passthrough_command(args: Sequence[str]) -> str:
    return " ".join(["rustup", "toolchain", *args])


def clean_command(ctx: "OffloadContext") -> str:
    return f"rm -rf {ctx.remote_dir}"

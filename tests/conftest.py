from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from cargo_offload.context import OffloadContext
from cargo_offload.errors import RemoteCommandError


def make_context(project_dir: Path, **overrides) -> OffloadContext:
    fields = dict(
        host="ci@build01",
        port=2222,
        remote_dir=f"/tmp/cargo-offload/{Path(project_dir).name}",
        project_dir=Path(project_dir),
        toolchain=None,
        target="x86_64-unknown-linux-gnu",
    )
    fields.update(overrides)
    return OffloadContext(**fields)


class FakeTransport:
    """Records calls instead of starting ssh/rsync.

    ``remote_files`` maps remote paths to file contents; a mirror from a
    ``host:path`` source materialises the matching files locally.
    """

    def __init__(self, remote_files: Optional[dict] = None, fail_paths: Sequence[str] = ()):
        self.remote_files = dict(remote_files or {})
        self.fail_paths = set(fail_paths)
        self.calls: List[Tuple] = []

    def remote_spec(self, remote_path: str) -> str:
        return f"host:{remote_path}"

    def run_silent(self, command: str) -> None:
        self.calls.append(("silent", command))

    def run_interactive(self, command: str, forward_ports: Sequence[str] = ()) -> None:
        self.calls.append(("interactive", command, tuple(forward_ports)))

    def mirror(self, src: str, dst: str, excludes: Sequence[str] = ()) -> None:
        self.calls.append(("mirror", src, dst, tuple(excludes)))
        if not src.startswith("host:"):
            return
        remote = src[len("host:"):]
        if remote in self.fail_paths or remote.rstrip("/") in self.fail_paths:
            raise RemoteCommandError(f"rsync {src} {dst}", 23, "No such file or directory")

        if remote.endswith("/"):
            # directory mirror
            dst_dir = Path(dst)
            dst_dir.mkdir(parents=True, exist_ok=True)
            for rpath, content in self.remote_files.items():
                if rpath.startswith(remote):
                    rel = rpath[len(remote):]
                    if any(rel.startswith(ex) for ex in excludes if ex.endswith("/")):
                        continue
                    local = dst_dir / rel
                    local.parent.mkdir(parents=True, exist_ok=True)
                    local.write_text(content)
        else:
            if remote not in self.remote_files:
                raise RemoteCommandError(f"rsync {src} {dst}", 23, "No such file or directory")
            local = Path(dst)
            local.parent.mkdir(parents=True, exist_ok=True)
            local.write_text(self.remote_files[remote])

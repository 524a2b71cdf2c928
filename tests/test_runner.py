from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from cargo_offload.errors import ToolNotFoundError
from cargo_offload.runner import run_local


def _script(tmp_path: Path, body: str) -> Path:
    p = tmp_path / "prog"
    p.write_text(f"#!{sys.executable}\n{body}\n")
    os.chmod(p, 0o755)
    return p


@pytest.mark.skipif(os.name == "nt", reason="shebang scripts")
def test_exit_code_is_returned(tmp_path: Path) -> None:
    prog = _script(tmp_path, "import sys\nsys.exit(int(sys.argv[1]))")
    assert run_local(prog, ["0"]) == 0
    assert run_local(prog, ["7"]) == 7


@pytest.mark.skipif(os.name == "nt", reason="shebang scripts")
def test_args_are_passed_through(tmp_path: Path) -> None:
    out = tmp_path / "args.txt"
    prog = _script(tmp_path, f"import sys\nopen({str(out)!r}, 'w').write('|'.join(sys.argv[1:]))")
    assert run_local(prog, ["--flag", "two words", "--"]) == 0
    assert out.read_text() == "--flag|two words|--"


def test_missing_binary(tmp_path: Path) -> None:
    with pytest.raises(ToolNotFoundError):
        run_local(tmp_path / "nope")

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from .errors import ToolNotFoundError

LOGGER = logging.getLogger(__name__)


def run_local(binary_path: Path, args: Sequence[str] = ()) -> int:
    """Run a retrieved artifact with inherited stdio and return its exit code.

    A non-zero exit code is *not* an error here; the CLI hands it on as its
    own exit status.
    """

    binary_path = Path(binary_path)
    argv = [str(binary_path.resolve()), *args]
    LOGGER.info("Running: %s %s", binary_path, " ".join(args))
    try:
        proc = subprocess.run(argv)
    except FileNotFoundError as e:
        raise ToolNotFoundError(str(binary_path), str(e)) from e
    except PermissionError as e:
        raise ToolNotFoundError(str(binary_path), f"not executable: {e}") from e

    rc = int(proc.returncode)
    if rc < 0:
        # killed by signal N: report like a shell would
        rc = 128 + (-rc)
    return rc

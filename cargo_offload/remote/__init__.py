"""Remote execution helpers (ssh/rsync).

The tool relies on the system ssh and rsync clients; see
:mod:`cargo_offload.remote.ssh_transport`.
"""

from .ssh_transport import HostConfig, SSHTransport

__all__ = ["HostConfig", "SSHTransport"]

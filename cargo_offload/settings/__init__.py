"""Persistent user defaults for cargo-offload.

A single versioned JSON file under the user's home folder holds defaults that
would otherwise have to be repeated on every invocation (build host, target
triple, extra ssh options). Command line flags and ``CARGO_OFFLOAD_HOST``
always take precedence.

Writes are atomic; an unreadable file is backed up and defaults are used.
No secrets are stored here.
"""

from .store import SettingsStore

__all__ = ["SettingsStore"]

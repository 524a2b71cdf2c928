#!/usr/bin/env python3
"""Convenience entry point for running from a checkout.

The installed console script is `cargo-offload`; this wrapper does the same.
"""

from cargo_offload.cli import main as _main


if __name__ == "__main__":
    raise SystemExit(_main())

"""Build Rust projects on a remote host over ssh and copy the artifacts back."""

__version__ = "0.3.0"

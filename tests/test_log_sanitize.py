from __future__ import annotations

import logging

from cargo_offload.log_utils import configure_logging, format_duration, sanitize_log


def test_sanitize_log_removes_ansi_and_cr() -> None:
    raw = (
        "  1,024  50%  1.00MB/s\r  2,048 100%  2.00MB/s\r\n"
        "\x1b[1m\x1b[31merror\x1b[0m: could not compile `app`\r\n"
        "\n"
        "done\x1b[0m"
    )

    cleaned = sanitize_log(raw)

    assert "\r" not in cleaned
    assert "\x1b" not in cleaned
    lines = cleaned.splitlines()
    assert lines[0].strip().startswith("1,024")
    assert lines[1].strip().startswith("2,048")
    assert lines[2] == "error: could not compile `app`"
    assert lines[-1] == "done"
    assert "" not in lines


def test_sanitize_log_empty() -> None:
    assert sanitize_log("") == ""


def test_format_duration() -> None:
    assert format_duration(2.0) == "2.000s"
    assert format_duration(0.25) == "0.250s"
    assert format_duration(75.5) == "1m 15.500s"
    assert format_duration(-1) == "0.000s"


def test_configure_logging_keeps_existing_handlers() -> None:
    root = logging.getLogger()
    before = list(root.handlers)
    configure_logging(2)
    if before:
        assert root.handlers == before

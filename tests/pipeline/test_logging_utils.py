from __future__ import annotations

import io
import logging
import re

import pytest

from zimdeploy.pipeline.logging_utils import (
    EMERGENCY,
    BuildLogger,
    _format_elapsed,
    should_use_color,
    syslog_threshold,
)

LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} UTC \[\s*(\w+)\] (.*)$")


class _TTY(io.StringIO):
    def isatty(self) -> bool:
        return True


def _levels(output: str) -> list[str]:
    return [LINE_RE.match(line).group(1) for line in output.splitlines()]  # type: ignore[union-attr]


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (7, logging.DEBUG),
        (9, logging.DEBUG),
        (6, logging.INFO),
        (5, logging.WARNING),
        (4, logging.WARNING),
        (3, logging.ERROR),
        (2, EMERGENCY),
        (0, EMERGENCY),
    ],
)
def test_syslog_threshold(level, expected) -> None:
    assert syslog_threshold(level) == expected


def test_messages_below_threshold_are_dropped() -> None:
    stream = io.StringIO()
    logger = BuildLogger(6, no_color=True, stream=stream)

    logger.debug("hidden")
    logger.info("shown")
    logger.error("also shown")

    assert _levels(stream.getvalue()) == ["info", "error"]


def test_level_five_suppresses_info_but_keeps_warnings() -> None:
    stream = io.StringIO()
    logger = BuildLogger(5, no_color=True, stream=stream)

    logger.info("Checking dependencies ...")
    logger.warn("careful")

    assert _levels(stream.getvalue()) == ["warning"]


def test_line_format_has_utc_timestamp_and_padded_tag() -> None:
    stream = io.StringIO()
    BuildLogger(7, no_color=True, stream=stream).info("Checking dependencies ...")

    line = stream.getvalue().rstrip("\n")
    match = LINE_RE.match(line)
    assert match is not None
    assert "UTC [     info] Checking dependencies ..." in line


def test_multiline_message_prefixes_every_line() -> None:
    stream = io.StringIO()
    BuildLogger(7, no_color=True, stream=stream).error("first\nsecond")

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    assert [LINE_RE.match(line).group(2) for line in lines] == ["first", "second"]  # type: ignore[union-attr]


def test_emergency_logs_even_at_lowest_level_and_exits() -> None:
    stream = io.StringIO()
    logger = BuildLogger(0, no_color=True, stream=stream)

    logger.error("suppressed")
    with pytest.raises(SystemExit) as excinfo:
        logger.emergency("Python 3.x not found.")

    assert excinfo.value.code == 1
    assert _levels(stream.getvalue()) == ["emergency"]


def test_color_only_on_known_tty_terminals() -> None:
    assert should_use_color(_TTY(), None, term="xterm-256color") is True
    assert should_use_color(_TTY(), None, term="screen") is True
    assert should_use_color(_TTY(), None, term="dumb") is False
    assert should_use_color(io.StringIO(), None, term="xterm") is False


def test_no_color_flag_overrides_detection() -> None:
    assert should_use_color(_TTY(), True, term="xterm") is False
    assert should_use_color(io.StringIO(), False, term="dumb") is True


def test_colored_output_wraps_level_tag() -> None:
    stream = io.StringIO()
    BuildLogger(7, no_color=False, stream=stream).info("hi")

    assert "\x1b[32m[     info]\x1b[0m hi" in stream.getvalue()


def test_reconfiguring_replaces_previous_handler() -> None:
    first = io.StringIO()
    second = io.StringIO()
    BuildLogger(7, no_color=True, stream=first)
    BuildLogger(7, no_color=True, stream=second).info("once")

    assert first.getvalue() == ""
    assert second.getvalue().count("once") == 1


@pytest.mark.parametrize(
    ("ms", "expected"),
    [
        (0, "0.000s"),
        (1500, "1.500s"),
        (61_000, "1m01.000s"),
        (3_600_000, "60m00.000s"),
        (-5, "0.000s"),
    ],
)
def test_format_elapsed(ms, expected) -> None:
    assert _format_elapsed(ms) == expected

from __future__ import annotations

import json
import logging
import os
import sys
import time
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, NoReturn

EMERGENCY = logging.CRITICAL + 10
logging.addLevelName(EMERGENCY, "EMERGENCY")

LOGGER_NAME = "zimdeploy"
DEFAULT_SYSLOG_LEVEL = 6

_COLORS = {
    logging.DEBUG: "\x1b[35m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    EMERGENCY: "\x1b[1;4;5;37;41m",
}
_COLOR_RESET = "\x1b[0m"


def syslog_threshold(level: int) -> int:
    """Translate a syslog style verbosity (7 = debug ... 0 = emergency)."""

    if level >= 7:
        return logging.DEBUG
    if level == 6:
        return logging.INFO
    if level >= 4:
        return logging.WARNING
    if level == 3:
        return logging.ERROR
    return EMERGENCY


def should_use_color(stream: IO[str], no_color: bool | None, term: str | None = None) -> bool:
    """Decide whether ANSI colours are written to ``stream``.

    ``no_color`` is tri-state: ``True`` disables colour, ``False`` forces it and
    ``None`` autodetects from the terminal type and whether ``stream`` is a TTY.
    """

    if no_color is False:
        return True
    if no_color is True:
        return False
    term = os.environ.get("TERM", "") if term is None else term
    if not (term.startswith("xterm") or term.startswith("screen")):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class BuildLogFormatter(logging.Formatter):
    """Render ``YYYY-MM-DD HH:MM:SS UTC [    level] message`` lines."""

    converter = time.gmtime

    def __init__(self, use_color: bool = False):
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S UTC")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        stamp = self.formatTime(record, self.datefmt)
        tag = f"[{record.levelname.lower():>9}]"
        if self.use_color:
            color = _COLORS.get(record.levelno, _COLORS[logging.ERROR])
            tag = f"{color}{tag}{_COLOR_RESET}"
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        lines = message.splitlines() or [""]
        return "\n".join(f"{stamp} {tag} {line}" for line in lines)


class BuildLogger:
    """Leveled console logger for a build run."""

    def __init__(
        self,
        level: int = DEFAULT_SYSLOG_LEVEL,
        *,
        no_color: bool | None = None,
        stream: IO[str] | None = None,
        name: str = LOGGER_NAME,
    ):
        self.log = logging.getLogger(name)
        self.log.setLevel(syslog_threshold(level))
        self.log.propagate = False
        for handler in list(self.log.handlers):
            if getattr(handler, "_zimdeploy_handler", False):
                self.log.removeHandler(handler)
        target = stream if stream is not None else sys.stderr
        handler = logging.StreamHandler(target)
        handler.setFormatter(BuildLogFormatter(should_use_color(target, no_color)))
        handler._zimdeploy_handler = True  # type: ignore[attr-defined]
        self.log.addHandler(handler)

    def debug(self, message: str, *args: Any) -> None:
        self.log.debug(message, *args)

    def info(self, message: str, *args: Any) -> None:
        self.log.info(message, *args)

    def warn(self, message: str, *args: Any) -> None:
        self.log.warning(message, *args)

    def error(self, message: str, *args: Any) -> None:
        self.log.error(message, *args)

    def emergency(self, message: str, *args: Any) -> NoReturn:
        """Log at emergency level and terminate with status 1."""

        self.log.log(EMERGENCY, message, *args)
        raise SystemExit(1)


class EventLog:
    """Stage event sink; a no-op unless a JSONL path is configured."""

    def __init__(self, run_id: str, jsonl_path: Path | None = None):
        self.run_id = run_id
        self.path = Path(jsonl_path) if jsonl_path is not None else None
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def event(self, stage: str, event: str, **fields: Any) -> None:
        if self.path is None:
            return
        record = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "run_id": self.run_id,
            "stage": stage,
            "event": event,
        }
        record.update(fields)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")


@dataclass
class RunStats:
    run_id: str
    stage_timings_ms: dict[str, float] = field(default_factory=dict)
    failures: list[dict[str, Any]] = field(default_factory=list)

    def mark(self, stage: str, elapsed_ms: float) -> None:
        self.stage_timings_ms[stage] = self.stage_timings_ms.get(stage, 0.0) + float(elapsed_ms)


def _format_elapsed(milliseconds: float) -> str:
    minutes, seconds = divmod(max(0.0, float(milliseconds)) / 1000.0, 60)
    if minutes:
        return f"{int(minutes)}m{seconds:06.3f}s"
    return f"{seconds:.3f}s"


class StageGuard(AbstractContextManager["StageGuard"]):
    """Time a stage and record start/stop/error events. Never swallows errors."""

    def __init__(
        self,
        logger: BuildLogger,
        events: EventLog,
        stats: RunStats,
        stage: str,
        description: str | None = None,
    ):
        self.logger = logger
        self.events = events
        self.stats = stats
        self.stage = stage
        self.description = description
        self.start: float | None = None

    def __enter__(self) -> StageGuard:
        if self.description:
            self.logger.info(self.description)
        self.logger.debug(f"[{self.stage}] start")
        self.start = time.monotonic()
        self.events.event(self.stage, "start")
        return self

    def __exit__(self, exc_type, exc, tb):  # type: ignore[override]
        if self.start is None:
            self.start = time.monotonic()
        elapsed_ms = max(0.0, (time.monotonic() - self.start) * 1000.0)
        self.stats.mark(self.stage, elapsed_ms)

        if exc is not None:
            error = f"{type(exc).__name__}: {exc}"
            self.events.event(self.stage, "error", elapsed_ms=elapsed_ms, error=error)
            self.stats.failures.append(
                {"stage": self.stage, "error": error, "elapsed_ms": elapsed_ms}
            )
            return False

        self.events.event(self.stage, "stop", elapsed_ms=elapsed_ms)
        self.logger.debug(f"[{self.stage}] ok in {_format_elapsed(elapsed_ms)}")
        return False


__all__ = [
    "EMERGENCY",
    "BuildLogFormatter",
    "BuildLogger",
    "EventLog",
    "RunStats",
    "StageGuard",
    "should_use_color",
    "syslog_threshold",
]

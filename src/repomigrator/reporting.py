"""Progress events and swappable reporters."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Protocol

import click

logger = logging.getLogger(__name__)

STATUS_STARTED = "started"
STATUS_OK = "ok"
STATUS_SKIPPED = "skipped"
STATUS_WARNING = "warning"
STATUS_FAILED = "failed"


@dataclass(slots=True, frozen=True)
class ProgressEvent:
    repo: str
    step: str
    status: str
    detail: str = ""


class Reporter(Protocol):
    def emit(self, event: ProgressEvent) -> None: ...


class LogReporter:
    """Structured log lines; safe for concurrent batch runs."""

    _LEVELS = {
        STATUS_WARNING: logging.WARNING,
        STATUS_FAILED: logging.ERROR,
    }

    def emit(self, event: ProgressEvent) -> None:
        level = self._LEVELS.get(event.status, logging.INFO)
        logger.log(
            level,
            "[%s] %s %s%s",
            event.repo,
            event.step,
            event.status,
            f": {event.detail}" if event.detail else "",
        )


class ConsoleReporter:
    """Human-oriented terminal output for single-repository runs."""

    _STYLES = {
        STATUS_STARTED: ("…", "bright_black"),
        STATUS_OK: ("✔", "green"),
        STATUS_SKIPPED: ("↷", "yellow"),
        STATUS_WARNING: ("⚠", "yellow"),
        STATUS_FAILED: ("✖", "red"),
    }

    def emit(self, event: ProgressEvent) -> None:
        symbol, color = self._STYLES.get(event.status, ("•", "white"))
        line = f"{symbol} {event.step}"
        if event.detail:
            line = f"{line}: {event.detail}"
        click.echo(click.style(line, fg=color), err=event.status == STATUS_FAILED)


class RecordingReporter:
    """Keeps every event in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        with self._lock:
            self.events.append(event)

    def steps(self, repo: str | None = None, status: str | None = None) -> list[str]:
        with self._lock:
            return [
                event.step
                for event in self.events
                if (repo is None or event.repo == repo)
                and (status is None or event.status == status)
            ]

"""External migration executor and best-effort test runner."""

from __future__ import annotations

import logging
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from repomigrator.config import Settings
from repomigrator.errors import ExecutorError, ExecutorMissingError
from repomigrator.git import run_command
from repomigrator.migration.prompts import EXECUTOR_INSTRUCTION

logger = logging.getLogger(__name__)

_MAX_CAPTURE_CHARS = 4000


def _truncate(text: str, max_chars: int = _MAX_CAPTURE_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return f"...[truncated]{text[-max_chars:]}"


@dataclass(slots=True)
class ExecutorResult:
    ok: bool
    exit_code: int
    detail: str = ""


@dataclass(slots=True)
class TestRunResult:
    __test__ = False

    ok: bool
    exit_code: int
    detail: str = ""
    skipped: bool = False


class MigrationExecutor(Protocol):
    def apply(self, repo_root: Path) -> ExecutorResult: ...

    def run_tests(self, repo_root: Path) -> TestRunResult: ...


class CliMigrationExecutor:
    """Runs the migration CLI once per repository with a bounded number of turns.

    With ``stream_output`` the executor writes straight to the terminal so a
    single-repository run can be watched live. Batch runs capture output.
    """

    def __init__(self, settings: Settings, *, stream_output: bool = False) -> None:
        self.stream_output = stream_output
        self.binary = settings.executor_command.strip()
        self.model = settings.executor_model
        self.max_turns = settings.executor_max_turns
        self.timeout_seconds = settings.executor_timeout_seconds
        self.test_command = settings.test_command.strip()
        self.test_timeout_seconds = settings.test_timeout_seconds

    def command(self) -> list[str]:
        return [
            self.binary,
            "--print",
            "--max-turns",
            str(self.max_turns),
            "--model",
            self.model,
            "--dangerously-skip-permissions",
            EXECUTOR_INSTRUCTION,
        ]

    def fallback_command(self) -> str:
        return shlex.join(self.command())

    def apply(self, repo_root: Path) -> ExecutorResult:
        if shutil.which(self.binary) is None:
            raise ExecutorMissingError(
                f"migration executor not found: {self.binary}",
                fallback_command=self.fallback_command(),
            )
        result = run_command(
            self.command(),
            cwd=repo_root,
            timeout=self.timeout_seconds,
            capture=not self.stream_output,
        )
        if not result.ok:
            raise ExecutorError(
                f"migration executor failed ({result.exit_code}): {_truncate(result.reason)}"
            )
        return ExecutorResult(ok=True, exit_code=result.exit_code, detail=_truncate(result.stdout))

    def run_tests(self, repo_root: Path) -> TestRunResult:
        if not self.test_command:
            return TestRunResult(ok=True, exit_code=0, skipped=True)
        result = run_command(
            shlex.split(self.test_command),
            cwd=repo_root,
            timeout=self.test_timeout_seconds,
            capture=not self.stream_output,
        )
        if not result.ok:
            return TestRunResult(
                ok=False, exit_code=result.exit_code, detail=_truncate(result.reason)
            )
        return TestRunResult(ok=True, exit_code=0, detail=_truncate(result.stdout))

import os
import stat
import sys
from pathlib import Path

import pytest

from repomigrator.config import Settings
from repomigrator.errors import ExecutorError, ExecutorMissingError
from repomigrator.migration.executor import CliMigrationExecutor
from repomigrator.migration.prompts import EXECUTOR_INSTRUCTION

pytestmark = pytest.mark.skipif(os.name == "nt", reason="uses POSIX shell scripts")


def _script(path: Path, body: str) -> Path:
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def _executor(
    tmp_path: Path, command: str, test_command: str = "", *, stream_output: bool = False
) -> CliMigrationExecutor:
    settings = Settings(
        ANTHROPIC_API_KEY="k",
        EXECUTOR_COMMAND=command,
        EXECUTOR_MAX_TURNS=12,
        TEST_COMMAND=test_command,
        WORKSPACE_DIR=str(tmp_path),
    )
    return CliMigrationExecutor(settings, stream_output=stream_output)


def test_command_carries_bounded_turns_and_instruction(tmp_path: Path) -> None:
    executor = _executor(tmp_path, "claude")
    command = executor.command()
    assert command[0] == "claude"
    assert command[command.index("--max-turns") + 1] == "12"
    assert "--print" in command
    assert command[-1] == EXECUTOR_INSTRUCTION


def test_missing_binary_reports_fallback_command(tmp_path: Path) -> None:
    executor = _executor(tmp_path, "definitely-not-installed-executor")
    with pytest.raises(ExecutorMissingError) as excinfo:
        executor.apply(tmp_path)
    assert excinfo.value.fallback_command.startswith("definitely-not-installed-executor --print")
    assert "CLAUDE.md" in excinfo.value.fallback_command


def test_apply_runs_in_repository(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    script = _script(tmp_path / "fake-executor", 'pwd > ran.txt\necho "$@" >> ran.txt')
    result = _executor(tmp_path, str(script)).apply(repo)
    assert result.ok
    recorded = (repo / "ran.txt").read_text(encoding="utf-8")
    assert str(repo.resolve()) in recorded
    assert "--max-turns 12" in recorded


def test_failing_executor_raises(tmp_path: Path) -> None:
    script = _script(tmp_path / "broken-executor", "echo kaput >&2\nexit 3")
    with pytest.raises(ExecutorError, match="kaput"):
        _executor(tmp_path, str(script)).apply(tmp_path)


def test_test_runner_failure_is_reported_not_raised(tmp_path: Path) -> None:
    command = f"{sys.executable} -c 'import sys; sys.exit(4)'"
    result = _executor(tmp_path, "claude", test_command=command).run_tests(tmp_path)
    assert result.ok is False
    assert result.exit_code == 4


def test_test_runner_success_and_disabled(tmp_path: Path) -> None:
    command = f"{sys.executable} -c 'print(1)'"
    assert _executor(tmp_path, "claude", test_command=command).run_tests(tmp_path).ok
    disabled = _executor(tmp_path, "claude").run_tests(tmp_path)
    assert disabled.ok and disabled.skipped


def test_streamed_executor_writes_to_terminal(
    tmp_path: Path, capfd: pytest.CaptureFixture[str]
) -> None:
    script = _script(tmp_path / "chatty-executor", "echo step 1 of 3 done")
    result = _executor(tmp_path, str(script), stream_output=True).apply(tmp_path)
    assert result.ok
    assert result.detail == ""
    assert "step 1 of 3 done" in capfd.readouterr().out


def test_streamed_executor_failure_still_raises(tmp_path: Path) -> None:
    script = _script(tmp_path / "broken-executor", "exit 2")
    with pytest.raises(ExecutorError, match=r"\(2\)"):
        _executor(tmp_path, str(script), stream_output=True).apply(tmp_path)

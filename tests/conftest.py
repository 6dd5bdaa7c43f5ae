import shutil
import subprocess
import threading
from pathlib import Path

import pytest

from repomigrator.config import Settings, get_settings
from repomigrator.errors import ExecutorError
from repomigrator.migration.executor import ExecutorResult, TestRunResult
from repomigrator.providers.base import StrategyResponse

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available")


class WordTokenizer:
    """One token per whitespace-separated word."""

    def count(self, text: str) -> int:
        return len(text.split())


class FakeProvider:
    def __init__(self, text: str = "1. Update imports in src/index.ts") -> None:
        self.text = text
        self.prompts: list[str] = []
        self.models: list[str | None] = []
        self._lock = threading.Lock()

    def complete(self, prompt, *, model=None, max_tokens=None, temperature=0.0):
        with self._lock:
            self.prompts.append(prompt)
            self.models.append(model)
        return StrategyResponse(text=self.text, model=model or "fake-model", stop_reason="end_turn")

    def close(self) -> None:
        return None


class FakeExecutor:
    def __init__(self, *, fail: bool = False, tests_ok: bool = True) -> None:
        self.fail = fail
        self.tests_ok = tests_ok
        self.applied: list[Path] = []
        self.tested: list[Path] = []

    def apply(self, repo_root: Path) -> ExecutorResult:
        self.applied.append(repo_root)
        if self.fail:
            raise ExecutorError("migration executor failed (1): boom")
        return ExecutorResult(ok=True, exit_code=0)

    def run_tests(self, repo_root: Path) -> TestRunResult:
        self.tested.append(repo_root)
        if self.tests_ok:
            return TestRunResult(ok=True, exit_code=0)
        return TestRunResult(ok=False, exit_code=1, detail="1 failing")


def git(cwd: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", "-C", str(cwd), *args],
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout


def make_remote(root: Path, name: str = "plugin", branches: tuple[str, ...] = ()) -> Path:
    """Create a bare repository with a ``main`` branch plus any extra branches."""
    bare = root / f"{name}.git"
    seed = root / f"{name}-seed"
    root.mkdir(parents=True, exist_ok=True)
    subprocess.run(["git", "init", "--bare", str(bare)], capture_output=True, check=True)
    subprocess.run(["git", "init", str(seed)], capture_output=True, check=True)
    git(seed, "symbolic-ref", "HEAD", "refs/heads/main")
    (seed / "README.md").write_text("# Plugin\n\nA sample plugin.\n", encoding="utf-8")
    (seed / "package.json").write_text('{"name": "plugin"}\n', encoding="utf-8")
    (seed / "src").mkdir()
    (seed / "src/index.ts").write_text("export const plugin = {};\n", encoding="utf-8")
    git(seed, "add", ".")
    git(seed, "commit", "-m", "initial")
    git(seed, "remote", "add", "origin", str(bare))
    git(seed, "push", "origin", "main")
    for branch in branches:
        git(seed, "branch", branch)
        git(seed, "push", "origin", branch)
    subprocess.run(
        ["git", "--git-dir", str(bare), "symbolic-ref", "HEAD", "refs/heads/main"],
        capture_output=True,
        check=True,
    )
    return bare


@pytest.fixture(autouse=True)
def test_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
    monkeypatch.setenv("WORKSPACE_DIR", str(tmp_path / "workspace"))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.delenv("BASE_INSTRUCTIONS_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        ANTHROPIC_API_KEY="test-key",
        WORKSPACE_DIR=str(tmp_path / "workspace"),
        TEST_COMMAND="",
    )


@pytest.fixture
def tokenizer() -> WordTokenizer:
    return WordTokenizer()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()

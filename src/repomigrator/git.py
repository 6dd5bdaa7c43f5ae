"""Thin git client over subprocess with explicit result types."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path

from repomigrator.errors import GitError

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"


@dataclass(slots=True)
class CommandResult:
    command: str
    exit_code: int
    ok: bool
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def reason(self) -> str:
        return self.stderr.strip() or self.stdout.strip() or f"exit code {self.exit_code}"


@dataclass(slots=True)
class BranchListing:
    ok: bool
    branches: list[str] = field(default_factory=list)
    error: str = ""


def run_command(
    args: list[str],
    *,
    cwd: str | Path | None = None,
    timeout: int = 30,
    env: dict[str, str] | None = None,
    capture: bool = True,
) -> CommandResult:
    """Run a command to completion; never raises for exit status, timeout or missing binary.

    With ``capture=False`` the child inherits this process's stdout and stderr,
    and the result carries empty output.
    """
    command = " ".join(args)
    started = time.monotonic()
    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=capture,
            text=True,
            timeout=timeout,
            check=False,
            env=env,
        )
    except FileNotFoundError as exc:
        return CommandResult(command, 127, False, "", str(exc), _elapsed_ms(started))
    except subprocess.TimeoutExpired:
        return CommandResult(
            command, 124, False, "", f"timed out after {timeout}s", _elapsed_ms(started)
        )
    return CommandResult(
        command=command,
        exit_code=proc.returncode,
        ok=proc.returncode == 0,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        duration_ms=_elapsed_ms(started),
    )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def parse_ls_remote_heads(output: str) -> list[str]:
    branches: list[str] = []
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) != 2:
            continue
        ref = parts[1].strip()
        if ref.startswith("refs/heads/"):
            branches.append(ref.removeprefix("refs/heads/"))
    return branches


class GitClient:
    """Git operations for one account.

    Holds no per-repository state, so one instance may serve every
    repository of its account inside a single task.
    """

    def __init__(
        self,
        account: str = "",
        *,
        timeout_seconds: int = 30,
        network_timeout_seconds: int = 300,
        git_binary: str = "git",
    ) -> None:
        self.account = account
        self.timeout_seconds = timeout_seconds
        self.network_timeout_seconds = network_timeout_seconds
        self.git_binary = git_binary
        self._env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

    def run(self, repo: Path | None, *args: str, network: bool = False) -> CommandResult:
        argv = [self.git_binary]
        if repo is not None:
            argv += ["-C", str(repo)]
        argv += list(args)
        timeout = self.network_timeout_seconds if network else self.timeout_seconds
        result = run_command(argv, timeout=timeout, env=self._env)
        if not result.ok:
            logger.debug("git failed: %s (%s)", result.command, result.reason)
        return result

    def clone(self, url: str, dest: Path) -> CommandResult:
        dest.parent.mkdir(parents=True, exist_ok=True)
        return self.run(None, "clone", url, str(dest), network=True)

    def fetch(self, repo: Path) -> CommandResult:
        return self.run(repo, "fetch", "--all", "--prune", network=True)

    def is_repository(self, repo: Path) -> bool:
        return self.run(repo, "rev-parse", "--git-dir").ok

    def current_branch(self, repo: Path) -> str:
        result = self.run(repo, "rev-parse", "--abbrev-ref", "HEAD")
        return result.stdout.strip() if result.ok else ""

    def local_branches(self, repo: Path) -> list[str]:
        result = self.run(repo, "for-each-ref", "--format=%(refname:short)", "refs/heads")
        if not result.ok:
            raise GitError(f"git branch listing failed: {result.reason}")
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def remote_branches(self, repo: Path, remote: str = REMOTE_NAME) -> list[str]:
        result = self.run(
            repo, "for-each-ref", "--format=%(refname:short)", f"refs/remotes/{remote}"
        )
        if not result.ok:
            raise GitError(f"git remote branch listing failed: {result.reason}")
        prefix = f"{remote}/"
        branches: list[str] = []
        for line in result.stdout.splitlines():
            name = line.strip()
            if not name.startswith(prefix):
                continue
            name = name.removeprefix(prefix)
            if name and name != "HEAD":
                branches.append(name)
        return branches

    def has_remote(self, repo: Path, remote: str = REMOTE_NAME) -> bool:
        return self.run(repo, "remote", "get-url", remote).ok

    def has_file_at(self, repo: Path, ref: str, path: str) -> bool:
        return self.run(repo, "cat-file", "-e", f"{ref}:{path}").ok

    def checkout(self, repo: Path, branch: str) -> None:
        result = self.run(repo, "checkout", branch)
        if not result.ok:
            raise GitError(f"git checkout {branch} failed: {result.reason}")

    def checkout_tracking(self, repo: Path, branch: str, remote: str = REMOTE_NAME) -> None:
        result = self.run(repo, "checkout", "-b", branch, "--track", f"{remote}/{branch}")
        if not result.ok:
            raise GitError(f"git checkout --track {remote}/{branch} failed: {result.reason}")

    def create_branch(self, repo: Path, branch: str) -> None:
        result = self.run(repo, "checkout", "-b", branch)
        if not result.ok:
            raise GitError(f"git checkout -b {branch} failed: {result.reason}")

    def push_upstream(self, repo: Path, branch: str, remote: str = REMOTE_NAME) -> None:
        result = self.run(repo, "push", "-u", remote, branch, network=True)
        if not result.ok:
            raise GitError(f"git push failed: {result.reason}")

    def list_remote_heads(self, url: str) -> BranchListing:
        """List branches of a remote without cloning it."""
        result = self.run(None, "ls-remote", "--heads", url, network=True)
        if not result.ok:
            return BranchListing(ok=False, error=result.reason)
        return BranchListing(ok=True, branches=parse_ls_remote_heads(result.stdout))

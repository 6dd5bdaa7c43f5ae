"""State and outcome types for the per-repository migration pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from repomigrator.errors import InputError

MIGRATION_BRANCH = "1.x-claude"
PREFERRED_BASE_BRANCHES = ("0.x", "main")
LOCAL_ACCOUNT = "local"

GITHUB_URL_RE = re.compile(r"github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?/?$")


class MigrationState(StrEnum):
    UNINITIALIZED = "uninitialized"
    LOCATED = "located"
    BRANCH_SELECTED = "branch_selected"
    SYNCED = "synced"
    ARTIFACT_CHECKED = "artifact_checked"
    MIGRATION_BRANCH_READY = "migration_branch_ready"
    EXECUTOR_INVOKED = "executor_invoked"
    PUSHED = "pushed"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({MigrationState.DONE, MigrationState.FAILED})


@dataclass(slots=True, frozen=True)
class RepoLocation:
    source: str
    local_path: Path
    is_remote: bool
    owner: str = ""
    repo: str = ""
    url: str = ""

    @property
    def account(self) -> str:
        return self.owner or LOCAL_ACCOUNT

    @property
    def name(self) -> str:
        return self.repo or self.local_path.name


def parse_github_url(value: str) -> tuple[str, str] | None:
    match = GITHUB_URL_RE.search(value.strip())
    if match is None:
        return None
    return match.group(1), match.group(2)


def resolve_location(source: str, workspace_dir: Path) -> RepoLocation:
    """Classify the input as a GitHub URL (remote mode) or an existing local folder."""
    value = source.strip()
    if not value:
        raise InputError("repository input is empty")
    if "github.com" in value:
        parsed = parse_github_url(value)
        if parsed is None:
            raise InputError(f"Invalid GitHub URL format: {value}")
        owner, repo = parsed
        return RepoLocation(
            source=value,
            local_path=(workspace_dir / owner / repo).resolve(),
            is_remote=True,
            owner=owner,
            repo=repo,
            url=value,
        )
    path = Path(value).expanduser().resolve()
    if not path.exists():
        raise InputError(f"Folder not found: {path}")
    if not path.is_dir():
        raise InputError(f"Not a folder: {path}")
    return RepoLocation(source=value, local_path=path, is_remote=False)


@dataclass(slots=True)
class RepositoryState:
    local_path: Path | None = None
    current_branch: str = ""
    is_remote: bool = False
    state: MigrationState = MigrationState.UNINITIALIZED
    error: str = ""
    history: list[MigrationState] = field(default_factory=list)

    def advance(self, state: MigrationState) -> None:
        self.state = state
        self.history.append(state)

    def fail(self, message: str) -> None:
        self.error = message
        self.advance(MigrationState.FAILED)


@dataclass(slots=True)
class RepositoryOutcome:
    name: str
    state: MigrationState
    local_path: Path | None = None
    branch: str = MIGRATION_BRANCH
    strategy_generated: bool = False
    executor_ran: bool = False
    fallback_command: str = ""
    tests_passed: bool | None = None
    pushed: bool = False
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.state == MigrationState.DONE

"""Idempotent per-repository migration state machine."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from repomigrator.config import Settings
from repomigrator.context import assemble_context
from repomigrator.errors import ExecutorMissingError, InputError, MigratorError, SyncError
from repomigrator.git import GitClient
from repomigrator.logging import bind_context
from repomigrator.migration.artifact import (
    ARTIFACT_FILE,
    artifact_exists,
    load_base_instructions,
    write_artifact,
)
from repomigrator.migration.contracts import (
    MIGRATION_BRANCH,
    PREFERRED_BASE_BRANCHES,
    MigrationState,
    RepoLocation,
    RepositoryOutcome,
    RepositoryState,
    resolve_location,
)
from repomigrator.migration.executor import MigrationExecutor
from repomigrator.migration.prompts import EXECUTOR_INSTALL_HINT
from repomigrator.migration.strategy import generate_strategy
from repomigrator.providers.base import StrategyProvider
from repomigrator.reporting import (
    STATUS_FAILED,
    STATUS_OK,
    STATUS_SKIPPED,
    STATUS_STARTED,
    STATUS_WARNING,
    LogReporter,
    ProgressEvent,
    Reporter,
)
from repomigrator.tokenizer import Tokenizer

logger = logging.getLogger(__name__)


class RepositoryStateMachine:
    """Drives one repository from input to pushed migration branch.

    Steps run strictly in order. Any error moves the machine to FAILED and is
    re-raised; side effects of completed steps (clones, branches, artifact)
    are left in place so a rerun can resume cheaply.
    """

    def __init__(
        self,
        source: str,
        *,
        settings: Settings,
        provider: StrategyProvider,
        tokenizer: Tokenizer,
        executor: MigrationExecutor,
        git_clients: dict[str, GitClient],
        reporter: Reporter | None = None,
        name: str | None = None,
    ) -> None:
        self.source = source
        self.settings = settings
        self.provider = provider
        self.tokenizer = tokenizer
        self.executor = executor
        self.git_clients = git_clients
        self.reporter: Reporter = reporter or LogReporter()
        self.name = name or source
        self.state = RepositoryState()
        self.location: RepoLocation | None = None
        self._existing_clone = False
        self._executor_skipped = False
        self._outcome = RepositoryOutcome(name=self.name, state=MigrationState.UNINITIALIZED)

    def _emit(self, step: str, status: str, detail: str = "") -> None:
        self.reporter.emit(ProgressEvent(repo=self.name, step=step, status=status, detail=detail))

    def _git(self) -> GitClient:
        assert self.location is not None
        account = self.location.account
        client = self.git_clients.get(account)
        if client is None:
            client = GitClient(
                account,
                timeout_seconds=self.settings.git_timeout_seconds,
                network_timeout_seconds=self.settings.git_network_timeout_seconds,
            )
            self.git_clients[account] = client
        return client

    @property
    def repo_path(self) -> Path:
        assert self.state.local_path is not None
        return self.state.local_path

    def run(self) -> RepositoryOutcome:
        bind_context(repo=self.name)
        try:
            self._locate()
            self._select_branch()
            self._sync()
            self._check_artifact()
            self._prepare_migration_branch()
            self._invoke_executor()
            self._push()
        except MigratorError as exc:
            self._record_failure(str(exc))
            raise
        except Exception as exc:
            self._record_failure(f"{type(exc).__name__}: {exc}")
            raise
        self.state.advance(MigrationState.DONE)
        self._outcome.state = MigrationState.DONE
        self._emit("done", STATUS_OK, f"branch {MIGRATION_BRANCH} ready")
        return self._outcome

    def _record_failure(self, message: str) -> None:
        failed_in = self.state.state
        self.state.fail(message)
        self._outcome.state = MigrationState.FAILED
        self._outcome.error = message
        self._emit(failed_in.value, STATUS_FAILED, message)

    # Located

    def _locate(self) -> None:
        self._emit("locate", STATUS_STARTED, self.source)
        location = resolve_location(self.source, Path(self.settings.workspace_dir))
        self.location = location
        self.state.local_path = location.local_path
        self.state.is_remote = location.is_remote
        self._outcome.local_path = location.local_path
        if self.name == self.source:
            self.name = location.name
            self._outcome.name = location.name
            bind_context(repo=self.name)

        git = self._git()
        path = location.local_path
        if location.is_remote:
            if path.exists():
                if not (path / ".git").exists():
                    raise InputError(f"{path} exists and is not a git checkout")
                self._existing_clone = True
                self._emit("locate", STATUS_OK, f"using existing folder {path}")
            else:
                self._clone(location.url, path)
                self._emit("locate", STATUS_OK, f"cloned into {path}")
        else:
            if not git.is_repository(path):
                raise InputError(f"{path} is not a git repository")
            self._emit("locate", STATUS_OK, str(path))
        self.state.advance(MigrationState.LOCATED)

    def _clone(self, url: str, path: Path) -> None:
        result = self._git().clone(url, path)
        if not result.ok:
            raise SyncError(f"git clone {url} failed: {result.reason}")

    # BranchSelected

    def _choose_base_branch(self) -> None:
        git = self._git()
        if not self.state.is_remote:
            # Local folders keep their checked-out branch.
            self.state.current_branch = git.current_branch(self.repo_path)
            self._emit(
                "branch-select",
                STATUS_SKIPPED,
                f"local folder; staying on {self.state.current_branch or 'HEAD'}",
            )
            return
        local = set(git.local_branches(self.repo_path))
        remote = set(git.remote_branches(self.repo_path))
        for candidate in PREFERRED_BASE_BRANCHES:
            if candidate in local or candidate in remote:
                git.checkout(self.repo_path, candidate)
                self.state.current_branch = candidate
                self._emit("branch-select", STATUS_OK, f"checked out {candidate}")
                return
        self.state.current_branch = git.current_branch(self.repo_path)
        self._emit(
            "branch-select",
            STATUS_OK,
            f"no preferred branch; staying on {self.state.current_branch or 'HEAD'}",
        )

    def _select_branch(self) -> None:
        self._choose_base_branch()
        self.state.advance(MigrationState.BRANCH_SELECTED)

    # Synced

    def _sync(self) -> None:
        if not self._existing_clone:
            self._emit("sync", STATUS_SKIPPED, "fresh clone" if self.state.is_remote else "local")
            self.state.advance(MigrationState.SYNCED)
            return
        result = self._git().fetch(self.repo_path)
        if result.ok:
            self._emit("sync", STATUS_OK, "fetched")
        else:
            self._emit("sync", STATUS_WARNING, f"fetch failed, re-cloning: {result.reason}")
            self._recover_clone()
        self.state.advance(MigrationState.SYNCED)

    def _recover_clone(self) -> None:
        """Replace a checkout whose fetch failed with a fresh clone.

        Precondition: fetch on the existing clone failed.
        Postcondition: a fresh clone sits at the same path with the base branch selected.
        """
        assert self.location is not None
        shutil.rmtree(self.repo_path)
        self._clone(self.location.url, self.repo_path)
        if not self._git().is_repository(self.repo_path):
            raise SyncError(f"re-clone of {self.location.url} did not produce a repository")
        self._existing_clone = False
        self._choose_base_branch()

    # ArtifactChecked

    def _artifact_on_migration_branch(self) -> str:
        """Ref of the migration branch that already carries the artifact, or ""."""
        git = self._git()
        refs: list[str] = []
        if MIGRATION_BRANCH in git.local_branches(self.repo_path):
            refs.append(MIGRATION_BRANCH)
        if MIGRATION_BRANCH in git.remote_branches(self.repo_path):
            refs.append(f"origin/{MIGRATION_BRANCH}")
        for ref in refs:
            if git.has_file_at(self.repo_path, ref, ARTIFACT_FILE):
                return ref
        return ""

    def _check_artifact(self) -> None:
        if artifact_exists(self.repo_path):
            self._emit("strategy", STATUS_SKIPPED, f"{ARTIFACT_FILE} already exists")
            self.state.advance(MigrationState.ARTIFACT_CHECKED)
            return
        committed_on = self._artifact_on_migration_branch()
        if committed_on:
            self._emit("strategy", STATUS_SKIPPED, f"{ARTIFACT_FILE} already on {committed_on}")
            self.state.advance(MigrationState.ARTIFACT_CHECKED)
            return

        self._emit("context", STATUS_STARTED)
        context = assemble_context(
            self.repo_path, self.settings.context_max_tokens, self.tokenizer
        )
        self._emit(
            "context",
            STATUS_OK,
            f"{len(context.budget.included_files)} files, "
            f"{context.total_tokens}/{self.settings.context_max_tokens} tokens",
        )

        self._emit("strategy", STATUS_STARTED)
        response = generate_strategy(self.provider, context.text, self.settings)
        self._emit("strategy", STATUS_OK, f"model {response.model}")

        base = load_base_instructions(self.settings.base_instructions_path)
        path = write_artifact(self.repo_path, response.text, base)
        self._outcome.strategy_generated = True
        self._emit("artifact", STATUS_OK, str(path))
        self.state.advance(MigrationState.ARTIFACT_CHECKED)

    # MigrationBranchReady

    def _prepare_migration_branch(self) -> None:
        git = self._git()
        local = git.local_branches(self.repo_path)
        if MIGRATION_BRANCH in local:
            git.checkout(self.repo_path, MIGRATION_BRANCH)
            detail = "reused local branch"
        elif MIGRATION_BRANCH in git.remote_branches(self.repo_path):
            git.checkout_tracking(self.repo_path, MIGRATION_BRANCH)
            detail = "tracking remote branch"
        else:
            git.create_branch(self.repo_path, MIGRATION_BRANCH)
            detail = f"created from {self.state.current_branch or 'HEAD'}"
        self.state.current_branch = MIGRATION_BRANCH
        self._emit("migration-branch", STATUS_OK, f"{MIGRATION_BRANCH}: {detail}")
        self.state.advance(MigrationState.MIGRATION_BRANCH_READY)

    # ExecutorInvoked

    def _invoke_executor(self) -> None:
        self._emit("executor", STATUS_STARTED)
        try:
            self.executor.apply(self.repo_path)
        except ExecutorMissingError as exc:
            self._outcome.fallback_command = exc.fallback_command
            self._emit(
                "executor",
                STATUS_WARNING,
                f"{exc}. Install with `{EXECUTOR_INSTALL_HINT}`, then run: "
                f"cd {self.repo_path} && {exc.fallback_command}",
            )
            self._executor_skipped = True
            self.state.advance(MigrationState.EXECUTOR_INVOKED)
            return
        self._outcome.executor_ran = True
        self._emit("executor", STATUS_OK)

        tests = self.executor.run_tests(self.repo_path)
        if tests.skipped:
            self._emit("tests", STATUS_SKIPPED, "no test command configured")
        elif tests.ok:
            self._outcome.tests_passed = True
            self._emit("tests", STATUS_OK, "all tests passing")
        else:
            self._outcome.tests_passed = False
            logger.warning("Tests failed after migration (exit %d)", tests.exit_code)
            self._emit("tests", STATUS_WARNING, "some tests failed; fix them manually")
        self.state.advance(MigrationState.EXECUTOR_INVOKED)

    # Pushed

    def _push(self) -> None:
        if self._executor_skipped:
            # Nothing reaches origin until the executor has run.
            self._emit("push", STATUS_SKIPPED, "executor did not run; push after running it")
            self.state.advance(MigrationState.PUSHED)
            return
        git = self._git()
        if not self.state.is_remote and not git.has_remote(self.repo_path):
            self._emit("push", STATUS_SKIPPED, "no origin remote")
            self.state.advance(MigrationState.PUSHED)
            return
        git.push_upstream(self.repo_path, MIGRATION_BRANCH)
        self._outcome.pushed = True
        self._emit("push", STATUS_OK, f"origin/{MIGRATION_BRANCH}")
        self.state.advance(MigrationState.PUSHED)


def migrate_repository(
    source: str,
    *,
    settings: Settings,
    provider: StrategyProvider,
    tokenizer: Tokenizer,
    executor: MigrationExecutor,
    git_clients: dict[str, GitClient] | None = None,
    reporter: Reporter | None = None,
    name: str | None = None,
) -> RepositoryOutcome:
    machine = RepositoryStateMachine(
        source,
        settings=settings,
        provider=provider,
        tokenizer=tokenizer,
        executor=executor,
        git_clients=git_clients if git_clients is not None else {},
        reporter=reporter,
        name=name,
    )
    return machine.run()

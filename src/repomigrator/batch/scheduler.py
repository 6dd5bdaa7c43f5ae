"""Concurrency-bounded batch scheduler for repository migrations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from repomigrator.batch.precheck import should_skip
from repomigrator.batch.types import BatchResult, RepoTask, TaskError
from repomigrator.config import Settings
from repomigrator.git import GitClient
from repomigrator.migration.contracts import RepositoryOutcome, parse_github_url
from repomigrator.migration.executor import CliMigrationExecutor, MigrationExecutor
from repomigrator.migration.pipeline import migrate_repository
from repomigrator.providers.base import StrategyProvider
from repomigrator.reporting import (
    STATUS_FAILED,
    STATUS_SKIPPED,
    LogReporter,
    ProgressEvent,
    Reporter,
)
from repomigrator.tokenizer import TiktokenTokenizer, Tokenizer

logger = logging.getLogger(__name__)

TaskRunnerFn = Callable[[RepoTask], RepositoryOutcome]
PrecheckFn = Callable[[str, GitClient], bool]


def _task_key(task: RepoTask) -> str:
    parsed = parse_github_url(task.url)
    if parsed is None:
        return task.url.strip()
    owner, repo = parsed
    return f"{owner.lower()}/{repo.lower()}"


def dedupe_tasks(tasks: list[RepoTask]) -> tuple[list[RepoTask], list[tuple[RepoTask, RepoTask]]]:
    """Split tasks into first occurrences and (duplicate, original) pairs.

    Two tasks pointing at the same repository would otherwise share one
    working directory.
    """
    seen: dict[str, RepoTask] = {}
    unique: list[RepoTask] = []
    duplicates: list[tuple[RepoTask, RepoTask]] = []
    for task in tasks:
        key = _task_key(task)
        original = seen.get(key)
        if original is None:
            seen[key] = task
            unique.append(task)
        else:
            duplicates.append((task, original))
    return unique, duplicates


class BatchScheduler:
    """Runs many repository pipelines with at most ``concurrency_limit`` in flight.

    Each pipeline runs in a worker thread with its own git clients, executor
    and working directory. The strategy provider is the only object shared
    between tasks. Results are folded into the BatchResult on the event loop,
    never from worker threads.
    """

    def __init__(
        self,
        settings: Settings,
        provider: StrategyProvider,
        *,
        concurrency_limit: int | None = None,
        reporter: Reporter | None = None,
        tokenizer_factory: Callable[[], Tokenizer] = TiktokenTokenizer,
        executor_factory: Callable[[Settings], MigrationExecutor] = CliMigrationExecutor,
        precheck: PrecheckFn = should_skip,
        task_runner: TaskRunnerFn | None = None,
    ) -> None:
        limit = concurrency_limit or int(settings.batch_concurrency)
        self.settings = settings
        self.provider = provider
        self.reporter: Reporter = reporter or LogReporter()
        self._max_concurrent = max(1, limit)
        self._tokenizer_factory = tokenizer_factory
        self._executor_factory = executor_factory
        self._precheck_fn = precheck
        self._task_runner = task_runner or self._run_pipeline
        self._active = 0
        self._peak_active = 0

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def in_flight(self) -> int:
        return self._active

    @property
    def peak_active(self) -> int:
        return self._peak_active

    def _new_git_client(self) -> GitClient:
        return GitClient(
            timeout_seconds=self.settings.git_timeout_seconds,
            network_timeout_seconds=self.settings.git_network_timeout_seconds,
        )

    def _run_pipeline(self, task: RepoTask) -> RepositoryOutcome:
        return migrate_repository(
            task.url,
            settings=self.settings,
            provider=self.provider,
            tokenizer=self._tokenizer_factory(),
            executor=self._executor_factory(self.settings),
            git_clients={},
            reporter=self.reporter,
            name=task.name,
        )

    async def _precheck(self, semaphore: asyncio.Semaphore, task: RepoTask) -> bool:
        async with semaphore:
            try:
                return await asyncio.to_thread(self._precheck_fn, task.url, self._new_git_client())
            except Exception:
                logger.exception("Precheck crashed for %s; scheduling anyway", task.name)
                return False

    async def _execute(
        self, semaphore: asyncio.Semaphore, task: RepoTask
    ) -> tuple[RepoTask, RepositoryOutcome | None, str]:
        async with semaphore:
            self._active += 1
            self._peak_active = max(self._peak_active, self._active)
            try:
                outcome = await asyncio.to_thread(self._task_runner, task)
                return task, outcome, ""
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                logger.error("Task failed: %s: %s", task.name, message)
                return task, None, message
            finally:
                self._active -= 1

    async def run(self, tasks: list[RepoTask]) -> BatchResult:
        result = BatchResult(total=len(tasks))
        if not tasks:
            return result
        semaphore = asyncio.Semaphore(self._max_concurrent)

        unique, duplicates = dedupe_tasks(tasks)
        for task, original in duplicates:
            result.skipped += 1
            result.skipped_tasks.append(task.name)
            self.reporter.emit(
                ProgressEvent(
                    task.name, "precheck", STATUS_SKIPPED, f"duplicate of {original.name}"
                )
            )

        skip_flags = await asyncio.gather(*(self._precheck(semaphore, task) for task in unique))
        admitted: list[RepoTask] = []
        for task, skip in zip(unique, skip_flags, strict=True):
            if skip:
                result.skipped += 1
                result.skipped_tasks.append(task.name)
                self.reporter.emit(
                    ProgressEvent(task.name, "precheck", STATUS_SKIPPED, "already migrated")
                )
            else:
                admitted.append(task)

        logger.info(
            "Scheduling %d repositories (%d skipped, concurrency %d)",
            len(admitted),
            result.skipped,
            self._max_concurrent,
        )
        finished = await asyncio.gather(*(self._execute(semaphore, task) for task in admitted))
        for task, outcome, error in finished:
            if outcome is not None and outcome.ok:
                result.completed += 1
                continue
            message = error or (outcome.error if outcome is not None else "") or "unknown error"
            result.failed += 1
            result.errors.append(TaskError(task=task.name, message=message))
            self.reporter.emit(ProgressEvent(task.name, "task", STATUS_FAILED, message))

        result.peak_active = self._peak_active
        logger.info(
            "Batch finished: %d completed, %d failed, %d skipped",
            result.completed,
            result.failed,
            result.skipped,
        )
        return result


async def run_batch(
    tasks: list[RepoTask],
    concurrency_limit: int,
    provider: StrategyProvider,
    *,
    settings: Settings,
    reporter: Reporter | None = None,
) -> BatchResult:
    scheduler = BatchScheduler(
        settings,
        provider,
        concurrency_limit=concurrency_limit,
        reporter=reporter,
    )
    return await scheduler.run(tasks)


def run_batch_sync(
    tasks: list[RepoTask],
    concurrency_limit: int,
    provider: StrategyProvider,
    *,
    settings: Settings,
    reporter: Reporter | None = None,
) -> BatchResult:
    return asyncio.run(
        run_batch(tasks, concurrency_limit, provider, settings=settings, reporter=reporter)
    )

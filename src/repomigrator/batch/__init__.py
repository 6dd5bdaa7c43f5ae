"""Batch migration package."""

from repomigrator.batch.precheck import should_skip
from repomigrator.batch.registry import load_registry, parse_registry
from repomigrator.batch.scheduler import BatchScheduler, run_batch, run_batch_sync
from repomigrator.batch.types import BatchResult, RepoTask, TaskError

__all__ = [
    "BatchResult",
    "BatchScheduler",
    "RepoTask",
    "TaskError",
    "load_registry",
    "parse_registry",
    "run_batch",
    "run_batch_sync",
    "should_skip",
]

"""Per-repository migration pipeline."""

from repomigrator.migration.contracts import (
    MIGRATION_BRANCH,
    MigrationState,
    RepositoryOutcome,
    RepositoryState,
)
from repomigrator.migration.pipeline import RepositoryStateMachine, migrate_repository

__all__ = [
    "MIGRATION_BRANCH",
    "MigrationState",
    "RepositoryOutcome",
    "RepositoryState",
    "RepositoryStateMachine",
    "migrate_repository",
]

"""Clone-free check for repositories that are already migrated."""

from __future__ import annotations

import logging

from repomigrator.git import GitClient
from repomigrator.migration.contracts import MIGRATION_BRANCH

logger = logging.getLogger(__name__)

MIGRATED_BRANCHES = frozenset({"1.x", MIGRATION_BRANCH})


def should_skip(url: str, git: GitClient) -> bool:
    """True only when the remote already carries a migrated branch.

    A failed listing never causes a skip; the repository is scheduled instead.
    """
    listing = git.list_remote_heads(url)
    if not listing.ok:
        logger.warning("Remote precheck failed for %s; scheduling anyway: %s", url, listing.error)
        return False
    present = MIGRATED_BRANCHES.intersection(listing.branches)
    if present:
        logger.info("Skipping %s: remote already has %s", url, ", ".join(sorted(present)))
        return True
    return False

"""Migration artifact persistence.

The artifact doubles as the idempotency marker: once it exists at the
repository root, strategy generation is never repeated for that repository.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from repomigrator.migration.prompts import (
    DEFAULT_BASE_INSTRUCTIONS,
    EXECUTION_INSTRUCTIONS,
    SPECIFIC_STRATEGY_HEADING,
)

logger = logging.getLogger(__name__)

ARTIFACT_FILE = "CLAUDE.md"


def artifact_path(repo_root: Path) -> Path:
    return repo_root / ARTIFACT_FILE


def artifact_exists(repo_root: Path) -> bool:
    return artifact_path(repo_root).is_file()


def load_base_instructions(path: str = "") -> str:
    if not path.strip():
        return DEFAULT_BASE_INSTRUCTIONS
    return Path(path).expanduser().read_text(encoding="utf-8")


def render_artifact(strategy: str, base_instructions: str) -> str:
    return (
        f"{base_instructions.rstrip()}\n\n"
        f"{SPECIFIC_STRATEGY_HEADING}\n\n"
        f"{strategy.strip()}\n\n"
        f"{EXECUTION_INSTRUCTIONS}"
    )


def write_artifact(repo_root: Path, strategy: str, base_instructions: str) -> Path:
    """Write the artifact through a temp file so a partial write never looks complete."""
    path = artifact_path(repo_root)
    fd, temp_name = tempfile.mkstemp(dir=repo_root, prefix=f".{ARTIFACT_FILE}.", suffix=".tmp")
    try:
        with open(fd, "w", encoding="utf-8") as handle:
            handle.write(render_artifact(strategy, base_instructions))
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
    logger.info("Migration instructions written to %s", path)
    return path

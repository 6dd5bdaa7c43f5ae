import os
from pathlib import Path

import pytest

from repomigrator.migration.artifact import (
    ARTIFACT_FILE,
    artifact_exists,
    load_base_instructions,
    render_artifact,
    write_artifact,
)
from repomigrator.migration.prompts import (
    DEFAULT_BASE_INSTRUCTIONS,
    EXECUTION_INSTRUCTIONS,
    SPECIFIC_STRATEGY_HEADING,
)


def test_write_artifact_combines_sections(tmp_path: Path) -> None:
    assert not artifact_exists(tmp_path)
    path = write_artifact(tmp_path, "1. Rename Account to Entity\n", "# Base\n")
    assert path == tmp_path / ARTIFACT_FILE
    assert artifact_exists(tmp_path)
    text = path.read_text(encoding="utf-8")
    assert text.startswith("# Base\n\n")
    assert SPECIFIC_STRATEGY_HEADING in text
    assert "1. Rename Account to Entity" in text
    assert text.endswith(EXECUTION_INSTRUCTIONS)
    assert text.index(SPECIFIC_STRATEGY_HEADING) < text.index("## MIGRATION EXECUTION")


def test_base_instructions_default_and_override(tmp_path: Path) -> None:
    assert load_base_instructions("") == DEFAULT_BASE_INSTRUCTIONS
    custom = tmp_path / "base.md"
    custom.write_text("# Custom guide\n", encoding="utf-8")
    assert load_base_instructions(str(custom)) == "# Custom guide\n"


def test_render_is_deterministic() -> None:
    assert render_artifact("plan", "base") == render_artifact("plan", "base")


def test_failed_write_leaves_no_partial_artifact(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_replace(_src, _dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(os, "replace", failing_replace)
    with pytest.raises(OSError, match="No space left"):
        write_artifact(tmp_path, "1. Do it", "# Base")
    assert not artifact_exists(tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_rewrite_replaces_existing_artifact(tmp_path: Path) -> None:
    (tmp_path / ARTIFACT_FILE).write_text("truncated", encoding="utf-8")
    write_artifact(tmp_path, "1. Full plan", "# Base")
    assert "1. Full plan" in (tmp_path / ARTIFACT_FILE).read_text(encoding="utf-8")
    assert [p.name for p in tmp_path.iterdir()] == [ARTIFACT_FILE]

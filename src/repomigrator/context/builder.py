"""Assemble a token-budgeted context blob from a repository checkout."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from repomigrator.context.types import AssembledContext, ContextBudget, ContextFile
from repomigrator.tokenizer import Tokenizer

logger = logging.getLogger(__name__)

README_FILE = "README.md"
MANIFEST_FILE = "package.json"

ENTRYPOINT_CANDIDATES = (
    "index.ts",
    "src/index.ts",
    "index.js",
    "src/index.js",
)

SOURCE_EXTENSIONS = (".ts", ".js")

IGNORED_DIRS = {
    ".git",
    "node_modules",
    "dist",
    "build",
    "coverage",
    "__tests__",
    "test",
    "tests",
}

IGNORED_FILE_PATTERNS = ("*.test.*", "*.spec.*")

_BINARY_SNIFF_BYTES = 4096


def _read_text(path: Path) -> str | None:
    """Return file text, or None for anything unreadable or binary."""
    try:
        raw = path.read_bytes()
    except OSError:
        return None
    if b"\x00" in raw[:_BINARY_SNIFF_BYTES]:
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _fence_for(rel_path: str) -> str:
    if rel_path == README_FILE:
        return ""
    if rel_path.endswith(".json"):
        return "json"
    return "typescript"


def _is_ignored_file(name: str) -> bool:
    return any(fnmatch.fnmatch(name, pattern) for pattern in IGNORED_FILE_PATTERNS)


def _sort_key(rel_path: str) -> tuple[int, str]:
    return (len(rel_path.split("/")), rel_path)


def list_source_candidates(repo_root: Path) -> list[str]:
    """Source files in priority order: shallow paths first, then lexicographic."""
    found: list[str] = []
    for root, dirs, filenames in os.walk(repo_root):
        dirs[:] = [d for d in dirs if d not in IGNORED_DIRS]
        for name in filenames:
            if not name.endswith(SOURCE_EXTENSIONS) or _is_ignored_file(name):
                continue
            path = Path(root) / name
            if not path.is_file():
                continue
            found.append(path.relative_to(repo_root).as_posix())
    found.sort(key=_sort_key)
    return found


def find_entrypoint(repo_root: Path) -> str | None:
    for candidate in ENTRYPOINT_CANDIDATES:
        if (repo_root / candidate).is_file():
            return candidate
    return None


def _load(repo_root: Path, rel_path: str, tokenizer: Tokenizer) -> ContextFile | None:
    content = _read_text(repo_root / rel_path)
    if content is None:
        return None
    return ContextFile(
        path=rel_path,
        content=content,
        token_count=tokenizer.count(content),
        fence=_fence_for(rel_path),
    )


def render_block(item: ContextFile) -> str:
    if not item.fence:
        return f"# {item.path}\n\n{item.content}\n\n"
    return f"# {item.path}\n\n```{item.fence}\n{item.content}\n```\n\n"


def assemble_context(repo_root: Path, max_tokens: int, tokenizer: Tokenizer) -> AssembledContext:
    """Select and order repository files under a hard token ceiling.

    README, manifest and the first matching entrypoint are always included,
    whatever they cost. Remaining source files are appended first-fit in
    priority order; the first file that would overflow the budget ends the
    selection, so nothing after it is considered.
    """
    budget = ContextBudget(max_tokens=max_tokens)

    entrypoint = find_entrypoint(repo_root)
    priority_paths = [README_FILE, MANIFEST_FILE]
    if entrypoint is not None:
        priority_paths.append(entrypoint)

    for rel_path in priority_paths:
        if not (repo_root / rel_path).is_file():
            continue
        item = _load(repo_root, rel_path, tokenizer)
        if item is None:
            logger.debug("Skipping unreadable priority file %s", rel_path)
            continue
        budget.add_priority(item)

    excluded: list[str] = []
    candidates = [path for path in list_source_candidates(repo_root) if path != entrypoint]
    for index, rel_path in enumerate(candidates):
        item = _load(repo_root, rel_path, tokenizer)
        if item is None:
            continue
        if not budget.try_add(item):
            excluded = candidates[index:]
            logger.info(
                "Reached token limit; included %d source files", budget.budgeted_count
            )
            break

    text = "".join(render_block(item) for item in budget.included_files)
    logger.info("Context tokens: %d/%d", budget.running_total, max_tokens)
    return AssembledContext(
        text=text,
        total_tokens=budget.running_total,
        budget=budget,
        excluded=excluded,
    )

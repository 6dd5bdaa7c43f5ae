"""Load and parse the repository registry that drives batch runs."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

import httpx

from repomigrator.batch.types import RepoTask
from repomigrator.errors import RegistryError

logger = logging.getLogger(__name__)

PROVIDER_URL_TEMPLATES = {
    "github": "https://github.com/{owner}/{repo}",
}

_REFERENCE_RE = re.compile(r"^([a-z][a-z0-9_-]*):([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$")


def _read_source(source: str, *, timeout_seconds: int) -> str:
    if source.startswith(("http://", "https://")):
        try:
            response = httpx.get(source, timeout=timeout_seconds, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RegistryError(f"failed to fetch registry {source}: {exc}") from exc
        return response.text
    path = Path(source).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RegistryError(f"failed to read registry {path}: {exc}") from exc


def reference_to_url(reference: str) -> str | None:
    """Map ``"<provider>:<owner>/<repo>"`` to a clone URL, or None if it does not match."""
    match = _REFERENCE_RE.match(reference.strip())
    if match is None:
        return None
    provider, owner, repo = match.groups()
    template = PROVIDER_URL_TEMPLATES.get(provider)
    if template is None:
        return None
    return template.format(owner=owner, repo=repo)


def parse_registry(data: object) -> list[RepoTask]:
    if not isinstance(data, dict):
        raise RegistryError("registry must be a JSON object")
    tasks: list[RepoTask] = []
    for name, value in data.items():
        if not isinstance(value, str):
            logger.debug("Ignoring registry entry %s: value is not a string", name)
            continue
        url = reference_to_url(value)
        if url is None:
            logger.debug("Ignoring registry entry %s: %r", name, value)
            continue
        tasks.append(RepoTask(name=str(name), url=url))
    return tasks


def load_registry(source: str, *, timeout_seconds: int = 30) -> list[RepoTask]:
    raw = _read_source(source, timeout_seconds=timeout_seconds)
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RegistryError(f"registry is not valid JSON: {exc}") from exc
    tasks = parse_registry(decoded)
    logger.info("Loaded %d repositories from registry", len(tasks))
    return tasks

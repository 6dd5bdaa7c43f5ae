"""Click entrypoint: migrate one repository or a whole registry."""

from __future__ import annotations

import json
import sys

import click

from repomigrator import __version__
from repomigrator.batch import load_registry, run_batch_sync
from repomigrator.batch.types import BatchResult
from repomigrator.config import Settings, get_settings, validate_settings_for_run
from repomigrator.errors import ConfigurationError, MigratorError, RegistryError
from repomigrator.logging import configure_logging
from repomigrator.migration import MIGRATION_BRANCH, migrate_repository
from repomigrator.migration.executor import CliMigrationExecutor
from repomigrator.providers.factory import build_strategy_provider
from repomigrator.reporting import ConsoleReporter, LogReporter
from repomigrator.tokenizer import TiktokenTokenizer


def _apply_overrides(
    settings: Settings,
    *,
    api_key: str | None,
    concurrency: int | None,
    workspace: str | None,
    max_context_tokens: int | None,
) -> Settings:
    updates: dict[str, object] = {}
    if api_key:
        updates["anthropic_api_key"] = api_key
    if concurrency is not None:
        updates["batch_concurrency"] = concurrency
    if workspace:
        updates["workspace_dir"] = workspace
    if max_context_tokens is not None:
        updates["context_max_tokens"] = max_context_tokens
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def format_batch_report(result: BatchResult, *, json_output: bool) -> str:
    if json_output:
        return json.dumps(result.as_dict(), indent=2, sort_keys=True)
    lines = [
        "Batch report",
        f"  total:     {result.total}",
        f"  completed: {result.completed}",
        f"  failed:    {result.failed}",
        f"  skipped:   {result.skipped}",
    ]
    for item in result.errors:
        lines.append(f"  - {item.task}: {item.message}")
    return "\n".join(lines)


def _run_single(source: str, settings: Settings, json_output: bool) -> None:
    provider = build_strategy_provider(settings)
    try:
        outcome = migrate_repository(
            source,
            settings=settings,
            provider=provider,
            tokenizer=TiktokenTokenizer(),
            executor=CliMigrationExecutor(settings, stream_output=not json_output),
            git_clients={},
            reporter=ConsoleReporter(),
        )
    except (MigratorError, OSError) as exc:
        _fail(f"Migration failed: {exc}")
        return
    finally:
        provider.close()

    if json_output:
        payload = {
            "name": outcome.name,
            "state": outcome.state.value,
            "local_path": str(outcome.local_path) if outcome.local_path else "",
            "branch": outcome.branch,
            "strategy_generated": outcome.strategy_generated,
            "executor_ran": outcome.executor_ran,
            "fallback_command": outcome.fallback_command,
            "tests_passed": outcome.tests_passed,
            "pushed": outcome.pushed,
        }
        click.echo(json.dumps(payload, indent=2, sort_keys=True))
        return
    if not outcome.executor_ran:
        click.echo(
            click.style(
                f"Migration prepared on {MIGRATION_BRANCH}; run the executor manually, then push.",
                fg="yellow",
            )
        )
        return
    click.echo(click.style("Migration complete!", fg="green"))
    click.echo(f"Branch {MIGRATION_BRANCH} has been created with all changes.")


def _run_registry(registry: str, settings: Settings, json_output: bool) -> None:
    try:
        tasks = load_registry(registry, timeout_seconds=settings.registry_timeout_seconds)
    except RegistryError as exc:
        _fail(str(exc))
        return
    provider = build_strategy_provider(settings)
    try:
        result = run_batch_sync(
            tasks,
            settings.batch_concurrency,
            provider,
            settings=settings,
            reporter=LogReporter(),
        )
    finally:
        provider.close()
    click.echo(format_batch_report(result, json_output=json_output))


@click.command()
@click.argument("source", required=False)
@click.option(
    "--registry",
    type=str,
    default=None,
    help="Path or URL of a JSON registry mapping names to provider:owner/repo.",
)
@click.option("--api-key", type=str, default=None, help="Overrides ANTHROPIC_API_KEY.")
@click.option("--concurrency", type=click.IntRange(min=1), default=None, help="Batch worker limit.")
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=str),
    default=None,
    help="Directory that receives clones (default: WORKSPACE_DIR).",
)
@click.option("--max-context-tokens", type=click.IntRange(min=1), default=None)
@click.option("--json", "json_output", is_flag=True, help="Print the result as JSON.")
@click.version_option(__version__, prog_name="repomigrator")
def cli(
    source: str | None,
    registry: str | None,
    api_key: str | None,
    concurrency: int | None,
    workspace: str | None,
    max_context_tokens: int | None,
    json_output: bool,
) -> None:
    """Migrate a repository (GitHub URL or local folder) or every repository in a registry."""
    if bool(source) == bool(registry):
        raise click.UsageError("Provide either a repository SOURCE or --registry, not both.")

    settings = _apply_overrides(
        get_settings(),
        api_key=api_key,
        concurrency=concurrency,
        workspace=workspace,
        max_context_tokens=max_context_tokens,
    )
    configure_logging(settings.log_level, app_env=settings.app_env)
    try:
        validate_settings_for_run(settings)
    except ConfigurationError as exc:
        _fail(str(exc))
        return

    if registry:
        _run_registry(registry, settings, json_output)
    else:
        assert source is not None
        _run_single(source, settings, json_output)


def main() -> None:
    cli()

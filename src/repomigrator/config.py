"""Application configuration contract."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from repomigrator.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")

    anthropic_api_key: str = Field(alias="ANTHROPIC_API_KEY", default="")
    anthropic_base_url: str = Field(alias="ANTHROPIC_BASE_URL", default="https://api.anthropic.com")
    anthropic_version: str = Field(alias="ANTHROPIC_VERSION", default="2023-06-01")
    strategy_model: str = Field(alias="STRATEGY_MODEL", default="claude-opus-4-20250514")
    strategy_fallback_model: str = Field(
        alias="STRATEGY_FALLBACK_MODEL", default="claude-3-sonnet-20240229"
    )
    strategy_max_tokens: int = Field(alias="STRATEGY_MAX_TOKENS", default=8192)
    strategy_fallback_max_tokens: int = Field(alias="STRATEGY_FALLBACK_MAX_TOKENS", default=4000)
    strategy_timeout_seconds: int = Field(alias="STRATEGY_TIMEOUT_SECONDS", default=600)

    context_max_tokens: int = Field(alias="CONTEXT_MAX_TOKENS", default=20000)
    workspace_dir: str = Field(alias="WORKSPACE_DIR", default=".")
    batch_concurrency: int = Field(alias="BATCH_CONCURRENCY", default=4)
    registry_timeout_seconds: int = Field(alias="REGISTRY_TIMEOUT_SECONDS", default=30)
    base_instructions_path: str = Field(alias="BASE_INSTRUCTIONS_PATH", default="")

    executor_command: str = Field(alias="EXECUTOR_COMMAND", default="claude")
    executor_model: str = Field(alias="EXECUTOR_MODEL", default="opus")
    executor_max_turns: int = Field(alias="EXECUTOR_MAX_TURNS", default=30)
    executor_timeout_seconds: int = Field(alias="EXECUTOR_TIMEOUT_SECONDS", default=3600)
    test_command: str = Field(alias="TEST_COMMAND", default="npm test")
    test_timeout_seconds: int = Field(alias="TEST_TIMEOUT_SECONDS", default=900)

    git_timeout_seconds: int = Field(alias="GIT_TIMEOUT_SECONDS", default=30)
    git_network_timeout_seconds: int = Field(alias="GIT_NETWORK_TIMEOUT_SECONDS", default=300)


def validate_settings_for_run(settings: Settings) -> None:
    """Check run preconditions; a missing API key aborts single and batch mode alike."""
    if not settings.anthropic_api_key.strip():
        raise ConfigurationError(
            "ANTHROPIC_API_KEY is required for migration strategy generation"
        )

    invalid: list[str] = []
    if settings.context_max_tokens <= 0:
        invalid.append("CONTEXT_MAX_TOKENS(must be > 0)")
    if settings.batch_concurrency <= 0:
        invalid.append("BATCH_CONCURRENCY(must be > 0)")
    if settings.executor_max_turns <= 0:
        invalid.append("EXECUTOR_MAX_TURNS(must be > 0)")
    if not settings.executor_command.strip():
        invalid.append("EXECUTOR_COMMAND")

    if invalid:
        keys = ", ".join(sorted(set(invalid)))
        raise ConfigurationError(f"invalid configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

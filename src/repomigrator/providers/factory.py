"""Provider construction helpers."""

from repomigrator.config import Settings
from repomigrator.providers.anthropic import AnthropicProvider
from repomigrator.providers.base import StrategyProvider


def build_strategy_provider(settings: Settings) -> StrategyProvider:
    return AnthropicProvider(
        settings.anthropic_api_key,
        model=settings.strategy_model,
        base_url=settings.anthropic_base_url,
        api_version=settings.anthropic_version,
        max_tokens=settings.strategy_max_tokens,
        timeout_seconds=settings.strategy_timeout_seconds,
    )

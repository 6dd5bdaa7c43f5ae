"""Turn an assembled repository context into a migration plan."""

from __future__ import annotations

import logging

from repomigrator.config import Settings
from repomigrator.errors import ModelUnavailableError
from repomigrator.migration.prompts import (
    EMPTY_CONTEXT_NOTE,
    STRATEGY_PROMPT_INTRO,
    STRATEGY_PROMPT_TASK,
)
from repomigrator.providers.base import StrategyProvider, StrategyResponse

logger = logging.getLogger(__name__)


def build_strategy_prompt(context: str) -> str:
    body = context if context.strip() else EMPTY_CONTEXT_NOTE
    return f"{STRATEGY_PROMPT_INTRO}{body}{STRATEGY_PROMPT_TASK}"


def generate_strategy(
    provider: StrategyProvider,
    context: str,
    settings: Settings,
) -> StrategyResponse:
    """Ask the model for a plan, retrying once on the fallback model if the primary is missing.

    An empty context is valid input. Refusals and transport failures surface
    as GenerationError from the provider.
    """
    prompt = build_strategy_prompt(context)
    try:
        return provider.complete(
            prompt,
            model=settings.strategy_model,
            max_tokens=settings.strategy_max_tokens,
        )
    except ModelUnavailableError:
        fallback = settings.strategy_fallback_model.strip()
        if not fallback or fallback == settings.strategy_model:
            raise
        logger.warning(
            "Model %s not available; falling back to %s", settings.strategy_model, fallback
        )
        return provider.complete(
            prompt,
            model=fallback,
            max_tokens=settings.strategy_fallback_max_tokens,
        )

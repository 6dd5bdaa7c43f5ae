import pytest
from conftest import FakeProvider

from repomigrator.config import Settings
from repomigrator.errors import GenerationError, ModelUnavailableError
from repomigrator.migration.prompts import EMPTY_CONTEXT_NOTE
from repomigrator.migration.strategy import build_strategy_prompt, generate_strategy
from repomigrator.providers.base import StrategyResponse


class _MissingPrimary(FakeProvider):
    def complete(self, prompt, *, model=None, max_tokens=None, temperature=0.0):
        if model == "primary":
            self.models.append(model)
            raise ModelUnavailableError("model not available: primary")
        return super().complete(prompt, model=model, max_tokens=max_tokens)


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "ANTHROPIC_API_KEY": "k",
        "STRATEGY_MODEL": "primary",
        "STRATEGY_FALLBACK_MODEL": "secondary",
    }
    values.update(overrides)
    return Settings(**values)


def test_prompt_embeds_context_between_requirements_and_task() -> None:
    prompt = build_strategy_prompt("# README.md\n\nhello\n\n")
    assert "## Repository Context:" in prompt
    assert "# README.md" in prompt
    assert prompt.index("# README.md") < prompt.index("## Task:")


def test_empty_context_is_valid_input() -> None:
    provider = FakeProvider(text="generic plan")
    response = generate_strategy(provider, "", _settings())
    assert response.text == "generic plan"
    assert EMPTY_CONTEXT_NOTE in provider.prompts[0]


def test_falls_back_when_primary_model_missing() -> None:
    provider = _MissingPrimary()
    response = generate_strategy(provider, "ctx", _settings())
    assert isinstance(response, StrategyResponse)
    assert provider.models == ["primary", "secondary"]
    assert response.model == "secondary"


def test_no_fallback_when_fallback_matches_primary() -> None:
    provider = _MissingPrimary()
    with pytest.raises(ModelUnavailableError):
        generate_strategy(provider, "ctx", _settings(STRATEGY_FALLBACK_MODEL="primary"))


def test_refusal_is_not_retried() -> None:
    class _Refusing(FakeProvider):
        def complete(self, prompt, *, model=None, max_tokens=None, temperature=0.0):
            self.models.append(model)
            raise GenerationError("model refused", retryable=False)

    provider = _Refusing()
    with pytest.raises(GenerationError, match="refused"):
        generate_strategy(provider, "ctx", _settings())
    assert provider.models == ["primary"]

"""Provider contracts."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(slots=True)
class StrategyResponse:
    text: str
    model: str
    stop_reason: str = ""


class StrategyProvider(Protocol):
    """Single request, single text response; implementations hold no session state."""

    def complete(
        self,
        prompt: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.0,
    ) -> StrategyResponse: ...

    def close(self) -> None: ...

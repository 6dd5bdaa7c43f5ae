"""Types for token-budgeted repository context."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ContextFile:
    path: str
    content: str
    token_count: int
    fence: str = ""
    priority: bool = False


@dataclass(slots=True)
class ContextBudget:
    max_tokens: int
    running_total: int = 0
    included_files: list[ContextFile] = field(default_factory=list)

    def add_priority(self, item: ContextFile) -> None:
        """Append a priority file regardless of its cost."""
        item.priority = True
        self.included_files.append(item)
        self.running_total += item.token_count

    def fits(self, token_count: int) -> bool:
        return self.running_total + token_count <= self.max_tokens

    def try_add(self, item: ContextFile) -> bool:
        """Append a budgeted file only if the running total stays within the ceiling."""
        if not self.fits(item.token_count):
            return False
        self.included_files.append(item)
        self.running_total += item.token_count
        return True

    @property
    def budgeted_count(self) -> int:
        return sum(1 for item in self.included_files if not item.priority)


@dataclass(slots=True)
class AssembledContext:
    text: str
    total_tokens: int
    budget: ContextBudget
    excluded: list[str] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        return [item.path for item in self.budget.included_files]

"""Types for batch migration runs."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class RepoTask:
    name: str
    url: str


@dataclass(slots=True, frozen=True)
class TaskError:
    task: str
    message: str


@dataclass(slots=True)
class BatchResult:
    total: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[TaskError] = field(default_factory=list)
    skipped_tasks: list[str] = field(default_factory=list)
    peak_active: int = 0

    @property
    def accounted(self) -> int:
        return self.completed + self.failed + self.skipped

    def as_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "completed": self.completed,
            "failed": self.failed,
            "skipped": self.skipped,
            "skipped_tasks": list(self.skipped_tasks),
            "errors": [{"task": item.task, "message": item.message} for item in self.errors],
            "peak_active": self.peak_active,
        }

"""
Scheduled task interface and the registry the runner resolves tasks from.

A task splits its work into independent items: ``prepare_items`` selects
them once per run and ``execute_item`` handles exactly one.  The runner
wraps every ``execute_item`` call in a savepoint, so a task never begins,
commits or rolls back a transaction itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from property_batch.types import BatchItemStatus


@dataclass(frozen=True)
class BatchItemInput:
    """One unit of work; ``item_key`` is the id reported back in results."""

    item_index: int
    item_key: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchTaskResult:
    status: BatchItemStatus
    result_data: dict[str, Any] | None = None
    error_code: str | None = None
    error_message: str | None = None


@runtime_checkable
class BatchTask(Protocol):
    """What the runner needs from a scheduled task.

    ``prepare_items`` must return an immutable tuple; it runs once, before
    any item executes, against the same session and ``as_of`` time.
    """

    @property
    def task_type(self) -> str: ...

    @property
    def description(self) -> str: ...

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]: ...

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult: ...


class TaskRegistry:
    """Tasks keyed by ``task_type``; a type can be registered only once."""

    def __init__(self) -> None:
        self._tasks: dict[str, BatchTask] = {}

    def register(self, task: BatchTask) -> BatchTask:
        if task.task_type in self._tasks:
            raise ValueError(f"Task type '{task.task_type}' is already registered")
        self._tasks[task.task_type] = task
        return task

    def get(self, task_type: str) -> BatchTask:
        task = self._tasks.get(task_type)
        if task is None:
            raise KeyError(
                f"No task registered for type '{task_type}'. "
                f"Available: {list(self.list_tasks())}"
            )
        return task

    def list_tasks(self) -> tuple[str, ...]:
        return tuple(sorted(self._tasks))

    def describe(self) -> dict[str, str]:
        """task_type -> human-readable description, sorted by type."""
        return {name: self._tasks[name].description for name in self.list_tasks()}

    def __iter__(self) -> Iterator[BatchTask]:
        return (self._tasks[name] for name in self.list_tasks())

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_type: object) -> bool:
        return task_type in self._tasks

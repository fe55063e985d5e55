"""
Batch result DTOs.

Frozen value objects produced by ``BatchRunner``; no ORM, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class BatchItemStatus(str, Enum):
    """Per-item outcome within a batch run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"  # Intentionally skipped (e.g., no longer eligible)


class BatchRunStatus(str, Enum):
    COMPLETED = "completed"  # Every item succeeded or was skipped
    PARTIALLY_COMPLETED = "partially_completed"
    FAILED = "failed"  # prepare_items raised, or every item failed


@dataclass(frozen=True)
class BatchItemResult:
    """Immutable result of processing a single batch item.

    Each item runs in its own SAVEPOINT -- failure of one item does not
    abort the run.
    """

    item_index: int
    item_key: str  # Business identifier (e.g., pdc_id)
    status: BatchItemStatus
    error_code: str | None = None
    error_message: str | None = None
    result_data: dict[str, Any] | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class BatchRunResult:
    """Immutable result of one ``BatchRunner.run()`` call."""

    run_id: UUID
    task_type: str
    status: BatchRunStatus
    total_items: int
    succeeded: int
    failed: int
    skipped: int
    item_results: tuple[BatchItemResult, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    error_message: str | None = None

    @property
    def failures(self) -> tuple[BatchItemResult, ...]:
        return tuple(r for r in self.item_results if r.status == BatchItemStatus.FAILED)

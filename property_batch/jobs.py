"""
Daily scheduler entry point.

Each job runs in its own transaction through ``session_scope``: the due
transition is committed before the reminder job selects DUE cheques, and a
failed job does not undo the jobs that ran before it.

    results = run_jobs(build_default_registry(factory), DAILY_PDC_JOBS)
"""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

from property_batch.runner import BatchRunner
from property_batch.tasks.base import TaskRegistry
from property_batch.types import BatchRunResult
from property_kernel.db.engine import session_scope
from property_kernel.domain.clock import Clock
from property_kernel.logging_config import get_logger

logger = get_logger("batch.jobs")

DAILY_PDC_JOBS = ("pdc.due_transition", "pdc.due_reminders")


def run_jobs(
    registry: TaskRegistry,
    task_types: Iterable[str] = DAILY_PDC_JOBS,
    clock: Clock | None = None,
    actor_id: UUID | None = None,
) -> tuple[BatchRunResult, ...]:
    """Run each task type in order, committing after each one."""
    results = []
    for task_type in task_types:
        with session_scope() as session:
            result = BatchRunner(session, registry, clock).run(task_type, actor_id=actor_id)
        results.append(result)

    logger.info(
        "scheduled_jobs_completed",
        extra={
            "jobs": [r.task_type for r in results],
            "statuses": [r.status.value for r in results],
        },
    )
    return tuple(results)

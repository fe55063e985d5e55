"""
BatchRunner -- SAVEPOINT-per-item execution of scheduled tasks.

Contract:
    ``run()`` resolves a task from the registry, asks it for its items and
    executes each one inside its own SAVEPOINT.  A failing item is rolled
    back and recorded; the remaining items still run.

Non-goals:
    - Does NOT call ``session.commit()`` -- the caller (scheduler entry
      point) owns the outer transaction.
    - No job persistence or retries; each run is one pass over the items.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from property_batch.tasks.base import BatchTask, TaskRegistry
from property_batch.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchRunResult,
    BatchRunStatus,
)
from property_kernel.domain.clock import Clock, SystemClock
from property_kernel.exceptions import TaskNotRegisteredError
from property_kernel.logging_config import LogContext, get_logger

logger = get_logger("batch.runner")


class BatchRunner:
    def __init__(
        self,
        session: Session,
        registry: TaskRegistry,
        clock: Clock | None = None,
    ):
        self._session = session
        self._registry = registry
        self._clock = clock or SystemClock()

    def run(
        self,
        task_type: str,
        actor_id: UUID | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> BatchRunResult:
        """Execute every item the task prepares.

        Raises:
            TaskNotRegisteredError: If task_type is not in the registry.
        """
        if task_type not in self._registry:
            raise TaskNotRegisteredError(task_type, self._registry.list_tasks())
        task = self._registry.get(task_type)
        params = dict(parameters or {})
        if actor_id is not None:
            params.setdefault("actor_id", str(actor_id))

        run_id = uuid4()
        with LogContext.bind(
            job_id=str(run_id),
            actor_id=str(actor_id) if actor_id else None,
        ):
            return self._run(task, run_id, params)

    def _run(self, task: BatchTask, run_id: UUID, params: dict[str, Any]) -> BatchRunResult:
        start_time = time.monotonic()
        started_at = self._clock.now()
        logger.info(
            "batch_run_started",
            extra={"task_type": task.task_type, "as_of": started_at.isoformat()},
        )

        try:
            items = task.prepare_items(parameters=params, session=self._session, as_of=started_at)
        except Exception as exc:
            logger.error(
                "batch_prepare_failed",
                extra={"task_type": task.task_type, "error": str(exc)},
                exc_info=True,
            )
            return BatchRunResult(
                run_id=run_id,
                task_type=task.task_type,
                status=BatchRunStatus.FAILED,
                total_items=0,
                succeeded=0,
                failed=0,
                skipped=0,
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=int((time.monotonic() - start_time) * 1000),
                error_message=f"prepare_items failed: {exc}",
            )

        item_results = tuple(
            self._execute_item(task, item, params, started_at) for item in items
        )
        succeeded = sum(1 for r in item_results if r.status == BatchItemStatus.SUCCEEDED)
        failed = sum(1 for r in item_results if r.status == BatchItemStatus.FAILED)
        skipped = len(item_results) - succeeded - failed

        if failed == 0:
            status = BatchRunStatus.COMPLETED
        elif succeeded == 0 and skipped == 0:
            status = BatchRunStatus.FAILED
        else:
            status = BatchRunStatus.PARTIALLY_COMPLETED

        self._session.flush()
        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            "batch_run_completed",
            extra={
                "task_type": task.task_type,
                "status": status.value,
                "total_items": len(items),
                "succeeded": succeeded,
                "failed": failed,
                "skipped": skipped,
                "duration_ms": duration_ms,
            },
        )
        return BatchRunResult(
            run_id=run_id,
            task_type=task.task_type,
            status=status,
            total_items=len(items),
            succeeded=succeeded,
            failed=failed,
            skipped=skipped,
            item_results=item_results,
            started_at=started_at,
            completed_at=self._clock.now(),
            duration_ms=duration_ms,
            error_message=f"{failed} item(s) failed" if failed else None,
        )

    def _execute_item(self, task, item, params, as_of) -> BatchItemResult:
        with LogContext.bind(entity_id=item.item_key):
            return self._execute_item_in_savepoint(task, item, params, as_of)

    def _execute_item_in_savepoint(self, task, item, params, as_of) -> BatchItemResult:
        item_start = time.monotonic()
        savepoint = self._session.begin_nested()
        try:
            result = task.execute_item(
                item=item,
                parameters=params,
                session=self._session,
                as_of=as_of,
            )
        except Exception as exc:
            savepoint.rollback()
            logger.warning(
                "batch_item_failed",
                extra={
                    "task_type": task.task_type,
                    "item_key": item.item_key,
                    "error_code": "UNHANDLED_EXCEPTION",
                },
                exc_info=True,
            )
            return BatchItemResult(
                item_index=item.item_index,
                item_key=item.item_key,
                status=BatchItemStatus.FAILED,
                error_code="UNHANDLED_EXCEPTION",
                error_message=str(exc),
                duration_ms=int((time.monotonic() - item_start) * 1000),
            )

        if result.status == BatchItemStatus.SUCCEEDED:
            savepoint.commit()
        else:
            savepoint.rollback()
            if result.status == BatchItemStatus.FAILED:
                logger.warning(
                    "batch_item_failed",
                    extra={
                        "task_type": task.task_type,
                        "item_key": item.item_key,
                        "error_code": result.error_code or "UNKNOWN",
                        "error_message": result.error_message,
                    },
                )

        return BatchItemResult(
            item_index=item.item_index,
            item_key=item.item_key,
            status=result.status,
            error_code=result.error_code,
            error_message=result.error_message,
            result_data=result.result_data,
            duration_ms=int((time.monotonic() - item_start) * 1000),
        )

"""
Batch tasks: PDC module (due-window transition, due reminders).

Both tasks build a ``PDCService`` on the runner's session through the
injected factory, so collaborators are wired once at startup.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

from property_batch.tasks.base import BatchItemInput, BatchTaskResult
from property_batch.types import BatchItemStatus
from property_kernel.exceptions import PropertyKernelError
from property_modules.pdc.models import PDCStatus
from property_modules.pdc.service import PDCService

PDCServiceFactory = Callable[[Session], PDCService]


def _actor(parameters: dict[str, Any]) -> UUID | None:
    actor = parameters.get("actor_id")
    return UUID(str(actor)) if actor else None


def _as_date(as_of: datetime) -> date:
    return as_of.date() if isinstance(as_of, datetime) else as_of


class PDCDueTransitionTask:
    """Move RECEIVED cheques dated within the due window to DUE."""

    def __init__(self, service_factory: PDCServiceFactory):
        self._service_factory = service_factory

    @property
    def task_type(self) -> str:
        return "pdc.due_transition"

    @property
    def description(self) -> str:
        return "Mark RECEIVED cheques dated within the due window as DUE"

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        service = self._service_factory(session)
        return tuple(
            BatchItemInput(
                item_index=i,
                item_key=str(pdc.id),
                payload={"pdc_id": str(pdc.id), "cheque_number": pdc.cheque_number},
            )
            for i, pdc in enumerate(service.due_candidates(_as_date(as_of)))
        )

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        service = self._service_factory(session)
        try:
            pdc = service.advance_to_due(
                UUID(item.payload["pdc_id"]),
                as_of=_as_date(as_of),
                actor_id=_actor(parameters),
            )
        except PropertyKernelError as exc:
            return BatchTaskResult(
                status=BatchItemStatus.FAILED,
                error_code=exc.code,
                error_message=str(exc),
            )
        return BatchTaskResult(
            status=BatchItemStatus.SUCCEEDED,
            result_data={"pdc_id": str(pdc.id), "status": pdc.status.value},
        )


class PDCDueReminderTask:
    """Remind tenants of DUE cheques presented ``reminder_lead_days`` from now."""

    def __init__(self, service_factory: PDCServiceFactory):
        self._service_factory = service_factory

    @property
    def task_type(self) -> str:
        return "pdc.due_reminders"

    @property
    def description(self) -> str:
        return "Notify tenants of DUE cheques about to be presented"

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        service = self._service_factory(session)
        reminder_date = service.reminder_date(_as_date(as_of))
        return tuple(
            BatchItemInput(
                item_index=i,
                item_key=str(pdc.id),
                payload={"pdc_id": str(pdc.id), "cheque_date": pdc.cheque_date.isoformat()},
            )
            for i, pdc in enumerate(service.find_due_for_reminder(reminder_date))
        )

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        service = self._service_factory(session)
        result = service.get(UUID(item.payload["pdc_id"]))
        if not result.is_success:
            return BatchTaskResult(
                status=BatchItemStatus.FAILED,
                error_code=result.error_code,
                error_message=result.message,
            )
        if result.value.status != PDCStatus.DUE:
            return BatchTaskResult(status=BatchItemStatus.SKIPPED)
        if not service.send_due_reminder(result.value):
            return BatchTaskResult(
                status=BatchItemStatus.FAILED,
                error_code="REMINDER_NOT_SENT",
                error_message=f"Reminder for cheque {result.value.cheque_number} was not sent",
            )
        return BatchTaskResult(
            status=BatchItemStatus.SUCCEEDED,
            result_data={"pdc_id": item.payload["pdc_id"]},
        )

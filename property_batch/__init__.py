"""
Scheduled jobs for the property back office.

The daily PDC jobs run through ``BatchRunner`` so each cheque is isolated in
its own savepoint.  ``run_jobs`` gives every job its own transaction:

    registry = build_default_registry(lambda s: PDCService(s, invoices, payments, tenants))
    results = run_jobs(registry, DAILY_PDC_JOBS)

Inside an existing transaction, drive the runner directly and commit
yourself:

    result = BatchRunner(session, registry, clock).run("pdc.due_transition")
    session.commit()
"""

from property_batch.jobs import DAILY_PDC_JOBS, run_jobs
from property_batch.runner import BatchRunner
from property_batch.tasks import (
    BatchItemInput,
    BatchTask,
    BatchTaskResult,
    PDCDueReminderTask,
    PDCDueTransitionTask,
    PDCServiceFactory,
    TaskRegistry,
    pdc_task_registry,
)
from property_batch.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchRunResult,
    BatchRunStatus,
)


def build_default_registry(service_factory: PDCServiceFactory) -> TaskRegistry:
    """Registry holding every scheduled task the back office runs."""
    return pdc_task_registry(service_factory)


__all__ = [
    "DAILY_PDC_JOBS",
    "BatchItemInput",
    "BatchItemResult",
    "BatchItemStatus",
    "BatchRunResult",
    "BatchRunStatus",
    "BatchRunner",
    "BatchTask",
    "BatchTaskResult",
    "PDCDueReminderTask",
    "PDCDueTransitionTask",
    "PDCServiceFactory",
    "TaskRegistry",
    "build_default_registry",
    "pdc_task_registry",
    "run_jobs",
]

"""Scheduled tasks and the registry that maps task types to them."""

from property_batch.tasks.base import (
    BatchItemInput,
    BatchTask,
    BatchTaskResult,
    TaskRegistry,
)
from property_batch.tasks.pdc_tasks import (
    PDCDueReminderTask,
    PDCDueTransitionTask,
    PDCServiceFactory,
)


def pdc_task_registry(service_factory: PDCServiceFactory) -> TaskRegistry:
    """Registry with both PDC scheduler tasks."""
    registry = TaskRegistry()
    registry.register(PDCDueTransitionTask(service_factory))
    registry.register(PDCDueReminderTask(service_factory))
    return registry


__all__ = [
    "BatchItemInput",
    "BatchTask",
    "BatchTaskResult",
    "PDCDueReminderTask",
    "PDCDueTransitionTask",
    "PDCServiceFactory",
    "TaskRegistry",
    "pdc_task_registry",
]

"""TaskRegistry lookup and duplicate protection."""

import pytest

from property_batch import PDCDueReminderTask, PDCDueTransitionTask, TaskRegistry


@pytest.fixture
def registry(pdc_service_factory):
    registry = TaskRegistry()
    registry.register(PDCDueTransitionTask(pdc_service_factory))
    return registry


def test_lookup(registry):
    assert "pdc.due_transition" in registry
    assert len(registry) == 1
    assert registry.get("pdc.due_transition").task_type == "pdc.due_transition"


def test_unknown_task_lists_available(registry):
    with pytest.raises(KeyError, match="pdc.due_transition"):
        registry.get("pdc.bounce_report")


def test_duplicate_registration_rejected(registry, pdc_service_factory):
    with pytest.raises(ValueError):
        registry.register(PDCDueTransitionTask(pdc_service_factory))


def test_list_is_sorted(registry, pdc_service_factory):
    registry.register(PDCDueReminderTask(pdc_service_factory))

    assert registry.list_tasks() == ("pdc.due_reminders", "pdc.due_transition")


def test_describe_and_iterate(registry, pdc_service_factory):
    registry.register(PDCDueReminderTask(pdc_service_factory))

    assert list(registry.describe()) == ["pdc.due_reminders", "pdc.due_transition"]
    assert [task.task_type for task in registry] == ["pdc.due_reminders", "pdc.due_transition"]

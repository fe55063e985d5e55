"""
BatchRunner: savepoint-per-item execution, status rollup and logging.

Uses small in-test tasks that bump a sequence counter, so rollback of a
failed item is visible in the database.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pytest

from property_batch import (
    BatchItemInput,
    BatchItemStatus,
    BatchRunner,
    BatchRunStatus,
    BatchTask,
    BatchTaskResult,
    TaskRegistry,
)
from property_kernel.exceptions import TaskNotRegisteredError
from property_kernel.logging_config import LogContext
from property_kernel.services.sequence_service import SequenceService

COUNTER = "batch-test"


@dataclass
class CountingTask:
    """Bumps COUNTER once per item; ``outcomes`` scripts each item's result."""

    outcomes: list[str]
    task_type: str = "test.counting"
    description: str = "Bump a counter per item"
    seen_parameters: list[dict[str, Any]] = field(default_factory=list)

    def prepare_items(self, parameters, session, as_of: datetime):
        return tuple(
            BatchItemInput(item_index=i, item_key=f"item-{i}", payload={"outcome": outcome})
            for i, outcome in enumerate(self.outcomes)
        )

    def execute_item(self, item, parameters, session, as_of):
        self.seen_parameters.append(parameters)
        SequenceService(session).next_value(COUNTER)
        outcome = item.payload["outcome"]
        if outcome == "raise":
            raise RuntimeError(f"boom on {item.item_key}")
        if outcome == "fail":
            return BatchTaskResult(
                status=BatchItemStatus.FAILED,
                error_code="NOT_ALLOWED",
                error_message="rejected",
            )
        if outcome == "skip":
            return BatchTaskResult(status=BatchItemStatus.SKIPPED)
        return BatchTaskResult(status=BatchItemStatus.SUCCEEDED, result_data={"key": item.item_key})


class BrokenPrepareTask:
    task_type = "test.broken_prepare"
    description = "prepare_items always raises"

    def prepare_items(self, parameters, session, as_of):
        raise RuntimeError("query timed out")

    def execute_item(self, item, parameters, session, as_of):
        raise AssertionError("never called")


def _runner(session, clock, *tasks) -> BatchRunner:
    registry = TaskRegistry()
    for task in tasks:
        registry.register(task)
    return BatchRunner(session, registry, clock)


def _counter(session) -> int | None:
    return SequenceService(session).current_value(COUNTER)


def test_fake_tasks_satisfy_protocol():
    assert isinstance(CountingTask(outcomes=[]), BatchTask)
    assert isinstance(BrokenPrepareTask(), BatchTask)


class TestRunStatus:
    def test_all_items_succeed(self, session, clock):
        task = CountingTask(["ok", "ok", "ok"])

        result = _runner(session, clock, task).run(task.task_type)

        assert result.status == BatchRunStatus.COMPLETED
        assert (result.total_items, result.succeeded, result.failed) == (3, 3, 0)
        assert result.error_message is None
        assert [r.result_data for r in result.item_results] == [
            {"key": "item-0"}, {"key": "item-1"}, {"key": "item-2"},
        ]
        assert _counter(session) == 3

    def test_partial_failure(self, session, clock):
        task = CountingTask(["ok", "fail", "ok"])

        result = _runner(session, clock, task).run(task.task_type)

        assert result.status == BatchRunStatus.PARTIALLY_COMPLETED
        assert result.failed == 1
        assert result.error_message == "1 item(s) failed"
        assert [r.item_key for r in result.failures] == ["item-1"]
        assert result.failures[0].error_code == "NOT_ALLOWED"

    def test_every_item_failing_fails_the_run(self, session, clock):
        task = CountingTask(["fail", "raise"])

        result = _runner(session, clock, task).run(task.task_type)

        assert result.status == BatchRunStatus.FAILED
        assert result.failed == 2

    def test_skips_do_not_fail_the_run(self, session, clock):
        task = CountingTask(["skip", "ok"])

        result = _runner(session, clock, task).run(task.task_type)

        assert result.status == BatchRunStatus.COMPLETED
        assert result.skipped == 1

    def test_no_items(self, session, clock):
        task = CountingTask([])

        result = _runner(session, clock, task).run(task.task_type)

        assert result.status == BatchRunStatus.COMPLETED
        assert result.total_items == 0
        assert result.item_results == ()

    def test_timestamps_come_from_clock(self, session, clock):
        task = CountingTask(["ok"])

        result = _runner(session, clock, task).run(task.task_type)

        assert result.started_at == clock.now()
        assert result.completed_at == clock.now()


class TestItemIsolation:
    def test_failed_item_work_is_rolled_back(self, session, clock):
        task = CountingTask(["ok", "fail", "ok", "skip"])

        _runner(session, clock, task).run(task.task_type)

        assert _counter(session) == 2

    def test_unhandled_exception_is_contained(self, session, clock):
        task = CountingTask(["raise", "ok"])

        result = _runner(session, clock, task).run(task.task_type)

        failed = result.item_results[0]
        assert failed.status == BatchItemStatus.FAILED
        assert failed.error_code == "UNHANDLED_EXCEPTION"
        assert failed.error_message == "boom on item-0"
        assert result.item_results[1].status == BatchItemStatus.SUCCEEDED
        assert _counter(session) == 1

    def test_runner_does_not_commit(self, session, clock):
        task = CountingTask(["ok"])

        _runner(session, clock, task).run(task.task_type)
        session.rollback()

        assert _counter(session) is None


class TestRunParameters:
    def test_actor_id_is_passed_to_items(self, session, clock, actor_id):
        task = CountingTask(["ok"])

        _runner(session, clock, task).run(task.task_type, actor_id=actor_id, parameters={"x": 1})

        assert task.seen_parameters == [{"x": 1, "actor_id": str(actor_id)}]

    def test_explicit_actor_parameter_wins(self, session, clock, actor_id):
        task = CountingTask(["ok"])

        _runner(session, clock, task).run(
            task.task_type, actor_id=actor_id, parameters={"actor_id": "system"}
        )

        assert task.seen_parameters[0]["actor_id"] == "system"


class TestFailuresBeforeItems:
    def test_unknown_task_type(self, session, clock):
        runner = _runner(session, clock, CountingTask([]))

        with pytest.raises(TaskNotRegisteredError) as exc_info:
            runner.run("pdc.nonexistent")

        assert exc_info.value.code == "TASK_NOT_REGISTERED"
        assert "test.counting" in str(exc_info.value)

    def test_prepare_failure_returns_failed_run(self, session, clock):
        task = BrokenPrepareTask()

        result = _runner(session, clock, task).run(task.task_type)

        assert result.status == BatchRunStatus.FAILED
        assert result.total_items == 0
        assert result.error_message == "prepare_items failed: query timed out"


class TestRunLogging:
    def test_logs_carry_job_id(self, session, clock, captured_logs):
        task = CountingTask(["ok", "fail"])

        result = _runner(session, clock, task).run(task.task_type)

        logs = captured_logs()
        started = next(r for r in logs if r["message"] == "batch_run_started")
        completed = next(r for r in logs if r["message"] == "batch_run_completed")
        item_failed = next(r for r in logs if r["message"] == "batch_item_failed")
        assert started["job_id"] == str(result.run_id)
        assert completed["status"] == "partially_completed"
        assert completed["succeeded"] == 1
        assert item_failed["item_key"] == "item-1"
        assert item_failed["error_code"] == "NOT_ALLOWED"

    def test_job_id_cleared_after_run(self, session, clock):
        task = CountingTask(["ok"])
        _runner(session, clock, task).run(task.task_type)

        assert "job_id" not in LogContext.get_all()

    def test_item_logs_carry_only_their_own_key(self, session, clock, captured_logs):
        task = CountingTask(["ok", "raise", "fail"])

        _runner(session, clock, task).run(task.task_type)

        logs = captured_logs()
        failed = [r for r in logs if r["message"] == "batch_item_failed"]
        assert [r["entity_id"] for r in failed] == ["item-1", "item-2"]
        completed = next(r for r in logs if r["message"] == "batch_run_completed")
        assert "entity_id" not in completed
        assert LogContext.get_all() == {}

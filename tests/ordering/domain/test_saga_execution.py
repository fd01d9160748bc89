"""SagaExecution log: append-only records and status guards."""

import pytest
from ordering.saga.saga import SagaExecution, SagaStatus
from protean.exceptions import ValidationError


@pytest.fixture
def execution():
    return SagaExecution.start("order_creation", {"order_id": "ord-1", "total": 12.5}, correlation_id="ord-1")


def test_starts_in_progress(execution):
    assert execution.status == SagaStatus.IN_PROGRESS.value
    assert execution.data == {"order_id": "ord-1", "total": 12.5}
    assert execution.step_log() == []


def test_completed_results_keep_order(execution):
    execution.record_step("b", {"n": 1})
    execution.record_step("a", {"n": 2})
    assert list(execution.completed_results()) == ["b", "a"]
    assert execution.is_completed("a")


def test_failure_switches_to_compensating(execution):
    execution.record_step("a", {})
    execution.record_step_failure("b", RuntimeError("boom"))

    assert execution.status == SagaStatus.COMPENSATING.value
    assert execution.error == "boom"
    assert not execution.is_completed("b")


def test_no_steps_after_failure(execution):
    execution.record_step_failure("a", RuntimeError("boom"))
    with pytest.raises(ValidationError):
        execution.record_step("b", {})


def test_compensation_only_while_compensating(execution):
    with pytest.raises(ValidationError):
        execution.record_compensation("a")


def test_terminal_statuses(execution):
    execution.mark_completed()
    assert execution.completed_at is not None
    with pytest.raises(ValidationError):
        execution.mark_failed()


def test_summary(execution):
    execution.record_step("a", {"n": 1})
    execution.record_step_failure("b", RuntimeError("boom"))
    execution.record_compensation("a")
    execution.mark_failed()

    summary = execution.summary()
    assert summary["status"] == "failed"
    assert summary["steps"][0] == {"name": "a", "status": "completed", "result": {"n": 1}, "error": None}
    assert summary["compensations"] == [{"step_name": "a", "status": "completed", "error": None}]

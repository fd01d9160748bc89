"""SagaExecution aggregate (CQRS) — the persisted log of one saga run.

Step and compensation outcomes are appended as child records and never
rewritten. The log is the source of truth for what has completed: a resumed
execution skips every step already recorded as completed.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering


class SagaStatus(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPENSATING = "compensating"
    FAILED = "failed"


class RecordStatus(Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@ordering.entity(part_of="SagaExecution")
class SagaStepRecord:
    sequence = Integer(default=0)
    name = String(required=True, max_length=100)
    status = String(choices=RecordStatus, required=True)
    result = Text()  # JSON
    error = Text()
    recorded_at = DateTime()


@ordering.entity(part_of="SagaExecution")
class CompensationRecord:
    sequence = Integer(default=0)
    step_name = String(required=True, max_length=100)
    status = String(choices=RecordStatus, required=True)
    error = Text()
    recorded_at = DateTime()


@ordering.aggregate
class SagaExecution:
    saga_type = String(required=True, max_length=100)
    correlation_id = Identifier()
    status = String(choices=SagaStatus, default=SagaStatus.IN_PROGRESS.value)
    context = Text()  # JSON
    steps = HasMany(SagaStepRecord)
    compensations = HasMany(CompensationRecord)
    error = Text()
    started_at = DateTime()
    completed_at = DateTime()

    @classmethod
    def start(cls, saga_type, context, correlation_id=None):
        return cls(
            saga_type=saga_type,
            correlation_id=correlation_id,
            status=SagaStatus.IN_PROGRESS.value,
            context=json.dumps(context or {}, default=str),
            started_at=datetime.now(UTC),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    @property
    def data(self) -> dict:
        return json.loads(self.context) if self.context else {}

    def step_log(self) -> list:
        return sorted(self.steps or [], key=lambda s: s.sequence)

    def compensation_log(self) -> list:
        return sorted(self.compensations or [], key=lambda c: c.sequence)

    def completed_results(self) -> dict:
        """Results of completed steps, keyed by step name, in completion order."""
        return {
            record.name: json.loads(record.result) if record.result else {}
            for record in self.step_log()
            if record.status == RecordStatus.COMPLETED.value
        }

    def is_completed(self, step_name) -> bool:
        return step_name in self.completed_results()

    # ------------------------------------------------------------------
    # Log appends
    # ------------------------------------------------------------------
    def _require(self, *statuses):
        if self.status not in [s.value for s in statuses]:
            raise ValidationError({"status": [f"Saga is {self.status}"]})

    def record_step(self, name, result=None):
        self._require(SagaStatus.IN_PROGRESS)
        self.add_steps(
            SagaStepRecord(
                sequence=len(self.steps or []) + 1,
                name=name,
                status=RecordStatus.COMPLETED.value,
                result=json.dumps(result or {}, default=str),
                recorded_at=datetime.now(UTC),
            )
        )

    def record_step_failure(self, name, error):
        self._require(SagaStatus.IN_PROGRESS)
        self.add_steps(
            SagaStepRecord(
                sequence=len(self.steps or []) + 1,
                name=name,
                status=RecordStatus.FAILED.value,
                error=str(error),
                recorded_at=datetime.now(UTC),
            )
        )
        self.error = str(error)
        self.status = SagaStatus.COMPENSATING.value

    def record_compensation(self, step_name, error=None):
        self._require(SagaStatus.COMPENSATING)
        self.add_compensations(
            CompensationRecord(
                sequence=len(self.compensations or []) + 1,
                step_name=step_name,
                status=RecordStatus.FAILED.value if error is not None else RecordStatus.COMPLETED.value,
                error=str(error) if error is not None else None,
                recorded_at=datetime.now(UTC),
            )
        )

    def compensated_steps(self) -> set[str]:
        return {c.step_name for c in self.compensation_log()}

    def mark_completed(self):
        self._require(SagaStatus.IN_PROGRESS)
        self.status = SagaStatus.COMPLETED.value
        self.completed_at = datetime.now(UTC)

    def mark_failed(self):
        self._require(SagaStatus.COMPENSATING)
        self.status = SagaStatus.FAILED.value
        self.completed_at = datetime.now(UTC)

    def summary(self) -> dict:
        return {
            "saga_id": str(self.id),
            "saga_type": self.saga_type,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "status": self.status,
            "steps": [
                {
                    "name": s.name,
                    "status": s.status,
                    "result": json.loads(s.result) if s.result else None,
                    "error": s.error,
                }
                for s in self.step_log()
            ],
            "compensations": [
                {"step_name": c.step_name, "status": c.status, "error": c.error} for c in self.compensation_log()
            ],
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

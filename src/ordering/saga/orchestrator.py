"""SagaOrchestrator — runs registered step sequences with reverse compensation.

For each step in order the orchestrator runs the action and appends the
outcome to the SagaExecution, persisting the execution after every append.
On the first failure it switches to ``compensating``, invokes the
compensation of every completed step in reverse completion order, marks the
execution ``failed`` and re-raises the step's original error, so callers see
"Insufficient inventory for variant X" rather than a generic saga failure.

Compensation is best-effort: a compensation that raises is logged and
recorded as failed, and the remaining compensations still run.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.errors import CompensationFailed, SagaStepFailed
from ordering.saga.registry import SagaDefinition, SagaRegistry, StepContext
from ordering.saga.saga import SagaExecution, SagaStatus

logger = structlog.get_logger(__name__)


class SagaOrchestrator:
    def __init__(self, registry: SagaRegistry, services=None) -> None:
        self.registry = registry
        self.services = services

    @staticmethod
    def _repo():
        return current_domain.repository_for(SagaExecution)

    def get(self, saga_id) -> SagaExecution:
        return self._repo().get(saga_id)

    def executions_for(self, correlation_id, saga_type=None) -> list[SagaExecution]:
        filters = {"correlation_id": str(correlation_id)}
        if saga_type is not None:
            filters["saga_type"] = saga_type
        executions = self._repo()._dao.query.filter(**filters).limit(None).all().items
        return sorted(executions, key=lambda e: e.started_at)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def run(self, saga_type, context, correlation_id=None) -> SagaExecution:
        definition = self.registry.definition(saga_type)
        execution = SagaExecution.start(saga_type, context, correlation_id=correlation_id)
        self._repo().add(execution)

        logger.info(
            "Saga started",
            saga_id=str(execution.id),
            saga_type=saga_type,
            correlation_id=correlation_id,
        )
        return self._drive(execution, definition)

    def resume(self, saga_id) -> SagaExecution:
        """Continue an interrupted execution from its log.

        Completed steps are skipped; a ``compensating`` execution finishes
        its outstanding compensations and is marked failed. Terminal
        executions are returned unchanged.
        """
        try:
            execution = self.get(saga_id)
        except ObjectNotFoundError:
            logger.warning("Saga to resume not found", saga_id=str(saga_id))
            raise

        if execution.status in (SagaStatus.COMPLETED.value, SagaStatus.FAILED.value):
            logger.info("Saga already finished", saga_id=str(saga_id), status=execution.status)
            return execution

        definition = self.registry.definition(execution.saga_type)
        logger.info(
            "Saga resumed",
            saga_id=str(saga_id),
            saga_type=execution.saga_type,
            status=execution.status,
            completed=list(execution.completed_results()),
        )

        if execution.status == SagaStatus.COMPENSATING.value:
            self._compensate(execution, self._context(execution))
            execution.mark_failed()
            self._repo().add(execution)
            return execution

        return self._drive(execution, definition)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _context(self, execution: SagaExecution) -> StepContext:
        return StepContext(
            saga_id=str(execution.id),
            correlation_id=str(execution.correlation_id) if execution.correlation_id else None,
            data=execution.data,
            results=execution.completed_results(),
            services=self.services,
        )

    def _drive(self, execution: SagaExecution, definition: SagaDefinition) -> SagaExecution:
        repo = self._repo()
        ctx = self._context(execution)

        for name in definition.steps:
            if name in ctx.results:
                logger.debug("Skipping completed saga step", saga_id=ctx.saga_id, step=name)
                continue

            step = self.registry.get_step(name)
            try:
                result = step.action(ctx) or {}
            except Exception as exc:
                failure = SagaStepFailed(name, exc)
                logger.warning(
                    "Saga step failed",
                    saga_id=ctx.saga_id,
                    saga_type=definition.saga_type,
                    step=name,
                    error=str(exc),
                )
                execution.record_step_failure(name, failure.original)
                repo.add(execution)

                self._compensate(execution, ctx)
                execution.mark_failed()
                repo.add(execution)

                logger.error(
                    "Saga failed",
                    saga_id=ctx.saga_id,
                    saga_type=definition.saga_type,
                    failed_step=name,
                    compensated=sorted(execution.compensated_steps()),
                )
                exc.add_note(str(failure))
                raise

            ctx.results[name] = result
            execution.record_step(name, result)
            repo.add(execution)
            logger.debug("Saga step completed", saga_id=ctx.saga_id, step=name)

        execution.mark_completed()
        repo.add(execution)
        logger.info("Saga completed", saga_id=ctx.saga_id, saga_type=definition.saga_type)
        return execution

    def _compensate(self, execution: SagaExecution, ctx: StepContext) -> None:
        repo = self._repo()
        already_compensated = execution.compensated_steps()

        for name, result in reversed(list(execution.completed_results().items())):
            step = self.registry.get_step(name)
            if step.compensation is None or name in already_compensated:
                continue

            try:
                step.compensation(ctx, result)
            except Exception as exc:
                failure = CompensationFailed(name, exc)
                logger.error(
                    "Saga compensation failed",
                    saga_id=ctx.saga_id,
                    step=name,
                    error=str(failure),
                )
                execution.record_compensation(name, error=failure.original)
            else:
                logger.info("Saga step compensated", saga_id=ctx.saga_id, step=name)
                execution.record_compensation(name)
            repo.add(execution)

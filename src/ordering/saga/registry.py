"""Saga step registry.

Steps are registered by name as plain functions, so a persisted
SagaExecution can be replayed after a restart: the orchestrator looks up the
action and compensation of every logged step by name instead of relying on
closures captured when the saga started.

    registry = SagaRegistry()

    @registry.step("reserve_inventory")
    def reserve_inventory(ctx):
        ...
        return {"reservations": [...]}

    @registry.compensation("reserve_inventory")
    def release_inventory(ctx, result):
        ...

    registry.define("order_creation", ["create_order", "reserve_inventory", ...])
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

StepAction = Callable[["StepContext"], dict | None]
StepCompensation = Callable[["StepContext", dict], None]


@dataclass
class Step:
    name: str
    action: StepAction
    compensation: StepCompensation | None = None


@dataclass(frozen=True)
class SagaDefinition:
    saga_type: str
    steps: tuple[str, ...]


@dataclass
class StepContext:
    """What a step sees: the saga's input data, earlier results and collaborators."""

    saga_id: str
    correlation_id: str | None
    data: dict
    results: dict = field(default_factory=dict)
    services: Any = None

    def result_of(self, step_name: str) -> dict:
        return self.results.get(step_name) or {}


class SagaRegistry:
    def __init__(self) -> None:
        self._steps: dict[str, Step] = {}
        self._sagas: dict[str, SagaDefinition] = {}

    def step(self, name: str):
        def decorator(func: StepAction) -> StepAction:
            if name in self._steps:
                raise ValueError(f"Saga step '{name}' is already registered")
            self._steps[name] = Step(name=name, action=func)
            return func

        return decorator

    def compensation(self, name: str):
        def decorator(func: StepCompensation) -> StepCompensation:
            if name not in self._steps:
                raise ValueError(f"Cannot register compensation for unknown step '{name}'")
            self._steps[name].compensation = func
            return func

        return decorator

    def define(self, saga_type: str, steps: list[str]) -> SagaDefinition:
        unknown = [name for name in steps if name not in self._steps]
        if unknown:
            raise ValueError(f"Saga '{saga_type}' refers to unknown steps: {', '.join(unknown)}")
        definition = SagaDefinition(saga_type=saga_type, steps=tuple(steps))
        self._sagas[saga_type] = definition
        return definition

    def get_step(self, name: str) -> Step:
        try:
            return self._steps[name]
        except KeyError:
            raise ValueError(f"Unknown saga step '{name}'") from None

    def definition(self, saga_type: str) -> SagaDefinition:
        try:
            return self._sagas[saga_type]
        except KeyError:
            raise ValueError(f"Unknown saga type '{saga_type}'") from None

    @property
    def saga_types(self) -> list[str]:
        return sorted(self._sagas)

"""In-memory event publisher for development and testing.

Records every published envelope in ``published`` and can be configured to
fail, which lets tests prove that publish errors never reach callers.
"""

from inventory.publishing.port import EventEnvelope, EventPublisher


class InMemoryEventPublisher(EventPublisher):
    def __init__(self) -> None:
        self.published: list[EventEnvelope] = []
        self.should_fail: bool = False
        self.failure_reason: str = "Broker unavailable"

    def configure(self, should_fail: bool, failure_reason: str = "Broker unavailable") -> None:
        """Configure publisher behavior at runtime."""
        self.should_fail = should_fail
        self.failure_reason = failure_reason

    def publish(self, envelope: EventEnvelope) -> None:
        if self.should_fail:
            raise ConnectionError(self.failure_reason)
        self.published.append(envelope)

    def of_type(self, event_type: str) -> list[EventEnvelope]:
        return [e for e in self.published if e.event_type == event_type]

    def clear(self) -> None:
        self.published.clear()

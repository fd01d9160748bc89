"""Ordering error taxonomy.

- InvalidTransition: requested status change is not an edge of the state machine
- SagaStepFailed: wraps the error raised by a saga step
- CompensationFailed: a compensation raised; logged, never re-raised
- PaymentGatewayError: the payment gateway declined an intent/refund/cancel
"""

from protean.exceptions import ValidationError


class InvalidTransition(ValidationError):
    def __init__(self, axis, current, requested, allowed):
        self.axis = axis
        self.current = current
        self.requested = requested
        self.allowed = list(allowed)
        allowed_text = ", ".join(self.allowed) if self.allowed else "none"
        self.message = (
            f"Cannot transition {axis} status from {current} to {requested}. Allowed transitions: {allowed_text}"
        )
        super().__init__({f"{axis}_status": [self.message]})

    def __str__(self):
        return self.message


class SagaStepFailed(Exception):
    def __init__(self, step_name, original):
        self.step_name = step_name
        self.original = original
        super().__init__(f"Saga step '{step_name}' failed: {original}")


class CompensationFailed(Exception):
    def __init__(self, step_name, original):
        self.step_name = step_name
        self.original = original
        super().__init__(f"Compensation for step '{step_name}' failed: {original}")


class PaymentGatewayError(ValidationError):
    def __init__(self, operation, reason):
        self.operation = operation
        self.reason = reason or "Unknown gateway error"
        super().__init__({"payment": [f"Payment {operation} failed: {self.reason}"]})

    def __str__(self):
        return f"Payment {self.operation} failed: {self.reason}"

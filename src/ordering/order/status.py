"""Order status — commands for state-machine-only operations and their handler.

Status updates, payment capture and refunds touch only the Order aggregate
(and, for capture/refund, the payment gateway), so they run as ordinary
protean commands. Creation and cancellation go through OrderService and the
sagas instead.
"""

from protean import handle
from protean.fields import Float, Identifier, String, Text

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.service import OrderService
from ordering.runtime import current_runtime


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    financial_status = String(max_length=30)
    fulfillment_status = String(max_length=30)
    comment = Text()


@ordering.command(part_of="Order")
class CapturePayment:
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class RefundOrder:
    order_id = Identifier(required=True)
    amount = Float()  # Full remaining balance when omitted
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = OrderService(current_runtime()).update_status(
            command.order_id,
            financial_status=command.financial_status,
            fulfillment_status=command.fulfillment_status,
            comment=command.comment,
        )
        return order.financial_status, order.fulfillment_status

    @handle(CapturePayment)
    def capture_payment(self, command):
        order = OrderService(current_runtime()).capture_payment(command.order_id)
        return order.financial_status

    @handle(RefundOrder)
    def refund_order(self, command):
        order = OrderService(current_runtime()).refund_order(
            command.order_id,
            amount=command.amount,
            reason=command.reason,
        )
        return order.refunded_total

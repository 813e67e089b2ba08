"""Order cancellation and refund recording: commands and handler.

Gateway refunds happen in the lifecycle service before ``RecordRefund`` is
sent; these handlers only persist the outcome.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, PaymentSource


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(required=True, max_length=50)


@ordering.command(part_of="Order")
class RecordRefund:
    order_id = Identifier(required=True)
    gateway = String(required=True, max_length=50)
    gateway_refund_id = String(max_length=255)
    amount = Float()
    reason = String(max_length=500)
    refunded_by = String(required=True, max_length=50)
    source = String(max_length=20, default=PaymentSource.ADMIN.value)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(
            reason=command.reason,
            cancelled_by=command.cancelled_by,
        )
        repo.add(order)

    @handle(RecordRefund)
    def record_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_refund(
            gateway=command.gateway,
            gateway_refund_id=command.gateway_refund_id,
            amount=command.amount,
            reason=command.reason,
            refunded_by=command.refunded_by,
            source=command.source,
        )
        repo.add(order)

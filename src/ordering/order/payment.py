"""Payment commands: gateway order recording, outcome application, rejection markers.

``ApplyPaymentOutcome`` is the only command that moves an order's payment
status forward from PENDING. It is sent by the lifecycle service while holding
the per-order lock, for both redirect confirmations and webhooks.
"""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, PaymentSource


@ordering.command(part_of="Order")
class RecordGatewayOrder:
    order_id = Identifier(required=True)
    gateway = String(required=True, max_length=50)
    gateway_order_id = String(required=True, max_length=255)
    amount = Float(required=True)
    currency = String(max_length=3)
    gateway_response = Text()


@ordering.command(part_of="Order")
class ApplyPaymentOutcome:
    order_id = Identifier(required=True)
    success = Boolean(required=True)
    gateway = String(required=True, max_length=50)
    gateway_payment_id = String(required=True, max_length=255)
    gateway_order_id = String(max_length=255)
    amount = Float()
    source = String(max_length=20, default=PaymentSource.WEBHOOK.value)
    failure_reason = String(max_length=500)
    gateway_response = Text()


@ordering.command(part_of="Order")
class RecordRejectedPayment:
    order_id = Identifier(required=True)
    gateway = String(required=True, max_length=50)
    gateway_payment_id = String(max_length=255)
    gateway_order_id = String(max_length=255)
    source = String(max_length=20)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class PaymentHandler:
    @handle(RecordGatewayOrder)
    def record_gateway_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_gateway_order(
            gateway=command.gateway,
            gateway_order_id=command.gateway_order_id,
            amount=command.amount,
            currency=command.currency or order.currency,
            gateway_response=command.gateway_response,
        )
        repo.add(order)

    @handle(ApplyPaymentOutcome)
    def apply_payment_outcome(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        disposition = order.apply_payment_outcome(
            success=command.success,
            gateway=command.gateway,
            gateway_payment_id=command.gateway_payment_id,
            gateway_order_id=command.gateway_order_id,
            amount=command.amount,
            source=command.source,
            failure_reason=command.failure_reason,
            gateway_response=command.gateway_response,
        )
        repo.add(order)
        return disposition.value

    @handle(RecordRejectedPayment)
    def record_rejected_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_rejected_payment(
            gateway=command.gateway,
            gateway_payment_id=command.gateway_payment_id,
            gateway_order_id=command.gateway_order_id,
            source=command.source,
            reason=command.reason,
        )
        repo.add(order)

"""Admin shipping updates: command, handler and the customer-facing status messages."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus

STATUS_MESSAGES = {
    OrderStatus.CONFIRMED.value: "Your order has been confirmed! We are preparing it for shipment.",
    OrderStatus.SHIPPED.value: "Your order is on the way! Tracking number: {tracking_number}",
    OrderStatus.IN_TRANSIT.value: "Your package is in transit and will be delivered soon.",
    OrderStatus.DELIVERED.value: "Your order has been delivered! Thank you for your purchase.",
    OrderStatus.CANCELLED.value: "Your order has been cancelled. Please contact support for more information.",
}


def status_message(status: str, tracking_number: str | None = None) -> str:
    template = STATUS_MESSAGES.get(status)
    if template is None:
        return f"Order status updated to {status}"
    return template.format(tracking_number=tracking_number or "N/A")


@ordering.command(part_of="Order")
class UpdateShippingStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)


@ordering.command_handler(part_of=Order)
class ShippingHandler:
    @handle(UpdateShippingStatus)
    def update_shipping_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_shipping_status(
            new_status=command.status,
            tracking_number=command.tracking_number,
            estimated_delivery=command.estimated_delivery,
        )
        repo.add(order)

"""Order placement: command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    customer_email = String(max_length=254)
    payment_method = String(required=True, max_length=20)
    items = Text(required=True)  # JSON: list of priced item dicts
    shipping_address_id = Identifier(required=True)
    shipping_address = Text()  # JSON: address dict
    billing_address_id = Identifier()
    billing_address = Text()  # JSON: address dict
    subtotal = Float(required=True)
    discount = Float(default=0.0)
    shipping = Float(default=0.0)
    total = Float(required=True)
    currency = String(max_length=3, default="INR")
    discount_code = String(max_length=100)


def _load(value):
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = Order.place(
            customer_id=command.customer_id,
            customer_email=command.customer_email,
            payment_method=command.payment_method,
            items_data=_load(command.items),
            shipping_address_id=command.shipping_address_id,
            shipping_address=_load(command.shipping_address),
            billing_address_id=command.billing_address_id,
            billing_address=_load(command.billing_address),
            pricing={
                "subtotal": command.subtotal,
                "discount": command.discount or 0.0,
                "shipping": command.shipping or 0.0,
                "total": command.total,
                "currency": command.currency or "INR",
            },
            discount_code=command.discount_code,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)

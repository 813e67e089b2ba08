"""Domain events for the Order aggregate.

Events are versioned, immutable facts raised on every meaningful transition.
They are dispatched after the state change commits and drive:
- Customer emails (ordering.notification)
- Analytics recording (ordering.analytics)
"""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    payment_method = String(required=True)
    status = String(required=True)
    items = Text(required=True)  # JSON: list of priced item dicts
    subtotal = Float(required=True)
    discount = Float()
    shipping = Float()
    total = Float(required=True)
    currency = String(default="INR")
    discount_code = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentInitiated:
    """A gateway-side order or payment intent was created for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    gateway = String(required=True)
    gateway_order_id = String(required=True)
    amount = Float(required=True)
    currency = String()
    initiated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentCompleted:
    """The gateway confirmed capture of the order total."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    gateway = String(required=True)
    gateway_payment_id = String(required=True)
    amount = Float()
    currency = String()
    completed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderConfirmed:
    """The order moved to CONFIRMED (paid, or cash on delivery)."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    payment_method = String()
    total = Float(required=True)
    currency = String()
    confirmed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    """The gateway reported that the payment attempt failed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    gateway = String(required=True)
    gateway_payment_id = String(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFlagged:
    """A payment report could not be reconciled and needs manual review."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    gateway = String()
    gateway_payment_id = String()
    reason = String(required=True)
    flagged_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShippingStatusUpdated:
    """An admin advanced the order through shipping."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    previous_status = String(required=True)
    status = String(required=True)
    tracking_number = String()
    estimated_delivery = String()
    updated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before shipping."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    reason = String()
    cancelled_by = String()
    refunded = Boolean(default=False)
    refund_amount = Float()
    currency = String()
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentRefunded:
    """The captured payment was refunded through the gateway."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String()
    gateway = String(required=True)
    gateway_refund_id = String()
    amount = Float()
    currency = String()
    order_cancelled = Boolean(default=False)
    refunded_at = DateTime(required=True)

"""Order aggregate: the single source of truth for order and payment state.

The Order is a state-stored aggregate: the row holds current state and the
PaymentLog child entities form an append-only audit trail of every gateway
interaction. Domain events are raised on every meaningful transition and drive
the notification and analytics side effects after the transaction commits.

Order status:
    PENDING → CONFIRMED → SHIPPED → IN_TRANSIT → DELIVERED
    SHIPPED → DELIVERED
    PENDING/CONFIRMED → CANCELLED

Payment status:
    PENDING → COMPLETED → REFUNDED
    PENDING → FAILED → PENDING (a new attempt)
    FAILED → COMPLETED (capture on the failed attempt's gateway order)

Only status, payment status, tracking data, flags and the gateway correlation
fields change after creation. Items and money are fixed when the order is
placed.
"""

import json
import secrets
import string
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderPlaced,
    PaymentCompleted,
    PaymentFailed,
    PaymentFlagged,
    PaymentInitiated,
    PaymentRefunded,
    ShippingStatusUpdated,
)
from shared.errors import InvalidTransitionError

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(Enum):
    RAZORPAY = "razorpay"  # redirect/confirm gateway
    STRIPE = "stripe"  # intent/webhook gateway
    COD = "cod"


class PaymentLogEntry(Enum):
    CREATED = "CREATED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"
    FLAGGED = "FLAGGED"
    REFUNDED = "REFUNDED"


class PaymentSource(Enum):
    CHECKOUT = "checkout"
    REDIRECT = "redirect"
    WEBHOOK = "webhook"
    ADMIN = "admin"
    DELIVERY = "delivery"


class OutcomeDisposition(Enum):
    """What ``Order.apply_payment_outcome`` did with a reported outcome."""

    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    FLAGGED = "flagged"


# State machine transition maps
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED},
    OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING, PaymentStatus.COMPLETED},
    PaymentStatus.REFUNDED: set(),  # Terminal
}

_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# Payment statuses from which a gateway payment may be (re)started
_PAYABLE_STATES = {PaymentStatus.PENDING, PaymentStatus.FAILED}

# Statuses an admin may move an order into through a shipping update
SHIPPING_STATES = {OrderStatus.SHIPPED, OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED}

_BASE36 = string.digits + string.ascii_lowercase


def generate_order_number(now: datetime | None = None) -> str:
    """Human-readable order number: ``ORD-<epoch ms>-<9 base36 chars>``."""
    now = now or datetime.now(UTC)
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9)).upper()
    return f"ORD-{millis}-{suffix}"


def amounts_match(expected: float, reported: float | None) -> bool:
    """Compare two major-unit amounts at minor-unit (paise/cent) precision."""
    if reported is None:
        return False
    return int(round(expected * 100)) == int(round(reported * 100))


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A shipping or billing address snapshotted at checkout time.

    Later edits in the address book do not affect orders already placed.
    """

    name = String(max_length=255)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A line item with the unit price captured from the catalog at checkout."""

    product_id = Identifier(required=True)
    name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)


@ordering.entity(part_of="Order")
class PaymentLog:
    """One gateway interaction: creation, verification, webhook receipt or refund.

    Rows are only ever appended. The COMPLETED/FAILED rows double as the
    idempotency record for ``apply_payment_outcome``.
    """

    entry_type = String(choices=PaymentLogEntry, required=True)
    source = String(choices=PaymentSource)
    gateway = String(max_length=50)
    gateway_order_id = String(max_length=255)
    gateway_payment_id = String(max_length=255)
    amount = Float()
    currency = String(max_length=3)
    message = String(max_length=500)
    gateway_response = Text()
    created_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    customer_id = Identifier(required=True)
    customer_email = String(max_length=254)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, required=True)
    items = HasMany(OrderItem)
    payment_logs = HasMany(PaymentLog)
    shipping_address_id = Identifier(required=True)
    shipping_address = ValueObject(Address)
    billing_address_id = Identifier()
    billing_address = ValueObject(Address)
    subtotal = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="INR")
    discount_code = String(max_length=100)
    gateway_order_id = String(max_length=255)
    gateway_payment_id = String(max_length=255)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)  # ISO date string
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    flagged = Boolean(default=False)
    flag_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_is_subtotal_less_discount_plus_shipping(self):
        expected = (self.subtotal or 0.0) - (self.discount or 0.0) + (self.shipping or 0.0)
        if abs((self.total or 0.0) - round(expected, 2)) > 0.005:
            raise ValidationError({"total": ["Total must equal subtotal - discount + shipping"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        payment_method,
        items_data,
        shipping_address_id,
        pricing,
        shipping_address=None,
        billing_address_id=None,
        billing_address=None,
        customer_email=None,
        discount_code=None,
    ):
        """Place a new order from priced checkout lines.

        Args:
            items_data: List of dicts with product_id, name, quantity, unit_price.
                Prices must already come from the catalog.
            pricing: Dict with subtotal, discount, shipping, total, currency.
            shipping_address / billing_address: Address dicts (snapshots).
        """
        if not items_data:
            raise ValidationError({"items": ["Cannot place an order with an empty cart"]})

        subtotal = round(sum(item["unit_price"] * item["quantity"] for item in items_data), 2)
        if abs(subtotal - pricing["subtotal"]) > 0.005:
            raise ValidationError({"subtotal": ["Subtotal does not match the order items"]})

        method = PaymentMethod(payment_method)
        now = datetime.now(UTC)
        status = OrderStatus.CONFIRMED if method == PaymentMethod.COD else OrderStatus.PENDING

        order = cls(
            order_number=generate_order_number(now),
            customer_id=customer_id,
            customer_email=customer_email,
            status=status.value,
            payment_status=PaymentStatus.PENDING.value,
            payment_method=method.value,
            items=[OrderItem(**item) for item in items_data],
            shipping_address_id=shipping_address_id,
            shipping_address=Address(**shipping_address) if shipping_address else None,
            billing_address_id=billing_address_id or shipping_address_id,
            billing_address=Address(**(billing_address or shipping_address)) if shipping_address else None,
            subtotal=pricing["subtotal"],
            discount=pricing.get("discount", 0.0),
            shipping=pricing.get("shipping", 0.0),
            total=pricing["total"],
            currency=pricing.get("currency", "INR"),
            discount_code=discount_code,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id),
                customer_email=customer_email,
                payment_method=method.value,
                status=status.value,
                items=json.dumps(items_data),
                subtotal=order.subtotal,
                discount=order.discount,
                shipping=order.shipping,
                total=order.total,
                currency=order.currency,
                discount_code=discount_code,
                placed_at=now,
            )
        )
        if status == OrderStatus.CONFIRMED:
            order._raise_confirmed(now)

        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(
                {"status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def _assert_payment_can_transition(self, target_status):
        current = PaymentStatus(self.payment_status)
        if target_status not in _PAYMENT_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(
                {"payment_status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def _log(self, entry_type, now, **fields):
        self.add_payment_logs(PaymentLog(entry_type=entry_type.value, created_at=now, **fields))

    def _raise_confirmed(self, now):
        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                customer_email=self.customer_email,
                payment_method=self.payment_method,
                total=self.total,
                currency=self.currency,
                confirmed_at=now,
            )
        )

    def logs_of(self, entry_type, gateway_payment_id=None):
        """PaymentLog rows of a type, optionally for one gateway payment id."""
        return [
            log
            for log in (self.payment_logs or [])
            if log.entry_type == entry_type.value
            and (gateway_payment_id is None or log.gateway_payment_id == gateway_payment_id)
        ]

    def gateway_order_amount(self, gateway_order_id):
        """Amount the gateway was asked to collect for ``gateway_order_id``."""
        created = [
            log for log in self.logs_of(PaymentLogEntry.CREATED) if log.gateway_order_id == gateway_order_id
        ]
        return created[-1].amount if created else None

    @property
    def is_shipped(self) -> bool:
        return OrderStatus(self.status) in SHIPPING_STATES

    @property
    def is_cancellable(self) -> bool:
        return OrderStatus(self.status) in _CANCELLABLE_STATES

    def belongs_to(self, user_id) -> bool:
        return str(self.customer_id) == str(user_id)

    # -------------------------------------------------------------------
    # Payment initiation
    # -------------------------------------------------------------------
    def assert_payable_through(self, gateway):
        """Raise unless a gateway payment may be started for this order now."""
        if PaymentMethod(self.payment_method) == PaymentMethod.COD:
            raise ValidationError({"payment_method": ["Cash on delivery orders are not paid through a gateway"]})
        if gateway != self.payment_method:
            raise ValidationError({"gateway": [f"Order is payable through {self.payment_method}, not {gateway}"]})
        if OrderStatus(self.status) != OrderStatus.PENDING or PaymentStatus(self.payment_status) not in _PAYABLE_STATES:
            raise InvalidTransitionError({"status": ["Payment can only be initiated for a pending, unpaid order"]})

    def record_gateway_order(self, gateway, gateway_order_id, amount, currency, gateway_response=None):
        """Record the gateway-side order/intent created for this order.

        After a failed payment this starts a new attempt: payment returns to
        PENDING and the new gateway order replaces the old correlation id.
        """
        self.assert_payable_through(gateway)

        now = datetime.now(UTC)
        if PaymentStatus(self.payment_status) == PaymentStatus.FAILED:
            self._assert_payment_can_transition(PaymentStatus.PENDING)
            self.payment_status = PaymentStatus.PENDING.value
        self.gateway_order_id = gateway_order_id
        self.updated_at = now
        self._log(
            PaymentLogEntry.CREATED,
            now,
            source=PaymentSource.CHECKOUT.value,
            gateway=gateway,
            gateway_order_id=gateway_order_id,
            amount=amount,
            currency=currency,
            gateway_response=gateway_response,
        )

        self.raise_(
            PaymentInitiated(
                order_id=str(self.id),
                order_number=self.order_number,
                gateway=gateway,
                gateway_order_id=gateway_order_id,
                amount=amount,
                currency=currency,
                initiated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Payment outcome: the single transition function for payment results
    # -------------------------------------------------------------------
    def apply_payment_outcome(
        self,
        success,
        gateway,
        gateway_payment_id,
        gateway_order_id=None,
        amount=None,
        source=PaymentSource.WEBHOOK.value,
        failure_reason=None,
        gateway_response=None,
    ):
        """Apply a gateway-reported payment outcome.

        Returns an ``OutcomeDisposition``. A FLAGGED disposition means the
        order was marked for manual reconciliation and nothing else changed;
        the caller is expected to surface that as an integrity failure after
        the flag is committed.
        """
        entry = PaymentLogEntry.COMPLETED if success else PaymentLogEntry.FAILED
        if self.logs_of(entry, gateway_payment_id):
            logger.info(
                "Duplicate payment outcome ignored",
                order_id=str(self.id),
                gateway_payment_id=gateway_payment_id,
                success=success,
            )
            return OutcomeDisposition.DUPLICATE

        payment_status = PaymentStatus(self.payment_status)
        status = OrderStatus(self.status)

        # A declined attempt can still be paid on the same gateway order
        capture_after_decline = (
            success
            and payment_status == PaymentStatus.FAILED
            and status == OrderStatus.PENDING
            and gateway_order_id is not None
            and gateway_order_id == self.gateway_order_id
        )

        if payment_status != PaymentStatus.PENDING and not capture_after_decline:
            if not success:
                # Terminal payment states never regress
                logger.warning(
                    "Late payment failure ignored",
                    order_id=str(self.id),
                    gateway_payment_id=gateway_payment_id,
                    payment_status=payment_status.value,
                )
                return OutcomeDisposition.IGNORED
            self.flag(
                f"Capture {gateway_payment_id} reported while payment is {payment_status.value}",
                gateway=gateway,
                gateway_payment_id=gateway_payment_id,
                gateway_order_id=gateway_order_id,
                amount=amount,
                source=source,
            )
            return OutcomeDisposition.FLAGGED

        if success and status == OrderStatus.CANCELLED:
            self.flag(
                f"Capture {gateway_payment_id} reported for a cancelled order",
                gateway=gateway,
                gateway_payment_id=gateway_payment_id,
                gateway_order_id=gateway_order_id,
                amount=amount,
                source=source,
            )
            return OutcomeDisposition.FLAGGED

        if success and not amounts_match(self.total, amount):
            self.flag(
                f"Amount mismatch: expected {self.total:.2f}, gateway reported {amount}",
                gateway=gateway,
                gateway_payment_id=gateway_payment_id,
                gateway_order_id=gateway_order_id,
                amount=amount,
                source=source,
            )
            return OutcomeDisposition.FLAGGED

        now = datetime.now(UTC)
        if success:
            self._complete_payment(
                gateway=gateway,
                gateway_payment_id=gateway_payment_id,
                gateway_order_id=gateway_order_id,
                amount=amount,
                source=source,
                gateway_response=gateway_response,
                now=now,
            )
        else:
            self._assert_payment_can_transition(PaymentStatus.FAILED)
            self.payment_status = PaymentStatus.FAILED.value
            self.gateway_payment_id = gateway_payment_id
            self.updated_at = now
            self._log(
                PaymentLogEntry.FAILED,
                now,
                source=source,
                gateway=gateway,
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                amount=amount,
                currency=self.currency,
                message=failure_reason,
                gateway_response=gateway_response,
            )
            self.raise_(
                PaymentFailed(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    customer_id=str(self.customer_id),
                    customer_email=self.customer_email,
                    gateway=gateway,
                    gateway_payment_id=gateway_payment_id,
                    reason=failure_reason,
                    failed_at=now,
                )
            )

        return OutcomeDisposition.APPLIED

    def _complete_payment(self, gateway, gateway_payment_id, gateway_order_id, amount, source, gateway_response, now):
        self._assert_payment_can_transition(PaymentStatus.COMPLETED)
        self.payment_status = PaymentStatus.COMPLETED.value
        self.gateway_payment_id = gateway_payment_id
        confirm = OrderStatus(self.status) == OrderStatus.PENDING
        if confirm:
            self.status = OrderStatus.CONFIRMED.value
        self.updated_at = now
        self._log(
            PaymentLogEntry.COMPLETED,
            now,
            source=source,
            gateway=gateway,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            amount=amount,
            currency=self.currency,
            gateway_response=gateway_response,
        )

        self.raise_(
            PaymentCompleted(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                gateway=gateway,
                gateway_payment_id=gateway_payment_id,
                amount=amount,
                currency=self.currency,
                completed_at=now,
            )
        )
        if confirm:
            self._raise_confirmed(now)

    def record_rejected_payment(self, gateway, gateway_payment_id, gateway_order_id=None, source=None, reason=None):
        """Append a REJECTED marker for a confirmation that failed verification."""
        now = datetime.now(UTC)
        self._log(
            PaymentLogEntry.REJECTED,
            now,
            source=source,
            gateway=gateway,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            message=reason,
        )

    def flag(self, reason, gateway=None, gateway_payment_id=None, gateway_order_id=None, amount=None, source=None):
        """Mark the order for manual reconciliation without touching its status."""
        now = datetime.now(UTC)
        self.flagged = True
        self.flag_reason = reason
        self.updated_at = now
        self._log(
            PaymentLogEntry.FLAGGED,
            now,
            source=source,
            gateway=gateway,
            gateway_order_id=gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            amount=amount,
            currency=self.currency,
            message=reason,
        )
        logger.warning("Order flagged for reconciliation", order_id=str(self.id), reason=reason)

        self.raise_(
            PaymentFlagged(
                order_id=str(self.id),
                order_number=self.order_number,
                gateway=gateway,
                gateway_payment_id=gateway_payment_id,
                reason=reason,
                flagged_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def update_shipping_status(self, new_status, tracking_number=None, estimated_delivery=None):
        """Advance the order through shipping. Backward moves are rejected."""
        target = OrderStatus(new_status)
        if target not in SHIPPING_STATES:
            raise InvalidTransitionError(
                {"status": [f"{target.value} cannot be set through a shipping update"]}
            )
        self._assert_can_transition(target)

        now = datetime.now(UTC)
        previous = self.status
        self.status = target.value
        if tracking_number:
            self.tracking_number = tracking_number
        if estimated_delivery:
            self.estimated_delivery = estimated_delivery
        self.updated_at = now

        self.raise_(
            ShippingStatusUpdated(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                customer_email=self.customer_email,
                previous_status=previous,
                status=target.value,
                tracking_number=self.tracking_number,
                estimated_delivery=self.estimated_delivery,
                updated_at=now,
            )
        )

        # Cash is collected on delivery
        if (
            target == OrderStatus.DELIVERED
            and PaymentMethod(self.payment_method) == PaymentMethod.COD
            and PaymentStatus(self.payment_status) == PaymentStatus.PENDING
        ):
            self._complete_payment(
                gateway=PaymentMethod.COD.value,
                gateway_payment_id=f"cod-{self.order_number}",
                gateway_order_id=None,
                amount=self.total,
                source=PaymentSource.DELIVERY.value,
                gateway_response=None,
                now=now,
            )

    # -------------------------------------------------------------------
    # Cancellation & Refund
    # -------------------------------------------------------------------
    def cancel(self, reason, cancelled_by):
        """Cancel an order whose payment was never captured."""
        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise InvalidTransitionError(
                {
                    "status": [
                        f"Cannot cancel order in {current.value} state. "
                        f"Cancellation is only allowed from: "
                        f"{', '.join(sorted(s.value for s in _CANCELLABLE_STATES))}"
                    ]
                }
            )
        if PaymentStatus(self.payment_status) == PaymentStatus.COMPLETED:
            raise ValidationError({"payment_status": ["Paid orders must be refunded to be cancelled"]})

        self._mark_cancelled(reason, cancelled_by, datetime.now(UTC))

    def _mark_cancelled(self, reason, cancelled_by, now, refund_amount=None):
        self._assert_can_transition(OrderStatus.CANCELLED)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                customer_email=self.customer_email,
                reason=reason,
                cancelled_by=cancelled_by,
                refunded=refund_amount is not None,
                refund_amount=refund_amount,
                currency=self.currency,
                cancelled_at=now,
            )
        )

    def record_refund(self, gateway, gateway_refund_id, amount, reason, refunded_by, source=PaymentSource.ADMIN.value):
        """Record a completed gateway refund.

        A refund on an order that has not shipped also cancels it.
        """
        self._assert_payment_can_transition(PaymentStatus.REFUNDED)
        cancel = OrderStatus(self.status) in _CANCELLABLE_STATES
        if cancel:
            self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.REFUNDED.value
        self.updated_at = now
        self._log(
            PaymentLogEntry.REFUNDED,
            now,
            source=source,
            gateway=gateway,
            gateway_payment_id=self.gateway_payment_id,
            amount=amount,
            currency=self.currency,
            message=reason,
            gateway_response=json.dumps({"refund_id": gateway_refund_id}),
        )

        self.raise_(
            PaymentRefunded(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                customer_email=self.customer_email,
                gateway=gateway,
                gateway_refund_id=gateway_refund_id,
                amount=amount,
                currency=self.currency,
                order_cancelled=cancel,
                refunded_at=now,
            )
        )

        if cancel:
            self._mark_cancelled(reason, refunded_by, now, refund_amount=amount)

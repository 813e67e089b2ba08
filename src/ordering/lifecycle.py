"""Order Lifecycle Manager: the application service behind checkout, payment and admin routes.

The service owns every path that changes an order's status or payment status.
Domain rules live on the Order aggregate; this layer adds what the aggregate
cannot do on its own:

- resolving collaborators (cart, catalog, address book, discount codes)
- talking to payment gateways through the ``GatewayRegistry``
- authorizing the acting user
- serializing read-decide-write sequences per order with ``locks.hold``

Gateway calls that create money movement (payment orders, refunds) happen
before the corresponding command is processed, so a gateway failure leaves the
order untouched.
"""

import json
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.checkout.pricing import price_cart
from ordering.collaborators.port import (
    Actor,
    AddressStore,
    CartLine,
    CartStore,
    CatalogStore,
    DiscountCodeStore,
)
from ordering.config import CheckoutSettings
from ordering.order.cancellation import CancelOrder, RecordRefund
from ordering.order.creation import PlaceOrder
from ordering.order.locks import LocalOrderLocks
from ordering.order.order import (
    Order,
    OrderStatus,
    OutcomeDisposition,
    PaymentMethod,
    PaymentSource,
    PaymentStatus,
)
from ordering.order.payment import ApplyPaymentOutcome, RecordGatewayOrder, RecordRejectedPayment
from ordering.order.shipping import UpdateShippingStatus
from ordering.reconciliation.queueing import QueueForReconciliation
from payments.gateway import GatewayRegistry
from payments.gateway.port import GatewayEvent
from shared.errors import (
    ForbiddenError,
    GatewayError,
    IntegrityError,
    InvalidTransitionError,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GatewayHandle:
    """Launch data the client needs to complete payment with the gateway."""

    order_id: str
    order_number: str
    gateway: str
    gateway_order_id: str
    amount: float
    currency: str
    client_secret: str | None = None
    public_key: str | None = None


class OrderLifecycle:
    def __init__(
        self,
        gateways: GatewayRegistry,
        carts: CartStore,
        catalog: CatalogStore,
        addresses: AddressStore,
        discounts: DiscountCodeStore,
        settings: CheckoutSettings | None = None,
        locks=None,
    ) -> None:
        self.gateways = gateways
        self.carts = carts
        self.catalog = catalog
        self.addresses = addresses
        self.discounts = discounts
        self.settings = settings or CheckoutSettings()
        self.locks = locks or LocalOrderLocks()

    # -------------------------------------------------------------------
    # Lookups and authorization
    # -------------------------------------------------------------------
    def _load(self, order_id) -> Order:
        return current_domain.repository_for(Order).get(str(order_id))

    def _authorize(self, order: Order, actor: Actor) -> None:
        if not (actor.is_admin or order.belongs_to(actor.user_id)):
            logger.warning("Order access denied", order_id=str(order.id), user_id=actor.user_id)
            raise ForbiddenError("You do not have access to this order")

    @staticmethod
    def _require_admin(actor: Actor) -> None:
        if not actor.is_admin:
            raise ForbiddenError("Admin access required")

    def get_order(self, order_id, actor: Actor) -> Order:
        order = self._load(order_id)
        self._authorize(order, actor)
        return order

    def payment_logs(self, order_id, actor: Actor):
        self._require_admin(actor)
        order = self._load(order_id)
        return sorted(order.payment_logs or [], key=lambda log: log.created_at)

    def _validated_address(self, address_id, actor: Actor, field: str):
        address = self.addresses.get_address(str(address_id))
        if address is None or str(address.user_id) != str(actor.user_id):
            raise ValidationError({field: ["Invalid address"]})
        return address

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def create_order(
        self,
        actor: Actor,
        shipping_address_id,
        payment_method: str,
        items: list[CartLine] | None = None,
        billing_address_id=None,
        discount_code: str | None = None,
    ) -> Order:
        """Turn the actor's cart (or the submitted items) into a PENDING order.

        Submitted items only name products and quantities; every price is read
        from the catalog.
        """
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError({"payment_method": [f"Unsupported payment method: {payment_method}"]})
        if method != PaymentMethod.COD and method.value not in self.gateways:
            raise ValidationError({"payment_method": [f"Payment method {method.value} is not available"]})

        shipping_address = self._validated_address(shipping_address_id, actor, "address_id")
        billing_address = shipping_address
        if billing_address_id and str(billing_address_id) != str(shipping_address_id):
            billing_address = self._validated_address(billing_address_id, actor, "billing_address_id")

        from_cart = items is None
        lines = self.carts.get_cart(actor.user_id) if from_cart else items

        quote = price_cart(
            lines,
            self.catalog,
            self.discounts,
            self.settings,
            discount_code=discount_code,
        )

        order_id = current_domain.process(
            PlaceOrder(
                customer_id=actor.user_id,
                customer_email=actor.email,
                payment_method=method.value,
                items=json.dumps([line.as_dict() for line in quote.lines]),
                shipping_address_id=shipping_address.address_id,
                shipping_address=json.dumps(shipping_address.snapshot()),
                billing_address_id=billing_address.address_id,
                billing_address=json.dumps(billing_address.snapshot()),
                subtotal=quote.subtotal,
                discount=quote.discount,
                shipping=quote.shipping,
                total=quote.total,
                currency=quote.currency,
                discount_code=quote.discount_code,
            ),
            asynchronous=False,
        )

        logger.info(
            "Order created",
            order_id=order_id,
            user_id=actor.user_id,
            total=quote.total,
            payment_method=method.value,
        )

        if from_cart:
            try:
                self.carts.clear_cart(actor.user_id)
            except Exception as exc:
                logger.warning("Failed to clear cart after checkout", user_id=actor.user_id, error=str(exc))

        return self._load(order_id)

    # -------------------------------------------------------------------
    # Payment initiation and redirect confirmation
    # -------------------------------------------------------------------
    def initiate_payment(self, order_id, actor: Actor, gateway_name: str) -> GatewayHandle:
        """Create the gateway-side order or intent and record it on the order.

        A gateway failure or timeout leaves the order PENDING with no new
        correlation id, so the call is safe to retry.
        """
        gateway = self.gateways.get(gateway_name)
        order = self._load(order_id)
        self._authorize(order, actor)
        order.assert_payable_through(gateway.name)

        gateway_order = gateway.create_order(
            amount=order.total,
            currency=order.currency,
            reference=str(order.id),
        )

        with self.locks.hold(order.id):
            current_domain.process(
                RecordGatewayOrder(
                    order_id=str(order.id),
                    gateway=gateway.name,
                    gateway_order_id=gateway_order.gateway_order_id,
                    amount=gateway_order.amount,
                    currency=gateway_order.currency,
                    gateway_response=gateway_order.raw_response,
                ),
                asynchronous=False,
            )

        logger.info(
            "Payment initiated",
            order_id=str(order.id),
            gateway=gateway.name,
            gateway_order_id=gateway_order.gateway_order_id,
        )

        return GatewayHandle(
            order_id=str(order.id),
            order_number=order.order_number,
            gateway=gateway.name,
            gateway_order_id=gateway_order.gateway_order_id,
            amount=gateway_order.amount,
            currency=gateway_order.currency,
            client_secret=gateway_order.client_secret,
            public_key=gateway_order.public_key,
        )

    def retry_payment(self, order_id, actor: Actor) -> GatewayHandle:
        """Start a new payment attempt after a declined one, on the order's own gateway."""
        order = self._load(order_id)
        self._authorize(order, actor)
        if PaymentStatus(order.payment_status) != PaymentStatus.FAILED:
            raise InvalidTransitionError({"payment_status": ["Only a failed payment can be retried"]})
        return self.initiate_payment(order.id, actor, order.payment_method)

    def verify_redirect_payment(
        self,
        order_id,
        gateway_name: str,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        actor: Actor,
    ) -> Order:
        """Confirm a payment the client reports after returning from the gateway.

        The callback carries no amount; the amount compared against the order
        total is the one recorded when the gateway order was created.
        """
        gateway = self.gateways.get(gateway_name)
        order = self._load(order_id)
        self._authorize(order, actor)

        verified = gateway.verify(gateway_payment_id, gateway_order_id, signature)
        if not verified or order.gateway_order_id != gateway_order_id:
            reason = "Signature verification failed" if not verified else "Gateway order id does not match order"
            with self.locks.hold(order.id):
                current_domain.process(
                    RecordRejectedPayment(
                        order_id=str(order.id),
                        gateway=gateway.name,
                        gateway_payment_id=gateway_payment_id,
                        gateway_order_id=gateway_order_id,
                        source=PaymentSource.REDIRECT.value,
                        reason=reason,
                    ),
                    asynchronous=False,
                )
            logger.warning(
                "Payment confirmation rejected",
                order_id=str(order.id),
                gateway=gateway.name,
                gateway_payment_id=gateway_payment_id,
                reason=reason,
            )
            raise IntegrityError(reason)

        self.apply_payment_outcome(
            order.id,
            success=True,
            gateway=gateway.name,
            gateway_payment_id=gateway_payment_id,
            gateway_order_id=gateway_order_id,
            amount=order.gateway_order_amount(gateway_order_id),
            source=PaymentSource.REDIRECT.value,
        )
        return self._load(order.id)

    # -------------------------------------------------------------------
    # The single choke point for payment results
    # -------------------------------------------------------------------
    def apply_payment_outcome(
        self,
        order_id,
        success: bool,
        gateway: str,
        gateway_payment_id: str,
        gateway_order_id: str | None = None,
        amount: float | None = None,
        source: str = PaymentSource.WEBHOOK.value,
        failure_reason: str | None = None,
        gateway_response: str | None = None,
    ) -> OutcomeDisposition:
        """Apply a gateway-reported outcome under the order's lock.

        Raises ``IntegrityError`` after the order has been flagged and the flag
        committed.
        """
        with self.locks.hold(order_id):
            result = current_domain.process(
                ApplyPaymentOutcome(
                    order_id=str(order_id),
                    success=success,
                    gateway=gateway,
                    gateway_payment_id=gateway_payment_id,
                    gateway_order_id=gateway_order_id,
                    amount=amount,
                    source=source,
                    failure_reason=failure_reason,
                    gateway_response=gateway_response,
                ),
                asynchronous=False,
            )
        disposition = OutcomeDisposition(result)

        logger.info(
            "Payment outcome processed",
            order_id=str(order_id),
            gateway=gateway,
            gateway_payment_id=gateway_payment_id,
            success=success,
            disposition=disposition.value,
        )

        if disposition == OutcomeDisposition.FLAGGED:
            raise IntegrityError(f"Payment {gateway_payment_id} for order {order_id} flagged for reconciliation")
        return disposition

    def find_order_for_event(self, reference: str | None, gateway_order_id: str | None) -> Order | None:
        """Locate the order a gateway event refers to.

        The local order id travels in the gateway metadata as ``reference``;
        the recorded gateway order id is the fallback.
        """
        repo = current_domain.repository_for(Order)
        if reference:
            try:
                return repo.get(reference)
            except ObjectNotFoundError:
                logger.info("No order for gateway reference", reference=reference)
        if gateway_order_id:
            matches = repo._dao.query.filter(gateway_order_id=gateway_order_id).all().items
            if matches:
                return matches[0]
        return None

    def queue_for_reconciliation(self, event: GatewayEvent, reason: str, order_id=None) -> str:
        return current_domain.process(
            QueueForReconciliation(
                gateway=event.gateway_name,
                event_type=event.raw_event_type or event.event_type.value,
                gateway_payment_id=event.gateway_payment_id,
                gateway_order_id=event.gateway_order_id,
                reference=event.reference,
                order_id=str(order_id) if order_id else None,
                amount=event.amount,
                currency=event.currency,
                reason=reason,
            ),
            asynchronous=False,
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def update_shipping_status(
        self,
        order_id,
        actor: Actor,
        status: str,
        tracking_number: str | None = None,
        estimated_delivery: str | None = None,
    ) -> Order:
        self._require_admin(actor)
        try:
            OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {status}"]})

        with self.locks.hold(order_id):
            current_domain.process(
                UpdateShippingStatus(
                    order_id=str(order_id),
                    status=status,
                    tracking_number=tracking_number,
                    estimated_delivery=estimated_delivery,
                ),
                asynchronous=False,
            )

        logger.info("Shipping status updated", order_id=str(order_id), status=status, admin_id=actor.user_id)
        return self._load(order_id)

    # -------------------------------------------------------------------
    # Cancellation and refunds
    # -------------------------------------------------------------------
    def cancel_order(self, order_id, actor: Actor, reason: str | None = None) -> Order:
        """Cancel an order, refunding it first when payment was captured.

        A failed refund aborts the cancellation and the gateway error surfaces.
        """
        order = self._load(order_id)
        self._authorize(order, actor)
        cancelled_by = "admin" if actor.is_admin and not order.belongs_to(actor.user_id) else "customer"

        with self.locks.hold(order.id):
            order = self._load(order.id)
            if not order.is_cancellable:
                raise InvalidTransitionError({"status": [f"Cannot cancel order in {order.status} state"]})

            if PaymentStatus(order.payment_status) == PaymentStatus.COMPLETED:
                self._refund(order, reason, cancelled_by)
            else:
                current_domain.process(
                    CancelOrder(order_id=str(order.id), reason=reason, cancelled_by=cancelled_by),
                    asynchronous=False,
                )

        logger.info("Order cancelled", order_id=str(order.id), cancelled_by=cancelled_by)
        return self._load(order.id)

    def refund_order(self, order_id, actor: Actor, reason: str | None = None) -> Order:
        """Refund the full captured amount. Orders that have not shipped are also cancelled."""
        self._require_admin(actor)

        with self.locks.hold(order_id):
            order = self._load(order_id)
            if PaymentStatus(order.payment_status) != PaymentStatus.COMPLETED:
                raise InvalidTransitionError(
                    {"payment_status": [f"Cannot refund a payment in {order.payment_status} state"]}
                )
            self._refund(order, reason, "admin")

        return self._load(order_id)

    def _refund(self, order: Order, reason: str | None, refunded_by: str) -> None:
        """Refund through the gateway, then record it. Caller holds the order lock."""
        method = PaymentMethod(order.payment_method)
        refund_id = None

        if method != PaymentMethod.COD:
            gateway = self.gateways.get(method.value)
            result = gateway.refund(order.gateway_payment_id, order.total)
            if not result.success:
                logger.warning(
                    "Gateway refund failed",
                    order_id=str(order.id),
                    gateway=gateway.name,
                    reason=result.failure_reason,
                )
                raise GatewayError(result.failure_reason or "Refund was declined by the gateway", gateway=gateway.name)
            refund_id = result.gateway_refund_id

        current_domain.process(
            RecordRefund(
                order_id=str(order.id),
                gateway=method.value,
                gateway_refund_id=refund_id,
                amount=order.total,
                reason=reason,
                refunded_by=refunded_by,
                source=PaymentSource.ADMIN.value,
            ),
            asynchronous=False,
        )

        logger.info("Order refunded", order_id=str(order.id), gateway=method.value, refund_id=refund_id)

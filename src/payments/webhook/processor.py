"""Webhook Processor: authenticates, normalizes and routes gateway callbacks.

Every callback goes through the same steps:

1. Verify the signature over the raw body. Failures are logged with detail
   and surface to the caller only as a generic ``IntegrityError``.
2. Parse the body into a ``GatewayEvent``. Event types the service does not
   act on are acknowledged and ignored.
3. Find the order and hand the outcome to ``OrderLifecycle.apply_payment_outcome``.

Once a callback is authentic the gateway always gets a 2xx: problems on our
side are parked in the reconciliation queue instead of triggering redelivery.
"""

from enum import Enum

import structlog

from ordering.order.order import OutcomeDisposition, PaymentSource
from payments.gateway import GatewayRegistry
from shared.errors import IntegrityError

logger = structlog.get_logger(__name__)


class WebhookDisposition(Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    FLAGGED = "flagged"
    UNMATCHED = "unmatched"
    QUEUED = "queued"


_FROM_OUTCOME = {
    OutcomeDisposition.APPLIED: WebhookDisposition.APPLIED,
    OutcomeDisposition.DUPLICATE: WebhookDisposition.DUPLICATE,
    OutcomeDisposition.IGNORED: WebhookDisposition.IGNORED,
}


class WebhookProcessor:
    def __init__(self, gateways: GatewayRegistry, lifecycle) -> None:
        self.gateways = gateways
        self.lifecycle = lifecycle

    def signature_header(self, gateway_name: str) -> str:
        return self.gateways.get(gateway_name).signature_header

    def handle(self, gateway_name: str, payload: bytes, signature: str | None) -> WebhookDisposition:
        gateway = self.gateways.get(gateway_name)

        if not signature or not gateway.verify_webhook_signature(payload, signature):
            logger.warning(
                "Webhook signature verification failed",
                gateway=gateway.name,
                signature_present=bool(signature),
                payload_bytes=len(payload),
            )
            raise IntegrityError("Webhook signature verification failed")

        try:
            event = gateway.parse_webhook(payload, signature)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Malformed webhook payload", gateway=gateway.name, error=str(exc))
            raise IntegrityError("Malformed webhook payload") from exc

        if event is None:
            logger.info("Webhook event type not handled", gateway=gateway.name)
            return WebhookDisposition.IGNORED

        order = self.lifecycle.find_order_for_event(event.reference, event.gateway_order_id)
        if order is None:
            logger.warning(
                "Webhook does not match any order",
                gateway=gateway.name,
                gateway_payment_id=event.gateway_payment_id,
                gateway_order_id=event.gateway_order_id,
                reference=event.reference,
            )
            self.lifecycle.queue_for_reconciliation(event, "No order matches this gateway event")
            return WebhookDisposition.UNMATCHED

        try:
            outcome = self.lifecycle.apply_payment_outcome(
                order.id,
                success=event.success,
                gateway=event.gateway_name,
                gateway_payment_id=event.gateway_payment_id,
                gateway_order_id=event.gateway_order_id,
                amount=event.amount,
                source=PaymentSource.WEBHOOK.value,
                failure_reason=event.failure_reason,
                gateway_response=payload.decode("utf-8", errors="replace"),
            )
        except IntegrityError as exc:
            # The order is already flagged and committed
            logger.warning("Webhook outcome flagged", order_id=str(order.id), reason=str(exc))
            return WebhookDisposition.FLAGGED
        except Exception as exc:
            logger.exception(
                "Failed to apply webhook outcome",
                order_id=str(order.id),
                gateway=gateway.name,
                gateway_payment_id=event.gateway_payment_id,
            )
            self.lifecycle.queue_for_reconciliation(event, f"Failed to apply outcome: {exc}", order_id=order.id)
            return WebhookDisposition.QUEUED

        return _FROM_OUTCOME[outcome]

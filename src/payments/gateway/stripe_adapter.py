"""Stripe gateway adapter (intent/webhook style).

The server creates a PaymentIntent and hands its ``client_secret`` to the
browser. Stripe reports the outcome asynchronously through webhooks signed
with the endpoint secret (``Stripe-Signature: t=<ts>,v1=<hmac>``), which is
verified with the SDK before the payload is trusted.

The SDK client is built per adapter instance with a bounded HTTP timeout
instead of the module-level ``stripe.api_key``.
"""

import json

import stripe
import structlog

from payments.gateway.config import StripeSettings
from payments.gateway.port import (
    GatewayEvent,
    GatewayEventType,
    GatewayOrder,
    PaymentGateway,
    RefundResult,
    from_minor_units,
    to_minor_units,
)
from shared.errors import GatewayError, GatewayUnavailableError

logger = structlog.get_logger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 300

_EVENT_TYPES = {
    "payment_intent.succeeded": GatewayEventType.PAYMENT_SUCCEEDED,
    "payment_intent.payment_failed": GatewayEventType.PAYMENT_FAILED,
}


class StripeGateway(PaymentGateway):
    name = "stripe"
    signature_header = "Stripe-Signature"

    def __init__(self, settings: StripeSettings, timeout: float = 30.0, client=None) -> None:
        self.settings = settings
        self._client = client or stripe.StripeClient(
            settings.secret_key,
            http_client=stripe.RequestsClient(timeout=timeout),
        )

    def _call(self, operation: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except stripe.APIConnectionError as exc:
            raise GatewayUnavailableError(f"Stripe unreachable during {operation}", gateway=self.name) from exc
        except stripe.StripeError as exc:
            if exc.http_status is not None and exc.http_status >= 500:
                raise GatewayUnavailableError(
                    f"Stripe returned {exc.http_status} during {operation}",
                    gateway=self.name,
                ) from exc
            raise GatewayError(exc.user_message or f"Stripe rejected {operation}", gateway=self.name) from exc

    def create_order(self, amount: float, currency: str, reference: str) -> GatewayOrder:
        intent = self._call(
            "create_order",
            self._client.payment_intents.create,
            params={
                "amount": to_minor_units(amount),
                "currency": currency.lower(),
                "metadata": {"order_id": reference},
                "automatic_payment_methods": {"enabled": True},
            },
            options={"idempotency_key": f"order-{reference}"},
        )
        logger.info("Stripe payment intent created", gateway_order_id=intent.id, reference=reference)
        return GatewayOrder(
            gateway=self.name,
            gateway_order_id=intent.id,
            amount=from_minor_units(intent.amount),
            currency=intent.currency.upper(),
            status=intent.status,
            client_secret=intent.client_secret,
            public_key=self.settings.publishable_key,
        )

    def verify(self, payment_id: str, order_id: str, signature: str) -> bool:  # noqa: ARG002
        """Confirm a client-side completion by asking Stripe for the intent.

        With intents the payment id and the gateway order id are both the
        PaymentIntent id; there is no client-held signature to check.
        """
        if payment_id != order_id:
            return False
        intent = self._call("verify", self._client.payment_intents.retrieve, payment_id)
        return intent.status == "succeeded"

    def refund(self, payment_id: str, amount: float | None = None) -> RefundResult:
        params = {"payment_intent": payment_id}
        if amount is not None:
            params["amount"] = to_minor_units(amount)
        refund = self._call("refund", self._client.refunds.create, params=params)
        return RefundResult(
            success=refund.status in ("succeeded", "pending"),
            gateway_refund_id=refund.id,
            gateway_status=refund.status,
            amount=from_minor_units(refund.amount),
            failure_reason=getattr(refund, "failure_reason", None),
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not signature or not self.settings.webhook_secret:
            return False
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self.settings.webhook_secret,
                WEBHOOK_TOLERANCE_SECONDS,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as exc:
            logger.warning("Stripe webhook signature rejected", reason=str(exc))
            return False
        return True

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent | None:
        body = json.loads(payload)
        event_type = _EVENT_TYPES.get(body.get("type"))
        if event_type is None:
            return None

        intent = body.get("data", {}).get("object", {})
        metadata = intent.get("metadata") or {}
        error = intent.get("last_payment_error") or {}
        amount = intent.get("amount_received") or intent.get("amount")
        return GatewayEvent(
            gateway_name=self.name,
            event_type=event_type,
            gateway_payment_id=intent["id"],
            gateway_order_id=intent["id"],
            amount=from_minor_units(amount),
            currency=(intent.get("currency") or "").upper() or None,
            reference=metadata.get("order_id"),
            raw_signature=signature,
            raw_event_type=body.get("type"),
            failure_reason=error.get("message"),
        )

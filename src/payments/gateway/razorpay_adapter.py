"""Razorpay gateway adapter (redirect/confirm style).

The server creates a Razorpay order, the client completes payment in
Razorpay's checkout and is handed back ``razorpay_order_id``,
``razorpay_payment_id`` and ``razorpay_signature``. The signature is
``HMAC-SHA256(key_secret, order_id + "|" + payment_id)`` in hex.

Razorpay can additionally post webhooks (``payment.captured`` /
``payment.failed``) signed with a separate webhook secret over the raw body.

REST calls go through an ``httpx.Client`` with a bounded timeout.
"""

import hashlib
import hmac
import json

import httpx
import structlog

from payments.gateway.config import RazorpaySettings
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

RAZORPAY_API_BASE = "https://api.razorpay.com/v1"

_EVENT_TYPES = {
    "payment.captured": GatewayEventType.PAYMENT_SUCCEEDED,
    "payment.failed": GatewayEventType.PAYMENT_FAILED,
}


def _hmac_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class RazorpayGateway(PaymentGateway):
    name = "razorpay"
    signature_header = "X-Razorpay-Signature"

    def __init__(
        self,
        settings: RazorpaySettings,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._client = httpx.Client(
            base_url=RAZORPAY_API_BASE,
            auth=(settings.key_id, settings.key_secret),
            timeout=timeout,
            transport=transport,
        )

    def _post(self, path: str, payload: dict) -> dict:
        try:
            response = self._client.post(path, json=payload)
        except httpx.TimeoutException as exc:
            raise GatewayUnavailableError(f"Razorpay timed out on {path}", gateway=self.name) from exc
        except httpx.TransportError as exc:
            raise GatewayUnavailableError(f"Razorpay unreachable: {exc}", gateway=self.name) from exc

        if response.status_code >= 500:
            raise GatewayUnavailableError(
                f"Razorpay returned {response.status_code} on {path}",
                gateway=self.name,
            )
        if response.status_code >= 400:
            try:
                description = response.json().get("error", {}).get("description")
            except ValueError:
                description = None
            raise GatewayError(description or f"Razorpay rejected {path}", gateway=self.name)
        return response.json()

    def create_order(self, amount: float, currency: str, reference: str) -> GatewayOrder:
        data = self._post(
            "/orders",
            {
                "amount": to_minor_units(amount),
                "currency": currency,
                # Razorpay caps receipts at 40 characters
                "receipt": reference[:40],
                "notes": {"order_id": reference},
            },
        )
        logger.info("Razorpay order created", gateway_order_id=data["id"], reference=reference)
        return GatewayOrder(
            gateway=self.name,
            gateway_order_id=data["id"],
            amount=from_minor_units(data.get("amount", to_minor_units(amount))),
            currency=data.get("currency", currency),
            status=data.get("status"),
            public_key=self.settings.key_id,
            raw_response=json.dumps(data),
        )

    def verify(self, payment_id: str, order_id: str, signature: str) -> bool:
        if not signature:
            return False
        expected = _hmac_hex(self.settings.key_secret, f"{order_id}|{payment_id}".encode())
        return hmac.compare_digest(expected, signature)

    def refund(self, payment_id: str, amount: float | None = None) -> RefundResult:
        payload = {} if amount is None else {"amount": to_minor_units(amount)}
        data = self._post(f"/payments/{payment_id}/refund", payload)
        return RefundResult(
            success=data.get("status") != "failed",
            gateway_refund_id=data.get("id"),
            gateway_status=data.get("status"),
            amount=from_minor_units(data.get("amount")),
        )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not signature or not self.settings.webhook_secret:
            return False
        expected = _hmac_hex(self.settings.webhook_secret, payload)
        return hmac.compare_digest(expected, signature)

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent | None:
        body = json.loads(payload)
        event_type = _EVENT_TYPES.get(body.get("event"))
        if event_type is None:
            return None

        entity = body.get("payload", {}).get("payment", {}).get("entity", {})
        notes = entity.get("notes") or {}
        return GatewayEvent(
            gateway_name=self.name,
            event_type=event_type,
            gateway_payment_id=entity["id"],
            gateway_order_id=entity.get("order_id"),
            amount=from_minor_units(entity.get("amount")),
            currency=entity.get("currency"),
            reference=notes.get("order_id") if isinstance(notes, dict) else None,
            raw_signature=signature,
            raw_event_type=body.get("event"),
            failure_reason=entity.get("error_description"),
        )

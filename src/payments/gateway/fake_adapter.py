"""Configurable fake payment gateway for development and testing.

Simulates either gateway variant without any external calls. It can be
configured at runtime to succeed or fail, and records every call for
assertions. Signatures are accepted when they equal ``"test-signature"``.

Webhook bodies are plain JSON::

    {"type": "payment.succeeded" | "payment.failed",
     "payment_id": "...", "order_id": "...", "amount": <minor units>,
     "reference": "<local order id>"}
"""

import json
from uuid import uuid4

from payments.gateway.port import (
    GatewayEvent,
    GatewayEventType,
    GatewayOrder,
    PaymentGateway,
    RefundResult,
    from_minor_units,
)
from shared.errors import GatewayError, GatewayUnavailableError

TEST_SIGNATURE = "test-signature"

_EVENT_TYPES = {
    "payment.succeeded": GatewayEventType.PAYMENT_SUCCEEDED,
    "payment.failed": GatewayEventType.PAYMENT_FAILED,
}


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    signature_header = "X-Gateway-Signature"

    def __init__(self, name: str = "fake") -> None:
        self.name = name
        self.should_succeed: bool = True
        self.unavailable: bool = False
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        unavailable: bool = False,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.unavailable = unavailable

    def _check_available(self, method: str) -> None:
        if self.unavailable:
            raise GatewayUnavailableError(f"{self.name} timed out during {method}", gateway=self.name)

    def create_order(self, amount: float, currency: str, reference: str) -> GatewayOrder:
        self.calls.append(
            {
                "method": "create_order",
                "amount": amount,
                "currency": currency,
                "reference": reference,
            }
        )
        self._check_available("create_order")
        if not self.should_succeed:
            raise GatewayError(self.failure_reason, gateway=self.name)

        gateway_order_id = f"fake_order_{uuid4().hex[:12]}"
        return GatewayOrder(
            gateway=self.name,
            gateway_order_id=gateway_order_id,
            amount=amount,
            currency=currency,
            status="created",
            client_secret=f"{gateway_order_id}_secret",
            public_key="fake_public_key",
        )

    def verify(self, payment_id: str, order_id: str, signature: str) -> bool:
        self.calls.append(
            {
                "method": "verify",
                "payment_id": payment_id,
                "order_id": order_id,
                "signature": signature,
            }
        )
        self._check_available("verify")
        return signature == TEST_SIGNATURE

    def refund(self, payment_id: str, amount: float | None = None) -> RefundResult:
        self.calls.append({"method": "refund", "payment_id": payment_id, "amount": amount})
        self._check_available("refund")

        if self.should_succeed:
            return RefundResult(
                success=True,
                gateway_refund_id=f"fake_ref_{uuid4().hex[:12]}",
                gateway_status="processed",
                amount=amount,
            )
        return RefundResult(success=False, gateway_status="failed", failure_reason=self.failure_reason)

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE

    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent | None:
        body = json.loads(payload)
        event_type = _EVENT_TYPES.get(body.get("type"))
        if event_type is None:
            return None
        return GatewayEvent(
            gateway_name=self.name,
            event_type=event_type,
            gateway_payment_id=body["payment_id"],
            gateway_order_id=body.get("order_id"),
            amount=from_minor_units(body.get("amount")),
            currency=body.get("currency"),
            reference=body.get("reference"),
            raw_signature=signature,
            raw_event_type=body.get("type"),
            failure_reason=body.get("failure_reason"),
        )

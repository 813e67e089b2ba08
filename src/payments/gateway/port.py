"""Payment gateway port (abstract interface).

Defines the contract every gateway adapter implements. Two real variants exist:
a redirect/confirm gateway (Razorpay style: the client pays on the gateway page
and comes back with a signed token) and an intent/webhook gateway (Stripe
style: the server creates an intent and the gateway reports the outcome later
through a signed webhook). The Order Lifecycle Manager and the Webhook
Processor only ever talk to this interface.

Amounts cross this interface in major units (e.g. rupees). Adapters convert to
the gateway's minor units on the way out and back on the way in.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class GatewayEventType(Enum):
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"


def to_minor_units(amount: float) -> int:
    """Convert a major-unit amount to the integer minor units gateways expect."""
    return int(round(amount * 100))


def from_minor_units(amount: int | None) -> float | None:
    if amount is None:
        return None
    return round(int(amount) / 100, 2)


@dataclass(frozen=True)
class GatewayOrder:
    """Gateway-side order or payment intent created for a local order."""

    gateway: str
    gateway_order_id: str
    amount: float
    currency: str
    status: str | None = None
    client_secret: str | None = None
    public_key: str | None = None
    raw_response: str | None = None


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    gateway_refund_id: str | None = None
    gateway_status: str | None = None
    amount: float | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class GatewayEvent:
    """Normalized shape of an authenticated asynchronous gateway callback."""

    gateway_name: str
    event_type: GatewayEventType
    gateway_payment_id: str
    gateway_order_id: str | None = None
    amount: float | None = None
    currency: str | None = None
    reference: str | None = None
    raw_signature: str | None = field(default=None, repr=False)
    raw_event_type: str | None = None
    failure_reason: str | None = None

    @property
    def success(self) -> bool:
        return self.event_type == GatewayEventType.PAYMENT_SUCCEEDED


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = ""
    signature_header: str = ""

    @abstractmethod
    def create_order(self, amount: float, currency: str, reference: str) -> GatewayOrder:
        """Create the gateway-side order or intent for ``amount`` (major units).

        ``reference`` is the local order id and doubles as the idempotency key.
        """
        ...

    @abstractmethod
    def verify(self, payment_id: str, order_id: str, signature: str) -> bool:
        """Verify a synchronous payment confirmation for a gateway order."""
        ...

    @abstractmethod
    def refund(self, payment_id: str, amount: float | None = None) -> RefundResult:
        """Refund a captured payment, fully when ``amount`` is None."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a raw webhook body is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes, signature: str) -> GatewayEvent | None:
        """Normalize an already verified webhook body.

        Returns None for event types this system does not act on.
        """
        ...

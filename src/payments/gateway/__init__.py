"""Payment gateway registry.

``build_gateways(settings)`` turns the startup ``GatewaySettings`` into a
``GatewayRegistry`` keyed by gateway name. The registry is passed into the
services that need it; there is no process-wide current gateway.
"""

from payments.gateway.config import GatewaySettings
from payments.gateway.port import PaymentGateway
from protean.exceptions import ValidationError


class GatewayRegistry:
    """Name → adapter lookup handed to the lifecycle service and webhook processor."""

    def __init__(self, gateways: dict[str, PaymentGateway] | None = None) -> None:
        self._gateways: dict[str, PaymentGateway] = dict(gateways or {})

    def register(self, gateway: PaymentGateway) -> None:
        self._gateways[gateway.name] = gateway

    def get(self, name: str) -> PaymentGateway:
        gateway = self._gateways.get(name)
        if gateway is None:
            raise ValidationError({"gateway": [f"Unsupported payment gateway: {name}"]})
        return gateway

    def __contains__(self, name: str) -> bool:
        return name in self._gateways

    def names(self) -> list[str]:
        return sorted(self._gateways)


def build_gateways(settings: GatewaySettings) -> GatewayRegistry:
    """Instantiate an adapter for every gateway that has credentials configured."""
    registry = GatewayRegistry()

    if settings.razorpay is not None:
        from payments.gateway.razorpay_adapter import RazorpayGateway

        registry.register(RazorpayGateway(settings.razorpay, timeout=settings.timeout_seconds))

    if settings.stripe is not None:
        from payments.gateway.stripe_adapter import StripeGateway

        registry.register(StripeGateway(settings.stripe, timeout=settings.timeout_seconds))

    return registry

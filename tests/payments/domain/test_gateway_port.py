"""Tests for gateway settings, the registry and amount conversion."""

import pytest
from payments.gateway import GatewayRegistry, build_gateways
from payments.gateway.config import GatewaySettings, RazorpaySettings, StripeSettings
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import GatewayEvent, GatewayEventType, from_minor_units, to_minor_units
from payments.gateway.razorpay_adapter import RazorpayGateway
from payments.gateway.stripe_adapter import StripeGateway
from protean.exceptions import ValidationError


class TestMinorUnits:
    def test_to_minor_units_rounds(self):
        assert to_minor_units(1000.0) == 100000
        assert to_minor_units(249.5) == 24950
        assert to_minor_units(0.1 + 0.2) == 30

    def test_from_minor_units(self):
        assert from_minor_units(24950) == 249.5
        assert from_minor_units(None) is None


class TestGatewayEvent:
    def test_success_flag(self):
        succeeded = GatewayEvent("stripe", GatewayEventType.PAYMENT_SUCCEEDED, "pi_1")
        failed = GatewayEvent("stripe", GatewayEventType.PAYMENT_FAILED, "pi_1")
        assert succeeded.success is True
        assert failed.success is False

    def test_signature_not_in_repr(self):
        event = GatewayEvent("stripe", GatewayEventType.PAYMENT_SUCCEEDED, "pi_1", raw_signature="secret-sig")
        assert "secret-sig" not in repr(event)


class TestGatewaySettings:
    def test_empty_environment(self):
        settings = GatewaySettings.from_env({})
        assert settings.razorpay is None
        assert settings.stripe is None
        assert settings.timeout_seconds == 30.0

    def test_razorpay_needs_key_and_secret(self):
        assert GatewaySettings.from_env({"RAZORPAY_KEY_ID": "rzp_test"}).razorpay is None

        settings = GatewaySettings.from_env(
            {
                "RAZORPAY_KEY_ID": "rzp_test",
                "RAZORPAY_KEY_SECRET": "shh",
                "RAZORPAY_WEBHOOK_SECRET": "whsec",
            }
        )
        assert settings.razorpay == RazorpaySettings("rzp_test", "shh", "whsec")

    def test_stripe_and_timeout(self):
        settings = GatewaySettings.from_env(
            {
                "STRIPE_SECRET_KEY": "sk_test",
                "STRIPE_PUBLISHABLE_KEY": "pk_test",
                "PAYMENT_GATEWAY_TIMEOUT": "5",
            }
        )
        assert settings.stripe == StripeSettings("sk_test", "pk_test", None)
        assert settings.timeout_seconds == 5.0


class TestGatewayRegistry:
    def test_lookup_by_name(self):
        gateway = FakeGateway(name="razorpay")
        registry = GatewayRegistry()
        registry.register(gateway)

        assert registry.get("razorpay") is gateway
        assert "razorpay" in registry
        assert "stripe" not in registry

    def test_unknown_gateway(self):
        with pytest.raises(ValidationError) as exc:
            GatewayRegistry().get("paypal")
        assert "gateway" in exc.value.messages

    def test_names_are_sorted(self):
        registry = GatewayRegistry({"stripe": FakeGateway("stripe"), "razorpay": FakeGateway("razorpay")})
        assert registry.names() == ["razorpay", "stripe"]

    def test_build_without_credentials(self):
        assert build_gateways(GatewaySettings()).names() == []

    def test_build_with_credentials(self):
        registry = build_gateways(
            GatewaySettings(
                razorpay=RazorpaySettings("rzp_test", "shh"),
                stripe=StripeSettings("sk_test"),
            )
        )
        assert isinstance(registry.get("razorpay"), RazorpayGateway)
        assert isinstance(registry.get("stripe"), StripeGateway)


class TestFakeGateway:
    def test_records_calls(self):
        gateway = FakeGateway(name="razorpay")
        order = gateway.create_order(1000.0, "INR", "order-1")

        assert order.gateway == "razorpay"
        assert order.amount == 1000.0
        assert gateway.calls[0]["method"] == "create_order"

    def test_signature(self):
        gateway = FakeGateway()
        assert gateway.verify("pay_1", "order_1", "test-signature") is True
        assert gateway.verify("pay_1", "order_1", "nope") is False

    def test_failed_refund(self):
        gateway = FakeGateway()
        gateway.configure(should_succeed=False, failure_reason="Refund window closed")
        result = gateway.refund("pay_1", 100.0)

        assert result.success is False
        assert result.failure_reason == "Refund window closed"

    def test_parse_unknown_event(self):
        assert FakeGateway().parse_webhook(b'{"type": "payment.authorized"}', "test-signature") is None

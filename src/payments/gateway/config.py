"""Gateway settings read once at startup.

``GatewaySettings.from_env()`` is the only place that touches the process
environment; everything downstream receives the frozen struct (or the
adapters built from it) through constructors.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class RazorpaySettings:
    key_id: str
    key_secret: str
    webhook_secret: str | None = None


@dataclass(frozen=True)
class StripeSettings:
    secret_key: str
    publishable_key: str | None = None
    webhook_secret: str | None = None


@dataclass(frozen=True)
class GatewaySettings:
    razorpay: RazorpaySettings | None = None
    stripe: StripeSettings | None = None
    timeout_seconds: float = 30.0
    currency: str = "INR"

    @classmethod
    def from_env(cls, environ=None) -> "GatewaySettings":
        env = os.environ if environ is None else environ

        razorpay = None
        if env.get("RAZORPAY_KEY_ID") and env.get("RAZORPAY_KEY_SECRET"):
            razorpay = RazorpaySettings(
                key_id=env["RAZORPAY_KEY_ID"],
                key_secret=env["RAZORPAY_KEY_SECRET"],
                webhook_secret=env.get("RAZORPAY_WEBHOOK_SECRET"),
            )

        stripe = None
        if env.get("STRIPE_SECRET_KEY"):
            stripe = StripeSettings(
                secret_key=env["STRIPE_SECRET_KEY"],
                publishable_key=env.get("STRIPE_PUBLISHABLE_KEY"),
                webhook_secret=env.get("STRIPE_WEBHOOK_SECRET"),
            )

        return cls(
            razorpay=razorpay,
            stripe=stripe,
            timeout_seconds=float(env.get("PAYMENT_GATEWAY_TIMEOUT", "30")),
            currency=env.get("STORE_CURRENCY", "INR"),
        )

"""Storefront settings consumed by checkout pricing and customer emails.

Settings are read from the environment once at startup and installed with
``set_settings``; event handlers read them through ``get_settings``.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class CheckoutSettings:
    currency: str = "INR"
    shipping_flat_fee: float = 0.0
    free_shipping_threshold: float | None = None
    storefront_url: str = "http://localhost:3000"

    @classmethod
    def from_env(cls, environ=None) -> "CheckoutSettings":
        env = os.environ if environ is None else environ
        threshold = env.get("FREE_SHIPPING_THRESHOLD")
        return cls(
            currency=env.get("STORE_CURRENCY", "INR"),
            shipping_flat_fee=float(env.get("SHIPPING_FLAT_FEE", "0")),
            free_shipping_threshold=float(threshold) if threshold else None,
            storefront_url=env.get("STOREFRONT_URL", "http://localhost:3000").rstrip("/"),
        )

    def retry_link(self, order_id: str) -> str:
        """Storefront page that restarts payment through ``POST /orders/{id}/retry-payment``."""
        return f"{self.storefront_url}/orders/{order_id}/retry-payment"


_settings = CheckoutSettings()


def get_settings() -> CheckoutSettings:
    return _settings


def set_settings(settings: CheckoutSettings) -> None:
    global _settings
    _settings = settings


def reset_settings() -> None:
    set_settings(CheckoutSettings())

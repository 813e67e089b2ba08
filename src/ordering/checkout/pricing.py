"""Server-side checkout pricing.

Totals are always recomputed from the catalog; prices submitted by the client
are never used. At most one discount code applies and the total never goes
below zero.
"""

from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from protean.exceptions import ValidationError

from ordering.collaborators.port import (
    CartLine,
    CatalogStore,
    DiscountCode,
    DiscountCodeStore,
    DiscountType,
)
from ordering.config import CheckoutSettings


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    name: str
    quantity: int
    unit_price: float

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Quote:
    lines: list[PricedLine]
    subtotal: float
    discount: float
    shipping: float
    total: float
    currency: str
    discount_code: str | None = None


def _merge(lines: list[CartLine]) -> dict[str, int]:
    merged: dict[str, int] = {}
    for line in lines:
        if line.quantity is None or line.quantity < 1:
            raise ValidationError({"items": [f"Quantity for {line.product_id} must be at least 1"]})
        merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
    return merged


def compute_discount(code: DiscountCode, subtotal: float) -> float:
    if code.discount_type == DiscountType.PERCENTAGE.value:
        amount = subtotal * code.value / 100
    else:
        amount = code.value
    return round(min(max(amount, 0.0), subtotal), 2)


def resolve_discount(
    discounts: DiscountCodeStore,
    code: str,
    subtotal: float,
    now: datetime,
) -> DiscountCode:
    found = discounts.find(code)
    if found is None or not found.is_valid_at(now):
        raise ValidationError({"discount_code": ["Invalid or expired discount code"]})
    if found.min_order_amount is not None and subtotal < found.min_order_amount:
        raise ValidationError(
            {"discount_code": [f"Discount code requires a minimum order of {found.min_order_amount:.2f}"]}
        )
    return found


def price_cart(
    lines: list[CartLine],
    catalog: CatalogStore,
    discounts: DiscountCodeStore,
    settings: CheckoutSettings,
    discount_code: str | None = None,
    now: datetime | None = None,
) -> Quote:
    """Price cart lines against the live catalog and apply an optional discount."""
    if not lines:
        raise ValidationError({"items": ["Cart is empty"]})

    priced = []
    for product_id, quantity in _merge(lines).items():
        product = catalog.get_product(product_id)
        if product is None or not product.is_active:
            raise ValidationError({"items": [f"Product {product_id} is not available"]})
        priced.append(
            PricedLine(
                product_id=product_id,
                name=product.name,
                quantity=quantity,
                unit_price=round(product.price, 2),
            )
        )

    subtotal = round(sum(line.unit_price * line.quantity for line in priced), 2)

    discount = 0.0
    applied_code = None
    if discount_code:
        code = resolve_discount(discounts, discount_code, subtotal, now or datetime.now(UTC))
        discount = compute_discount(code, subtotal)
        applied_code = code.code

    shipping = settings.shipping_flat_fee
    if settings.free_shipping_threshold is not None and subtotal >= settings.free_shipping_threshold:
        shipping = 0.0
    shipping = round(shipping, 2)

    return Quote(
        lines=priced,
        subtotal=subtotal,
        discount=discount,
        shipping=shipping,
        total=round(subtotal - discount + shipping, 2),
        currency=settings.currency,
        discount_code=applied_code,
    )

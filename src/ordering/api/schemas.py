"""Pydantic request/response schemas for the checkout, order and admin API.

These are external contracts (anti-corruption layer), kept separate from
internal Protean commands. The storefront speaks camelCase on the wire.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class CheckoutItemSchema(ApiModel):
    product_id: str
    quantity: int = Field(ge=1)
    price: float | None = None  # Accepted for compatibility, never used


class CheckoutRequest(ApiModel):
    address_id: str
    billing_address_id: str | None = None
    items: list[CheckoutItemSchema] | None = None
    payment_method: str
    discount_code: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "addressId": "addr-001",
                    "items": [{"productId": "p1", "quantity": 2}],
                    "paymentMethod": "razorpay",
                    "discountCode": "WELCOME10",
                }
            ]
        },
    )


class CancelOrderRequest(ApiModel):
    reason: str | None = None


class UpdateStatusRequest(ApiModel):
    status: str
    tracking_number: str | None = None
    estimated_delivery: str | None = None


class RefundOrderRequest(ApiModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class AddressResponse(ApiModel):
    name: str | None = None
    line1: str
    line2: str | None = None
    city: str
    state: str | None = None
    postal_code: str
    country: str
    phone: str | None = None


class OrderItemResponse(ApiModel):
    product_id: str
    name: str | None = None
    quantity: int
    unit_price: float


class OrderResponse(ApiModel):
    id: str
    order_number: str
    customer_id: str
    status: str
    payment_status: str
    payment_method: str
    items: list[OrderItemResponse]
    shipping_address_id: str
    shipping_address: AddressResponse | None = None
    billing_address_id: str | None = None
    billing_address: AddressResponse | None = None
    subtotal: float
    discount: float
    shipping: float
    total: float
    currency: str
    discount_code: str | None = None
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    tracking_number: str | None = None
    estimated_delivery: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderEnvelope(ApiModel):
    order: OrderResponse


class PaymentLogResponse(ApiModel):
    id: str
    entry_type: str
    source: str | None = None
    gateway: str | None = None
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    amount: float | None = None
    currency: str | None = None
    message: str | None = None
    created_at: datetime | None = None


class PaymentLogsResponse(ApiModel):
    order_id: str
    flagged: bool
    flag_reason: str | None = None
    logs: list[PaymentLogResponse]


def _address(value) -> AddressResponse | None:
    if value is None:
        return None
    return AddressResponse(
        name=value.name,
        line1=value.line1,
        line2=value.line2,
        city=value.city,
        state=value.state,
        postal_code=value.postal_code,
        country=value.country,
        phone=value.phone,
    )


def order_response(order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        customer_id=str(order.customer_id),
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in order.items or []
        ],
        shipping_address_id=str(order.shipping_address_id),
        shipping_address=_address(order.shipping_address),
        billing_address_id=str(order.billing_address_id) if order.billing_address_id else None,
        billing_address=_address(order.billing_address),
        subtotal=order.subtotal,
        discount=order.discount,
        shipping=order.shipping,
        total=order.total,
        currency=order.currency,
        discount_code=order.discount_code,
        gateway_order_id=order.gateway_order_id,
        gateway_payment_id=order.gateway_payment_id,
        tracking_number=order.tracking_number,
        estimated_delivery=order.estimated_delivery,
        cancellation_reason=order.cancellation_reason,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def payment_logs_response(order, logs) -> PaymentLogsResponse:
    return PaymentLogsResponse(
        order_id=str(order.id),
        flagged=bool(order.flagged),
        flag_reason=order.flag_reason,
        logs=[
            PaymentLogResponse(
                id=str(log.id),
                entry_type=log.entry_type,
                source=log.source,
                gateway=log.gateway,
                gateway_order_id=log.gateway_order_id,
                gateway_payment_id=log.gateway_payment_id,
                amount=log.amount,
                currency=log.currency,
                message=log.message,
                created_at=log.created_at,
            )
            for log in logs
        ],
    )

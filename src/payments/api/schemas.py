"""Pydantic request/response schemas for gateway checkout and webhook routes."""

from ordering.api.schemas import ApiModel, OrderResponse


class InitiatePaymentRequest(ApiModel):
    order_id: str


class GatewayHandleResponse(ApiModel):
    order_id: str
    order_number: str
    gateway: str
    gateway_order_id: str
    amount: float
    currency: str
    client_secret: str | None = None
    key: str | None = None


class VerifyPaymentRequest(ApiModel):
    gateway_order_id: str
    gateway_payment_id: str
    signature: str
    order_id: str


class VerifyPaymentResponse(ApiModel):
    success: bool
    order: OrderResponse


class WebhookAck(ApiModel):
    received: bool = True
    status: str

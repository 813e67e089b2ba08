"""FastAPI routes for gateway payment initiation, redirect confirmation and webhooks.

Handlers are plain functions: gateway SDK calls block, so FastAPI runs them
in its threadpool instead of on the event loop.
"""

from fastapi import APIRouter, Depends, Request

from ordering.api.dependencies import get_actor, get_lifecycle, get_webhook_processor, raw_body
from ordering.api.schemas import order_response
from ordering.collaborators.port import Actor
from payments.api.schemas import (
    GatewayHandleResponse,
    InitiatePaymentRequest,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookAck,
)


def _handle_response(handle) -> GatewayHandleResponse:
    return GatewayHandleResponse(
        order_id=handle.order_id,
        order_number=handle.order_number,
        gateway=handle.gateway,
        gateway_order_id=handle.gateway_order_id,
        amount=handle.amount,
        currency=handle.currency,
        client_secret=handle.client_secret,
        key=handle.public_key,
    )


# ---------------------------------------------------------------------------
# Gateway Checkout Router
# ---------------------------------------------------------------------------
gateway_router = APIRouter(prefix="/checkout", tags=["payments"])


@gateway_router.post("/{gateway}/init", response_model=GatewayHandleResponse)
def initiate_payment(
    gateway: str,
    body: InitiatePaymentRequest,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> GatewayHandleResponse:
    """Create the gateway order or payment intent for an existing order."""
    return _handle_response(lifecycle.initiate_payment(body.order_id, actor, gateway))


@gateway_router.post("/{gateway}/verify", response_model=VerifyPaymentResponse)
def verify_payment(
    gateway: str,
    body: VerifyPaymentRequest,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> VerifyPaymentResponse:
    """Confirm a redirect-style payment with the signed token from the gateway."""
    order = lifecycle.verify_redirect_payment(
        body.order_id,
        gateway_name=gateway,
        gateway_order_id=body.gateway_order_id,
        gateway_payment_id=body.gateway_payment_id,
        signature=body.signature,
        actor=actor,
    )
    return VerifyPaymentResponse(success=True, order=order_response(order))


@gateway_router.post("/retry/{order_id}", response_model=GatewayHandleResponse)
def retry_payment(
    order_id: str,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> GatewayHandleResponse:
    """Start a new payment attempt for an order whose last payment was declined."""
    return _handle_response(lifecycle.retry_payment(order_id, actor))


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/{gateway}", response_model=WebhookAck)
def receive_webhook(
    gateway: str,
    request: Request,
    payload: bytes = Depends(raw_body),
    processor=Depends(get_webhook_processor),
) -> WebhookAck:
    """Ingest a gateway callback. The signature is checked against the raw body."""
    signature = request.headers.get(processor.signature_header(gateway))
    disposition = processor.handle(gateway, payload, signature)
    return WebhookAck(status=disposition.value)

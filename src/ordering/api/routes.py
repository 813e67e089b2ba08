"""FastAPI routes for checkout, customer orders and admin order management.

Handlers are plain functions so FastAPI runs them in its threadpool; order
locks and gateway refunds block.
"""

from fastapi import APIRouter, Depends

from ordering.api.dependencies import get_actor, get_lifecycle
from ordering.api.schemas import (
    CancelOrderRequest,
    CheckoutRequest,
    OrderEnvelope,
    PaymentLogsResponse,
    RefundOrderRequest,
    UpdateStatusRequest,
    order_response,
    payment_logs_response,
)
from ordering.collaborators.port import Actor, CartLine

# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=OrderEnvelope)
def checkout(
    body: CheckoutRequest,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> OrderEnvelope:
    """Create an order from the submitted items, or from the user's cart."""
    items = None
    if body.items is not None:
        items = [CartLine(product_id=item.product_id, quantity=item.quantity) for item in body.items]

    order = lifecycle.create_order(
        actor,
        shipping_address_id=body.address_id,
        billing_address_id=body.billing_address_id,
        payment_method=body.payment_method,
        items=items,
        discount_code=body.discount_code,
    )
    return OrderEnvelope(order=order_response(order))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_id}", response_model=OrderEnvelope)
def get_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> OrderEnvelope:
    return OrderEnvelope(order=order_response(lifecycle.get_order(order_id, actor)))


@order_router.put("/{order_id}/cancel", response_model=OrderEnvelope)
def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> OrderEnvelope:
    """Cancel an order. Paid orders are refunded through the gateway first."""
    reason = body.reason if body else None
    order = lifecycle.cancel_order(order_id, actor, reason=reason)
    return OrderEnvelope(order=order_response(order))


@order_router.get("/{order_id}/payment-logs", response_model=PaymentLogsResponse)
def get_payment_logs(
    order_id: str,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> PaymentLogsResponse:
    """Audit trail of gateway interactions (admin only)."""
    logs = lifecycle.payment_logs(order_id, actor)
    order = lifecycle.get_order(order_id, actor)
    return payment_logs_response(order, logs)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_router.put("/{order_id}/status", response_model=OrderEnvelope)
def update_status(
    order_id: str,
    body: UpdateStatusRequest,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> OrderEnvelope:
    order = lifecycle.update_shipping_status(
        order_id,
        actor,
        status=body.status,
        tracking_number=body.tracking_number,
        estimated_delivery=body.estimated_delivery,
    )
    return OrderEnvelope(order=order_response(order))


@admin_router.post("/{order_id}/refund", response_model=OrderEnvelope)
def refund_order(
    order_id: str,
    body: RefundOrderRequest | None = None,
    actor: Actor = Depends(get_actor),
    lifecycle=Depends(get_lifecycle),
) -> OrderEnvelope:
    order = lifecycle.refund_order(order_id, actor, reason=body.reason if body else None)
    return OrderEnvelope(order=order_response(order))

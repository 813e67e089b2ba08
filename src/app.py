"""Storefront ordering and payments FastAPI application.

Handles checkout, gateway payment initiation and confirmation, gateway
webhooks, and admin order management. Commands are processed synchronously
inside each request; every request runs inside the ordering domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV controls which config overlay is applied:
#   - "test" or unset → event_processing = "sync"  (emails and analytics fire after commit, in-request)
#   - "production"    → event_processing = "async" (handlers fire via the Engine in src/server.py)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.collaborators.seed import build_stores
from ordering.config import CheckoutSettings, set_settings
from ordering.domain import logger, ordering
from ordering.lifecycle import OrderLifecycle
from ordering.order.locks import order_locks_for
from payments.gateway import build_gateways
from payments.gateway.config import GatewaySettings
from payments.webhook.processor import WebhookProcessor
from shared.error_handlers import register_error_handlers

ordering.init()

# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
# Gateway credentials are read once here and injected; nothing below looks
# them up lazily.
gateway_settings = GatewaySettings.from_env()
gateways = build_gateways(gateway_settings)

checkout_settings = CheckoutSettings.from_env()
set_settings(checkout_settings)

# Cart, catalog, address book and discount codes are owned by the storefront.
# Until real adapters are wired they come from STOREFRONT_SEED_FILE; without
# it the stores are empty and /health reports checkout as unavailable.
stores = build_stores()

lifecycle = OrderLifecycle(
    gateways=gateways,
    carts=stores.carts,
    catalog=stores.catalog,
    addresses=stores.addresses,
    discounts=stores.discounts,
    settings=checkout_settings,
    locks=order_locks_for(ordering),
)
webhooks = WebhookProcessor(gateways, lifecycle)

logger.info("Payment gateways configured", gateways=gateways.names())

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Ordering API",
    description="Checkout, payments and order lifecycle",
)
app.state.lifecycle = lifecycle
app.state.webhooks = webhooks

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context for each request."""
    with ordering.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api.routes import admin_router, checkout_router, order_router  # noqa: E402
from payments.api.routes import gateway_router, webhook_router  # noqa: E402

app.include_router(checkout_router)
app.include_router(gateway_router)
app.include_router(order_router)
app.include_router(admin_router)
app.include_router(webhook_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": ordering.name,
            "gateways": gateways.names(),
            "checkout": stores.can_checkout,
        }
    )

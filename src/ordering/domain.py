"""Ordering bounded context: Order & Payment Lifecycle.

Converts carts into durable orders, coordinates with the external payment
gateways, reconciles gateway-reported outcomes with persisted order state, and
triggers customer notifications and analytics once per meaningful transition.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")

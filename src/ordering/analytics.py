"""Best-effort analytics recording for checkout and purchase events.

The recorder is process-wide and swappable; it defaults to an in-memory
recorder. Recording runs after the order transition commits and a failing
recorder is only logged.
"""

import structlog
from protean.utils.mixins import handle

from ordering.collaborators.memory import InMemoryAnalytics
from ordering.collaborators.port import AnalyticsRecorder
from ordering.domain import ordering
from ordering.order.events import OrderPlaced, PaymentCompleted
from ordering.order.order import Order

logger = structlog.get_logger(__name__)

CHECKOUT_START = "CHECKOUT_START"
PURCHASE = "PURCHASE"

_recorder: AnalyticsRecorder = InMemoryAnalytics()


def get_recorder() -> AnalyticsRecorder:
    return _recorder


def set_recorder(recorder: AnalyticsRecorder) -> None:
    global _recorder
    _recorder = recorder


def reset_recorder() -> None:
    set_recorder(InMemoryAnalytics())


def _record(event_type, user_id, data):
    try:
        _recorder.record(event_type, user_id, data)
    except Exception as exc:
        logger.warning("Analytics recording failed", event_type=event_type, error=str(exc))


@ordering.event_handler(part_of=Order)
class AnalyticsHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        _record(
            CHECKOUT_START,
            str(event.customer_id),
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "total": event.total,
                "payment_method": event.payment_method,
            },
        )

    @handle(PaymentCompleted)
    def on_payment_completed(self, event: PaymentCompleted) -> None:
        _record(
            PURCHASE,
            str(event.customer_id),
            {
                "order_id": str(event.order_id),
                "order_number": event.order_number,
                "amount": event.amount,
                "currency": event.currency,
                "gateway": event.gateway,
            },
        )

"""Manual reconciliation queue.

Gateway events that were authentic but could not be applied (no matching
order, or an error while applying) are parked here for an operator instead
of being bounced back to the gateway.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String

from ordering.domain import ordering


class ReconciliationStatus(Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


@ordering.event(part_of="ReconciliationItem")
class ReconciliationQueued:
    __version__ = 1

    item_id = Identifier(required=True)
    gateway = String(required=True)
    gateway_payment_id = String()
    order_id = Identifier()
    reason = String(required=True)
    queued_at = DateTime(required=True)


@ordering.aggregate
class ReconciliationItem:
    gateway = String(required=True, max_length=50)
    event_type = String(max_length=100)
    gateway_payment_id = String(max_length=255)
    gateway_order_id = String(max_length=255)
    reference = String(max_length=255)
    order_id = Identifier()
    amount = Float()
    currency = String(max_length=3)
    reason = String(required=True, max_length=1000)
    status = String(choices=ReconciliationStatus, default=ReconciliationStatus.OPEN.value)
    resolution = String(max_length=1000)
    resolved_by = String(max_length=255)
    created_at = DateTime()
    resolved_at = DateTime()

    @classmethod
    def queue(cls, gateway, reason, **details):
        now = datetime.now(UTC)
        item = cls(gateway=gateway, reason=reason[:1000], created_at=now, **details)
        item.raise_(
            ReconciliationQueued(
                item_id=str(item.id),
                gateway=gateway,
                gateway_payment_id=item.gateway_payment_id,
                order_id=str(item.order_id) if item.order_id else None,
                reason=item.reason,
                queued_at=now,
            )
        )
        return item

    def resolve(self, resolution, resolved_by):
        if ReconciliationStatus(self.status) != ReconciliationStatus.OPEN:
            raise ValidationError({"status": ["Reconciliation item is already resolved"]})
        self.status = ReconciliationStatus.RESOLVED.value
        self.resolution = resolution
        self.resolved_by = resolved_by
        self.resolved_at = datetime.now(UTC)

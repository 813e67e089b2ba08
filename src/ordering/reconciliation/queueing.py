"""Reconciliation commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.reconciliation.reconciliation import ReconciliationItem, ReconciliationStatus


@ordering.command(part_of="ReconciliationItem")
class QueueForReconciliation:
    gateway = String(required=True, max_length=50)
    event_type = String(max_length=100)
    gateway_payment_id = String(max_length=255)
    gateway_order_id = String(max_length=255)
    reference = String(max_length=255)
    order_id = Identifier()
    amount = Float()
    currency = String(max_length=3)
    reason = Text(required=True)


@ordering.command(part_of="ReconciliationItem")
class ResolveReconciliationItem:
    item_id = Identifier(required=True)
    resolution = String(required=True, max_length=1000)
    resolved_by = String(required=True, max_length=255)


@ordering.command_handler(part_of=ReconciliationItem)
class ReconciliationHandler:
    @handle(QueueForReconciliation)
    def queue(self, command):
        item = ReconciliationItem.queue(
            gateway=command.gateway,
            reason=command.reason,
            event_type=command.event_type,
            gateway_payment_id=command.gateway_payment_id,
            gateway_order_id=command.gateway_order_id,
            reference=command.reference,
            order_id=command.order_id,
            amount=command.amount,
            currency=command.currency,
        )
        current_domain.repository_for(ReconciliationItem).add(item)
        return str(item.id)

    @handle(ResolveReconciliationItem)
    def resolve(self, command):
        repo = current_domain.repository_for(ReconciliationItem)
        item = repo.get(command.item_id)
        item.resolve(command.resolution, command.resolved_by)
        repo.add(item)


def open_items() -> list[ReconciliationItem]:
    repo = current_domain.repository_for(ReconciliationItem)
    return repo._dao.query.filter(status=ReconciliationStatus.OPEN.value).all().items

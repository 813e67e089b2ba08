"""Tests for the manual reconciliation queue."""

import pytest
from ordering.reconciliation.queueing import QueueForReconciliation, ResolveReconciliationItem, open_items
from ordering.reconciliation.reconciliation import ReconciliationItem, ReconciliationStatus
from payments.gateway.port import GatewayEvent, GatewayEventType
from protean import current_domain
from protean.exceptions import ValidationError


def _event(**kwargs):
    defaults = {
        "gateway_name": "stripe",
        "event_type": GatewayEventType.PAYMENT_SUCCEEDED,
        "gateway_payment_id": "pi_orphan",
        "gateway_order_id": "pi_orphan",
        "amount": 1000.0,
        "currency": "INR",
        "reference": "missing-order",
        "raw_event_type": "payment_intent.succeeded",
    }
    defaults.update(kwargs)
    return GatewayEvent(**defaults)


class TestQueueing:
    def test_queue_unmatched_event(self, lifecycle):
        item_id = lifecycle.queue_for_reconciliation(_event(), "No order matches gateway event")

        item = current_domain.repository_for(ReconciliationItem).get(item_id)
        assert item.status == ReconciliationStatus.OPEN.value
        assert item.gateway == "stripe"
        assert item.event_type == "payment_intent.succeeded"
        assert item.reference == "missing-order"
        assert item.amount == 1000.0

    def test_open_items(self, lifecycle):
        lifecycle.queue_for_reconciliation(_event(), "first")
        lifecycle.queue_for_reconciliation(_event(gateway_payment_id="pi_2"), "second")
        assert len(open_items()) == 2


class TestResolution:
    def _queue(self):
        return current_domain.process(
            QueueForReconciliation(gateway="razorpay", gateway_payment_id="pay_1", reason="Apply failed"),
            asynchronous=False,
        )

    def test_resolve(self):
        item_id = self._queue()
        current_domain.process(
            ResolveReconciliationItem(item_id=item_id, resolution="Refunded manually", resolved_by="admin-1"),
            asynchronous=False,
        )

        item = current_domain.repository_for(ReconciliationItem).get(item_id)
        assert item.status == ReconciliationStatus.RESOLVED.value
        assert item.resolved_by == "admin-1"
        assert item.resolved_at is not None
        assert open_items() == []

    def test_cannot_resolve_twice(self):
        item = ReconciliationItem.queue(gateway="razorpay", reason="Apply failed")
        item.resolve("done", "admin-1")
        with pytest.raises(ValidationError):
            item.resolve("again", "admin-1")

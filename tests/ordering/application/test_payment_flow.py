"""Tests for payment initiation, redirect confirmation and outcome application."""

import pytest
from ordering.collaborators.port import CartLine
from ordering.order.order import OrderStatus, OutcomeDisposition, PaymentLogEntry, PaymentStatus
from protean.exceptions import ValidationError
from shared.errors import ForbiddenError, GatewayError, GatewayUnavailableError, IntegrityError, InvalidTransitionError

SIGNATURE = "test-signature"


def _place(lifecycle, actor, payment_method="razorpay"):
    return lifecycle.create_order(
        actor,
        shipping_address_id="addr-1",
        payment_method=payment_method,
        items=[CartLine("p1", 2)],
    )


def _initiated(lifecycle, actor, gateway="razorpay"):
    order = _place(lifecycle, actor, payment_method=gateway)
    handle = lifecycle.initiate_payment(order.id, actor, gateway)
    return order, handle


class TestInitiatePayment:
    def test_returns_gateway_handle(self, lifecycle, customer, razorpay):
        order, handle = _initiated(lifecycle, customer)

        assert handle.order_id == str(order.id)
        assert handle.amount == 1000.0
        assert handle.currency == "INR"
        assert handle.gateway_order_id.startswith("fake_order_")
        assert razorpay.calls[0]["reference"] == str(order.id)

    def test_records_gateway_order(self, lifecycle, customer):
        order, handle = _initiated(lifecycle, customer)

        stored = lifecycle.get_order(order.id, customer)
        assert stored.gateway_order_id == handle.gateway_order_id
        assert len(stored.logs_of(PaymentLogEntry.CREATED)) == 1
        assert stored.status == OrderStatus.PENDING.value

    def test_gateway_timeout_leaves_order_untouched(self, lifecycle, customer, razorpay):
        order = _place(lifecycle, customer)
        razorpay.configure(unavailable=True)

        with pytest.raises(GatewayUnavailableError):
            lifecycle.initiate_payment(order.id, customer, "razorpay")

        stored = lifecycle.get_order(order.id, customer)
        assert stored.gateway_order_id is None
        assert not stored.payment_logs

    def test_gateway_decline_surfaces(self, lifecycle, customer, razorpay):
        order = _place(lifecycle, customer)
        razorpay.configure(should_succeed=False)
        with pytest.raises(GatewayError):
            lifecycle.initiate_payment(order.id, customer, "razorpay")

    def test_other_customer_is_forbidden(self, lifecycle, customer, other_customer):
        order = _place(lifecycle, customer)
        with pytest.raises(ForbiddenError):
            lifecycle.initiate_payment(order.id, other_customer, "razorpay")

    def test_wrong_gateway_for_order(self, lifecycle, customer):
        order = _place(lifecycle, customer)
        with pytest.raises(ValidationError):
            lifecycle.initiate_payment(order.id, customer, "stripe")

    def test_cash_on_delivery_order(self, lifecycle, customer):
        order = _place(lifecycle, customer, payment_method="cod")
        with pytest.raises(ValidationError):
            lifecycle.initiate_payment(order.id, customer, "razorpay")

    def test_unknown_gateway(self, lifecycle, customer):
        order = _place(lifecycle, customer)
        with pytest.raises(ValidationError):
            lifecycle.initiate_payment(order.id, customer, "paypal")


class TestRedirectConfirmation:
    def test_valid_confirmation_completes_payment(self, lifecycle, customer):
        order, handle = _initiated(lifecycle, customer)

        confirmed = lifecycle.verify_redirect_payment(
            order.id, "razorpay", handle.gateway_order_id, "pay_1", SIGNATURE, customer
        )

        assert confirmed.status == OrderStatus.CONFIRMED.value
        assert confirmed.payment_status == PaymentStatus.COMPLETED.value
        assert confirmed.gateway_payment_id == "pay_1"
        completed = confirmed.logs_of(PaymentLogEntry.COMPLETED)
        assert completed[0].source == "redirect"
        assert completed[0].amount == 1000.0

    def test_tampered_signature_only_logs_rejection(self, lifecycle, customer):
        order, handle = _initiated(lifecycle, customer)

        with pytest.raises(IntegrityError):
            lifecycle.verify_redirect_payment(
                order.id, "razorpay", handle.gateway_order_id, "pay_1", "forged", customer
            )

        stored = lifecycle.get_order(order.id, customer)
        assert stored.status == OrderStatus.PENDING.value
        assert stored.payment_status == PaymentStatus.PENDING.value
        assert len(stored.logs_of(PaymentLogEntry.REJECTED)) == 1
        assert stored.logs_of(PaymentLogEntry.COMPLETED) == []

    def test_gateway_order_id_must_match(self, lifecycle, customer):
        order, _ = _initiated(lifecycle, customer)

        with pytest.raises(IntegrityError):
            lifecycle.verify_redirect_payment(order.id, "razorpay", "gw_other", "pay_1", SIGNATURE, customer)

        stored = lifecycle.get_order(order.id, customer)
        assert stored.payment_status == PaymentStatus.PENDING.value

    def test_replayed_confirmation_is_idempotent(self, lifecycle, customer, email):
        order, handle = _initiated(lifecycle, customer)
        args = (order.id, "razorpay", handle.gateway_order_id, "pay_1", SIGNATURE, customer)

        lifecycle.verify_redirect_payment(*args)
        sent = len(email.sent_emails)
        again = lifecycle.verify_redirect_payment(*args)

        assert again.payment_status == PaymentStatus.COMPLETED.value
        assert len(again.logs_of(PaymentLogEntry.COMPLETED)) == 1
        assert len(email.sent_emails) == sent

    def test_other_customer_is_forbidden(self, lifecycle, customer, other_customer):
        order, handle = _initiated(lifecycle, customer)
        with pytest.raises(ForbiddenError):
            lifecycle.verify_redirect_payment(
                order.id, "razorpay", handle.gateway_order_id, "pay_1", SIGNATURE, other_customer
            )


class TestApplyPaymentOutcome:
    def test_success_with_matching_amount(self, lifecycle, customer):
        order, handle = _initiated(lifecycle, customer, gateway="stripe")

        disposition = lifecycle.apply_payment_outcome(
            order.id, True, "stripe", "pi_1", handle.gateway_order_id, amount=1000.0
        )

        assert disposition == OutcomeDisposition.APPLIED
        stored = lifecycle.get_order(order.id, customer)
        assert stored.status == OrderStatus.CONFIRMED.value
        assert stored.payment_status == PaymentStatus.COMPLETED.value

    def test_amount_mismatch_flags_and_raises(self, lifecycle, customer):
        order, handle = _initiated(lifecycle, customer, gateway="stripe")

        with pytest.raises(IntegrityError):
            lifecycle.apply_payment_outcome(order.id, True, "stripe", "pi_1", handle.gateway_order_id, amount=10.0)

        stored = lifecycle.get_order(order.id, customer)
        assert stored.flagged is True
        assert stored.status == OrderStatus.PENDING.value
        assert stored.payment_status == PaymentStatus.PENDING.value
        assert len(stored.logs_of(PaymentLogEntry.FLAGGED)) == 1

    def test_failure_then_late_failure(self, lifecycle, customer):
        order, handle = _initiated(lifecycle, customer, gateway="stripe")
        lifecycle.apply_payment_outcome(order.id, True, "stripe", "pi_1", handle.gateway_order_id, amount=1000.0)

        disposition = lifecycle.apply_payment_outcome(order.id, False, "stripe", "pi_1", handle.gateway_order_id)

        assert disposition == OutcomeDisposition.IGNORED
        stored = lifecycle.get_order(order.id, customer)
        assert stored.payment_status == PaymentStatus.COMPLETED.value

    def test_paid_order_cannot_be_initiated_again(self, lifecycle, customer):
        order, handle = _initiated(lifecycle, customer, gateway="stripe")
        lifecycle.apply_payment_outcome(order.id, True, "stripe", "pi_1", handle.gateway_order_id, amount=1000.0)

        with pytest.raises(InvalidTransitionError):
            lifecycle.initiate_payment(order.id, customer, "stripe")


class TestPaymentRetry:
    def _declined(self, lifecycle, customer, gateway="stripe"):
        order, handle = _initiated(lifecycle, customer, gateway=gateway)
        intent = handle.gateway_order_id
        lifecycle.apply_payment_outcome(order.id, False, gateway, intent, intent, failure_reason="Card declined")
        return order, handle

    def test_success_on_the_declined_intent_confirms(self, lifecycle, customer):
        order, handle = self._declined(lifecycle, customer)
        intent = handle.gateway_order_id

        disposition = lifecycle.apply_payment_outcome(order.id, True, "stripe", intent, intent, amount=1000.0)

        assert disposition == OutcomeDisposition.APPLIED
        stored = lifecycle.get_order(order.id, customer)
        assert stored.status == OrderStatus.CONFIRMED.value
        assert stored.payment_status == PaymentStatus.COMPLETED.value
        assert stored.flagged is False

    def test_retry_starts_a_new_attempt(self, lifecycle, customer, razorpay):
        order, first = self._declined(lifecycle, customer, gateway="razorpay")

        second = lifecycle.retry_payment(order.id, customer)

        assert second.gateway == "razorpay"
        assert second.gateway_order_id != first.gateway_order_id
        assert len([call for call in razorpay.calls if call["method"] == "create_order"]) == 2
        stored = lifecycle.get_order(order.id, customer)
        assert stored.payment_status == PaymentStatus.PENDING.value
        assert stored.gateway_order_id == second.gateway_order_id

    def test_retried_payment_can_be_confirmed(self, lifecycle, customer):
        order, _ = self._declined(lifecycle, customer, gateway="razorpay")
        handle = lifecycle.retry_payment(order.id, customer)

        confirmed = lifecycle.verify_redirect_payment(
            order.id, "razorpay", handle.gateway_order_id, "pay_2", SIGNATURE, customer
        )

        assert confirmed.status == OrderStatus.CONFIRMED.value
        assert confirmed.payment_status == PaymentStatus.COMPLETED.value

    def test_initiate_also_accepts_a_declined_order(self, lifecycle, customer):
        order, _ = self._declined(lifecycle, customer)
        handle = lifecycle.initiate_payment(order.id, customer, "stripe")
        assert lifecycle.get_order(order.id, customer).gateway_order_id == handle.gateway_order_id

    def test_only_failed_payments_can_be_retried(self, lifecycle, customer):
        order, _ = _initiated(lifecycle, customer)
        with pytest.raises(InvalidTransitionError):
            lifecycle.retry_payment(order.id, customer)

    def test_cancelled_order_cannot_be_retried(self, lifecycle, customer):
        order, _ = self._declined(lifecycle, customer)
        lifecycle.cancel_order(order.id, customer, reason="Gave up")
        with pytest.raises(InvalidTransitionError):
            lifecycle.retry_payment(order.id, customer)

    def test_other_customer_cannot_retry(self, lifecycle, customer, other_customer):
        order, _ = self._declined(lifecycle, customer)
        with pytest.raises(ForbiddenError):
            lifecycle.retry_payment(order.id, other_customer)


class TestPaymentLogs:
    def test_admin_sees_ordered_logs(self, lifecycle, customer, admin):
        order, handle = _initiated(lifecycle, customer)
        lifecycle.verify_redirect_payment(order.id, "razorpay", handle.gateway_order_id, "pay_1", SIGNATURE, customer)

        logs = lifecycle.payment_logs(order.id, admin)
        assert [log.entry_type for log in logs] == ["CREATED", "COMPLETED"]

    def test_customer_cannot_read_logs(self, lifecycle, customer):
        order = _place(lifecycle, customer)
        with pytest.raises(ForbiddenError):
            lifecycle.payment_logs(order.id, customer)


class TestFindOrderForEvent:
    def test_by_reference(self, lifecycle, customer):
        order = _place(lifecycle, customer)
        assert lifecycle.find_order_for_event(str(order.id), None).id == order.id

    def test_by_gateway_order_id(self, lifecycle, customer):
        order, handle = _initiated(lifecycle, customer)
        assert lifecycle.find_order_for_event("unknown-ref", handle.gateway_order_id).id == order.id

    def test_no_match(self, lifecycle):
        assert lifecycle.find_order_for_event(None, "gw_missing") is None

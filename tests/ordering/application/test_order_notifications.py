"""Tests for the customer emails that follow order transitions."""

from ordering.collaborators.port import Actor, CartLine
from ordering.config import CheckoutSettings, set_settings
from ordering.notification.helpers import notifications_for_order
from ordering.notification.notification import NotificationStatus
from ordering.notification.retry import retry_failed_notifications
from ordering.order.order import OrderStatus, PaymentStatus


def _place(lifecycle, actor, payment_method="razorpay"):
    return lifecycle.create_order(
        actor,
        shipping_address_id="addr-1",
        payment_method=payment_method,
        items=[CartLine("p1", 2)],
    )


def _pay(lifecycle, actor, order):
    handle = lifecycle.initiate_payment(order.id, actor, "razorpay")
    return lifecycle.verify_redirect_payment(
        order.id, "razorpay", handle.gateway_order_id, "pay_1", "test-signature", actor
    )


class TestOrderEmails:
    def test_pending_order_sends_nothing(self, lifecycle, customer, email):
        _place(lifecycle, customer)
        assert email.sent_emails == []

    def test_confirmation_email_after_payment(self, lifecycle, customer, email):
        order = _pay(lifecycle, customer, _place(lifecycle, customer))

        sent = email.sent_to("buyer@example.com")
        assert len(sent) == 1
        assert sent[0]["subject"] == f"Order {order.order_number} Confirmed"
        assert "INR 1000.00" in sent[0]["body"]

    def test_cod_order_is_confirmed_immediately(self, lifecycle, customer, email):
        order = _place(lifecycle, customer, payment_method="cod")

        assert len(email.sent_emails) == 1
        assert order.order_number in email.sent_emails[0]["subject"]

    def test_payment_failure_email_has_retry_link(self, lifecycle, customer, email):
        order = _place(lifecycle, customer, payment_method="stripe")
        handle = lifecycle.initiate_payment(order.id, customer, "stripe")
        lifecycle.apply_payment_outcome(
            order.id, False, "stripe", "pi_1", handle.gateway_order_id, failure_reason="Card declined"
        )

        sent = email.sent_emails[-1]
        assert sent["subject"] == f"Payment Failed for Order {order.order_number}"
        assert f"http://localhost:3000/orders/{order.id}/retry-payment" in sent["body"]

    def test_retry_link_uses_installed_settings(self, lifecycle, customer, email):
        set_settings(CheckoutSettings(storefront_url="https://shop.example.com"))
        order = _place(lifecycle, customer, payment_method="stripe")
        handle = lifecycle.initiate_payment(order.id, customer, "stripe")
        lifecycle.apply_payment_outcome(order.id, False, "stripe", "pi_1", handle.gateway_order_id)

        assert f"https://shop.example.com/orders/{order.id}/retry-payment" in email.sent_emails[-1]["body"]

    def test_shipping_and_delivery_emails(self, lifecycle, customer, admin, email):
        order = _pay(lifecycle, customer, _place(lifecycle, customer))
        lifecycle.update_shipping_status(order.id, admin, "SHIPPED", tracking_number="TRK-9")
        lifecycle.update_shipping_status(order.id, admin, "DELIVERED")

        subjects = [sent["subject"] for sent in email.sent_emails]
        assert subjects[1] == f"Order {order.order_number} - Shipped"
        assert "TRK-9" in email.sent_emails[1]["body"]
        assert subjects[2] == f"Order {order.order_number} Delivered"

    def test_paid_cancellation_sends_one_email(self, lifecycle, customer, email):
        order = _pay(lifecycle, customer, _place(lifecycle, customer))
        lifecycle.cancel_order(order.id, customer, reason="Too slow")

        after_confirmation = email.sent_emails[1:]
        assert [sent["subject"] for sent in after_confirmation] == [f"Order {order.order_number} Cancelled"]
        assert "A refund of INR 1000.00 has been processed." in after_confirmation[0]["body"]

    def test_unpaid_cancellation_mentions_no_refund(self, lifecycle, customer, email):
        order = _place(lifecycle, customer)
        lifecycle.cancel_order(order.id, customer, reason="Changed my mind")

        assert len(email.sent_emails) == 1
        assert "refund" not in email.sent_emails[0]["body"]

    def test_refund_after_delivery_sends_refund_email(self, lifecycle, customer, admin, email):
        order = _pay(lifecycle, customer, _place(lifecycle, customer))
        lifecycle.update_shipping_status(order.id, admin, "SHIPPED")
        lifecycle.update_shipping_status(order.id, admin, "DELIVERED")
        lifecycle.refund_order(order.id, admin, reason="Damaged")

        assert email.sent_emails[-1]["subject"] == "Refund Processed - INR 1000.00"
        assert len(email.sent_emails) == 4

    def test_no_email_address_skips_notification(self, lifecycle, email):
        anonymous = Actor(user_id="user-1")
        order = _place(lifecycle, anonymous, payment_method="cod")

        assert email.sent_emails == []
        assert notifications_for_order(order.id) == []

    def test_notification_is_recorded_as_sent(self, lifecycle, customer, email):
        order = _place(lifecycle, customer, payment_method="cod")

        notifications = notifications_for_order(order.id)
        assert len(notifications) == 1
        assert notifications[0].status == NotificationStatus.SENT.value
        assert notifications[0].message_id == email.sent_emails[0]["message_id"]


class TestEmailFailures:
    def test_failed_email_does_not_affect_order(self, lifecycle, customer, email):
        email.configure(should_succeed=False)
        order = _pay(lifecycle, customer, _place(lifecycle, customer))

        assert order.status == OrderStatus.CONFIRMED.value
        assert order.payment_status == PaymentStatus.COMPLETED.value
        notifications = notifications_for_order(order.id)
        assert notifications[0].status == NotificationStatus.FAILED.value
        assert notifications[0].retry_count == 1

    def test_raising_provider_does_not_affect_order(self, lifecycle, customer, email):
        email.configure(should_raise=True)
        order = _place(lifecycle, customer, payment_method="cod")

        assert order.status == OrderStatus.CONFIRMED.value
        assert notifications_for_order(order.id)[0].status == NotificationStatus.FAILED.value

    def test_retry_sends_once_provider_recovers(self, lifecycle, customer, email):
        email.configure(should_succeed=False)
        order = _place(lifecycle, customer, payment_method="cod")
        email.configure(should_succeed=True)

        assert retry_failed_notifications() == 1

        notification = notifications_for_order(order.id)[0]
        assert notification.status == NotificationStatus.SENT.value
        assert len(email.sent_emails) == 1

    def test_retries_stop_at_limit(self, lifecycle, customer, email):
        email.configure(should_succeed=False)
        order = _place(lifecycle, customer, payment_method="cod")

        assert retry_failed_notifications() == 1
        assert retry_failed_notifications() == 1
        assert retry_failed_notifications() == 0

        notification = notifications_for_order(order.id)[0]
        assert notification.retry_count == 3
        assert notification.status == NotificationStatus.FAILED.value

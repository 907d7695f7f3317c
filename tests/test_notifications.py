"""
Tests for the order confirmation: message body, Celery task and dispatch.
"""
from unittest.mock import patch

import pytest

from app.data.models import OrderModel, PaymentMethod
from app.services import notification_service
from app.services.cart_service import CartService
from app.services.notification_service import (
    NotificationService,
    build_order_confirmation,
    send_order_confirmation_task,
)


@pytest.fixture
def placed_order(db, order_service, user, make_product, checkout_request):
    p = make_product(name="Yoga Mat", price="30.00", categories=("Equipment",))
    CartService(db).add_item(user.id, p.id, 2)
    order = order_service.checkout(user.id, checkout_request(payment_method=PaymentMethod.PAYPAL))
    return db.get(OrderModel, order["id"])


class TestConfirmationBody:
    def test_contents(self, placed_order, user):
        subject, body = build_order_confirmation(placed_order, user, support_email="help@shop.test")

        assert subject == f"Order Confirmation - {placed_order.order_number}"
        assert "Dear Jan Kowalski," in body
        assert "- Yoga Mat" in body
        assert "  Quantity: 2" in body
        assert "  Price: $30.00 each" in body
        assert "  Subtotal: $60.00" in body
        assert "  Category: Equipment" in body
        assert "Shipping: $15.00" in body
        assert "TOTAL: $81.00" in body
        assert "Payment Method: PayPal" in body
        assert "Estimated Delivery:" in body
        assert "Email: help@shop.test" in body

    def test_free_shipping_line(self, db, order_service, user, make_product, checkout_request):
        p = make_product(price="50.00")
        CartService(db).add_item(user.id, p.id, 3)
        order = db.get(OrderModel, order_service.checkout(user.id, checkout_request())["id"])

        _, body = build_order_confirmation(order, user)

        assert "Shipping: FREE" in body


class TestDispatch:
    def test_enqueues_task_without_publish_retries(self):
        with patch.object(send_order_confirmation_task, "apply_async") as apply_async:
            assert NotificationService.send_order_confirmation(5) is True

        apply_async.assert_called_once_with(args=[5], retry=False)

    def test_broker_failure_is_swallowed(self):
        with patch.object(send_order_confirmation_task, "apply_async", side_effect=ConnectionError("no broker")):
            assert NotificationService.send_order_confirmation(5) is False


class TestConfirmationTask:
    def test_sends_for_existing_order(self, placed_order, session_factory, monkeypatch):
        monkeypatch.setattr(notification_service, "SessionLocal", session_factory)

        result = send_order_confirmation_task.run(placed_order.id)

        assert result["status"] == "sent"
        assert result["order_id"] == placed_order.id

    def test_skips_unknown_order(self, session_factory, monkeypatch):
        monkeypatch.setattr(notification_service, "SessionLocal", session_factory)

        result = send_order_confirmation_task.run(999)

        assert result == {"order_id": 999, "status": "skipped"}

"""
Tests for order status handling after checkout and for the order queries.
"""
import pytest

from app.data.models import OrderModel, OrderStatus, PaymentStatus
from app.domain.exceptions import ConflictError, NotFoundError
from app.services.cart_service import CartService
from app.services.order_lifecycle import OrderLifecycleService, OrderStateMachine


@pytest.fixture
def place_order(db, order_service, user, make_product, checkout_request):
    def _place(quantity=1, **request):
        p = make_product(name=f"Product {quantity}", inventory=100)
        CartService(db).add_item(user.id, p.id, quantity)
        return order_service.checkout(user.id, checkout_request(**request))

    return _place


@pytest.fixture
def lifecycle(db):
    return OrderLifecycleService(db, strict=True)


class TestStateMachine:
    machine = OrderStateMachine()

    @pytest.mark.parametrize(
        "current, new",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
            (OrderStatus.SHIPPED, OrderStatus.RETURNED),
            (OrderStatus.RETURNED, OrderStatus.REFUNDED),
            (OrderStatus.DELIVERED, OrderStatus.DELIVERED),
        ],
    )
    def test_allowed(self, current, new):
        assert self.machine.can_transition(current, new)

    @pytest.mark.parametrize(
        "current, new",
        [
            (OrderStatus.DELIVERED, OrderStatus.PENDING),
            (OrderStatus.CANCELLED, OrderStatus.CONFIRMED),
            (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
            (OrderStatus.REFUNDED, OrderStatus.SHIPPED),
        ],
    )
    def test_rejected(self, current, new):
        assert not self.machine.can_transition(current, new)

    def test_terminal_states(self):
        terminal = {s for s in OrderStatus if self.machine.is_terminal_state(s)}
        assert terminal == {OrderStatus.CANCELLED, OrderStatus.DELIVERED, OrderStatus.REFUNDED}

    def test_payment_transitions(self):
        assert self.machine.can_transition_payment(PaymentStatus.PENDING, PaymentStatus.PAID)
        assert self.machine.can_transition_payment(PaymentStatus.PAID, PaymentStatus.PARTIAL_REFUND)
        assert not self.machine.can_transition_payment(PaymentStatus.REFUNDED, PaymentStatus.PAID)


class TestUpdateStatus:
    def test_forward_move_with_tracking(self, place_order, lifecycle):
        order = place_order()

        updated = lifecycle.update_status(order["id"], OrderStatus.SHIPPED, tracking_number="TRK123")

        assert updated["status"] == OrderStatus.SHIPPED
        assert updated["tracking_number"] == "TRK123"
        assert updated["updated_at"] >= order["updated_at"]

    def test_backwards_move_rejected(self, place_order, lifecycle):
        order = place_order()
        lifecycle.update_status(order["id"], OrderStatus.DELIVERED)

        with pytest.raises(ConflictError):
            lifecycle.update_status(order["id"], OrderStatus.PENDING)

    def test_unguarded_mode_overwrites(self, db, place_order):
        order = place_order()
        loose = OrderLifecycleService(db, strict=False)
        loose.update_status(order["id"], OrderStatus.DELIVERED)

        updated = loose.update_status(order["id"], OrderStatus.PENDING)

        assert updated["status"] == OrderStatus.PENDING

    def test_payment_status(self, place_order, lifecycle):
        order = place_order()

        updated = lifecycle.update_payment_status(order["id"], PaymentStatus.PAID)

        assert updated["payment_status"] == PaymentStatus.PAID
        with pytest.raises(ConflictError):
            lifecycle.update_payment_status(order["id"], PaymentStatus.PENDING)

    def test_unknown_order(self, lifecycle):
        with pytest.raises(NotFoundError):
            lifecycle.update_status(999, OrderStatus.CONFIRMED)


class TestCancel:
    def test_cancel_shipped_order_fails(self, db, place_order, lifecycle):
        order = place_order()
        lifecycle.update_status(order["id"], OrderStatus.SHIPPED)

        with pytest.raises(ConflictError):
            lifecycle.cancel(order["id"], "Changed my mind")

        db.expire_all()
        assert db.get(OrderModel, order["id"]).status == OrderStatus.SHIPPED

    def test_cancel_delivered_order_fails_even_unguarded(self, db, place_order):
        order = place_order()
        loose = OrderLifecycleService(db, strict=False)
        loose.update_status(order["id"], OrderStatus.DELIVERED)

        with pytest.raises(ConflictError):
            loose.cancel(order["id"], "Too late")

    def test_reason_is_appended_to_notes(self, place_order, lifecycle):
        order = place_order(customer_notes="Ring twice")

        cancelled = lifecycle.cancel(order["id"], "Found it cheaper")

        assert cancelled["status"] == OrderStatus.CANCELLED
        assert cancelled["customer_notes"] == "Ring twice\n\nCancellation reason: Found it cheaper"

    def test_reason_without_prior_notes(self, place_order, lifecycle):
        order = place_order()

        cancelled = lifecycle.cancel(order["id"], "Duplicate order")

        assert cancelled["customer_notes"] == "Cancellation reason: Duplicate order"

    def test_cancel_twice_rejected_in_strict_mode(self, place_order, lifecycle):
        order = place_order()
        lifecycle.cancel(order["id"], "First")

        with pytest.raises(ConflictError):
            lifecycle.cancel(order["id"], "Second")


class TestOrderQueries:
    def test_get_order_checks_owner(self, place_order, order_service, user):
        order = place_order()

        assert order_service.get_order(order["id"], user.id)["id"] == order["id"]
        with pytest.raises(PermissionError):
            order_service.get_order(order["id"], user.id + 1)

    def test_get_order_by_number(self, place_order, order_service):
        order = place_order()

        found = order_service.get_order_by_number(order["order_number"])

        assert found["id"] == order["id"]
        with pytest.raises(NotFoundError):
            order_service.get_order_by_number("ORD-0")

    def test_user_orders_newest_first(self, place_order, order_service, user):
        ids = [place_order(quantity=q)["id"] for q in (1, 2, 3)]

        page = order_service.list_user_orders(user.id, page=0, size=2)

        assert page["total"] == 3
        assert [o["id"] for o in page["items"]] == [ids[2], ids[1]]
        second = order_service.list_user_orders(user.id, page=1, size=2)
        assert [o["id"] for o in second["items"]] == [ids[0]]

    def test_recent_orders(self, place_order, order_service, user):
        ids = [place_order(quantity=q)["id"] for q in (1, 2, 3)]

        recent = order_service.list_recent_orders(user.id, limit=2)

        assert [o["id"] for o in recent] == [ids[2], ids[1]]

    def test_orders_by_status(self, place_order, order_service, lifecycle):
        first = place_order(quantity=1)
        place_order(quantity=2)
        lifecycle.update_status(first["id"], OrderStatus.CONFIRMED)

        confirmed = order_service.list_orders_by_status(OrderStatus.CONFIRMED)
        everything = order_service.list_orders()

        assert [o["id"] for o in confirmed["items"]] == [first["id"]]
        assert everything["total"] == 2

    def test_resend_confirmation(self, place_order, order_service, notifier):
        order = place_order()
        notifier.send_order_confirmation.reset_mock()

        assert order_service.resend_confirmation(order["id"]) is True
        notifier.send_order_confirmation.assert_called_once_with(order["id"])

    def test_resend_for_unknown_order(self, order_service):
        with pytest.raises(NotFoundError):
            order_service.resend_confirmation(404)

# app/services/order_lifecycle.py
"""
Order status and payment status management after checkout.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel, OrderStatus, PaymentStatus
from app.domain.exceptions import ConflictError, NotFoundError
from app.repos.order_repo import OrderRepo
from app.services.order_view import order_to_dict
from app.utils.settings import ENFORCE_STATUS_TRANSITIONS
from app.utils.logging import get_logger

logger = get_logger(__name__)


class OrderStateMachine:
    """
    Valid status transitions. The happy path only moves forward
    (forward jumps allowed); CANCELLED, DELIVERED and REFUNDED are terminal.
    """

    ORDER_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
        OrderStatus.PENDING: {
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        },
        OrderStatus.CONFIRMED: {
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        },
        OrderStatus.PROCESSING: {
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        },
        OrderStatus.SHIPPED: {
            OrderStatus.DELIVERED,
            OrderStatus.RETURNED,
        },
        OrderStatus.RETURNED: {
            OrderStatus.REFUNDED,
        },
        OrderStatus.DELIVERED: set(),
        OrderStatus.CANCELLED: set(),
        OrderStatus.REFUNDED: set(),
    }

    PAYMENT_TRANSITIONS: Dict[PaymentStatus, Set[PaymentStatus]] = {
        PaymentStatus.PENDING: {
            PaymentStatus.PAID,
            PaymentStatus.FAILED,
            PaymentStatus.CANCELLED,
        },
        PaymentStatus.PAID: {
            PaymentStatus.REFUNDED,
            PaymentStatus.PARTIAL_REFUND,
        },
        PaymentStatus.PARTIAL_REFUND: {
            PaymentStatus.REFUNDED,
        },
        # retry after a decline
        PaymentStatus.FAILED: {
            PaymentStatus.PENDING,
            PaymentStatus.CANCELLED,
        },
        PaymentStatus.REFUNDED: set(),
        PaymentStatus.CANCELLED: set(),
    }

    def can_transition(self, current: OrderStatus, new: OrderStatus) -> bool:
        return current == new or new in self.ORDER_TRANSITIONS.get(current, set())

    def can_transition_payment(self, current: PaymentStatus, new: PaymentStatus) -> bool:
        return current == new or new in self.PAYMENT_TRANSITIONS.get(current, set())

    def is_terminal_state(self, status: OrderStatus) -> bool:
        return not self.ORDER_TRANSITIONS.get(status)

    def is_cancellable(self, status: OrderStatus) -> bool:
        return OrderStatus.CANCELLED in self.ORDER_TRANSITIONS.get(status, set())


class OrderLifecycleService:
    """
    Status overwrites with an updated_at bump.
    strict=True rejects transitions outside OrderStateMachine with ConflictError,
    strict=False keeps the plain overwrite.
    """

    NOT_CANCELLABLE = {OrderStatus.SHIPPED, OrderStatus.DELIVERED}

    def __init__(self, db: Session, strict: Optional[bool] = None):
        self.repo = OrderRepo(db)
        self.machine = OrderStateMachine()
        self.strict = ENFORCE_STATUS_TRANSITIONS if strict is None else strict

    def _load(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order not found with id: {order_id}")
        return order

    def update_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        tracking_number: Optional[str] = None,
    ) -> Dict[str, Any]:
        order = self._load(order_id)
        current = order.status

        if self.strict and not self.machine.can_transition(current, new_status):
            raise ConflictError(
                f"Cannot move order {order.order_number} from {current.value} to {new_status.value}"
            )

        order.status = new_status
        if tracking_number:
            order.tracking_number = tracking_number
        order.updated_at = datetime.now(timezone.utc)
        saved = self.repo.save(order)

        logger.info(f"Order {saved.order_number} status {current.value} -> {new_status.value}")
        return order_to_dict(saved)

    def update_payment_status(self, order_id: int, new_status: PaymentStatus) -> Dict[str, Any]:
        order = self._load(order_id)
        current = order.payment_status

        if self.strict and not self.machine.can_transition_payment(current, new_status):
            raise ConflictError(
                f"Cannot move payment of order {order.order_number} from {current.value} to {new_status.value}"
            )

        order.payment_status = new_status
        order.updated_at = datetime.now(timezone.utc)
        saved = self.repo.save(order)

        logger.info(f"Order {saved.order_number} payment status {current.value} -> {new_status.value}")
        return order_to_dict(saved)

    def cancel(self, order_id: int, reason: str) -> Dict[str, Any]:
        order = self._load(order_id)

        if order.status in self.NOT_CANCELLABLE:
            raise ConflictError("Cannot cancel order that has been shipped or delivered")

        if self.strict and not self.machine.is_cancellable(order.status):
            raise ConflictError(f"Cannot cancel order in status {order.status.value}")

        #append-only audit trail in the notes
        note = f"Cancellation reason: {reason}"
        order.customer_notes = f"{order.customer_notes}\n\n{note}" if order.customer_notes else note
        order.status = OrderStatus.CANCELLED
        order.updated_at = datetime.now(timezone.utc)
        saved = self.repo.save(order)

        logger.info(f"Order {saved.order_number} cancelled - reason: {reason}")
        return order_to_dict(saved)

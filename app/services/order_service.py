# app/services/order_service.py
import secrets
import time
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel, OrderStatus, PaymentStatus
from app.data.models.order_item import OrderItemModel
from app.domain.exceptions import (
    ConflictError,
    InsufficientInventoryError,
    NotFoundError,
    PaymentFailedError,
    ValidationError,
)
from app.domain.schemas import CheckoutIn, PaymentDetails
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.repos.product_repo import ProductRepo
from app.repos.user_repo import UserRepo
from app.services.cart_service import CartService
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService
from app.services.order_view import order_to_dict
from app.services.payment_service import ChargeRequest, PaymentService
from app.services.pricing_service import CartLine, PricingService, money
from app.utils.settings import ESTIMATED_DELIVERY_DAYS
from app.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_NUMBER_ATTEMPTS = 5


class OrderService:
    """
    Order domain, kept apart from CartService.
    checkout turns the user's cart into an immutable order snapshot;
    the rest are read-side queries.
    """

    def __init__(
        self,
        db: Session,
        lock_service: Optional[LockService] = None,
        payment_service: Optional[PaymentService] = None,
        notification_service: Optional[NotificationService] = None,
        pricing: Optional[PricingService] = None,
    ):
        self.repo = OrderRepo(db)
        self.users = UserRepo(db)
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.pricing = pricing or PricingService()
        self.cart_service = CartService(db, self.pricing)
        self.lock_service = lock_service or LockService()
        self.payment_service = payment_service or PaymentService()
        self.notification_service = notification_service or NotificationService()

    #commands
    def checkout(self, user_id: int, request: CheckoutIn) -> Dict[str, Any]:
        """
        Use case: create an order from the user's cart.

        1. validates user, cart and item availability
        2. snapshots products and decrements stock in one transaction
        3. charges the payment when details are given
        4. removes the ordered items from the cart
        5. dispatches the confirmation (best effort)
        """
        with self.lock_service.checkout_lock(user_id):
            order, ordered = self._create_order(user_id, request)

            if request.payment_details is not None:
                order = self._settle_payment(order, request.payment_details)

            #items added after the order was taken stay in the cart
            self.cart_service.remove_ordered(user_id, ordered)

        self._notify(order.id)

        logger.info(f"Order {order.order_number} created for user {user_id}, total {order.total_amount}")
        return order_to_dict(order)

    def resend_confirmation(self, order_id: int) -> bool:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order not found with id: {order_id}")
        return self.notification_service.send_order_confirmation(order.id)

    #queries
    def get_order(self, order_id: int, user_id: Optional[int] = None) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order not found with id: {order_id}")
        self._check_owner(order, user_id)
        return order_to_dict(order)

    def get_order_by_number(self, order_number: str, user_id: Optional[int] = None) -> Dict[str, Any]:
        order = self.repo.get_order_by_number(order_number)
        if not order:
            raise NotFoundError(f"Order not found with number: {order_number}")
        self._check_owner(order, user_id)
        return order_to_dict(order)

    def list_user_orders(self, user_id: int, page: int = 0, size: int = 10) -> Dict[str, Any]:
        orders, total = self.repo.list_by_user(user_id, page * size, size)
        return self._page(orders, total, page, size)

    def list_recent_orders(self, user_id: int, limit: int = 5) -> List[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_recent_by_user(user_id, limit)]

    def list_orders(self, page: int = 0, size: int = 20) -> Dict[str, Any]:
        orders, total = self.repo.list_all(page * size, size)
        return self._page(orders, total, page, size)

    def list_orders_by_status(self, status: OrderStatus, page: int = 0, size: int = 20) -> Dict[str, Any]:
        orders, total = self.repo.list_by_status(status, page * size, size)
        return self._page(orders, total, page, size)

    #helpers
    def _create_order(self, user_id: int, request: CheckoutIn) -> Tuple[OrderModel, Dict[int, int]]:
        user = self.users.get_user(user_id)
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")

        cart = self.carts.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        read_version = cart.version
        items = self.carts.get_cart_items(cart.id)
        if not items:
            raise ValidationError("Cannot checkout with empty cart")

        if not self.cart_service.validate(user_id):
            raise ValidationError("Cart contains invalid items. Please review your cart.")

        order_number = self._generate_order_number()
        now = datetime.now(timezone.utc)
        snapshots: List[OrderItemModel] = []
        lines: List[CartLine] = []

        # single transaction: cart version check, stock re-check + decrement for every item, then the order insert
        try:
            #the cart must still hold exactly the items read above
            bumped = self.carts.update_cart_version(
                cart_id=cart.id,
                old_version=read_version,
                new_data={"version": read_version + 1, "updated_at": now},
            )
            if bumped == 0:
                raise ConflictError("Cart was modified during checkout, please review it and try again")

            for item in items:
                product = self.products.get_product_for_update(item.product_id)
                if not product:
                    raise NotFoundError(f"Product not found with id: {item.product_id}")

                #stock may have moved since validate()
                if product.inventory_count < item.quantity:
                    raise InsufficientInventoryError(
                        product.id, product.name, product.inventory_count, item.quantity
                    )

                snapshots.append(self._snapshot(product, item.quantity))
                lines.append(CartLine(product=product, quantity=item.quantity))

                available = product.inventory_count
                if not self.products.decrement_inventory(product.id, item.quantity):
                    raise InsufficientInventoryError(product.id, product.name, available, item.quantity)

            breakdown = self.pricing.breakdown(lines, request.shipping_address.country)
            shipping_text = request.shipping_address.to_formatted_string()

            order = OrderModel(
                order_number=order_number,
                user_id=user.id,
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                payment_method=request.payment_method,
                subtotal=money(breakdown.subtotal),
                tax_amount=money(breakdown.tax_amount),
                shipping_amount=money(breakdown.shipping_amount),
                discount_amount=money(breakdown.discount_amount),
                total_amount=breakdown.total_amount,
                shipping_address=shipping_text,
                billing_address=(
                    request.billing_address.to_formatted_string()
                    if request.billing_address else shipping_text
                ),
                customer_notes=request.customer_notes,
                estimated_delivery_date=now + timedelta(days=ESTIMATED_DELIVERY_DAYS),
                created_at=now,
                updated_at=now,
            )
            self.repo.add_order(order, snapshots)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            logger.warning(f"Checkout for user {user_id} aborted, nothing was written")
            raise

        logger.info(f"Order {order_number} persisted with {len(snapshots)} items")
        ordered = {item.product_id: item.quantity for item in snapshots}
        return order, ordered

    def _snapshot(self, product, quantity: int) -> OrderItemModel:
        categories = product.category_names
        return OrderItemModel(
            product_id=product.id,
            quantity=quantity,
            price=product.price,
            discount_price=product.discount_price,
            product_name=product.name,
            product_description=product.description,
            product_category=", ".join(categories) if categories else None,
            product_image_url=ProductRepo.main_image_url(product),
        )

    def _settle_payment(self, order: OrderModel, details: PaymentDetails) -> OrderModel:
        request = ChargeRequest(
            order_id=order.id,
            order_number=order.order_number,
            amount=Decimal(order.total_amount),
            payment_method=order.payment_method,
        )

        if self.payment_service.charge(request, details):
            order.payment_status = PaymentStatus.PAID
            order.status = OrderStatus.CONFIRMED
            order.updated_at = datetime.now(timezone.utc)
            return self.repo.save(order)

        #order stays for audit; its stock goes back and the cart is left for a retry
        for item in order.items:
            self.products.restore_inventory(item.product_id, item.quantity)
        order.payment_status = PaymentStatus.FAILED
        order.status = OrderStatus.CANCELLED
        order.updated_at = datetime.now(timezone.utc)
        saved = self.repo.save(order)

        logger.warning(f"Payment declined for order {saved.order_number}, order cancelled")
        raise PaymentFailedError()

    def _notify(self, order_id: int) -> None:
        try:
            self.notification_service.send_order_confirmation(order_id)
        except Exception as e:
            logger.warning(f"Failed to send order confirmation for order {order_id}: {e}")

    def _generate_order_number(self) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            # ORD-<epoch millis><4 random digits>
            candidate = f"ORD-{int(time.time() * 1000)}{secrets.randbelow(10000):04d}"
            if not self.repo.exists_order_number(candidate):
                return candidate
        raise RuntimeError("Could not allocate a unique order number")

    @staticmethod
    def _check_owner(order: OrderModel, user_id: Optional[int]) -> None:
        if user_id is not None and order.user_id != user_id:
            raise PermissionError("No access to this order")

    @staticmethod
    def _page(orders, total: int, page: int, size: int) -> Dict[str, Any]:
        return {
            "items": [order_to_dict(o) for o in orders],
            "total": total,
            "page": page,
            "size": size,
        }

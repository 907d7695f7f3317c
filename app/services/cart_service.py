from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.exceptions import (
    ConcurrencyError,
    InsufficientInventoryError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.repos.user_repo import UserRepo
from app.services.pricing_service import CartLine, PricingService, money, ZERO
from app.utils.retry import concurrency_retry
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases of the cart domain, one live cart per user
    commands (add, update, remove, clear) modify state
    queries (get, count, validate, summary) only read (get creates the cart lazily)
    """

    def __init__(self, db: Session, pricing: Optional[PricingService] = None):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)
        self.pricing = pricing or PricingService()

    #queries
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        return self._cart_view(cart)

    def get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        if not self.users.get_user(user_id):
            raise NotFoundError(f"User not found with id: {user_id}")

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id, version=1))
        except IntegrityError:
            #another request created it first, use that one
            self.repo.rollback()
            existing = self.repo.get_cart_by_user(user_id)
            if not existing:
                raise
            return existing

        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def item_count(self, user_id: int) -> int:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return 0
        return self.repo.count_items(cart.id)

    def validate(self, user_id: int) -> bool:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return True

        items = self.repo.get_cart_items(cart.id)
        products = self.products.get_products(i.product_id for i in items)
        for item in items:
            product = products.get(item.product_id)
            if not product or not product.is_active or product.inventory_count < item.quantity:
                logger.info(f"Cart {cart.id} has an invalid item: product {item.product_id}")
                return False
        return True

    def lines(self, cart_id: int) -> List[CartLine]:
        items = self.repo.get_cart_items(cart_id)
        products = self.products.get_products(i.product_id for i in items)
        return [
            CartLine(product=products[i.product_id], quantity=i.quantity)
            for i in items
            if i.product_id in products
        ]

    def summary(self, user_id: int, country: Optional[str]) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        lines = self.lines(cart.id) if cart else []
        breakdown = self.pricing.breakdown(lines, country)
        return {"user_id": user_id, "country": country, **breakdown.as_dict()}

    #commands
    @concurrency_retry()
    def add_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")

        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError(f"Product not found with id: {product_id}")

        if not product.is_active:
            raise InvalidStateError(f"Product {product.name} is not available for purchase")

        #read-only stock check first, a rejected add writes nothing
        cart = self.repo.get_cart_by_user(user_id)
        existing_item = self.repo.get_cart_item(cart.id, product_id) if cart else None
        requested = quantity + (existing_item.quantity if existing_item else 0)

        if product.inventory_count < requested:
            raise InsufficientInventoryError(product.id, product.name, product.inventory_count, requested)

        if not cart:
            cart = self.get_or_create_cart(user_id)

        self._bump_version(cart)
        try:
            if existing_item:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, raising quantity "
                    f"from {existing_item.quantity} to {requested}"
                )
                existing_item.quantity = requested
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Adding product {product_id} x{quantity} to cart {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
                )
            self.repo.commit()
        except IntegrityError:
            #same product inserted concurrently, u_cart_product kept it unique
            self.repo.rollback()
            raise ConcurrencyError("Cart was modified by another operation")

        return self.get_cart(user_id)

    @concurrency_retry()
    def update_item_quantity(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative")

        if quantity == 0:
            return self.remove_item(user_id, product_id)

        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        item = self.repo.get_cart_item(cart.id, product_id)
        if not item:
            raise NotFoundError(f"Product {product_id} not found in cart")

        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError(f"Product not found with id: {product_id}")

        if product.inventory_count < quantity:
            raise InsufficientInventoryError(product.id, product.name, product.inventory_count, quantity)

        self._bump_version(cart)
        item.quantity = quantity
        self.repo.add_cart_item(item)
        self.repo.commit()

        logger.info(f"Cart {cart.id}: product {product_id} quantity set to {quantity}")
        return self.get_cart(user_id)

    @concurrency_retry()
    def remove_item(self, user_id: int, product_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return self._empty_view(user_id)

        if not self.repo.get_cart_item(cart.id, product_id):
            #already gone, nothing to do
            return self._cart_view(cart)

        self._bump_version(cart)
        self.repo.delete_cart_item(cart.id, product_id)
        self.repo.commit()

        logger.info(f"Removed product {product_id} from cart {cart.id}")
        return self.get_cart(user_id)

    @concurrency_retry()
    def clear(self, user_id: int) -> None:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError("Cart not found")

        self._bump_version(cart)
        removed = self.repo.delete_cart_items(cart.id)
        self.repo.commit()

        logger.info(f"Cleared cart {cart.id} for user {user_id} ({removed} items)")

    @concurrency_retry()
    def remove_ordered(self, user_id: int, ordered: Dict[int, int]) -> None:
        """Takes ordered quantities (product_id -> quantity) out of the cart, anything added since stays."""
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return

        self._bump_version(cart)
        removed = self.repo.subtract_cart_items(cart.id, ordered)
        self.repo.commit()

        logger.info(f"Removed ordered items from cart {cart.id} for user {user_id} ({removed} rows deleted)")

    #helpers
    def _bump_version(self, cart: CartModel) -> None:
        # UPDATE carts SET version = v + 1 WHERE id = ? AND version = v
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={
                "version": cart.version + 1,
                "updated_at": datetime.now(timezone.utc),
            },
        )
        if rowcount == 0:
            self.repo.rollback()
            logger.warning(f"Version conflict on cart {cart.id}, retrying")
            raise ConcurrencyError("Cart was modified by another operation")

    def _cart_view(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        products = self.products.get_products(i.product_id for i in items)

        rows = []
        subtotal = ZERO
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                rows.append({
                    "product_id": item.product_id,
                    "product_name": None,
                    "image_url": None,
                    "quantity": item.quantity,
                    "unit_price": ZERO,
                    "total_price": ZERO,
                    "available": False,
                })
                continue

            unit_price = self.pricing.unit_price(product)
            total_price = unit_price * item.quantity
            subtotal += total_price
            rows.append({
                "product_id": item.product_id,
                "product_name": product.name,
                "image_url": ProductRepo.main_image_url(product),
                "quantity": item.quantity,
                "unit_price": money(unit_price),
                "total_price": money(total_price),
                "available": product.is_active and product.inventory_count >= item.quantity,
            })

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": rows,
            "item_count": sum(i.quantity for i in items),
            "subtotal": money(subtotal),
            "updated_at": cart.updated_at,
        }

    @staticmethod
    def _empty_view(user_id: int) -> Dict[str, Any]:
        return {
            "cart_id": None,
            "user_id": user_id,
            "items": [],
            "item_count": 0,
            "subtotal": ZERO,
            "updated_at": None,
        }

# app/repos/cart_repo.py
from datetime import datetime

from sqlalchemy import select, update, delete, func
from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars().all()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> None:
        self.db.add(item)
        self.db.flush()

    def delete_cart_item(self, cart_id: int, product_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        )
        return result.rowcount

    def delete_cart_items(self, cart_id: int) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        return result.rowcount

    def subtract_cart_items(self, cart_id: int, quantities: dict[int, int]) -> int:
        """Takes the given quantities out of the cart; rows that drop to zero are deleted."""
        removed = 0
        for product_id, quantity in quantities.items():
            #delete before decrement, otherwise a decremented row could match the delete
            removed += self.db.execute(
                delete(CartItemModel).where(
                    CartItemModel.cart_id == cart_id,
                    CartItemModel.product_id == product_id,
                    CartItemModel.quantity <= quantity,
                ).execution_options(synchronize_session=False)
            ).rowcount
            self.db.execute(
                update(CartItemModel)
                .where(
                    CartItemModel.cart_id == cart_id,
                    CartItemModel.product_id == product_id,
                    CartItemModel.quantity > quantity,
                )
                .values(quantity=CartItemModel.quantity - quantity)
                .execution_options(synchronize_session=False)
            )
        return removed

    def count_items(self, cart_id: int) -> int:
        total = self.db.execute(
            select(func.coalesce(func.sum(CartItemModel.quantity), 0)).where(CartItemModel.cart_id == cart_id)
        ).scalar_one()
        return int(total)

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        #UPDATE carts SET version = 2 ... WHERE id = 1 AND version = 1
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_empty_carts(self, older_than: datetime) -> int:
        has_items = (
            select(CartItemModel.id)
            .where(CartItemModel.cart_id == CartModel.id)
            .correlate(CartModel)
            .exists()
        )
        result = self.db.execute(
            delete(CartModel)
            .where(~has_items, CartModel.updated_at < older_than)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

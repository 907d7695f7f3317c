# app/repos/order_repo.py
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel, OrderStatus
from app.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel, items: list[OrderItemModel]) -> OrderModel:
        """Stage an order and its items; the caller owns the commit."""
        self.db.add(order)
        self.db.flush()
        for item in items:
            item.order_id = order.id
            self.db.add(item)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_by_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.order_number == order_number)
        ).scalar_one_or_none()

    def exists_order_number(self, order_number: str) -> bool:
        return self.get_order_by_number(order_number) is not None

    def list_by_user(self, user_id: int, offset: int, limit: int) -> tuple[list[OrderModel], int]:
        stmt = select(OrderModel).where(OrderModel.user_id == user_id)
        return self._page(stmt, offset, limit)

    def list_recent_by_user(self, user_id: int, limit: int) -> list[OrderModel]:
        return list(self.db.execute(
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .limit(limit)
        ).scalars().all())

    def list_by_status(self, status: OrderStatus, offset: int, limit: int) -> tuple[list[OrderModel], int]:
        stmt = select(OrderModel).where(OrderModel.status == status)
        return self._page(stmt, offset, limit)

    def list_all(self, offset: int, limit: int) -> tuple[list[OrderModel], int]:
        return self._page(select(OrderModel), offset, limit)

    def _page(self, stmt, offset: int, limit: int) -> tuple[list[OrderModel], int]:
        total = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        rows = self.db.execute(
            stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).offset(offset).limit(limit)
        ).scalars().all()
        return list(rows), int(total)

    def save(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

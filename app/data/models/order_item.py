from decimal import Decimal

from sqlalchemy import Column, Integer, ForeignKey, String, Text, Numeric

from app.data.database import Base


class OrderItemModel(Base):
    """Product snapshot taken at purchase time."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    #traceability only, the product row may change or disappear later
    product_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    discount_price = Column(Numeric(10, 2), nullable=True)

    product_name = Column(String, nullable=False)
    product_description = Column(Text, nullable=True)
    product_category = Column(String, nullable=True)
    product_image_url = Column(String, nullable=True)

    @property
    def unit_price(self) -> Decimal:
        if self.discount_price is not None and self.discount_price > 0:
            return self.discount_price
        return self.price

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity

# app/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base


class ProductModel(Base):
    """Catalog row. Read-mostly; checkout only touches inventory_count."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    discount_price = Column(Numeric(10, 2), nullable=True)
    inventory_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    categories = relationship("ProductCategoryModel", lazy="selectin", order_by="ProductCategoryModel.id")
    images = relationship("ProductImageModel", lazy="selectin", order_by="ProductImageModel.position")

    __table_args__ = (CheckConstraint("inventory_count >= 0", name="ck_product_inventory_non_negative"),)

    @property
    def category_names(self) -> list[str]:
        return [c.name for c in self.categories]


class ProductCategoryModel(Base):
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    name = Column(String, nullable=False)


class ProductImageModel(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    image_url = Column(String, nullable=False)
    is_main = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)

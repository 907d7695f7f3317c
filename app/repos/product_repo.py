# app/repos/product_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel


class ProductRepo:
    """Catalog store used by the cart and the order factory."""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids) -> dict[int, ProductModel]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars().all()
        return {p.id: p for p in rows}

    def get_product_for_update(self, product_id: int) -> ProductModel | None:
        #SELECT ... FOR UPDATE, held until the checkout transaction ends
        return self.db.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def is_active(self, product_id: int) -> bool:
        product = self.get_product(product_id)
        return bool(product and product.is_active)

    def decrement_inventory(self, product_id: int, quantity: int) -> bool:
        # compare-and-decrement, stock never goes negative
        # UPDATE products SET inventory_count = inventory_count - 3 WHERE id = 1 AND inventory_count >= 3
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.inventory_count >= quantity)
            .values(inventory_count=ProductModel.inventory_count - quantity)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def restore_inventory(self, product_id: int, quantity: int) -> None:
        self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(inventory_count=ProductModel.inventory_count + quantity)
            .execution_options(synchronize_session="fetch")
        )

    @staticmethod
    def main_image_url(product: ProductModel) -> str | None:
        if not product.images:
            return None
        for image in product.images:
            if image.is_main:
                return image.image_url
        return product.images[0].image_url

# app/data/seed.py
from decimal import Decimal

from app.data.database import SessionLocal
from app.data.models import (
    ProductModel,
    ProductCategoryModel,
    ProductImageModel,
    UserModel,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    {
        "name": "Whey Protein 2kg",
        "description": "Chocolate flavoured whey protein concentrate",
        "price": Decimal("59.99"),
        "discount_price": Decimal("49.99"),
        "inventory_count": 40,
        "categories": ["Supplements", "Protein"],
        "image": "https://cdn.example.com/products/whey.jpg",
    },
    {
        "name": "Resistance Bands Set",
        "description": "Five bands, 5-40 kg",
        "price": Decimal("24.50"),
        "discount_price": None,
        "inventory_count": 100,
        "categories": ["Equipment"],
        "image": "https://cdn.example.com/products/bands.jpg",
    },
    {
        "name": "Adjustable Dumbbell",
        "description": "2-24 kg, quick change",
        "price": Decimal("189.00"),
        "discount_price": None,
        "inventory_count": 8,
        "categories": ["Equipment", "Weights"],
        "image": None,
    },
]


def seed():
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return

        if not db.get(UserModel, 1):
            db.add(UserModel(id=1, name="Demo Client", email="demo@example.com"))

        for data in DEMO_PRODUCTS:
            product = ProductModel(
                name=data["name"],
                description=data["description"],
                price=data["price"],
                discount_price=data["discount_price"],
                inventory_count=data["inventory_count"],
                is_active=True,
            )
            db.add(product)
            db.flush()
            for name in data["categories"]:
                db.add(ProductCategoryModel(product_id=product.id, name=name))
            if data["image"]:
                db.add(ProductImageModel(product_id=product.id, image_url=data["image"], is_main=True))

        db.commit()
        logger.info(f"Seeded demo user and {len(DEMO_PRODUCTS)} products")
    finally:
        db.close()

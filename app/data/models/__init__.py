#import all models so SQLAlchemy registers them in Base.metadata

from app.data.models.user import UserModel
from app.data.models.product import ProductModel, ProductCategoryModel, ProductImageModel
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.order import OrderModel, OrderStatus, PaymentStatus, PaymentMethod
from app.data.models.order_item import OrderItemModel

__all__ = [
    "UserModel",
    "ProductModel",
    "ProductCategoryModel",
    "ProductImageModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
]

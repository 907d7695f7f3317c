# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from app.data.models.order import OrderStatus, PaymentStatus, PaymentMethod


class ItemIn(BaseModel):
    """Add a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product id (> 0)")
    quantity: int = Field(1, description="Quantity to add")


class QuantityIn(BaseModel):
    """Absolute quantity; 0 removes the item."""

    quantity: int


class CartItemOut(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    image_url: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    available: bool


class CartOut(BaseModel):
    cart_id: Optional[int] = None
    user_id: int
    items: List[CartItemOut]
    item_count: int
    subtotal: Decimal
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CartSummaryOut(BaseModel):
    user_id: int
    country: Optional[str] = None
    subtotal: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


class Address(BaseModel):
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, pattern=r"^[+]?[0-9]{10,15}$")
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=50)

    def to_formatted_string(self) -> str:
        lines = []
        if self.first_name and self.last_name:
            lines.append(f"{self.first_name} {self.last_name}")
        lines.append(self.street)
        lines.append(f"{self.city}, {self.state} {self.zip_code}")
        lines.append(self.country)
        return "\n".join(lines).strip()


class PaymentDetails(BaseModel):
    card_number: Optional[str] = Field(None, pattern=r"^[0-9\s]{13,19}$")
    expiry_month: Optional[str] = Field(None, pattern=r"^(0[1-9]|1[0-2])$")
    expiry_year: Optional[str] = Field(None, pattern=r"^[0-9]{4}$")
    cvv: Optional[str] = Field(None, pattern=r"^[0-9]{3,4}$")
    card_holder_name: Optional[str] = Field(None, max_length=100)
    wallet_id: Optional[str] = None
    wallet_provider: Optional[str] = None
    bank_account_number: Optional[str] = None
    routing_number: Optional[str] = None
    bank_name: Optional[str] = None

    def masked_card_number(self) -> str:
        if not self.card_number or len(self.card_number) < 4:
            return "****"
        return "**** **** **** " + self.card_number[-4:]


class CheckoutIn(BaseModel):
    """Checkout of the caller's current cart."""

    payment_method: PaymentMethod
    shipping_address: Address
    billing_address: Optional[Address] = None
    customer_notes: Optional[str] = Field(None, max_length=2000)
    payment_details: Optional[PaymentDetails] = None


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    product_description: Optional[str] = None
    product_category: Optional[str] = None
    product_image_url: Optional[str] = None
    quantity: int
    price: Decimal
    discount_price: Optional[Decimal] = None
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: int
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    shipping_address: str
    billing_address: Optional[str] = None
    customer_notes: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
    items: List[OrderItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderPage(BaseModel):
    items: List[OrderOut]
    total: int
    page: int
    size: int


class StatusUpdateIn(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None


class PaymentStatusUpdateIn(BaseModel):
    payment_status: PaymentStatus


class CancelIn(BaseModel):
    reason: str = Field("Cancelled by customer", min_length=1, max_length=500)


class UserCreate(BaseModel):
    id: int = Field(..., gt=0, description="User id (> 0)")
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)


class UserRead(BaseModel):
    id: int
    name: str
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

# app/services/order_view.py
from typing import Any, Dict

from app.data.models.order import OrderModel
from app.services.pricing_service import money


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "subtotal": order.subtotal,
        "tax_amount": order.tax_amount,
        "shipping_amount": order.shipping_amount,
        "discount_amount": order.discount_amount,
        "total_amount": order.total_amount,
        "shipping_address": order.shipping_address,
        "billing_address": order.billing_address,
        "customer_notes": order.customer_notes,
        "tracking_number": order.tracking_number,
        "estimated_delivery_date": order.estimated_delivery_date,
        "items": [
            {
                "product_id": i.product_id,
                "product_name": i.product_name,
                "product_description": i.product_description,
                "product_category": i.product_category,
                "product_image_url": i.product_image_url,
                "quantity": i.quantity,
                "price": i.price,
                "discount_price": i.discount_price,
                "total_price": money(i.total_price),
            }
            for i in order.items
        ],
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }

# app/services/notification_service.py
from decimal import Decimal

from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.data.models.order import OrderModel, PaymentMethod
from app.data.models.user import UserModel
from app.repos.order_repo import OrderRepo
from app.repos.user_repo import UserRepo
from app.services.pricing_service import money
from app.utils.settings import SUPPORT_EMAIL
from app.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_METHOD_LABELS = {
    PaymentMethod.CREDIT_CARD: "Credit Card",
    PaymentMethod.DEBIT_CARD: "Debit Card",
    PaymentMethod.PAYPAL: "PayPal",
    PaymentMethod.BANK_TRANSFER: "Bank Transfer",
    PaymentMethod.CASH_ON_DELIVERY: "Cash on Delivery",
    PaymentMethod.DIGITAL_WALLET: "Digital Wallet",
}


class NotificationService:
    """
    Order e-mails. Dispatch is a single Celery publish so the checkout response never
    waits on it; a failed dispatch is logged and dropped.
    """

    @staticmethod
    def send_order_confirmation(order_id: int) -> bool:
        try:
            #no publish retries, a dead broker must not hold up the request
            send_order_confirmation_task.apply_async(args=[order_id], retry=False)
            return True
        except Exception as e:
            logger.warning(f"Could not dispatch confirmation for order {order_id}: {e}")
            return False


def _label(value) -> str:
    return value.value.replace("_", " ").title()


def build_order_confirmation(order: OrderModel, user: UserModel, support_email: str = SUPPORT_EMAIL) -> tuple[str, str]:
    """Returns (subject, body) of the plain-text confirmation."""
    subject = f"Order Confirmation - {order.order_number}"

    lines = [
        f"Dear {user.name},",
        "",
        "Thank you for your order!",
        "",
        "=== ORDER CONFIRMATION ===",
        f"Order Number: {order.order_number}",
        f"Order Date: {order.created_at:%b %d, %Y at %I:%M %p}",
        f"Order Status: {_label(order.status)}",
        f"Payment Status: {_label(order.payment_status)}",
        "",
    ]

    if order.shipping_address:
        lines += ["=== SHIPPING ADDRESS ===", order.shipping_address, ""]

    lines.append("=== ORDER ITEMS ===")
    for item in order.items:
        lines.append(f"- {item.product_name}")
        lines.append(f"  Quantity: {item.quantity}")
        lines.append(f"  Price: ${money(item.unit_price)} each")
        lines.append(f"  Subtotal: ${money(item.total_price)}")
        if item.product_category:
            lines.append(f"  Category: {item.product_category}")
        lines.append("")

    lines.append("=== ORDER TOTAL ===")
    lines.append(f"Subtotal: ${order.subtotal}")
    if Decimal(order.tax_amount) > 0:
        lines.append(f"Tax: ${order.tax_amount}")
    if Decimal(order.shipping_amount) > 0:
        lines.append(f"Shipping: ${order.shipping_amount}")
    else:
        lines.append("Shipping: FREE")
    lines.append(f"TOTAL: ${order.total_amount}")
    lines.append("")
    lines.append(f"Payment Method: {PAYMENT_METHOD_LABELS[order.payment_method]}")

    if order.estimated_delivery_date:
        lines.append(f"Estimated Delivery: {order.estimated_delivery_date:%b %d, %Y}")

    lines += [
        "",
        "If you have any questions about your order, please contact us:",
        f"Email: {support_email}",
        f"Order Number: {order.order_number}",
    ]
    return subject, "\n".join(lines)


@celery_app.task(name="app.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(order_id: int):
    """
    Celery task. The log is the delivery sink for now;
    an SMTP/SES client would take the (subject, body) pair here.
    """
    db = SessionLocal()
    try:
        order = OrderRepo(db).get_order(order_id)
        if not order:
            logger.warning(f"[NOTIFICATION] Order {order_id} not found, confirmation skipped")
            return {"order_id": order_id, "status": "skipped"}

        user = UserRepo(db).get_user(order.user_id)
        if not user:
            logger.warning(f"[NOTIFICATION] User {order.user_id} not found, confirmation skipped")
            return {"order_id": order_id, "status": "skipped"}

        subject, body = build_order_confirmation(order, user)
        logger.info(f"[NOTIFICATION] To {user.email or user.id}: {subject}\n{body}")

        return {"order_id": order_id, "user_id": user.id, "status": "sent"}
    finally:
        db.close()

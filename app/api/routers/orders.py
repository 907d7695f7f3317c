# app/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.data.models.order import OrderStatus
from app.domain.schemas import (
    CancelIn,
    CheckoutIn,
    OrderOut,
    OrderPage,
    PaymentStatusUpdateIn,
    StatusUpdateIn,
)
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService
from app.services.order_lifecycle import OrderLifecycleService
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_lock_service() -> LockService:
    return LockService()


def get_payment_service() -> PaymentService:
    return PaymentService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    payment_service: PaymentService = Depends(get_payment_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(
        db=db,
        lock_service=lock_service,
        payment_service=payment_service,
        notification_service=notification_service,
    )


def get_lifecycle(db: Session = Depends(get_db)) -> OrderLifecycleService:
    return OrderLifecycleService(db)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    """
    Creates an order from the caller's cart.
    The confirmation e-mail is sent asynchronously.
    """
    return svc.checkout(user_id, payload)


@router.get("", response_model=OrderPage)
def list_my_orders(
    user_id: int = Query(...),
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    svc: OrderService = Depends(get_service),
):
    return svc.list_user_orders(user_id, page, size)


@router.get("/recent", response_model=List[OrderOut])
def recent_orders(
    user_id: int = Query(...),
    limit: int = Query(5, ge=1, le=50),
    svc: OrderService = Depends(get_service),
):
    return svc.list_recent_orders(user_id, limit)


@router.get("/all", response_model=OrderPage)
def list_all_orders(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(page, size)


@router.get("/status/{status}", response_model=OrderPage)
def list_orders_by_status(
    status: OrderStatus,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders_by_status(status, page, size)


@router.get("/number/{order_number}", response_model=OrderOut)
def get_order_by_number(
    order_number: str,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    return svc.get_order_by_number(order_number, user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
):
    return svc.get_order(order_id, user_id)


@router.put("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: StatusUpdateIn,
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
):
    return lifecycle.update_status(order_id, payload.status, payload.tracking_number)


@router.put("/{order_id}/payment-status", response_model=OrderOut)
def update_payment_status(
    order_id: int,
    payload: PaymentStatusUpdateIn,
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
):
    return lifecycle.update_payment_status(order_id, payload.payment_status)


@router.put("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    payload: CancelIn,
    user_id: int = Query(...),
    svc: OrderService = Depends(get_service),
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
):
    #ownership first, 403 for someone else's order
    svc.get_order(order_id, user_id)
    return lifecycle.cancel(order_id, payload.reason)


@router.post("/{order_id}/resend-confirmation")
def resend_confirmation(
    order_id: int,
    svc: OrderService = Depends(get_service),
):
    return {"order_id": order_id, "dispatched": svc.resend_confirmation(order_id)}

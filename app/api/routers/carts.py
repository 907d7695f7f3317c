#app/api/routers/carts.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.domain.schemas import (
    ItemIn,
    QuantityIn,
    CartOut,
    CartSummaryOut,
)
from app.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return svc.get_cart(user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return svc.add_item(user_id, payload.product_id, payload.quantity)


@router.put("/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: int,
    payload: QuantityIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return svc.update_item_quantity(user_id, product_id, payload.quantity)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return svc.remove_item(user_id, product_id)


@router.delete("", status_code=204)
def clear_cart(
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    svc.clear(user_id)
    return Response(status_code=204)


@router.get("/count")
def item_count(
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return {"user_id": user_id, "count": svc.item_count(user_id)}


@router.get("/validate")
def validate_cart(
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return {"user_id": user_id, "valid": svc.validate(user_id)}


@router.get("/summary", response_model=CartSummaryOut)
def cart_summary(
    user_id: int = Query(...),
    country: Optional[str] = Query(None, max_length=50),
    svc: CartService = Depends(get_service),
):
    """Prices the current cart the way checkout would for the given country."""
    return svc.summary(user_id, country)

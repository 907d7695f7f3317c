# app/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routers import carts, health, orders, users
from app.domain.exceptions import ShopError
from app.utils.logging import get_logger

logger = get_logger(__name__)


async def shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
    )


async def permission_error_handler(request: Request, exc: PermissionError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> 403: {exc}")
    return JSONResponse(
        status_code=403,
        content={"detail": str(exc), "error_code": "FORBIDDEN"},
    )


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(title="Shop Checkout Service", version="1.0.0", lifespan=lifespan)

    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(PermissionError, permission_error_handler)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    return app

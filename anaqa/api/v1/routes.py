from fastapi import APIRouter

from anaqa.api.v1 import cart
from anaqa.api.v1 import coupons
from anaqa.api.v1 import orders
from anaqa.core.metrics import snapshot as metrics_snapshot

api_router = APIRouter()

api_router.include_router(cart.router)
api_router.include_router(coupons.router)
api_router.include_router(orders.router)


@api_router.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@api_router.get("/metrics", tags=["health"])
def metrics() -> dict[str, int]:
    return metrics_snapshot()

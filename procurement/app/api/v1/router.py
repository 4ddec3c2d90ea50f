from fastapi import APIRouter

from procurement.app.api.v1.endpoints.health import router as health_router
from procurement.app.api.v1.endpoints.purchase_orders import router as purchase_orders_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(purchase_orders_router, tags=["purchase_orders"])

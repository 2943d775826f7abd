from fastapi import APIRouter

from .admin import admin_router
from .health import health_router
from .payments import payment_router
from .plans import plan_router
from .purchases import purchase_router
from .tokens import token_router

router = APIRouter()

router.include_router(health_router, tags=["Health"])
router.include_router(token_router, tags=["Tokens"])
router.include_router(purchase_router, tags=["Purchases"])
router.include_router(plan_router, tags=["Plans"])
router.include_router(payment_router, tags=["Payments"])
router.include_router(admin_router, tags=["Admin"])

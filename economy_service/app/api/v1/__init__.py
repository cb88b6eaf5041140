from fastapi import APIRouter

from .coupons import router as coupons_router
from .points import router as points_router
from .shop import router as shop_router
from .students import router as students_router

api_router = APIRouter()
api_router.include_router(students_router, prefix="/students", tags=["students"])
api_router.include_router(points_router, prefix="/points", tags=["points"])
api_router.include_router(shop_router, prefix="/shop", tags=["shop"])
api_router.include_router(coupons_router, prefix="/coupons", tags=["coupons"])

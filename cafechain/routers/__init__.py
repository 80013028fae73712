"""
HTTP routers.

- auth: signup, login/logout, email OTP, password reset (``/auth``)
- admin: restaurants, menus, orders, ads, analytics, customers (``/admin``)
- user: ordering, menu browsing, wallet, profile (``/user``)
"""

from fastapi import APIRouter

from cafechain.routers.admin import public_router as admin_public_router
from cafechain.routers.admin import router as admin_router
from cafechain.routers.auth import router as auth_router
from cafechain.routers.user import router as user_router

router = APIRouter()

router.include_router(auth_router)
router.include_router(admin_public_router)
router.include_router(admin_router)
router.include_router(user_router)

__all__ = ["router"]

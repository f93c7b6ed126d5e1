from fastapi import APIRouter
from .user import router as user_router
from .merchant import router as merchant_router
from .admin import router as admin_router

router = APIRouter()

router.include_router(user_router)
router.include_router(merchant_router)
router.include_router(admin_router)

from fastapi import APIRouter
from .register import router as register_router
from .admin import router as admin_router
from .dashboard import router as dashboard_router

router = APIRouter()

router.include_router(register_router)
router.include_router(admin_router)
router.include_router(dashboard_router)

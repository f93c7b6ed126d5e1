from fastapi import APIRouter
from .functions import router as functions_router
from .orders import router as orders_router

router = APIRouter()

router.include_router(functions_router)
router.include_router(orders_router)

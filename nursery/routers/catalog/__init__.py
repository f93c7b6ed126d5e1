from fastapi import APIRouter
from .products import router as products_router
from .cart import router as cart_router
from .wishlist import router as wishlist_router

router = APIRouter()

router.include_router(products_router)
router.include_router(cart_router)
router.include_router(wishlist_router)

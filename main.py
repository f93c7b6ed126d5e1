# main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from nursery.routers import admin, auth, catalog, merchants, orders, quotations
from nursery.core.config import LOG_LEVEL, CORS_ORIGINS
from nursery.core.db import init_models
from nursery.middleware.activity_logger import ActivityLoggerMiddleware

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="Nursery Storefront API",
    description="FastAPI backend for the plant nursery storefront: catalog, quotations, merchants and orders",
    version="0.1.0"
)
# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ActivityLoggerMiddleware)

# Health check endpoint
@app.get("/", tags=["Health"])
async def health_check():
    return {"status": "ok", "message": "Backend is running"}

# Register routers
app.include_router(auth.router)
app.include_router(catalog.router)
app.include_router(merchants.router)
app.include_router(quotations.router)
app.include_router(orders.router)
app.include_router(admin.router)


@app.on_event("startup")
async def on_startup():
    await init_models()

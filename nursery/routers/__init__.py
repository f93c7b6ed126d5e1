# nursery/routers/__init__.py

from . import admin, auth, catalog, merchants, orders, quotations

__all__ = [
    "admin",
    "auth",
    "catalog",
    "merchants",
    "orders",
    "quotations",
]

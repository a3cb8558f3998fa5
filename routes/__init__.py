"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.products import router as products_router
from routes.orders import router as orders_router
from routes.customers import router as customers_router
from routes.alerts import router as alerts_router
from routes.recommendations import router as recommendations_router
from routes.dashboard import router as dashboard_router

__all__ = [
    "products_router",
    "orders_router",
    "customers_router",
    "alerts_router",
    "recommendations_router",
    "dashboard_router",
]

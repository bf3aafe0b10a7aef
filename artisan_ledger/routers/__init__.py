"""
Routers for Artisan's Ledger
"""

from .items import router as items_router
from .suppliers import router as suppliers_router
from .purchases import router as purchases_router
from .recipes import router as recipes_router
from .batches import router as batches_router
from .spot_checks import router as spot_checks_router
from .sales import router as sales_router
from .dashboard import router as dashboard_router
from .reports import router as reports_router

__all__ = [
    "items_router",
    "suppliers_router",
    "purchases_router",
    "recipes_router",
    "batches_router",
    "spot_checks_router",
    "sales_router",
    "dashboard_router",
    "reports_router",
]

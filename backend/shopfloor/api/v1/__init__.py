"""
API v1 Router - Shopfloor Tracker
"""
from fastapi import APIRouter
from shopfloor.api.v1.endpoints import (
    work_items,
    stations,
    orders,
    dashboard,
)

router = APIRouter()

# Work items and station transitions
router.include_router(
    work_items.router,
    prefix="/work-items",
    tags=["work-items"]
)

# Station queues
router.include_router(
    stations.router,
    prefix="/stations",
    tags=["stations"]
)

# Orders
router.include_router(
    orders.router,
    prefix="/orders",
    tags=["orders"]
)

# Supervisor dashboard
router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["dashboard"]
)

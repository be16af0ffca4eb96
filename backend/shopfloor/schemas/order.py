"""
Schemas for orders and packing-slip snapshots.
"""
from datetime import datetime
from typing import List
from pydantic import BaseModel

from shopfloor.schemas.work_item import WorkItemListItem, WorkItemResponse


class OrderSummary(BaseModel):
    """Order in a list."""
    id: str
    customer_name: str
    order_number: str
    due_date: datetime
    created_at: datetime
    item_count: int
    is_ready_to_ship: bool
    is_overdue: bool


class OrderResponse(OrderSummary):
    """Order with its items in intake order."""
    items: List[WorkItemListItem] = []


class PackingSlipResponse(BaseModel):
    """Read-only snapshot handed to document generation."""
    generated_at: datetime
    order: OrderSummary
    item: WorkItemResponse
    shipped: bool

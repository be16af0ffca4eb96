"""
Schemas for the supervisor dashboard.
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    """Work-in-progress counts across the floor."""
    total: int
    pending: int
    in_progress: int
    completed: int
    on_hold: int
    by_step: Dict[str, int] = Field(..., description="Non-held items per station")
    holds_by_step: Dict[str, int] = Field(..., description="Held items per station")
    urgent: int
    overdue_orders: int


class HeldItem(BaseModel):
    """A held item with its age."""
    item_id: str
    order_id: str
    name: str
    current_step: str
    hold_reason: Optional[str] = None
    hold_timestamp: Optional[datetime] = None
    hold_age_hours: Optional[float] = None
    age_class: str


class HoldsResponse(BaseModel):
    """Held items split by escalation threshold."""
    threshold_hours: float
    aging: List[HeldItem] = []
    recent: List[HeldItem] = []

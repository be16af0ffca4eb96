"""
Schemas for work items and workflow transitions.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from shopfloor.core.status_config import HoldReason, ItemStatus, Priority, WorkflowStep


# =============================================================================
# Requests
# =============================================================================

class StationActionRequest(BaseModel):
    """Start, complete or ship from a station."""
    station: WorkflowStep = Field(..., description="Station the operator is working from")


class ShipRequest(BaseModel):
    """Ship an item; the station defaults to Ship."""
    station: WorkflowStep = Field(WorkflowStep.SHIP, description="Station the operator is working from")


class HoldRequest(BaseModel):
    """Place an item on hold."""
    reason: HoldReason
    notes: Optional[str] = Field(None, max_length=500, description="Additional context")


class ReleaseHoldRequest(BaseModel):
    """Release an item from hold."""
    notes: Optional[str] = Field(None, max_length=500)


class ReworkRequest(BaseModel):
    """Send an item back to the first station."""
    notes: Optional[str] = Field(None, max_length=500, description="Why the item needs rework")


class QCFailRequest(BaseModel):
    """Fail QC inspection."""
    reason: HoldReason


class IntakeRequest(BaseModel):
    """Register a new item at the first station."""
    item_id: str = Field(..., min_length=1, max_length=64, description="Barcode of the new item")
    order_id: Optional[str] = Field(None, max_length=64, description="Owning order, if known")
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    quantity: int = Field(1, ge=1)
    priority: Priority = Priority.NORMAL


# =============================================================================
# Responses
# =============================================================================

class AuditEntryResponse(BaseModel):
    """One entry of an item's history."""
    id: str
    timestamp: datetime
    step: WorkflowStep
    action: str
    operator_id: str
    operator_name: str
    station: Optional[WorkflowStep] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class WorkItemListItem(BaseModel):
    """Work item in a list or station queue."""
    id: str
    order_id: str
    name: str
    quantity: int
    current_step: WorkflowStep
    status: ItemStatus
    on_hold: bool
    hold_reason: Optional[HoldReason] = None
    hold_timestamp: Optional[datetime] = None
    priority: Priority
    updated_at: datetime

    class Config:
        from_attributes = True


class WorkItemResponse(WorkItemListItem):
    """Full work item with derived routing info and history (newest first)."""
    description: Optional[str] = None
    created_at: datetime
    next_step: Optional[WorkflowStep] = None
    previous_step: Optional[WorkflowStep] = None
    can_complete: bool = False
    audit_history: List[AuditEntryResponse] = []


class ShipCheckResponse(BaseModel):
    """Result of the shipping guard."""
    item_id: str
    can_ship: bool
    reason: Optional[str] = None

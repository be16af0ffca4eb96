"""
Schemas for the bootstrap dataset.

The fixture uses the camelCase keys of the station UI's JSON. Timestamps
without an offset are read as UTC.
"""
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from shopfloor.core.status_config import HoldReason, ItemStatus, Priority, WorkflowStep


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class SeedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SeedAuditEntry(SeedModel):
    id: str
    timestamp: datetime
    step: WorkflowStep
    action: str = Field(..., min_length=1)
    operator_id: str = Field(..., alias="operatorId")
    operator_name: str = Field(..., alias="operatorName")
    station: Optional[WorkflowStep] = None
    notes: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, v):
        return _as_utc(v)


class SeedWorkItem(SeedModel):
    id: str = Field(..., min_length=1)
    order_id: Optional[str] = Field(None, alias="orderId")
    name: str
    description: Optional[str] = None
    quantity: int = Field(1, ge=1)
    current_step: WorkflowStep = Field(WorkflowStep.SAW, alias="currentStep")
    status: ItemStatus = ItemStatus.PENDING
    on_hold: bool = Field(False, alias="onHold")
    hold_reason: Optional[HoldReason] = Field(None, alias="holdReason")
    hold_timestamp: Optional[datetime] = Field(None, alias="holdTimestamp")
    priority: Priority = Priority.NORMAL
    audit_history: List[SeedAuditEntry] = Field(default_factory=list, alias="auditHistory")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @field_validator("hold_timestamp", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v):
        return _as_utc(v)


class SeedOrder(SeedModel):
    id: str = Field(..., min_length=1)
    customer_name: str = Field(..., alias="customerName")
    order_number: str = Field(..., alias="orderNumber")
    due_date: datetime = Field(..., alias="dueDate")
    created_at: datetime = Field(..., alias="createdAt")
    items: List[SeedWorkItem] = Field(default_factory=list)

    @field_validator("due_date", "created_at")
    @classmethod
    def assume_utc(cls, v):
        return _as_utc(v)


class SeedDataset(SeedModel):
    orders: List[SeedOrder]

"""
Work Item model

One unit of production work and its position on the shop floor.
Lifecycle per step: Pending → In Progress → (Pending at next step | Completed)

Only the workflow engine mutates these records; everything else reads them.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from shopfloor.core.status_config import (
    HoldReason,
    ItemStatus,
    LAST_STEP,
    Priority,
    WorkflowStep,
)
from shopfloor.models.audit_entry import AuditEntry, utc_now


@dataclass
class WorkItem:
    """
    Work Item - a barcode-labelled part moving through the stations.

    Hold fields travel together: ``on_hold`` is True exactly when both
    ``hold_reason`` and ``hold_timestamp`` are set.
    """
    id: str
    order_id: str
    name: str
    description: Optional[str] = None
    quantity: int = 1

    current_step: WorkflowStep = WorkflowStep.SAW
    status: ItemStatus = ItemStatus.PENDING

    # Hold
    on_hold: bool = False
    hold_reason: Optional[HoldReason] = None
    hold_timestamp: Optional[datetime] = None

    priority: Priority = Priority.NORMAL

    # Append-only, chronological
    audit_history: List[AuditEntry] = field(default_factory=list)

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_shipped(self) -> bool:
        return self.current_step == LAST_STEP and self.status == ItemStatus.COMPLETED

    @property
    def last_audit_entry(self) -> Optional[AuditEntry]:
        if not self.audit_history:
            return None
        return self.audit_history[-1]

    def hold_fields_consistent(self) -> bool:
        """Check the hold flag agrees with the hold reason and timestamp."""
        if self.on_hold:
            return self.hold_reason is not None and self.hold_timestamp is not None
        return self.hold_reason is None and self.hold_timestamp is None

    def __repr__(self):
        hold = " HOLD" if self.on_hold else ""
        return f"<WorkItem {self.id} at {self.current_step.value} ({self.status.value}){hold}>"

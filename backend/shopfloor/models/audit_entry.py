"""
Audit Entry model

One immutable record per applied workflow transition. Entries live inside
the work item that produced them, in the order they were applied.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from shopfloor.core.status_config import AuditAction, WorkflowStep


def utc_now() -> datetime:
    """Timezone-aware current time used for every stored timestamp."""
    return datetime.now(timezone.utc)


def generate_entry_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class AuditEntry:
    """Audit Entry - a single transition in a work item's history"""
    id: str
    timestamp: datetime
    step: WorkflowStep
    # AuditAction for engine-written entries, free text for seeded history
    action: Union[AuditAction, str]
    operator_id: str
    operator_name: str
    station: Optional[WorkflowStep] = None
    notes: Optional[str] = None

    @property
    def action_label(self) -> str:
        if isinstance(self.action, AuditAction):
            return self.action.value
        return str(self.action)

    def __repr__(self):
        return f"<AuditEntry {self.action_label} at {self.step.value} by {self.operator_id}>"

"""
Order model

Groups the work items shipped to one customer. Readiness to ship is derived
from the items, never stored.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from shopfloor.core.status_config import LAST_STEP
from shopfloor.models.audit_entry import utc_now
from shopfloor.models.work_item import WorkItem


@dataclass
class Order:
    """Order - a customer shipment; items keep intake order"""
    id: str
    customer_name: str
    order_number: str
    due_date: datetime
    created_at: datetime = field(default_factory=utc_now)
    items: List[WorkItem] = field(default_factory=list)

    @property
    def is_ready_to_ship(self) -> bool:
        """Every item is at Ship and not held. An empty order is never ready."""
        if not self.items:
            return False
        return all(item.current_step == LAST_STEP and not item.on_hold for item in self.items)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        return self.due_date < (now or utc_now())

    def find_item(self, item_id: str) -> Optional[WorkItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def __repr__(self):
        return f"<Order {self.id} {self.customer_name} ({len(self.items)} items)>"

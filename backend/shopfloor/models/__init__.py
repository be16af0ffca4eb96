"""Domain models"""
from shopfloor.models.actor import Actor
from shopfloor.models.audit_entry import AuditEntry, utc_now
from shopfloor.models.order import Order
from shopfloor.models.work_item import WorkItem

__all__ = [
    "Actor",
    "AuditEntry",
    "Order",
    "WorkItem",
    "utc_now",
]

"""
Read-only lookups over the order/item store.

Nothing here mutates state. Station views use these to build their queues
and to decide which engine operation to call next.
"""
import copy
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

from shopfloor.core.status_config import (
    PRIORITY_RANK,
    WORKFLOW_STEPS,
    HoldReason,
    ItemStatus,
    Priority,
    WorkflowStep,
)
from shopfloor.db.store import WorkflowStore
from shopfloor.models.audit_entry import AuditEntry, utc_now
from shopfloor.models.order import Order
from shopfloor.models.work_item import WorkItem
from shopfloor.services.workflow_engine import WorkflowEngine

DEFAULT_HOLD_AGING = timedelta(hours=24)


class HoldAge(str, Enum):
    RECENT = "recent"
    AGING = "aging"


# =============================================================================
# Lookups
# =============================================================================

def get_item(store: WorkflowStore, item_id: str) -> Optional[WorkItem]:
    """Find an item by barcode across all orders."""
    return store.find_item(item_id)


def get_order(store: WorkflowStore, order_id: str) -> Optional[Order]:
    return store.get_order(order_id)


def get_order_for_item(store: WorkflowStore, item: WorkItem) -> Optional[Order]:
    return store.get_order(item.order_id)


def list_orders(store: WorkflowStore) -> List[Order]:
    return store.orders


def all_items(store: WorkflowStore) -> List[WorkItem]:
    """Every item, order by order, in intake order."""
    return [item for order in store for item in order.items]


# =============================================================================
# Filters
# =============================================================================

def filter_items(
    store: WorkflowStore,
    step: Optional[WorkflowStep] = None,
    status: Optional[ItemStatus] = None,
    on_hold: Optional[bool] = None,
    priority: Optional[Priority] = None,
    search_query: Optional[str] = None,
) -> List[WorkItem]:
    """
    Filter items; every criterion left as None matches everything.

    ``search_query`` is a case-insensitive substring match on item id,
    name and order id.
    """
    query = (search_query or "").strip().lower()
    result = []
    for item in all_items(store):
        if step is not None and item.current_step != step:
            continue
        if status is not None and item.status != status:
            continue
        if on_hold is not None and item.on_hold != on_hold:
            continue
        if priority is not None and item.priority != priority:
            continue
        if query and not (
            query in item.id.lower()
            or query in item.name.lower()
            or query in item.order_id.lower()
        ):
            continue
        result.append(item)
    return result


def station_queue(store: WorkflowStore, step: WorkflowStep) -> List[WorkItem]:
    """
    Open work at a station.

    Completed items are excluded. Workable items come first, held items
    last; within each group higher priority first, then oldest update.
    """
    items = [
        item for item in filter_items(store, step=step)
        if item.status != ItemStatus.COMPLETED
    ]
    return sorted(
        items,
        key=lambda i: (i.on_hold, -PRIORITY_RANK[i.priority], i.updated_at),
    )


def urgent_items(store: WorkflowStore) -> List[WorkItem]:
    """Urgent items that have not shipped."""
    return [
        item for item in all_items(store)
        if item.priority == Priority.URGENT and item.status != ItemStatus.COMPLETED
    ]


# =============================================================================
# Holds
# =============================================================================

def hold_age(item: WorkItem, now: Optional[datetime] = None) -> Optional[timedelta]:
    """Time since the hold began, or None if the item is not held."""
    if not item.on_hold or item.hold_timestamp is None:
        return None
    return (now or utc_now()) - item.hold_timestamp


def classify_hold_age(
    item: WorkItem,
    now: Optional[datetime] = None,
    threshold: timedelta = DEFAULT_HOLD_AGING,
) -> Optional[HoldAge]:
    """
    Recent (< threshold) or aging (>= threshold). Not held → None.

    A held item with no timestamp counts as recent.
    """
    if not item.on_hold:
        return None
    age = hold_age(item, now)
    if age is None or age < threshold:
        return HoldAge.RECENT
    return HoldAge.AGING


def held_items(store: WorkflowStore) -> List[WorkItem]:
    return filter_items(store, on_hold=True)


def aging_holds(
    store: WorkflowStore,
    now: Optional[datetime] = None,
    threshold: timedelta = DEFAULT_HOLD_AGING,
) -> List[WorkItem]:
    """Held items at or past the threshold, oldest hold first."""
    now = now or utc_now()
    items = [
        item for item in held_items(store)
        if classify_hold_age(item, now, threshold) == HoldAge.AGING
    ]
    return sorted(items, key=lambda i: i.hold_timestamp)


def recent_holds(
    store: WorkflowStore,
    now: Optional[datetime] = None,
    threshold: timedelta = DEFAULT_HOLD_AGING,
) -> List[WorkItem]:
    now = now or utc_now()
    return [
        item for item in held_items(store)
        if classify_hold_age(item, now, threshold) == HoldAge.RECENT
    ]


def holds_by_reason(store: WorkflowStore) -> Dict[HoldReason, int]:
    counts = {reason: 0 for reason in HoldReason}
    for item in held_items(store):
        counts[item.hold_reason] += 1
    return counts


# =============================================================================
# Orders
# =============================================================================

def orders_ready_to_ship(store: WorkflowStore) -> List[Order]:
    """Orders whose every item is at Ship and not held."""
    return [order for order in store if order.is_ready_to_ship]


def overdue_orders(store: WorkflowStore, now: Optional[datetime] = None) -> List[Order]:
    now = now or utc_now()
    return [order for order in store if order.is_overdue(now)]


# =============================================================================
# Aggregates
# =============================================================================

@dataclass
class FloorStats:
    total: int
    pending: int
    in_progress: int
    completed: int
    on_hold: int
    by_step: Dict[WorkflowStep, int]
    holds_by_step: Dict[WorkflowStep, int]


def dashboard_stats(store: WorkflowStore) -> FloorStats:
    """
    Work-in-progress counts.

    ``by_step`` counts only items that are not held; held items are
    counted separately in ``holds_by_step``.
    """
    items = all_items(store)
    by_step = {step: 0 for step in WORKFLOW_STEPS}
    holds_by_step = {step: 0 for step in WORKFLOW_STEPS}
    for item in items:
        if item.on_hold:
            holds_by_step[item.current_step] += 1
        else:
            by_step[item.current_step] += 1
    return FloorStats(
        total=len(items),
        pending=sum(1 for i in items if i.status == ItemStatus.PENDING),
        in_progress=sum(1 for i in items if i.status == ItemStatus.IN_PROGRESS),
        completed=sum(1 for i in items if i.status == ItemStatus.COMPLETED),
        on_hold=sum(1 for i in items if i.on_hold),
        by_step=by_step,
        holds_by_step=holds_by_step,
    )


# =============================================================================
# Audit timeline
# =============================================================================

def audit_timeline(item: WorkItem) -> List[AuditEntry]:
    """History for display: newest first. Storage order is untouched."""
    # Storage is chronological, so entries sharing a timestamp keep their
    # application order when reversed
    return list(reversed(item.audit_history))


# =============================================================================
# Document generation snapshot
# =============================================================================

@dataclass(frozen=True)
class PackingSlipSnapshot:
    item: WorkItem
    order: Order
    shipped: bool


def packing_slip_snapshot(store: WorkflowStore, item_id: str) -> Optional[PackingSlipSnapshot]:
    """
    Deep copy of an item and its order for packing-slip generation.

    Returns None unless the item can ship now or has already shipped.
    """
    with store.lock:
        item = store.find_item(item_id)
        if item is None:
            return None
        if not (WorkflowEngine.can_ship_item(item).can_ship or item.is_shipped):
            return None
        order = store.get_order(item.order_id)
        if order is None:
            return None
        order_copy = copy.deepcopy(order)
        return PackingSlipSnapshot(
            item=order_copy.find_item(item_id),
            order=order_copy,
            shipped=item.is_shipped,
        )

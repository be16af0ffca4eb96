"""
Supervisor dashboard endpoints.
"""
from datetime import timedelta

from fastapi import APIRouter, Depends

from shopfloor.core.settings import get_settings
from shopfloor.db.store import WorkflowStore, get_store
from shopfloor.models.audit_entry import utc_now
from shopfloor.schemas.dashboard import DashboardStats, HeldItem, HoldsResponse
from shopfloor.services import workflow_queries as queries


router = APIRouter()


def build_held_item(item, now, threshold: timedelta) -> HeldItem:
    age = queries.hold_age(item, now)
    age_class = queries.classify_hold_age(item, now, threshold)
    return HeldItem(
        item_id=item.id,
        order_id=item.order_id,
        name=item.name,
        current_step=item.current_step.value,
        hold_reason=item.hold_reason.value if item.hold_reason else None,
        hold_timestamp=item.hold_timestamp,
        hold_age_hours=round(age.total_seconds() / 3600, 2) if age is not None else None,
        age_class=age_class.value,
    )


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Work-in-progress counts"
)
def get_dashboard_stats(store: WorkflowStore = Depends(get_store)):
    now = utc_now()
    with store.lock:
        stats = queries.dashboard_stats(store)
        return DashboardStats(
            total=stats.total,
            pending=stats.pending,
            in_progress=stats.in_progress,
            completed=stats.completed,
            on_hold=stats.on_hold,
            by_step={step.value: count for step, count in stats.by_step.items()},
            holds_by_step={step.value: count for step, count in stats.holds_by_step.items()},
            urgent=len(queries.urgent_items(store)),
            overdue_orders=len(queries.overdue_orders(store, now)),
        )


@router.get(
    "/holds",
    response_model=HoldsResponse,
    summary="Held items split into recent and aging"
)
def get_holds(store: WorkflowStore = Depends(get_store)):
    """
    Aging holds (at or past HOLD_AGING_HOURS) are listed oldest first and
    should be escalated.
    """
    hours = get_settings().HOLD_AGING_HOURS
    threshold = timedelta(hours=hours)
    now = utc_now()
    with store.lock:
        aging = queries.aging_holds(store, now, threshold)
        recent = queries.recent_holds(store, now, threshold)
        return HoldsResponse(
            threshold_hours=hours,
            aging=[build_held_item(item, now, threshold) for item in aging],
            recent=[build_held_item(item, now, threshold) for item in recent],
        )

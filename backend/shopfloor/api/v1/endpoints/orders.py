"""
Order endpoints: listing, shipping readiness and packing slips.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from shopfloor.api.v1.endpoints.work_items import build_work_item_response
from shopfloor.db.store import WorkflowStore, get_store
from shopfloor.exceptions import InvalidStateError, NotFoundError
from shopfloor.models.audit_entry import utc_now
from shopfloor.models.order import Order
from shopfloor.schemas.order import OrderResponse, OrderSummary, PackingSlipResponse
from shopfloor.schemas.work_item import WorkItemListItem
from shopfloor.services import workflow_queries as queries


router = APIRouter()


def build_order_summary(order: Order, now=None) -> OrderSummary:
    return OrderSummary(
        id=order.id,
        customer_name=order.customer_name,
        order_number=order.order_number,
        due_date=order.due_date,
        created_at=order.created_at,
        item_count=len(order.items),
        is_ready_to_ship=order.is_ready_to_ship,
        is_overdue=order.is_overdue(now),
    )


def build_order_response(order: Order, now=None) -> OrderResponse:
    summary = build_order_summary(order, now)
    return OrderResponse(
        **summary.model_dump(),
        items=[WorkItemListItem.model_validate(item) for item in order.items],
    )


@router.get(
    "/",
    response_model=List[OrderSummary],
    summary="List orders"
)
def list_orders(
    overdue: Optional[bool] = Query(None, description="Only overdue (true) or on-time (false) orders"),
    store: WorkflowStore = Depends(get_store),
):
    now = utc_now()
    with store.lock:
        orders = queries.list_orders(store)
        if overdue is not None:
            orders = [o for o in orders if o.is_overdue(now) == overdue]
        return [build_order_summary(o, now) for o in orders]


@router.get(
    "/ready-to-ship",
    response_model=List[OrderSummary],
    summary="Orders whose every item is at Ship and not held"
)
def list_ready_to_ship(store: WorkflowStore = Depends(get_store)):
    now = utc_now()
    with store.lock:
        return [build_order_summary(o, now) for o in queries.orders_ready_to_ship(store)]


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get an order with its items"
)
def get_order(order_id: str, store: WorkflowStore = Depends(get_store)):
    with store.lock:
        order = queries.get_order(store, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return build_order_response(order)


@router.get(
    "/{order_id}/items/{item_id}/packing-slip",
    response_model=PackingSlipResponse,
    summary="Packing slip data for a shippable item"
)
def get_packing_slip(order_id: str, item_id: str, store: WorkflowStore = Depends(get_store)):
    """
    Snapshot of the item and its order for document generation.

    Only items that can ship now, or have already shipped, get a slip.
    """
    order = queries.get_order(store, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    item = order.find_item(item_id)
    if item is None:
        raise NotFoundError("Work item", item_id)

    snapshot = queries.packing_slip_snapshot(store, item_id)
    if snapshot is None:
        raise InvalidStateError(
            f"Item {item_id} is not ready for shipping",
            current_state={
                "current_step": item.current_step.value,
                "status": item.status.value,
                "on_hold": item.on_hold,
            },
        )
    now = utc_now()
    return PackingSlipResponse(
        generated_at=now,
        order=build_order_summary(snapshot.order, now),
        item=build_work_item_response(snapshot.item),
        shipped=snapshot.shipped,
    )

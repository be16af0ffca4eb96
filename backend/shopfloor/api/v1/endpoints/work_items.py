"""
API endpoints for work items and workflow transitions.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from shopfloor.api.v1.deps import get_current_actor, get_engine, require_station_role
from shopfloor.core.status_config import ItemStatus, Priority, WorkflowStep, next_step, previous_step
from shopfloor.db.store import WorkflowStore, get_store
from shopfloor.exceptions import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    StationMismatchError,
)
from shopfloor.models.actor import Actor
from shopfloor.models.work_item import WorkItem
from shopfloor.schemas.work_item import (
    AuditEntryResponse,
    HoldRequest,
    IntakeRequest,
    QCFailRequest,
    ReleaseHoldRequest,
    ReworkRequest,
    ShipCheckResponse,
    ShipRequest,
    StationActionRequest,
    WorkItemListItem,
    WorkItemResponse,
)
from shopfloor.services import workflow_queries as queries
from shopfloor.services.workflow_engine import WorkflowEngine


router = APIRouter()


def build_audit_entry_response(entry) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=entry.id,
        timestamp=entry.timestamp,
        step=entry.step,
        action=entry.action_label,
        operator_id=entry.operator_id,
        operator_name=entry.operator_name,
        station=entry.station,
        notes=entry.notes,
    )


def build_work_item_response(item: WorkItem) -> WorkItemResponse:
    """Build response from a work item, history newest first."""
    return WorkItemResponse(
        id=item.id,
        order_id=item.order_id,
        name=item.name,
        description=item.description,
        quantity=item.quantity,
        current_step=item.current_step,
        status=item.status,
        on_hold=item.on_hold,
        hold_reason=item.hold_reason,
        hold_timestamp=item.hold_timestamp,
        priority=item.priority,
        created_at=item.created_at,
        updated_at=item.updated_at,
        next_step=next_step(item.current_step),
        previous_step=previous_step(item.current_step),
        can_complete=WorkflowEngine.can_complete_step(item),
        audit_history=[build_audit_entry_response(e) for e in queries.audit_timeline(item)],
    )


def _item_state(item: WorkItem) -> Dict[str, Any]:
    return {
        "current_step": item.current_step.value,
        "status": item.status.value,
        "on_hold": item.on_hold,
        "hold_reason": item.hold_reason.value if item.hold_reason else None,
    }


def _get_item_or_404(store: WorkflowStore, item_id: str) -> WorkItem:
    item = queries.get_item(store, item_id)
    if item is None:
        raise NotFoundError("Work item", item_id)
    return item


def _rejected(item: WorkItem, message: str) -> InvalidStateError:
    return InvalidStateError(message, current_state=_item_state(item))


# =============================================================================
# Reads
# =============================================================================

@router.get(
    "/",
    response_model=List[WorkItemListItem],
    summary="List work items"
)
def list_work_items(
    step: Optional[WorkflowStep] = Query(None, description="Current station"),
    item_status: Optional[ItemStatus] = Query(None, alias="status"),
    on_hold: Optional[bool] = Query(None),
    priority: Optional[Priority] = Query(None),
    q: Optional[str] = Query(None, max_length=100, description="Search id, name or order"),
    store: WorkflowStore = Depends(get_store),
):
    items = queries.filter_items(
        store,
        step=step,
        status=item_status,
        on_hold=on_hold,
        priority=priority,
        search_query=q,
    )
    return [WorkItemListItem.model_validate(item) for item in items]


@router.get(
    "/{item_id}",
    response_model=WorkItemResponse,
    summary="Look up a work item by barcode"
)
def get_work_item(item_id: str, store: WorkflowStore = Depends(get_store)):
    return build_work_item_response(_get_item_or_404(store, item_id))


@router.get(
    "/{item_id}/history",
    response_model=List[AuditEntryResponse],
    summary="Audit history, newest first"
)
def get_work_item_history(item_id: str, store: WorkflowStore = Depends(get_store)):
    item = _get_item_or_404(store, item_id)
    return [build_audit_entry_response(e) for e in queries.audit_timeline(item)]


@router.get(
    "/{item_id}/can-ship",
    response_model=ShipCheckResponse,
    summary="Check whether an item can ship"
)
def check_can_ship(item_id: str, store: WorkflowStore = Depends(get_store)):
    item = _get_item_or_404(store, item_id)
    check = WorkflowEngine.can_ship_item(item)
    return ShipCheckResponse(item_id=item.id, can_ship=check.can_ship, reason=check.reason)


# =============================================================================
# Intake
# =============================================================================

@router.post(
    "/",
    response_model=WorkItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new work item"
)
def create_work_item(
    request: IntakeRequest,
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    """
    Intake a new item at the first station.

    - Known order id → linked to that order
    - Unknown order id → placeholder order created
    - No order id → General Stock
    """
    item = engine.add_new_item(
        request.item_id,
        actor,
        request.order_id,
        name=request.name,
        description=request.description,
        quantity=request.quantity,
        priority=request.priority,
    )
    if item is None:
        raise DuplicateError("Work item", field="id", value=request.item_id)
    return build_work_item_response(item)


# =============================================================================
# Station transitions
# =============================================================================

@router.post(
    "/{item_id}/start",
    response_model=WorkItemResponse,
    summary="Start the current step"
)
def start_step(
    item_id: str,
    request: StationActionRequest,
    store: WorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    """
    Validations:
    - Station must match the item's current step
    - Item must be Pending and not on hold
    """
    item = _get_item_or_404(store, item_id)
    require_station_role(actor, request.station)
    if not engine.start_step(item_id, actor, request.station):
        if request.station != item.current_step:
            raise StationMismatchError(
                item_id, station=request.station.value, current_step=item.current_step.value
            )
        raise _rejected(item, f"Cannot start {item.current_step.value} for item {item_id}")
    return build_work_item_response(item)


@router.post(
    "/{item_id}/complete",
    response_model=WorkItemResponse,
    summary="Complete the current step"
)
def complete_step(
    item_id: str,
    request: StationActionRequest,
    store: WorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    """
    Validations:
    - Station must match the item's current step
    - Item must be In Progress and not on hold

    Side effects:
    - Moves the item to the next station as Pending, or marks it Completed
    """
    item = _get_item_or_404(store, item_id)
    require_station_role(actor, request.station)
    if not engine.complete_step(item_id, actor, request.station):
        if request.station != item.current_step:
            raise StationMismatchError(
                item_id, station=request.station.value, current_step=item.current_step.value
            )
        raise _rejected(item, f"Cannot complete {item.current_step.value} for item {item_id}")
    return build_work_item_response(item)


@router.post(
    "/{item_id}/ship",
    response_model=WorkItemResponse,
    summary="Ship an item"
)
def ship_item(
    item_id: str,
    request: ShipRequest,
    store: WorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    item = _get_item_or_404(store, item_id)
    require_station_role(actor, request.station)
    if request.station != WorkflowStep.SHIP:
        raise StationMismatchError(
            item_id, station=request.station.value, current_step=item.current_step.value
        )
    if not engine.ship_item(item_id, actor, request.station):
        check = WorkflowEngine.can_ship_item(item)
        raise _rejected(item, check.reason or f"Cannot ship item {item_id}")
    return build_work_item_response(item)


# =============================================================================
# Holds and rework
# =============================================================================

@router.post(
    "/{item_id}/hold",
    response_model=WorkItemResponse,
    summary="Place an item on hold"
)
def place_on_hold(
    item_id: str,
    request: HoldRequest,
    store: WorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    item = _get_item_or_404(store, item_id)
    if not engine.place_on_hold(item_id, request.reason, actor, notes=request.notes):
        raise _rejected(item, f"Item {item_id} is already on hold")
    return build_work_item_response(item)


@router.post(
    "/{item_id}/release",
    response_model=WorkItemResponse,
    summary="Release an item from hold"
)
def release_hold(
    item_id: str,
    request: ReleaseHoldRequest,
    store: WorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    item = _get_item_or_404(store, item_id)
    if not engine.release_hold(item_id, actor, notes=request.notes):
        raise _rejected(item, f"Item {item_id} is not on hold")
    return build_work_item_response(item)


@router.post(
    "/{item_id}/rework",
    response_model=WorkItemResponse,
    summary="Send an item back to the first station"
)
def send_to_rework(
    item_id: str,
    request: ReworkRequest,
    store: WorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    """
    Use cases:
    - Defect found downstream of the station that caused it
    - Customer change after cutting
    """
    item = _get_item_or_404(store, item_id)
    if not engine.send_to_rework(item_id, actor, notes=request.notes):
        raise _rejected(item, f"Cannot send item {item_id} to rework")
    return build_work_item_response(item)


# =============================================================================
# Quality control
# =============================================================================

@router.post(
    "/{item_id}/qc/pass",
    response_model=WorkItemResponse,
    summary="Pass QC inspection"
)
def pass_qc(
    item_id: str,
    store: WorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    """
    The QC station is expected to have completed its checklist before
    calling this; the engine does not track checklist state.
    """
    item = _get_item_or_404(store, item_id)
    require_station_role(actor, WorkflowStep.QC)
    if not engine.pass_qc(item_id, actor):
        raise _rejected(item, f"Item {item_id} cannot pass QC")
    return build_work_item_response(item)


@router.post(
    "/{item_id}/qc/fail",
    response_model=WorkItemResponse,
    summary="Fail QC inspection"
)
def fail_qc(
    item_id: str,
    request: QCFailRequest,
    store: WorkflowStore = Depends(get_store),
    engine: WorkflowEngine = Depends(get_engine),
    actor: Actor = Depends(get_current_actor),
):
    item = _get_item_or_404(store, item_id)
    require_station_role(actor, WorkflowStep.QC)
    if not engine.fail_qc(item_id, request.reason, actor):
        raise _rejected(item, f"Item {item_id} is not at QC")
    return build_work_item_response(item)

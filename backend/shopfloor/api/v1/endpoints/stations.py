"""
Station queue endpoints.

Each station view polls its queue: open items at that step, workable
items first and held items last.
"""
from typing import List

from fastapi import APIRouter, Depends

from shopfloor.core.status_config import WorkflowStep
from shopfloor.db.store import WorkflowStore, get_store
from shopfloor.schemas.work_item import WorkItemListItem
from shopfloor.services import workflow_queries as queries


router = APIRouter()


@router.get(
    "/{step}/queue",
    response_model=List[WorkItemListItem],
    summary="Open work at a station"
)
def get_station_queue(step: WorkflowStep, store: WorkflowStore = Depends(get_store)):
    with store.lock:
        items = queries.station_queue(store, step)
        return [WorkItemListItem.model_validate(item) for item in items]

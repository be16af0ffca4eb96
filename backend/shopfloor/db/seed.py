"""
Bootstrap data loading

Turns the seed dataset (JSON, camelCase keys) into Order/WorkItem/AuditEntry
instances. Every field is parsed and validated through the seed schemas and
the entities are built field by field; nothing is shared with the raw input.

Normalization:
- A held item without ``holdTimestamp`` gets its ``updatedAt`` as hold start
- A non-held item's stray hold reason/timestamp is dropped
- Audit history is stored in timestamp order

Rejected: duplicate ids, items listed under another order, held items
without a reason, and Completed items at any step but the last.
"""
import json
from pathlib import Path
from typing import Any, List, Set, Union

from pydantic import ValidationError as PydanticValidationError

from shopfloor.core.status_config import LAST_STEP, AuditAction, ItemStatus
from shopfloor.exceptions import SeedDataError
from shopfloor.logging_config import get_logger
from shopfloor.models.audit_entry import AuditEntry
from shopfloor.models.order import Order
from shopfloor.models.work_item import WorkItem
from shopfloor.schemas.seed import SeedAuditEntry, SeedDataset, SeedOrder, SeedWorkItem

logger = get_logger(__name__)

_KNOWN_ACTIONS = {action.value: action for action in AuditAction}


def load_seed_file(path: Union[str, Path]) -> List[Order]:
    """
    Load orders from a JSON seed file.

    Raises:
        SeedDataError: If the file is missing, not JSON, or fails validation
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise SeedDataError(f"Seed file {path} not found", source=str(path))
    except json.JSONDecodeError as e:
        raise SeedDataError(f"Seed file {path} is not valid JSON: {e}", source=str(path))

    orders = load_seed_data(raw, source=str(path))
    logger.info(
        f"Loaded {len(orders)} orders from {path}",
        extra={"details": {"orders": len(orders), "items": sum(len(o.items) for o in orders)}},
    )
    return orders


def load_seed_data(raw: Any, source: str = "<memory>") -> List[Order]:
    """
    Build orders from already-decoded seed data.

    Accepts either ``{"orders": [...]}`` or a bare list of orders.
    """
    if isinstance(raw, list):
        raw = {"orders": raw}
    try:
        dataset = SeedDataset.model_validate(raw)
    except PydanticValidationError as e:
        raise SeedDataError(
            f"Seed data failed validation ({e.error_count()} errors)",
            source=source,
            details={"errors": [
                {"loc": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]},
        )

    orders: List[Order] = []
    order_ids: Set[str] = set()
    item_ids: Set[str] = set()
    for seed_order in dataset.orders:
        if seed_order.id in order_ids:
            raise SeedDataError(f"Duplicate order id {seed_order.id}", source=source)
        order_ids.add(seed_order.id)
        order = _build_order(seed_order, item_ids, source)
        orders.append(order)
    return orders


def _build_order(seed: SeedOrder, item_ids: Set[str], source: str) -> Order:
    order = Order(
        id=seed.id,
        customer_name=seed.customer_name,
        order_number=seed.order_number,
        due_date=seed.due_date,
        created_at=seed.created_at,
    )
    for seed_item in seed.items:
        if seed_item.id in item_ids:
            raise SeedDataError(f"Duplicate work item id {seed_item.id}", source=source)
        if seed_item.order_id is not None and seed_item.order_id != seed.id:
            raise SeedDataError(
                f"Work item {seed_item.id} names order {seed_item.order_id} "
                f"but is listed under {seed.id}",
                source=source,
            )
        item_ids.add(seed_item.id)
        order.items.append(_build_item(seed_item, seed.id, source))
    return order


def _build_item(seed: SeedWorkItem, order_id: str, source: str) -> WorkItem:
    # Completed is only reachable at the last step
    if seed.status == ItemStatus.COMPLETED and seed.current_step != LAST_STEP:
        raise SeedDataError(
            f"Work item {seed.id} is Completed at {seed.current_step.value}; "
            f"only {LAST_STEP.value} can be Completed",
            source=source,
        )
    hold_reason = seed.hold_reason
    hold_timestamp = seed.hold_timestamp
    if seed.on_hold:
        if hold_reason is None:
            raise SeedDataError(f"Work item {seed.id} is on hold without a reason", source=source)
        if hold_timestamp is None:
            hold_timestamp = seed.updated_at
            logger.info(
                f"Seed item {seed.id} has no hold timestamp; using updatedAt",
                extra={"item_id": seed.id},
            )
    elif hold_reason is not None or hold_timestamp is not None:
        logger.warning(
            f"Seed item {seed.id} is not on hold; dropping hold fields",
            extra={"item_id": seed.id},
        )
        hold_reason = None
        hold_timestamp = None

    history = [_build_entry(entry) for entry in seed.audit_history]
    history.sort(key=lambda entry: entry.timestamp)

    return WorkItem(
        id=seed.id,
        order_id=order_id,
        name=seed.name,
        description=seed.description,
        quantity=seed.quantity,
        current_step=seed.current_step,
        status=seed.status,
        on_hold=seed.on_hold,
        hold_reason=hold_reason,
        hold_timestamp=hold_timestamp,
        priority=seed.priority,
        audit_history=history,
        created_at=seed.created_at,
        updated_at=seed.updated_at,
    )


def _build_entry(seed: SeedAuditEntry) -> AuditEntry:
    return AuditEntry(
        id=seed.id,
        timestamp=seed.timestamp,
        step=seed.step,
        action=_KNOWN_ACTIONS.get(seed.action, seed.action),
        operator_id=seed.operator_id,
        operator_name=seed.operator_name,
        station=seed.station,
        notes=seed.notes,
    )

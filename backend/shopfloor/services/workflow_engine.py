"""
Workflow engine - the only writer of work item and order state.

Every operation follows the same shape:

1. Look up the item (missing → ``False``)
2. Check preconditions (violations are logged and return ``False``)
3. Apply one state change and append one audit entry, under the store lock
4. Return ``True``

Business-rule violations never raise. The only exceptions are programmer
errors such as calling without an actor, which raise ``ValidationError``.
"""
from datetime import datetime, timedelta
from typing import Callable, NamedTuple, Optional, Union

from shopfloor.core.settings import Settings, get_settings
from shopfloor.core.status_config import (
    FIRST_STEP,
    AuditAction,
    HoldReason,
    ItemStatus,
    Priority,
    WorkflowStep,
    is_valid_item_status_transition,
    next_step,
)
from shopfloor.db.store import WorkflowStore
from shopfloor.exceptions import ValidationError
from shopfloor.logging_config import get_logger
from shopfloor.models.actor import Actor
from shopfloor.models.audit_entry import AuditEntry, generate_entry_id, utc_now
from shopfloor.models.order import Order
from shopfloor.models.work_item import WorkItem

logger = get_logger(__name__)

StepLike = Union[WorkflowStep, str]


class ShipCheck(NamedTuple):
    """Result of the shipping guard; ``reason`` explains a refusal."""
    can_ship: bool
    reason: Optional[str] = None


def _coerce_step(station: Optional[StepLike]) -> Optional[WorkflowStep]:
    """Unknown station names compare unequal to every step."""
    if station is None:
        return None
    try:
        return WorkflowStep(station)
    except ValueError:
        return None


def _coerce_reason(reason: Union[HoldReason, str]) -> HoldReason:
    try:
        return HoldReason(reason)
    except ValueError:
        raise ValidationError(
            f"Unknown hold reason '{reason}'",
            field="reason",
            value=reason,
            details={"allowed": [r.value for r in HoldReason]},
        )


class WorkflowEngine:
    """
    State machine over the items in a ``WorkflowStore``.

    Args:
        store: The order/item table this engine owns write access to
        settings: Intake defaults (General Stock id, placeholder customer, lead days)
        clock: Source of timestamps; injectable for tests
    """

    def __init__(
        self,
        store: WorkflowStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock

    # =========================================================================
    # Guards (no mutation)
    # =========================================================================

    @staticmethod
    def can_complete_step(item: WorkItem) -> bool:
        """An item can be completed when it is started and not held."""
        if item.on_hold:
            return False
        return item.status == ItemStatus.IN_PROGRESS

    @staticmethod
    def can_ship_item(item: WorkItem) -> ShipCheck:
        if item.current_step != WorkflowStep.SHIP:
            return ShipCheck(False, f"Item is at {item.current_step.value}, not ready for shipping")
        if item.on_hold:
            return ShipCheck(False, "QC HOLD ACTIVE")
        if item.status == ItemStatus.COMPLETED:
            return ShipCheck(False, "Item already shipped")
        return ShipCheck(True)

    # =========================================================================
    # Station operations
    # =========================================================================

    def start_step(self, item_id: str, actor: Actor, station: StepLike) -> bool:
        """
        Start work on the item's current step.

        Validations:
        - Claimed station must be the item's current step
        - Item must not be on hold
        - Item must be Pending
        """
        self._require_actor(actor)
        with self.store.lock:
            item = self._get_item(item_id, "start_step")
            if item is None:
                return False
            if not self._station_matches(item, station, "start_step"):
                return False
            if item.on_hold:
                return self._reject(item, "start_step", "item is on hold")
            if item.status != ItemStatus.PENDING:
                return self._reject(item, "start_step", f"status is {item.status.value}, expected Pending")

            self._set_status(item, ItemStatus.IN_PROGRESS)
            self._record(item, AuditAction.STARTED, actor, station=item.current_step)
            return True

    def complete_step(self, item_id: str, actor: Actor, station: StepLike) -> bool:
        """
        Complete the current step and move the item on.

        The audit entry is written at the step being completed. If a next
        step exists the item lands there as Pending, otherwise it becomes
        Completed.
        """
        self._require_actor(actor)
        with self.store.lock:
            item = self._get_item(item_id, "complete_step")
            if item is None:
                return False
            if not self._station_matches(item, station, "complete_step"):
                return False
            if not self.can_complete_step(item):
                reason = "item is on hold" if item.on_hold else f"status is {item.status.value}, expected In Progress"
                return self._reject(item, "complete_step", reason)

            completed_step = item.current_step
            following = next_step(completed_step)
            if following is not None:
                self._set_status(item, ItemStatus.PENDING)
                item.current_step = following
            else:
                self._set_status(item, ItemStatus.COMPLETED)
            self._record(
                item, AuditAction.COMPLETED, actor, step=completed_step, station=completed_step
            )
            return True

    # =========================================================================
    # Holds and rework
    # =========================================================================

    def place_on_hold(
        self,
        item_id: str,
        reason: Union[HoldReason, str],
        actor: Actor,
        notes: Optional[str] = None,
    ) -> bool:
        """Stop an item. Holding an already-held item is a no-op."""
        self._require_actor(actor)
        hold_reason = _coerce_reason(reason)
        with self.store.lock:
            item = self._get_item(item_id, "place_on_hold")
            if item is None:
                return False
            if item.on_hold:
                return self._reject(item, "place_on_hold", "item is already on hold")

            timestamp = self._set_hold(item, hold_reason)
            self._record(
                item,
                AuditAction.PLACED_ON_HOLD,
                actor,
                notes=self._join_notes(f"Reason: {hold_reason.value}", notes),
                timestamp=timestamp,
            )
            return True

    def release_hold(self, item_id: str, actor: Actor, notes: Optional[str] = None) -> bool:
        """Clear a hold. Releasing an item that is not held is a no-op."""
        self._require_actor(actor)
        with self.store.lock:
            item = self._get_item(item_id, "release_hold")
            if item is None:
                return False
            if not item.on_hold:
                return self._reject(item, "release_hold", "item is not on hold")

            previous_reason = item.hold_reason
            self._clear_hold(item)
            self._record(
                item,
                AuditAction.RELEASED_FROM_HOLD,
                actor,
                notes=self._join_notes(f"Was held for: {previous_reason.value}", notes),
            )
            return True

    def send_to_rework(self, item_id: str, actor: Actor, notes: Optional[str] = None) -> bool:
        """
        Return an item to the first station from anywhere.

        No state guard beyond existence. Any hold is cleared and the audit
        entry is written at the step the item left.
        """
        self._require_actor(actor)
        with self.store.lock:
            item = self._get_item(item_id, "send_to_rework")
            if item is None:
                return False

            left_step = item.current_step
            item.current_step = FIRST_STEP
            item.status = ItemStatus.PENDING
            self._clear_hold(item)
            self._record(
                item,
                AuditAction.SENT_TO_REWORK,
                actor,
                step=left_step,
                notes=notes or f"Returned from {left_step.value} to {FIRST_STEP.value} for rework",
            )
            return True

    # =========================================================================
    # Quality control
    # =========================================================================

    def pass_qc(self, item_id: str, actor: Actor) -> bool:
        """
        Pass inspection and move the item to Ship as Pending.

        Checklist completion is enforced by the QC station, not here.
        """
        self._require_actor(actor)
        with self.store.lock:
            item = self._get_item(item_id, "pass_qc")
            if item is None:
                return False
            if item.current_step != WorkflowStep.QC:
                return self._reject(item, "pass_qc", f"item is at {item.current_step.value}, not QC")
            if item.on_hold:
                return self._reject(item, "pass_qc", "item is on hold")

            item.current_step = WorkflowStep.SHIP
            item.status = ItemStatus.PENDING
            self._record(item, AuditAction.PASSED_QC, actor, step=WorkflowStep.QC)
            return True

    def fail_qc(self, item_id: str, reason: Union[HoldReason, str], actor: Actor) -> bool:
        """
        Fail inspection: hold the item at QC with the given reason.

        Does not require In Progress. An existing hold is replaced and its
        clock restarts.
        """
        self._require_actor(actor)
        hold_reason = _coerce_reason(reason)
        with self.store.lock:
            item = self._get_item(item_id, "fail_qc")
            if item is None:
                return False
            if item.current_step != WorkflowStep.QC:
                return self._reject(item, "fail_qc", f"item is at {item.current_step.value}, not QC")

            timestamp = self._set_hold(item, hold_reason)
            self._record(
                item,
                AuditAction.FAILED_QC,
                actor,
                notes=f"Reason: {hold_reason.value}",
                timestamp=timestamp,
            )
            return True

    # =========================================================================
    # Shipping
    # =========================================================================

    def ship_item(self, item_id: str, actor: Actor, station: StepLike = WorkflowStep.SHIP) -> bool:
        """
        Ship an item and close it.

        Validations:
        - Claimed station must be Ship
        - ``can_ship_item`` must pass (at Ship, not held, not already shipped)

        Shipping is allowed from Pending as well as In Progress: packing does
        not have to be started first. Pending → Completed is not in the status
        transition table, so the status is set directly instead of through
        ``_set_status``.
        """
        self._require_actor(actor)
        with self.store.lock:
            item = self._get_item(item_id, "ship_item")
            if item is None:
                return False
            if _coerce_step(station) != WorkflowStep.SHIP:
                self._log_process_violation(item, station, "ship_item")
                return False
            check = self.can_ship_item(item)
            if not check.can_ship:
                return self._reject(item, "ship_item", check.reason)

            # Ship closes the item whether or not packing was started
            item.status = ItemStatus.COMPLETED
            self._record(item, AuditAction.SHIPPED, actor, station=WorkflowStep.SHIP)
            return True

    # =========================================================================
    # Intake
    # =========================================================================

    def add_new_item(
        self,
        item_id: str,
        actor: Actor,
        order_id: Optional[str] = None,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        quantity: int = 1,
        priority: Union[Priority, str] = Priority.NORMAL,
    ) -> Optional[WorkItem]:
        """
        Register a new item at the first station.

        Order resolution:
        - ``order_id`` of an existing order → linked to it
        - unknown ``order_id`` → a placeholder order is created for it
        - no ``order_id`` → the General Stock order (created on first use)

        Returns:
            The created item, or None if the id is already in use
        """
        self._require_actor(actor)
        item_id = (item_id or "").strip()
        if not item_id:
            raise ValidationError("Item id is required", field="item_id")
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", field="quantity", value=quantity)
        try:
            priority = Priority(priority)
        except ValueError:
            raise ValidationError(f"Unknown priority '{priority}'", field="priority", value=priority)

        with self.store.lock:
            if self.store.find_item(item_id) is not None:
                logger.warning(
                    f"Duplicate intake rejected for item {item_id}",
                    extra={"item_id": item_id, "action": "add_new_item", "operator_id": actor.id},
                )
                return None

            order, intake_note = self._resolve_intake_order(order_id)
            now = self.clock()
            item = WorkItem(
                id=item_id,
                order_id=order.id,
                name=name or item_id,
                description=description,
                quantity=quantity,
                current_step=FIRST_STEP,
                status=ItemStatus.PENDING,
                priority=priority,
                created_at=now,
                updated_at=now,
            )
            order.items.append(item)
            self._record(item, AuditAction.CREATED, actor, notes=intake_note, timestamp=now)
            return item

    def _resolve_intake_order(self, order_id: Optional[str]):
        order_id = (order_id or "").strip() or None
        if order_id is None:
            general_id = self.settings.GENERAL_STOCK_ORDER_ID
            order = self.store.get_order(general_id)
            if order is None:
                order = self._create_order(
                    general_id, self.settings.GENERAL_STOCK_CUSTOMER, general_id
                )
            return order, f"Added to {order.customer_name}"

        order = self.store.get_order(order_id)
        if order is not None:
            return order, f"Linked to order {order.order_number}"

        # Unknown ids are accepted: the placeholder keeps the item traceable
        order = self._create_order(order_id, self.settings.PLACEHOLDER_CUSTOMER, order_id)
        logger.warning(
            f"Intake referenced unknown order {order_id}; placeholder created",
            extra={"order_id": order_id, "action": "add_new_item"},
        )
        return order, f"Order {order_id} not found; placeholder order created"

    def _create_order(self, order_id: str, customer_name: str, order_number: str) -> Order:
        now = self.clock()
        order = Order(
            id=order_id,
            customer_name=customer_name,
            order_number=order_number,
            due_date=now + timedelta(days=self.settings.INTAKE_LEAD_DAYS),
            created_at=now,
        )
        self.store.add_order(order)
        logger.info(f"Created order {order_id} for {customer_name}", extra={"order_id": order_id})
        return order

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _require_actor(actor: Optional[Actor]) -> None:
        if actor is None or not (actor.id or "").strip():
            raise ValidationError("An authenticated actor is required", field="actor")

    def _get_item(self, item_id: str, action: str) -> Optional[WorkItem]:
        item = self.store.find_item(item_id)
        if item is None:
            logger.warning(
                f"{action}: item {item_id} not found",
                extra={"item_id": item_id, "action": action},
            )
        return item

    def _station_matches(self, item: WorkItem, station: Optional[StepLike], action: str) -> bool:
        if _coerce_step(station) == item.current_step:
            return True
        self._log_process_violation(item, station, action)
        return False

    @staticmethod
    def _log_process_violation(item: WorkItem, station: Optional[StepLike], action: str) -> None:
        claimed = station.value if isinstance(station, WorkflowStep) else station
        logger.warning(
            f"Process violation: {action} from station {claimed} on item {item.id} "
            f"at {item.current_step.value}",
            extra={
                "item_id": item.id,
                "action": action,
                "station": claimed,
                "current_step": item.current_step.value,
            },
        )

    @staticmethod
    def _reject(item: WorkItem, action: str, reason: Optional[str]) -> bool:
        logger.warning(
            f"{action} rejected for item {item.id}: {reason}",
            extra={
                "item_id": item.id,
                "action": action,
                "reason": reason,
                "current_step": item.current_step.value,
                "status": item.status.value,
            },
        )
        return False

    @staticmethod
    def _set_status(item: WorkItem, new_status: ItemStatus) -> None:
        if not is_valid_item_status_transition(item.status, new_status):
            raise ValidationError(
                f"Illegal status change {item.status.value} -> {new_status.value}",
                field="status",
            )
        item.status = new_status

    def _set_hold(self, item: WorkItem, reason: HoldReason) -> datetime:
        timestamp = self._next_timestamp(item)
        item.on_hold = True
        item.hold_reason = reason
        item.hold_timestamp = timestamp
        return timestamp

    @staticmethod
    def _clear_hold(item: WorkItem) -> None:
        item.on_hold = False
        item.hold_reason = None
        item.hold_timestamp = None

    def _next_timestamp(self, item: WorkItem) -> datetime:
        """Clock reading, never earlier than the item's last audit entry."""
        now = self.clock()
        last = item.last_audit_entry
        if last is not None and last.timestamp > now:
            return last.timestamp
        return now

    @staticmethod
    def _join_notes(base: str, extra: Optional[str]) -> str:
        if extra:
            return f"{base}; {extra}"
        return base

    def _record(
        self,
        item: WorkItem,
        action: AuditAction,
        actor: Actor,
        *,
        step: Optional[WorkflowStep] = None,
        station: Optional[WorkflowStep] = None,
        notes: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            id=generate_entry_id(),
            timestamp=timestamp or self._next_timestamp(item),
            step=step or item.current_step,
            action=action,
            operator_id=actor.id,
            operator_name=actor.name,
            station=station,
            notes=notes,
        )
        item.audit_history.append(entry)
        item.updated_at = entry.timestamp
        logger.info(
            f"{action.value}: item {item.id} at {entry.step.value} by {actor.id}",
            extra={
                "item_id": item.id,
                "order_id": item.order_id,
                "action": action.value,
                "station": station.value if station else None,
                "current_step": item.current_step.value,
                "status": item.status.value,
                "operator_id": actor.id,
            },
        )
        return entry

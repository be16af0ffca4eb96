"""
In-memory order/item store

The store is the single shared table of orders and their work items. It is
created by the application (or a test) and handed to the workflow engine by
reference; nothing else writes to it.
"""
import threading
from typing import Dict, Iterable, Iterator, List, Optional

from fastapi import Request

from shopfloor.logging_config import get_logger
from shopfloor.models.order import Order
from shopfloor.models.work_item import WorkItem

logger = get_logger(__name__)


class WorkflowStore:
    """
    Orders keyed by id, kept in insertion order.

    ``lock`` is re-entrant: an engine operation holds it across lookup,
    validation, mutation and audit append so two requests served from the
    threadpool cannot interleave on the same item.
    """

    def __init__(self, orders: Optional[Iterable[Order]] = None):
        self._orders: Dict[str, Order] = {}
        self.lock = threading.RLock()
        for order in orders or ():
            self.add_order(order)

    def __len__(self) -> int:
        with self.lock:
            return len(self._orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self.orders)

    @property
    def orders(self) -> List[Order]:
        with self.lock:
            return list(self._orders.values())

    def add_order(self, order: Order) -> Order:
        with self.lock:
            if order.id in self._orders:
                raise ValueError(f"Order {order.id} already in store")
            self._orders[order.id] = order
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        with self.lock:
            return self._orders.get(order_id)

    def find_item(self, item_id: str) -> Optional[WorkItem]:
        """Linear scan across all orders. Intake cannot add an order mid-scan."""
        with self.lock:
            for order in self._orders.values():
                item = order.find_item(item_id)
                if item is not None:
                    return item
        return None

    def replace_all(self, orders: Iterable[Order]) -> None:
        """Swap in a new dataset (bootstrap or test reset)."""
        with self.lock:
            self._orders = {}
            for order in orders:
                self.add_order(order)
        logger.info(
            f"Store loaded with {len(self._orders)} orders",
            extra={"details": {"orders": len(self._orders)}},
        )


def get_store(request: Request) -> WorkflowStore:
    """
    Dependency for getting the application's store

    Usage in FastAPI endpoints:
        @router.get("/orders")
        def list_orders(store: WorkflowStore = Depends(get_store)):
            return store.orders
    """
    return request.app.state.store

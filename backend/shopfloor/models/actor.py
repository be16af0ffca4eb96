"""
Actor model

Identity supplied by the caller for every engine operation. Only ``id`` and
``name`` reach the audit trail; ``role`` is informational for callers.
"""
from dataclasses import dataclass
from typing import Optional

from shopfloor.core.status_config import UserRole


@dataclass(frozen=True)
class Actor:
    id: str
    name: str
    role: Optional[UserRole] = None

"""Workflow Steps, Status Values and Station Rules

This module defines the fixed production path every work item follows and
the closed value sets used on work items and their audit entries. The
"next"/"previous" helpers are the only place that knows the step order.
"""
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


# =============================================================================
# Workflow Steps
# =============================================================================

class WorkflowStep(str, Enum):
    """Production stations, in routing order"""
    SAW = "Saw"
    THREAD = "Thread"
    CNC = "CNC"
    QC = "QC"
    SHIP = "Ship"


WORKFLOW_STEPS: Tuple[WorkflowStep, ...] = (
    WorkflowStep.SAW,
    WorkflowStep.THREAD,
    WorkflowStep.CNC,
    WorkflowStep.QC,
    WorkflowStep.SHIP,
)

FIRST_STEP = WORKFLOW_STEPS[0]
LAST_STEP = WORKFLOW_STEPS[-1]


def next_step(step: WorkflowStep) -> Optional[WorkflowStep]:
    """Get the step after ``step``, or None at the terminal step"""
    index = WORKFLOW_STEPS.index(WorkflowStep(step))
    if index < len(WORKFLOW_STEPS) - 1:
        return WORKFLOW_STEPS[index + 1]
    return None


def previous_step(step: WorkflowStep) -> Optional[WorkflowStep]:
    """Get the step before ``step``, or None at the first step"""
    index = WORKFLOW_STEPS.index(WorkflowStep(step))
    if index > 0:
        return WORKFLOW_STEPS[index - 1]
    return None


def step_position(step: WorkflowStep) -> int:
    """Zero-based position of a step in the routing"""
    return WORKFLOW_STEPS.index(WorkflowStep(step))


# =============================================================================
# Work Item Status
# =============================================================================

class ItemStatus(str, Enum):
    """Progress within the current step (not overall completion)"""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


# Allowed transitions: current_status -> set of allowed next statuses.
# Completing a non-terminal step lands back on PENDING at the next step.
ITEM_STATUS_TRANSITIONS: Dict[ItemStatus, FrozenSet[ItemStatus]] = {
    ItemStatus.PENDING: frozenset({ItemStatus.IN_PROGRESS}),
    ItemStatus.IN_PROGRESS: frozenset({ItemStatus.PENDING, ItemStatus.COMPLETED}),
    ItemStatus.COMPLETED: frozenset(),  # Terminal - rework is the only way out
}


def is_valid_item_status_transition(current_status: str, new_status: str) -> bool:
    """Check if a work item status transition is part of the normal flow"""
    allowed = ITEM_STATUS_TRANSITIONS.get(ItemStatus(current_status), frozenset())
    return ItemStatus(new_status) in allowed


# =============================================================================
# Hold Reasons
# =============================================================================

class HoldReason(str, Enum):
    """Why an item was stopped"""
    MATERIAL_DEFECT = "Material Defect"
    DIMENSION_ERROR = "Dimension Error"
    MACHINE_ISSUE = "Machine Issue"
    SURFACE_FINISH = "Surface Finish"
    DOCUMENTATION_MISSING = "Documentation Missing"
    CUSTOMER_REQUEST = "Customer Request"


# =============================================================================
# Audit Actions
# =============================================================================

class AuditAction(str, Enum):
    """Labels written by the workflow engine.

    Seeded history may carry free-text labels ("Started cutting"); those are
    stored verbatim and never coerced into this enum.
    """
    CREATED = "Created"
    STARTED = "Started"
    COMPLETED = "Completed"
    PLACED_ON_HOLD = "Placed on Hold"
    RELEASED_FROM_HOLD = "Released from Hold"
    SENT_TO_REWORK = "Sent to Rework"
    PASSED_QC = "Passed QC"
    FAILED_QC = "Failed QC"
    SHIPPED = "Shipped"
    SKIPPED = "Skipped"


# =============================================================================
# Priority
# =============================================================================

class Priority(str, Enum):
    """Advisory priority; never affects transition legality"""
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    URGENT = "Urgent"


# Higher rank sorts first in station queues
PRIORITY_RANK: Dict[Priority, int] = {
    Priority.URGENT: 3,
    Priority.HIGH: 2,
    Priority.NORMAL: 1,
    Priority.LOW: 0,
}


# =============================================================================
# Roles and Stations
# =============================================================================

class UserRole(str, Enum):
    """Shop-floor roles supplied by the identity provider"""
    OPERATOR = "Operator"
    QC = "QC"
    SHIPPING = "Shipping"
    SUPERVISOR = "Supervisor"


# Stations each role normally works from. The engine never reads this; it
# only checks that the claimed station matches the item's current step.
ROLE_STATIONS: Dict[UserRole, FrozenSet[WorkflowStep]] = {
    UserRole.OPERATOR: frozenset({WorkflowStep.SAW, WorkflowStep.THREAD, WorkflowStep.CNC}),
    UserRole.QC: frozenset({WorkflowStep.QC}),
    UserRole.SHIPPING: frozenset({WorkflowStep.SHIP}),
    UserRole.SUPERVISOR: frozenset(WORKFLOW_STEPS),
}


def get_role_stations(role: str) -> List[WorkflowStep]:
    """Stations a role may claim, in routing order"""
    allowed = ROLE_STATIONS.get(UserRole(role), frozenset())
    return [step for step in WORKFLOW_STEPS if step in allowed]


def can_role_act_at(role: str, station: str) -> bool:
    """Check whether a role normally operates at a station"""
    return WorkflowStep(station) in ROLE_STATIONS.get(UserRole(role), frozenset())

"""
API Dependencies

Operator identity and engine wiring shared by the endpoints.
"""
from typing import Optional

from fastapi import Depends, Header

from shopfloor.core.settings import get_settings
from shopfloor.core.status_config import UserRole, WorkflowStep, can_role_act_at
from shopfloor.db.store import WorkflowStore, get_store
from shopfloor.exceptions import AuthenticationError, PermissionDeniedError, ValidationError
from shopfloor.models.actor import Actor
from shopfloor.services.workflow_engine import WorkflowEngine


def get_current_actor(
    x_operator_id: Optional[str] = Header(None),
    x_operator_name: Optional[str] = Header(None),
    x_operator_role: Optional[str] = Header(None),
) -> Actor:
    """
    Dependency to get the acting operator from request headers

    The identity provider in front of the API sets these headers; the
    workflow only needs the id and display name for the audit trail.

    Raises:
        AuthenticationError: If no operator id was supplied
        ValidationError: If the role header is not a known role
    """
    operator_id = (x_operator_id or "").strip()
    if not operator_id:
        raise AuthenticationError()

    role = None
    if x_operator_role:
        try:
            role = UserRole(x_operator_role)
        except ValueError:
            raise ValidationError(
                f"Unknown operator role '{x_operator_role}'",
                field="X-Operator-Role",
                value=x_operator_role,
            )

    name = (x_operator_name or "").strip() or operator_id
    return Actor(id=operator_id, name=name, role=role)


def get_engine(store: WorkflowStore = Depends(get_store)) -> WorkflowEngine:
    """Dependency for a workflow engine bound to the application's store."""
    return WorkflowEngine(store, settings=get_settings())


def require_station_role(actor: Actor, station: WorkflowStep) -> None:
    """
    Reject operators whose role does not cover the claimed station.

    Actors without a role are let through; the engine's own station check
    still applies.
    """
    if actor.role is not None and not can_role_act_at(actor.role, station):
        raise PermissionDeniedError(
            f"{actor.role.value} operators cannot act at {station.value}",
            role=actor.role.value,
            station=station.value,
        )

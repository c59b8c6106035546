"""
Multi-Tenant Service: Access Guard and Scoping Helpers

Tenant validation shared by services and routes.
Every operation is scoped to a farm, and cross-farm access must be
explicitly denied.

SECURITY INVARIANTS:
1. The tenant of an operation is the principal's farm_id, passed explicitly
   into services (never looked up from ambient request state inside them)
2. has_access_to_farm() is true only for an exact farm_id match
   (plus owned farms for admins when FARM_OWNER_ACCESS is enabled)
3. A missing record and another farm's record are indistinguishable to the
   caller: both raise AuthorizationError
4. Ids referenced from client input (boat_id, customer_id, ...) must belong
   to the same farm as the record being written

USAGE:
    from farmledger.services.tenant_service import require_accessible_farm_id, get_scoped

    farm_id = require_accessible_farm_id(principal)
    customer = get_scoped(Customer, customer_id, principal)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import current_app, has_app_context

from ..extensions import db
from ..validation import ValidationError

logger = logging.getLogger(__name__)


class AuthorizationError(Exception):
    """Raised when a principal may not act on a farm's records."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


@dataclass(frozen=True)
class Principal:
    """
    The authenticated actor, as seen by the access guard.

    owned_farm_ids is only consulted when owner access is enabled.
    """
    id: int
    role: str
    farm_id: int | None
    owned_farm_ids: frozenset[int] = frozenset()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def principal_for(user) -> Principal:
    """Build a Principal from a loaded User."""
    return Principal(
        id=user.id,
        role=user.role,
        farm_id=user.farm_id,
        owned_farm_ids=frozenset(farm.id for farm in user.owned_farms),
    )


def accessible_farm_id(principal: Principal | None) -> int | None:
    """The farm the principal acts within, or None (e.g. an admin with no farm yet)."""
    if principal is None:
        return None
    return principal.farm_id


def has_access_to_farm(
    principal: Principal | None,
    farm_id: int | None,
    *,
    allow_owner: bool = False,
) -> bool:
    """
    Pure access decision.

    False when farm_id is absent or there is no principal. Otherwise true
    iff principal.farm_id == farm_id, or (allow_owner and the principal is
    an admin who owns farm_id).
    """
    if not farm_id or principal is None:
        return False
    if principal.farm_id == farm_id:
        return True
    if allow_owner and principal.is_admin:
        return farm_id in principal.owned_farm_ids
    return False


def owner_access_enabled() -> bool:
    if not has_app_context():
        return False
    return bool(current_app.config.get("FARM_OWNER_ACCESS", False))


def require_accessible_farm_id(principal: Principal | None) -> int:
    """
    The principal's farm id.

    Raises AuthorizationError if the principal has no farm.
    """
    farm_id = accessible_farm_id(principal)
    if farm_id is None:
        raise AuthorizationError("No farm is associated with this account")
    return farm_id


def require_farm_access(principal: Principal | None, farm_id: int | None) -> None:
    """Raise AuthorizationError unless the principal may act on farm_id."""
    if has_access_to_farm(principal, farm_id, allow_owner=owner_access_enabled()):
        return

    logger.warning(
        "Farm access denied: user_id=%s user_farm_id=%s target_farm_id=%s",
        principal.id if principal else None,
        principal.farm_id if principal else None,
        farm_id,
    )
    raise AuthorizationError()


def get_scoped(model, record_id: int, principal: Principal | None):
    """
    Load a farm-scoped record the principal may act on.

    SECURITY: A missing id raises the same AuthorizationError as a record
    from another farm, so callers cannot probe other tenants' ids.
    """
    record = db.session.get(model, record_id)
    if record is None:
        require_accessible_farm_id(principal)
        raise AuthorizationError()
    require_farm_access(principal, record.farm_id)
    return record


def scoped_query(model, farm_id: int):
    """Base query over a farm-scoped model restricted to one farm."""
    return db.session.query(model).filter(model.farm_id == farm_id)


def check_reference(model, record_id, farm_id: int, *, field_name: str, label: str):
    """
    Resolve an id referenced from client input (e.g. boat_id).

    Returns (record, None) when it exists and belongs to farm_id, otherwise
    (None, ValidationError) keyed by field_name so several references can be
    checked before raising. Missing and foreign ids get the same message.
    """
    record = db.session.get(model, record_id) if record_id is not None else None
    if record is None or record.farm_id != farm_id:
        if record is not None:
            logger.warning(
                "Cross-farm reference rejected: %s=%s belongs to farm %s, not %s",
                field_name, record_id, record.farm_id, farm_id,
            )
        return None, ValidationError.single(field_name, f"The selected {label} is invalid")
    return record, None

# Overview: Service-layer operations for farm administration.

"""
Farm Service

Farm records, ownership and staff membership.

RULES:
- Only an admin may create a farm; the creator becomes its owner
- Only the owning admin may update or delete a farm or change its staff
- add_staff accepts staff-role accounts only, and never takes staff from
  another farm (they must be removed there first)
- remove_staff requires the user to currently belong to the farm
- A farm with ledger history (purchases, sales, expenses) cannot be deleted
"""

from __future__ import annotations

import logging

from sqlalchemy import or_

from ..extensions import db
from ..models import (
    Boat,
    Customer,
    Expense,
    Farm,
    FARM_STATUSES,
    ProductType,
    Purchase,
    Sale,
    User,
)
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from .tenant_service import AuthorizationError, Principal
from .transactions import atomic

logger = logging.getLogger(__name__)

FARM_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "address", "phone", "description", "status"}),
    required_on_create=frozenset({"name", "address", "phone"}),
    choices={"status": FARM_STATUSES},
    ignored_fields=frozenset({"id", "owner_id", "owner", "staff", "created_at", "updated_at"}),
)


def _load_farm(farm_id: int) -> Farm:
    farm = db.session.get(Farm, farm_id)
    if farm is None:
        raise NotFoundError("Farm not found")
    return farm


def _require_owner(principal: Principal, farm: Farm) -> None:
    if not principal.is_admin or farm.owner_id != principal.id:
        logger.warning("Farm admin denied: user_id=%s farm_id=%s", principal.id, farm.id)
        raise AuthorizationError("Only the farm owner can manage this farm")


def _load_user(user_id) -> User:
    if user_id is None:
        raise ValidationError.single("user_id", "This field is required")
    if isinstance(user_id, bool) or not isinstance(user_id, (int, str)) or not str(user_id).isdigit():
        raise ValidationError.single("user_id", "user_id must be an integer")
    user = db.session.get(User, int(user_id))
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_farms(principal: Principal) -> list[Farm]:
    """Farms the principal belongs to or owns."""
    clauses = [Farm.owner_id == principal.id]
    if principal.farm_id is not None:
        clauses.append(Farm.id == principal.farm_id)
    return db.session.query(Farm).filter(or_(*clauses)).order_by(Farm.name.asc(), Farm.id.asc()).all()


def get_farm(principal: Principal, farm_id: int) -> Farm:
    farm = _load_farm(farm_id)
    if farm.id != principal.farm_id and farm.owner_id != principal.id:
        raise AuthorizationError()
    return farm


def create_farm(principal: Principal, payload: dict) -> Farm:
    """
    Create a farm owned by the calling admin.

    An admin with no farm yet is attached to the new farm.
    """
    if not principal.is_admin:
        raise AuthorizationError("Only admins can create farms")

    patch = validate_payload(model=Farm, payload=payload, policy=FARM_POLICY, partial=False)
    patch.setdefault("status", "active")

    with atomic():
        farm = Farm(owner_id=principal.id, **patch)
        db.session.add(farm)
        db.session.flush()

        owner = db.session.get(User, principal.id)
        if owner is not None and owner.farm_id is None:
            owner.farm_id = farm.id

    logger.info("Farm created: farm_id=%s owner_id=%s", farm.id, principal.id)
    return farm


def update_farm(principal: Principal, farm_id: int, payload: dict) -> Farm:
    farm = _load_farm(farm_id)
    _require_owner(principal, farm)

    patch = validate_payload(model=Farm, payload=payload, policy=FARM_POLICY, partial=True)
    for key, value in patch.items():
        setattr(farm, key, value)

    db.session.commit()
    return farm


def delete_farm(principal: Principal, farm_id: int) -> None:
    """
    Delete a farm and its reference data.

    Refused while any purchase, sale or expense exists for the farm.
    Boats, customers and product types are deleted and every member is
    detached (farm_id = NULL) in the same transaction.
    """
    farm = _load_farm(farm_id)
    _require_owner(principal, farm)

    has_ledger = any(
        db.session.query(model.id).filter(model.farm_id == farm.id).first() is not None
        for model in (Purchase, Sale, Expense)
    )
    if has_ledger:
        raise ConflictError("Cannot delete a farm that has purchases, sales or expenses")

    with atomic():
        for model in (Boat, Customer, ProductType):
            for record in db.session.query(model).filter(model.farm_id == farm.id).all():
                db.session.delete(record)

        for member in db.session.query(User).filter(User.farm_id == farm.id).all():
            member.farm_id = None

        db.session.delete(farm)

    logger.info("Farm deleted: farm_id=%s by user_id=%s", farm_id, principal.id)


def list_staff(principal: Principal, farm_id: int) -> list[User]:
    farm = _load_farm(farm_id)
    _require_owner(principal, farm)
    return (
        db.session.query(User)
        .filter(User.farm_id == farm.id, User.id != farm.owner_id)
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )


def add_staff(principal: Principal, farm_id: int, user_id) -> User:
    farm = _load_farm(farm_id)
    _require_owner(principal, farm)

    user = _load_user(user_id)
    if not user.is_staff:
        raise ValidationError.single("user_id", "This user is not a staff account")
    if user.farm_id is not None and user.farm_id != farm.id:
        raise ConflictError("This staff account already belongs to another farm")

    user.farm_id = farm.id
    db.session.commit()
    logger.info("Staff added: user_id=%s farm_id=%s", user.id, farm.id)
    return user


def remove_staff(principal: Principal, farm_id: int, user_id) -> User:
    farm = _load_farm(farm_id)
    _require_owner(principal, farm)

    user = _load_user(user_id)
    if user.farm_id != farm.id:
        raise ValidationError.single("user_id", "This user does not belong to this farm")
    if user.id == farm.owner_id:
        raise ValidationError.single("user_id", "The farm owner cannot be removed from the farm")

    user.farm_id = None
    db.session.commit()
    logger.info("Staff removed: user_id=%s farm_id=%s", user.id, farm.id)
    return user

# Overview: Service-layer operations for boats, customers and product types.

"""
Catalog Service

Reference data each farm trades against: boats (suppliers), customers
(buyers) and product types.

MULTI-TENANT: Records are created in the caller's farm and every read or
write on an existing record goes through get_scoped().

DELETE GUARD: A record referenced by any purchase or sale cannot be deleted.
- Boat: purchases
- Customer: sales
- ProductType: purchases and sales
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..extensions import db
from ..models import Boat, Customer, ProductType, Purchase, Sale
from ..validation import ConflictError, ModelValidationPolicy, validate_payload
from .tenant_service import Principal, get_scoped, scoped_query


@dataclass(frozen=True)
class CatalogKind:
    model: type
    label: str
    policy: ModelValidationPolicy
    # (ledger model, its foreign key column name) pairs that block deletion
    dependents: tuple[tuple[type, str], ...]
    conflict_message: str
    detail: Callable = lambda record: record.to_dict()


BOATS = CatalogKind(
    model=Boat,
    label="boat",
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "owner_name", "phone", "description"}),
        required_on_create=frozenset({"name", "owner_name", "phone"}),
    ),
    dependents=((Purchase, "boat_id"),),
    conflict_message="Cannot delete a boat that has purchases",
)

CUSTOMERS = CatalogKind(
    model=Customer,
    label="customer",
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "phone", "address", "description"}),
        required_on_create=frozenset({"name", "phone"}),
    ),
    dependents=((Sale, "customer_id"),),
    conflict_message="Cannot delete a customer that has sales",
    detail=lambda record: record.to_dict(include_sales=True),
)

PRODUCT_TYPES = CatalogKind(
    model=ProductType,
    label="product type",
    policy=ModelValidationPolicy(
        writable_fields=frozenset({"name", "unit", "description"}),
        required_on_create=frozenset({"name"}),
    ),
    dependents=((Purchase, "product_type_id"), (Sale, "product_type_id")),
    conflict_message="Cannot delete a product type that is used by purchases or sales",
    detail=lambda record: record.to_dict(include_usage=True),
)


def list_records(kind: CatalogKind, farm_id: int) -> list:
    model = kind.model
    return scoped_query(model, farm_id).order_by(model.name.asc(), model.id.asc()).all()


def get_record(kind: CatalogKind, principal: Principal, record_id: int):
    return get_scoped(kind.model, record_id, principal)


def create_record(kind: CatalogKind, farm_id: int, payload: dict):
    patch = validate_payload(model=kind.model, payload=payload, policy=kind.policy, partial=False)

    record = kind.model(farm_id=farm_id, **patch)
    db.session.add(record)
    db.session.commit()
    return record


def update_record(kind: CatalogKind, principal: Principal, record_id: int, payload: dict):
    record = get_scoped(kind.model, record_id, principal)
    patch = validate_payload(model=kind.model, payload=payload, policy=kind.policy, partial=True)

    for key, value in patch.items():
        setattr(record, key, value)

    db.session.commit()
    return record


def has_dependents(kind: CatalogKind, record) -> bool:
    for model, column in kind.dependents:
        exists = db.session.query(model.id).filter(getattr(model, column) == record.id).first()
        if exists is not None:
            return True
    return False


def delete_record(kind: CatalogKind, principal: Principal, record_id: int) -> None:
    """
    Physically delete a catalog record.

    Raises ConflictError, leaving the record untouched, while any purchase or
    sale still references it.
    """
    record = get_scoped(kind.model, record_id, principal)
    if has_dependents(kind, record):
        raise ConflictError(kind.conflict_message)

    db.session.delete(record)
    db.session.commit()


def purchase_form_options(farm_id: int) -> dict:
    """Boats and product types a purchase in this farm may reference."""
    return {
        "boats": [boat.to_dict() for boat in list_records(BOATS, farm_id)],
        "product_types": [pt.to_dict() for pt in list_records(PRODUCT_TYPES, farm_id)],
    }

# Overview: Service-layer operations for purchases; encapsulates business logic and database work.

"""
Purchase Service

Product bought from a boat, priced by weight.

MULTI-TENANT:
- The purchase is written to the caller's farm
- boat_id and product_type_id must belong to that same farm

PRICING: total_amount is recomputed by pricing_service.reprice() on every
create and update; any total_amount in the payload is ignored.
"""

from __future__ import annotations

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Boat, ProductType, Purchase
from ..validation import ModelValidationPolicy, apply_aliases, merge_errors, validate_payload
from .pricing_service import reprice
from .transactions import atomic
from .tenant_service import Principal, check_reference, get_scoped, scoped_query

PURCHASE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "boat_id", "product_type_id", "weight", "unit_price", "purchase_date", "notes",
    }),
    required_on_create=frozenset({
        "boat_id", "product_type_id", "weight", "unit_price", "purchase_date",
    }),
    non_negative=frozenset({"weight", "unit_price"}),
)

PAYLOAD_ALIASES = {"squid_type_id": "product_type_id"}


def _check_references(patch: dict, farm_id: int) -> None:
    errors = []
    if "boat_id" in patch:
        _, err = check_reference(Boat, patch["boat_id"], farm_id, field_name="boat_id", label="boat")
        errors.append(err)
    if "product_type_id" in patch:
        _, err = check_reference(
            ProductType, patch["product_type_id"], farm_id,
            field_name="product_type_id", label="product type",
        )
        errors.append(err)

    merged = merge_errors(*errors)
    if merged is not None:
        raise merged


def list_purchases(farm_id: int) -> list[Purchase]:
    return (
        scoped_query(Purchase, farm_id)
        .options(joinedload(Purchase.boat), joinedload(Purchase.product_type))
        .order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
        .all()
    )


def get_purchase(principal: Principal, purchase_id: int) -> Purchase:
    return get_scoped(Purchase, purchase_id, principal)


def create_purchase(farm_id: int, payload: dict) -> Purchase:
    payload = apply_aliases(payload, PAYLOAD_ALIASES)
    patch = validate_payload(model=Purchase, payload=payload, policy=PURCHASE_POLICY, partial=False)
    _check_references(patch, farm_id)

    purchase = Purchase(farm_id=farm_id, **patch)
    reprice(purchase)

    db.session.add(purchase)
    db.session.commit()
    return purchase


def update_purchase(principal: Principal, purchase_id: int, payload: dict) -> Purchase:
    """
    Apply a full or partial update.

    Whatever subset of weight / unit_price is supplied, the total is
    recomputed from the resulting pair.
    """
    purchase = get_scoped(Purchase, purchase_id, principal)

    payload = apply_aliases(payload, PAYLOAD_ALIASES)
    patch = validate_payload(model=Purchase, payload=payload, policy=PURCHASE_POLICY, partial=True)
    _check_references(patch, purchase.farm_id)

    with atomic():
        for key, value in patch.items():
            setattr(purchase, key, value)
        reprice(purchase)

    return purchase


def delete_purchase(principal: Principal, purchase_id: int) -> None:
    purchase = get_scoped(Purchase, purchase_id, principal)
    db.session.delete(purchase)
    db.session.commit()

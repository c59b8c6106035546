# Overview: Service-layer operations for sales; encapsulates business logic and database work.

"""
Sale Service

Product sold to a customer. Unpaid sales are the customer's debt.

MULTI-TENANT:
- The sale is written to the caller's farm
- customer_id and product_type_id must belong to that same farm

PRICING: total_amount is recomputed on every create and update.
update_payment_status() only flips paid/unpaid and never reprices.
"""

from __future__ import annotations

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Customer, PAYMENT_STATUSES, ProductType, Sale
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    apply_aliases,
    merge_errors,
    validate_payload,
)
from .pricing_service import reprice
from .transactions import atomic
from .tenant_service import Principal, check_reference, get_scoped, scoped_query

SALE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "customer_id", "product_type_id", "weight", "unit_price",
        "sale_date", "payment_status", "notes",
    }),
    required_on_create=frozenset({
        "customer_id", "product_type_id", "weight", "unit_price", "sale_date",
    }),
    choices={"payment_status": PAYMENT_STATUSES},
    non_negative=frozenset({"weight", "unit_price"}),
)

PAYLOAD_ALIASES = {"squid_type_id": "product_type_id"}


def _check_references(patch: dict, farm_id: int) -> None:
    errors = []
    if "customer_id" in patch:
        _, err = check_reference(
            Customer, patch["customer_id"], farm_id, field_name="customer_id", label="customer",
        )
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


def list_sales(farm_id: int, *, payment_status: str | None = None) -> list[Sale]:
    query = scoped_query(Sale, farm_id).options(
        joinedload(Sale.customer), joinedload(Sale.product_type)
    )
    if payment_status is not None:
        if payment_status not in PAYMENT_STATUSES:
            raise ValidationError.single(
                "payment_status", f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}"
            )
        query = query.filter(Sale.payment_status == payment_status)
    return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()


def get_sale(principal: Principal, sale_id: int) -> Sale:
    return get_scoped(Sale, sale_id, principal)


def create_sale(farm_id: int, payload: dict) -> Sale:
    payload = apply_aliases(payload, PAYLOAD_ALIASES)
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
    _check_references(patch, farm_id)

    sale = Sale(farm_id=farm_id, **patch)
    reprice(sale)

    db.session.add(sale)
    db.session.commit()
    return sale


def update_sale(principal: Principal, sale_id: int, payload: dict) -> Sale:
    sale = get_scoped(Sale, sale_id, principal)

    payload = apply_aliases(payload, PAYLOAD_ALIASES)
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=True)
    _check_references(patch, sale.farm_id)

    with atomic():
        for key, value in patch.items():
            setattr(sale, key, value)
        reprice(sale)

    return sale


def update_payment_status(principal: Principal, sale_id: int, status) -> Sale:
    """Set payment_status to paid or unpaid. Nothing else on the sale changes."""
    sale = get_scoped(Sale, sale_id, principal)

    if status is None:
        raise ValidationError.single("payment_status", "This field is required")
    if status not in PAYMENT_STATUSES:
        raise ValidationError.single(
            "payment_status", f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}"
        )

    sale.payment_status = status
    db.session.commit()
    return sale


def delete_sale(principal: Principal, sale_id: int) -> None:
    sale = get_scoped(Sale, sale_id, principal)
    db.session.delete(sale)
    db.session.commit()

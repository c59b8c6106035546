# Overview: Service-layer operations for expenses.

"""
Expense Service

Operating costs recorded against a free-text expense_type (fuel, ice,
transport...). Expenses are farm-scoped like every other ledger record.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Expense
from ..validation import ModelValidationPolicy, validate_payload
from .tenant_service import Principal, get_scoped, scoped_query

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"expense_type", "amount", "expense_date", "notes"}),
    required_on_create=frozenset({"expense_type", "amount", "expense_date"}),
    non_negative=frozenset({"amount"}),
)


def list_expenses(farm_id: int, *, expense_type: str | None = None) -> list[Expense]:
    query = scoped_query(Expense, farm_id)
    if expense_type:
        query = query.filter(Expense.expense_type == expense_type)
    return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()


def list_expense_types(farm_id: int) -> list[str]:
    """Distinct expense_type values recorded for the farm, ascending."""
    rows = (
        db.session.query(Expense.expense_type)
        .filter(Expense.farm_id == farm_id)
        .distinct()
        .order_by(Expense.expense_type.asc())
        .all()
    )
    return [expense_type for (expense_type,) in rows]


def get_expense(principal: Principal, expense_id: int) -> Expense:
    return get_scoped(Expense, expense_id, principal)


def create_expense(farm_id: int, payload: dict) -> Expense:
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)

    expense = Expense(farm_id=farm_id, **patch)
    db.session.add(expense)
    db.session.commit()
    return expense


def update_expense(principal: Principal, expense_id: int, payload: dict) -> Expense:
    expense = get_scoped(Expense, expense_id, principal)
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)

    for key, value in patch.items():
        setattr(expense, key, value)

    db.session.commit()
    return expense


def delete_expense(principal: Principal, expense_id: int) -> None:
    expense = get_scoped(Expense, expense_id, principal)
    db.session.delete(expense)
    db.session.commit()

# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

"""
Report Engine

Read-only aggregations over one farm's ledger for an inclusive
[start_date, end_date] range (default: the current calendar month).

- Revenue counts paid sales only
- Costs are expenses plus purchase totals
- Debt is the sum of a customer's unpaid sales, regardless of date

Nothing here writes to the session.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Customer, Expense, Purchase, Sale
from ..time_utils import iter_days, month_bounds, parse_iso_date, to_iso_date, today as current_day
from ..validation import ValidationError, require_date_order
from .pricing_service import CENT

RECENT_LIMIT = 5

# profit() queries each day separately
MAX_PROFIT_DAYS = 366


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _period(start: date, end: date) -> dict:
    return {"start_date": to_iso_date(start), "end_date": to_iso_date(end)}


def resolve_range(start_raw=None, end_raw=None, *, today: date | None = None) -> tuple[date, date]:
    """
    Parse start_date / end_date query values.

    A missing bound falls back to the first / last day of the current month.
    Raises ValidationError for malformed dates or start > end.
    """
    month_start, month_end = month_bounds(today or current_day())

    errors: dict[str, list[str]] = {}
    parsed = {}
    for name, raw, fallback in (("start_date", start_raw, month_start), ("end_date", end_raw, month_end)):
        try:
            value = parse_iso_date(raw)
        except (TypeError, ValueError):
            errors.setdefault(name, []).append(f"{name} must be a valid date (YYYY-MM-DD)")
            continue
        parsed[name] = value if value is not None else fallback

    if errors:
        raise ValidationError(errors)

    require_date_order(parsed["start_date"], parsed["end_date"])
    return parsed["start_date"], parsed["end_date"]


def _sum_paid_sales(farm_id: int, start: date, end: date) -> Decimal:
    total = db.session.query(func.coalesce(func.sum(Sale.total_amount), 0)).filter(
        Sale.farm_id == farm_id,
        Sale.payment_status == "paid",
        Sale.sale_date >= start,
        Sale.sale_date <= end,
    ).scalar()
    return _money(total)


def _sum_purchases(farm_id: int, start: date, end: date) -> Decimal:
    total = db.session.query(func.coalesce(func.sum(Purchase.total_amount), 0)).filter(
        Purchase.farm_id == farm_id,
        Purchase.purchase_date >= start,
        Purchase.purchase_date <= end,
    ).scalar()
    return _money(total)


def _sum_expenses(farm_id: int, start: date, end: date) -> Decimal:
    total = db.session.query(func.coalesce(func.sum(Expense.amount), 0)).filter(
        Expense.farm_id == farm_id,
        Expense.expense_date >= start,
        Expense.expense_date <= end,
    ).scalar()
    return _money(total)


def _daily_series(date_col, amount_col, *filters) -> list[dict]:
    rows = (
        db.session.query(date_col.label("day"), func.sum(amount_col).label("total"))
        .filter(*filters)
        .group_by(date_col)
        .order_by(date_col.asc())
        .all()
    )
    return [{"date": to_iso_date(row.day), "total": _money(row.total)} for row in rows]


def revenue(farm_id: int, start: date, end: date) -> dict:
    """Paid sales per sale_date, ascending, and their total."""
    daily = _daily_series(
        Sale.sale_date,
        Sale.total_amount,
        Sale.farm_id == farm_id,
        Sale.payment_status == "paid",
        Sale.sale_date >= start,
        Sale.sale_date <= end,
    )
    total = sum((row["total"] for row in daily), Decimal("0.00"))
    return {"period": _period(start, end), "daily": daily, "total": _money(total)}


def expenses(farm_id: int, start: date, end: date) -> dict:
    daily_expenses = _daily_series(
        Expense.expense_date,
        Expense.amount,
        Expense.farm_id == farm_id,
        Expense.expense_date >= start,
        Expense.expense_date <= end,
    )

    type_total = func.sum(Expense.amount)
    by_type_rows = (
        db.session.query(Expense.expense_type, type_total.label("total"))
        .filter(
            Expense.farm_id == farm_id,
            Expense.expense_date >= start,
            Expense.expense_date <= end,
        )
        .group_by(Expense.expense_type)
        .order_by(type_total.desc(), Expense.expense_type.asc())
        .all()
    )
    by_type = [{"expense_type": row.expense_type, "total": _money(row.total)} for row in by_type_rows]

    daily_purchases = _daily_series(
        Purchase.purchase_date,
        Purchase.total_amount,
        Purchase.farm_id == farm_id,
        Purchase.purchase_date >= start,
        Purchase.purchase_date <= end,
    )

    total_expenses = _money(sum((row["total"] for row in daily_expenses), Decimal("0.00")))
    total_purchases = _money(sum((row["total"] for row in daily_purchases), Decimal("0.00")))

    return {
        "period": _period(start, end),
        "daily_expenses": daily_expenses,
        "expenses_by_type": by_type,
        "daily_purchases": daily_purchases,
        "totals": {
            "expenses": total_expenses,
            "purchases": total_purchases,
            "grand_total": total_expenses + total_purchases,
        },
    }


def _profit_row(farm_id: int, start: date, end: date) -> dict:
    sales_total = _sum_paid_sales(farm_id, start, end)
    purchases_total = _sum_purchases(farm_id, start, end)
    expenses_total = _sum_expenses(farm_id, start, end)
    costs = purchases_total + expenses_total
    return {
        "revenue": sales_total,
        "purchases": purchases_total,
        "expenses": expenses_total,
        "costs": costs,
        "profit": sales_total - costs,
    }


def profit(farm_id: int, start: date, end: date) -> dict:
    """
    Revenue minus (purchases + expenses) for the period, plus one row per
    calendar day in the range (days without activity included as zeros).

    Each day is queried separately, so the daily profits always add up to
    the period profit. Ranges longer than MAX_PROFIT_DAYS are rejected.
    """
    if (end - start).days + 1 > MAX_PROFIT_DAYS:
        raise ValidationError.single(
            "end_date", f"The profit report covers at most {MAX_PROFIT_DAYS} days"
        )

    daily = []
    for day in iter_days(start, end):
        row = _profit_row(farm_id, day, day)
        row["date"] = to_iso_date(day)
        daily.append(row)

    return {
        "period": _period(start, end),
        "totals": _profit_row(farm_id, start, end),
        "daily": daily,
    }


def debts(farm_id: int) -> dict:
    """
    Customers with unpaid sales, largest debt first.

    Customers whose unpaid total is zero are left out.
    """
    debt_total = func.sum(Sale.total_amount)
    rows = (
        db.session.query(
            Sale.customer_id,
            debt_total.label("total_debt"),
            func.count(Sale.id).label("sales_count"),
        )
        .filter(Sale.farm_id == farm_id, Sale.payment_status == "unpaid")
        .group_by(Sale.customer_id)
        .all()
    )

    owing = [(row.customer_id, _money(row.total_debt), int(row.sales_count)) for row in rows]
    owing = [entry for entry in owing if entry[1] > 0]
    owing.sort(key=lambda entry: (-entry[1], entry[0]))

    customers = {}
    if owing:
        customer_ids = [customer_id for customer_id, _, _ in owing]
        for customer in db.session.query(Customer).filter(Customer.id.in_(customer_ids)):
            customers[customer.id] = customer

    entries = []
    for customer_id, total_debt, sales_count in owing:
        unpaid = (
            db.session.query(Sale)
            .options(joinedload(Sale.product_type))
            .filter(
                Sale.farm_id == farm_id,
                Sale.customer_id == customer_id,
                Sale.payment_status == "unpaid",
            )
            .order_by(Sale.sale_date.desc(), Sale.id.desc())
            .all()
        )
        customer = customers.get(customer_id)
        entries.append({
            "customer": customer.to_dict() if customer else None,
            "total_debt": total_debt,
            "sales_count": sales_count,
            "unpaid_sales": [sale.to_dict(include_relations=False) for sale in unpaid],
        })

    total = sum((entry["total_debt"] for entry in entries), Decimal("0.00"))
    return {"customers": entries, "total_debt": _money(total)}


def _summary(farm_id: int, start: date, end: date) -> dict:
    sales_total = _sum_paid_sales(farm_id, start, end)
    costs = _sum_expenses(farm_id, start, end) + _sum_purchases(farm_id, start, end)
    return {"revenue": sales_total, "expenses": costs, "profit": sales_total - costs}


def dashboard(farm_id: int, *, today: date | None = None) -> dict:
    """
    Landing-page figures: today, this month, outstanding debt and the five
    most recently created sales and purchases.
    """
    day = today or current_day()
    month_start, month_end = month_bounds(day)

    outstanding = db.session.query(func.coalesce(func.sum(Sale.total_amount), 0)).filter(
        Sale.farm_id == farm_id,
        Sale.payment_status == "unpaid",
    ).scalar()

    recent_sales = (
        db.session.query(Sale)
        .options(joinedload(Sale.customer), joinedload(Sale.product_type))
        .filter(Sale.farm_id == farm_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    recent_purchases = (
        db.session.query(Purchase)
        .options(joinedload(Purchase.boat), joinedload(Purchase.product_type))
        .filter(Purchase.farm_id == farm_id)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )

    return {
        "date": to_iso_date(day),
        "today": _summary(farm_id, day, day),
        "this_month": _summary(farm_id, month_start, month_end),
        "total_debt": _money(outstanding),
        "recent_sales": [sale.to_dict() for sale in recent_sales],
        "recent_purchases": [purchase.to_dict() for purchase in recent_purchases],
    }

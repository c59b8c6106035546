from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z

PAYMENT_STATUSES = ("paid", "unpaid")


class Purchase(db.Model):
    """
    Product bought from a boat.

    total_amount is always weight * unit_price; see pricing_service.reprice.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.Index("ix_purchases_farm_date", "farm_id", "purchase_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    farm_id = db.Column(db.Integer, db.ForeignKey("farms.id"), nullable=False, index=True)
    boat_id = db.Column(db.Integer, db.ForeignKey("boats.id"), nullable=False, index=True)
    product_type_id = db.Column(db.Integer, db.ForeignKey("product_types.id"), nullable=False, index=True)

    weight = db.Column(db.Numeric(10, 2), nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)
    total_amount = db.Column(db.Numeric(15, 2), nullable=False)

    purchase_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    farm = db.relationship("Farm", backref=db.backref("purchases", lazy=True))
    boat = db.relationship("Boat", backref=db.backref("purchases", lazy=True))
    product_type = db.relationship("ProductType", backref=db.backref("purchases", lazy=True))

    def to_dict(self, *, include_relations: bool = True) -> dict:
        data = {
            "id": self.id,
            "farm_id": self.farm_id,
            "boat_id": self.boat_id,
            "product_type_id": self.product_type_id,
            "weight": self.weight,
            "unit_price": self.unit_price,
            "total_amount": self.total_amount,
            "purchase_date": to_iso_date(self.purchase_date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_relations:
            data["boat"] = self.boat.to_dict() if self.boat else None
            data["product_type"] = self.product_type.to_dict() if self.product_type else None
        return data


class Sale(db.Model):
    """
    Product sold to a customer.

    payment_status is paid or unpaid; unpaid totals are the customer's debt.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_farm_date", "farm_id", "sale_date"),
        db.Index("ix_sales_farm_status", "farm_id", "payment_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    farm_id = db.Column(db.Integer, db.ForeignKey("farms.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    product_type_id = db.Column(db.Integer, db.ForeignKey("product_types.id"), nullable=False, index=True)

    weight = db.Column(db.Numeric(10, 2), nullable=False)
    unit_price = db.Column(db.Numeric(15, 2), nullable=False)
    total_amount = db.Column(db.Numeric(15, 2), nullable=False)

    sale_date = db.Column(db.Date, nullable=False)
    payment_status = db.Column(db.String(16), nullable=False, default="unpaid")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    farm = db.relationship("Farm", backref=db.backref("sales", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    product_type = db.relationship("ProductType", backref=db.backref("sales", lazy=True))

    def to_dict(self, *, include_relations: bool = True) -> dict:
        data = {
            "id": self.id,
            "farm_id": self.farm_id,
            "customer_id": self.customer_id,
            "product_type_id": self.product_type_id,
            "weight": self.weight,
            "unit_price": self.unit_price,
            "total_amount": self.total_amount,
            "sale_date": to_iso_date(self.sale_date),
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_relations:
            data["customer"] = self.customer.to_dict() if self.customer else None
            data["product_type"] = self.product_type.to_dict() if self.product_type else None
        return data


class Expense(db.Model):
    """Operating cost (fuel, ice, transport...) under a free-text expense_type."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_farm_date", "farm_id", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    farm_id = db.Column(db.Integer, db.ForeignKey("farms.id"), nullable=False, index=True)
    expense_type = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(15, 2), nullable=False)
    expense_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    farm = db.relationship("Farm", backref=db.backref("expenses", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "farm_id": self.farm_id,
            "expense_type": self.expense_type,
            "amount": self.amount,
            "expense_date": to_iso_date(self.expense_date),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Boat(db.Model):
    """Supplier boat that product is purchased from."""
    __tablename__ = "boats"
    __table_args__ = (
        db.Index("ix_boats_farm_id", "farm_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    farm_id = db.Column(db.Integer, db.ForeignKey("farms.id"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    owner_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    farm = db.relationship("Farm", backref=db.backref("boats", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "farm_id": self.farm_id,
            "name": self.name,
            "owner_name": self.owner_name,
            "phone": self.phone,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Customer(db.Model):
    """Buyer of product; unpaid sales against a customer make up their debt."""
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_farm_id", "farm_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    farm_id = db.Column(db.Integer, db.ForeignKey("farms.id"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    address = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    farm = db.relationship("Farm", backref=db.backref("customers", lazy=True))

    def to_dict(self, *, include_sales: bool = False) -> dict:
        data = {
            "id": self.id,
            "farm_id": self.farm_id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_sales:
            sales = sorted(self.sales, key=lambda s: (s.sale_date, s.id), reverse=True)
            data["sales"] = [sale.to_dict(include_relations=False) for sale in sales]
        return data


class ProductType(db.Model):
    """Kind of product traded (e.g. a squid variety), priced per unit of weight."""
    __tablename__ = "product_types"
    __table_args__ = (
        db.Index("ix_product_types_farm_id", "farm_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    farm_id = db.Column(db.Integer, db.ForeignKey("farms.id"), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    unit = db.Column(db.String(16), nullable=False, default="kg")
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    farm = db.relationship("Farm", backref=db.backref("product_types", lazy=True))

    def to_dict(self, *, include_usage: bool = False) -> dict:
        data = {
            "id": self.id,
            "farm_id": self.farm_id,
            "name": self.name,
            "unit": self.unit,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_usage:
            data["purchases_count"] = len(self.purchases)
            data["sales_count"] = len(self.sales)
        return data

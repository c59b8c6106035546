from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

FARM_STATUSES = ("active", "inactive")


class Farm(db.Model):
    """
    Multi-tenant root: every tenant is a Farm.

    DESIGN:
    - A farm has exactly one owner (an admin User, owner_id)
    - Members (owner and staff) point back at the farm through User.farm_id
    - Boats, customers, product types, purchases, sales and expenses all
      carry farm_id and never cross farm boundaries
    """
    __tablename__ = "farms"
    __table_args__ = (
        db.Index("ix_farms_owner_id", "owner_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship(
        "User",
        foreign_keys=[owner_id],
        backref=db.backref("owned_farms", lazy=True),
    )

    def __repr__(self) -> str:
        return f"<Farm id={self.id} name={self.name!r} owner_id={self.owner_id}>"

    def to_dict(self, *, include_owner: bool = False, include_staff: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "description": self.description,
            "status": self.status,
            "owner_id": self.owner_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_owner:
            data["owner"] = self.owner.to_dict() if self.owner else None
        if include_staff:
            data["staff"] = [member.to_dict() for member in sorted(self.members, key=lambda u: u.id)]
        return data

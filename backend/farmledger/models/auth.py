from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

USER_ROLES = ("admin", "staff", "user")


class User(db.Model):
    """
    User accounts for authentication and attribution.

    MULTI-TENANT: farm_id is the single farm the user acts within. Admins
    own farms through Farm.owner_id; staff are attached by the owner.
    Phone and email are globally unique (phone is the login identifier).
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_farm_id", "farm_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False, unique=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default="user")

    # users <-> farms reference each other; the ALTER breaks the create cycle
    farm_id = db.Column(
        db.Integer,
        db.ForeignKey("farms.id", use_alter=True, name="fk_users_farm_id"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    farm = db.relationship(
        "Farm",
        foreign_keys=[farm_id],
        post_update=True,
        backref=db.backref("members", lazy=True),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_staff(self) -> bool:
        return self.role == "staff"

    def __repr__(self) -> str:
        return f"<User id={self.id} phone={self.phone!r} role={self.role}>"

    def to_dict(self, *, include_farm: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "role": self.role,
            "farm_id": self.farm_id,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }
        if include_farm:
            data["farm"] = self.farm.to_dict() if self.farm else None
        return data


class SessionToken(db.Model):
    """
    Login session. Only the SHA-256 hash of the bearer token is stored.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
        }

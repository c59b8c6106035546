# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

The HTTP layer resolves a principal from a bearer token on every request. Tokens are
cryptographically secure, hashed in the database, time-limited and
revocable on logout.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_TTL_HOURS, default 24h)
- Revocable on logout
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow
from .tenant_service import Principal, principal_for


@dataclass
class SessionContext:
    """
    Complete session context returned by validate_session.

    principal is built from the user's current farm_id on every request,
    so staff changes take effect without logging in again.
    """
    user: User
    session: SessionToken
    principal: Principal


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Returns the 64-character hex digest stored in token_hash.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _session_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token). The record is flushed, not
    committed; the caller owns the transaction.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _session_ttl(),
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
    )

    db.session.add(session)
    db.session.flush()
    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Validate token and return the session context.

    Returns None if the token is unknown, revoked or expired.
    Updates last_used_at on success.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session:
        return None

    now = utcnow()
    if session.revoked_at is not None:
        return None
    if session.expires_at <= now:
        return None

    user = session.user
    if user is None:
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session, principal=principal_for(user))


def revoke_session(token: str) -> bool:
    """Revoke a session token (logout). Returns False if the token is unknown."""
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session:
        return False

    if session.revoked_at is None:
        session.revoked_at = utcnow()
        db.session.commit()
    return True

# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication and Admin Onboarding Service

A farm (tenant) comes into existence together with its admin owner.
Registration creates the admin User, the Farm, cross-links them and seeds
default reference data as one all-or-nothing transaction.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Login failures are reported with one generic message; callers never learn
  whether the phone or the password was wrong
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import logging
import re

import bcrypt
from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Farm, User
from ..time_utils import utcnow
from ..validation import ValidationError
from . import seed_service, session_service
from .transactions import atomic

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

GENERIC_LOGIN_FAILURE = "Invalid phone or password"

# field -> (max length or None, required)
REGISTRATION_FIELDS = {
    "name": (255, True),
    "email": (255, True),
    "phone": (32, True),
    "password": (None, True),
    "password_confirmation": (None, True),
    "farm_name": (255, True),
    "farm_address": (255, True),
    "farm_phone": (255, True),
    "farm_description": (None, False),
}


class AuthenticationError(Exception):
    """Raised when credentials do not match an account."""

    def __init__(self, message: str = GENERIC_LOGIN_FAILURE):
        super().__init__(message)


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Cost factor comes from BCRYPT_ROUNDS (12 in production).
    """
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12)) if has_app_context() else 12
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Comparison is timing-safe (bcrypt.checkpw).
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash
        return False


def _taken_fields(phone, email) -> dict[str, list[str]]:
    """Field errors for a phone or email that another account already uses."""
    errors: dict[str, list[str]] = {}
    if phone and db.session.query(User.id).filter(User.phone == phone).first():
        errors["phone"] = ["This phone number is already registered"]
    if email and db.session.query(User.id).filter(User.email == email).first():
        errors["email"] = ["This email is already registered"]
    return errors


def _duplicate_account_error(exc: IntegrityError, phone, email) -> ValidationError:
    """
    Translate a unique-constraint failure on users into the field-keyed error.

    Another request can claim the phone or email between the pre-check and
    the insert. Re-raises the IntegrityError if neither field is taken.
    """
    taken = _taken_fields(phone, email)
    if not taken:
        raise exc
    logger.warning("Account insert lost a uniqueness race: fields=%s", sorted(taken))
    return ValidationError(taken)


def validate_registration(profile: dict) -> dict:
    """
    Validate an admin registration profile.

    Returns the cleaned profile. Raises ValidationError with every problem
    keyed by field, including phone/email already taken.
    """
    if not isinstance(profile, dict):
        raise ValidationError.single("payload", "Invalid JSON payload")

    errors: dict[str, list[str]] = {}
    cleaned: dict = {}

    for name, (max_length, required) in REGISTRATION_FIELDS.items():
        raw = profile.get(name)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            if required:
                errors.setdefault(name, []).append("This field is required")
            else:
                cleaned[name] = None
            continue
        if not isinstance(raw, str):
            errors.setdefault(name, []).append(f"{name} must be a string")
            continue
        value = raw if name.startswith("password") else raw.strip()
        if max_length is not None and len(value) > max_length:
            errors.setdefault(name, []).append(f"{name} exceeds max length {max_length}")
            continue
        cleaned[name] = value

    if "email" in cleaned and not EMAIL_RE.match(cleaned["email"]):
        errors.setdefault("email", []).append("email must be a valid email address")

    password = cleaned.get("password")
    if password is not None:
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.setdefault("password", []).append(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        confirmation = cleaned.get("password_confirmation")
        if confirmation is not None and confirmation != password:
            errors.setdefault("password", []).append("Password confirmation does not match")

    for name, messages in _taken_fields(cleaned.get("phone"), cleaned.get("email")).items():
        errors.setdefault(name, []).extend(messages)

    if errors:
        raise ValidationError(errors)

    return cleaned


def register_admin(profile: dict) -> tuple[User, Farm]:
    """
    Onboard a new tenant: admin User + Farm + default reference data.

    Steps (one transaction):
    1. Create the User with role=admin and no farm
    2. Create the Farm owned by that user
    3. Point the user's farm_id at the new farm
    4. Seed default product types and customers for that farm

    Any failure rolls back every step and re-raises the original error. A
    phone or email claimed by a concurrent registration surfaces as the same
    ValidationError the pre-check raises.
    """
    cleaned = validate_registration(profile)

    try:
        with atomic():
            user = User(
                name=cleaned["name"],
                email=cleaned["email"],
                phone=cleaned["phone"],
                password_hash=hash_password(cleaned["password"]),
                role="admin",
                farm_id=None,
            )
            db.session.add(user)
            db.session.flush()

            farm = Farm(
                name=cleaned["farm_name"],
                address=cleaned["farm_address"],
                phone=cleaned["farm_phone"],
                description=cleaned.get("farm_description"),
                status="active",
                owner_id=user.id,
            )
            db.session.add(farm)
            db.session.flush()

            user.farm_id = farm.id
            db.session.flush()

            seed_service.seed_farm_defaults(farm.id)
    except IntegrityError as exc:
        raise _duplicate_account_error(exc, cleaned["phone"], cleaned["email"]) from exc

    logger.info("Registered admin user_id=%s with farm_id=%s", user.id, farm.id)
    return user, farm


def authenticate(phone: str, password: str) -> User:
    """
    Verify phone + password.

    Raises AuthenticationError with a generic message on any mismatch.
    """
    if not isinstance(phone, str) or not isinstance(password, str) or not phone or not password:
        raise AuthenticationError()

    user = db.session.query(User).filter(User.phone == phone.strip()).first()
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError()
    return user


def _repair_admin_farm_link(user: User) -> None:
    """
    Admins created before farm_id was stored on users have no farm_id;
    resolve it from the farm they own and persist the link.
    """
    if user.farm_id is not None or not user.is_admin:
        return

    farm = (
        db.session.query(Farm)
        .filter(Farm.owner_id == user.id)
        .order_by(Farm.id.asc())
        .first()
    )
    if farm is not None:
        user.farm_id = farm.id
        logger.info("Repaired farm link for admin user_id=%s -> farm_id=%s", user.id, farm.id)


def login(
    phone: str,
    password: str,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[User, str]:
    """
    Authenticate and open a session.

    Returns (user, plaintext_token).
    """
    user = authenticate(phone, password)

    with atomic():
        _repair_admin_farm_link(user)
        user.last_login_at = utcnow()
        _session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address,
        )

    return user, token


def logout(token: str) -> bool:
    return session_service.revoke_session(token)


def create_user(*, name: str, phone: str, email: str, password: str, role: str = "staff") -> User:
    """
    Create a standalone account (staff or plain user) with no farm.

    Farm owners then attach staff with farm_service.add_staff.
    """
    errors: dict[str, list[str]] = {}
    if role not in ("staff", "user"):
        errors.setdefault("role", []).append("role must be one of: staff, user")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.setdefault("password", []).append(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if not email or not EMAIL_RE.match(email):
        errors.setdefault("email", []).append("email must be a valid email address")
    if not phone:
        errors.setdefault("phone", []).append("This field is required")
    if not name:
        errors.setdefault("name", []).append("This field is required")
    for field_name, messages in _taken_fields(phone, email).items():
        errors.setdefault(field_name, []).extend(messages)
    if errors:
        raise ValidationError(errors)

    user = User(
        name=name,
        phone=phone,
        email=email,
        password_hash=hash_password(password),
        role=role,
        farm_id=None,
    )
    try:
        with atomic():
            db.session.add(user)
    except IntegrityError as exc:
        raise _duplicate_account_error(exc, phone, email) from exc
    return user

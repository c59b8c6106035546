# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'principal')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.principal: The Principal the access guard checks against
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, revoked or expired token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.principal = context.principal
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_farm(f):
    """
    Require a tenant context. Use after @require_auth.

    MULTI-TENANT: Sets g.farm_id to the principal's farm. Every farm-scoped
    service call receives it explicitly. Returns 401 when the account has no
    farm (e.g. a staff user not yet attached to one).
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401

        farm_id = g.principal.farm_id
        if farm_id is None:
            return jsonify({"error": "No farm is associated with this account"}), 401

        g.farm_id = farm_id
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the current user to hold one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.principal.role not in roles:
                return jsonify({"error": "Not authorized"}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator

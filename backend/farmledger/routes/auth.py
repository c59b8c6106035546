# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- register: onboards an admin together with their farm
- login: phone + password, returns a bearer token
- logout: revokes the presented token
- me: the current user and their farm
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import bearer_token, require_auth
from ..services import auth_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Register an admin and create their farm.

    Request body:
    {
        "name", "email", "phone", "password", "password_confirmation",
        "farm_name", "farm_address", "farm_phone", "farm_description"?
    }

    Returns:
        {user, farm} with 201
    """
    data = request.get_json(silent=True) or {}
    user, farm = auth_service.register_admin(data)
    return jsonify({
        "user": user.to_dict(),
        "farm": farm.to_dict(),
        "message": "Registration successful",
    }), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by phone and password and create a session token.

    The token must be sent as "Authorization: Bearer <token>" on every
    protected route. Wrong phone and wrong password get the same 401.
    """
    data = request.get_json(silent=True) or {}
    phone = data.get("phone")
    password = data.get("password")

    if not phone or not password:
        return jsonify({"error": "phone and password are required"}), 400

    user, token = auth_service.login(
        phone,
        password,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )

    return jsonify({
        "user": user.to_dict(include_farm=True),
        "token": token,
        "message": "Login successful",
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    auth_service.logout(bearer_token())
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict(include_farm=True)}), 200

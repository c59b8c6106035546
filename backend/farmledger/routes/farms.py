# Overview: Flask API routes for farm administration; parses input and returns JSON responses.

"""
Farm Routes

SECURITY: All routes require authentication.
- Listing and reading: members and owners of the farm
- Create: admins
- Update, delete and staff changes: the owning admin only
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_role
from ..services import farm_service


farms_bp = Blueprint("farms", __name__, url_prefix="/api/farms")


@farms_bp.get("")
@require_auth
def list_farms_route():
    farms = farm_service.list_farms(g.principal)
    return jsonify({
        "items": [farm.to_dict(include_owner=True) for farm in farms],
        "count": len(farms),
    })


@farms_bp.post("")
@require_auth
@require_role("admin")
def create_farm_route():
    """
    Create a farm owned by the caller.

    Request body:
    {
        "name": "Trai A",        // required
        "address": "...",        // required
        "phone": "...",          // required
        "description": "...",    // optional
        "status": "active"       // optional, active | inactive
    }
    """
    data = request.get_json(silent=True) or {}
    farm = farm_service.create_farm(g.principal, data)
    return jsonify(farm.to_dict(include_owner=True)), 201


@farms_bp.get("/<int:farm_id>")
@require_auth
def get_farm_route(farm_id: int):
    farm = farm_service.get_farm(g.principal, farm_id)
    return jsonify(farm.to_dict(include_owner=True, include_staff=True))


@farms_bp.route("/<int:farm_id>", methods=["PUT", "PATCH"])
@require_auth
def update_farm_route(farm_id: int):
    data = request.get_json(silent=True) or {}
    farm = farm_service.update_farm(g.principal, farm_id, data)
    return jsonify(farm.to_dict(include_owner=True))


@farms_bp.delete("/<int:farm_id>")
@require_auth
def delete_farm_route(farm_id: int):
    farm_service.delete_farm(g.principal, farm_id)
    return jsonify({"message": "Farm deleted"}), 200


@farms_bp.get("/<int:farm_id>/staff")
@require_auth
def list_staff_route(farm_id: int):
    staff = farm_service.list_staff(g.principal, farm_id)
    return jsonify({"items": [user.to_dict() for user in staff], "count": len(staff)})


@farms_bp.post("/<int:farm_id>/staff")
@require_auth
def add_staff_route(farm_id: int):
    """
    Attach a staff account to the farm.

    Request body: {"user_id": 12}
    """
    data = request.get_json(silent=True) or {}
    user = farm_service.add_staff(g.principal, farm_id, data.get("user_id"))
    return jsonify(user.to_dict()), 200


@farms_bp.delete("/<int:farm_id>/staff/<int:user_id>")
@require_auth
def remove_staff_route(farm_id: int, user_id: int):
    user = farm_service.remove_staff(g.principal, farm_id, user_id)
    return jsonify(user.to_dict()), 200

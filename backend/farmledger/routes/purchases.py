# Overview: Flask API routes for purchase operations; parses input and returns JSON responses.

"""
Purchase Routes

MULTI-TENANT: All purchase operations are scoped to g.farm_id.
total_amount in responses is always weight * unit_price.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_farm
from ..services import catalog_service, purchase_service


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.get("")
@require_auth
@require_farm
def list_purchases_route():
    purchases = purchase_service.list_purchases(g.farm_id)
    return jsonify({"items": [p.to_dict() for p in purchases], "count": len(purchases)})


@purchases_bp.get("/form-options")
@require_auth
@require_farm
def form_options_route():
    """Boats and product types for the purchase entry form."""
    return jsonify(catalog_service.purchase_form_options(g.farm_id))


@purchases_bp.post("")
@require_auth
@require_farm
def create_purchase_route():
    """
    Record a purchase.

    Request body:
    {
        "boat_id": 1,               // required, same farm
        "product_type_id": 2,       // required, same farm (squid_type_id accepted)
        "weight": "100.50",         // required, >= 0
        "unit_price": "150000",     // required, >= 0
        "purchase_date": "2024-05-01",
        "notes": "..."              // optional
    }
    """
    data = request.get_json(silent=True) or {}
    purchase = purchase_service.create_purchase(g.farm_id, data)
    return jsonify(purchase.to_dict()), 201


@purchases_bp.get("/<int:purchase_id>")
@require_auth
@require_farm
def get_purchase_route(purchase_id: int):
    purchase = purchase_service.get_purchase(g.principal, purchase_id)
    return jsonify(purchase.to_dict())


@purchases_bp.route("/<int:purchase_id>", methods=["PUT", "PATCH"])
@require_auth
@require_farm
def update_purchase_route(purchase_id: int):
    data = request.get_json(silent=True) or {}
    purchase = purchase_service.update_purchase(g.principal, purchase_id, data)
    return jsonify(purchase.to_dict())


@purchases_bp.delete("/<int:purchase_id>")
@require_auth
@require_farm
def delete_purchase_route(purchase_id: int):
    purchase_service.delete_purchase(g.principal, purchase_id)
    return jsonify({"message": "Purchase deleted"}), 200

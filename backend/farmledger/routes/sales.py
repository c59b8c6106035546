# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales Routes

MULTI-TENANT: All sale operations are scoped to g.farm_id.

PATCH /api/sales/<id>/payment-status changes payment_status only.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_farm
from ..services import sale_service
from ..validation import ValidationError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_farm
def list_sales_route():
    """
    List sales, newest sale_date first.

    Query params:
    - payment_status: paid | unpaid (optional)
    """
    payment_status = request.args.get("payment_status") or None
    sales = sale_service.list_sales(g.farm_id, payment_status=payment_status)
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)})


@sales_bp.post("")
@require_auth
@require_farm
def create_sale_route():
    """
    Record a sale.

    Request body:
    {
        "customer_id": 1,           // required, same farm
        "product_type_id": 2,       // required, same farm (squid_type_id accepted)
        "weight": "100",            // required, >= 0
        "unit_price": "150000",     // required, >= 0
        "sale_date": "2024-05-01",  // required
        "payment_status": "unpaid", // optional, paid | unpaid
        "notes": "..."              // optional
    }
    """
    data = request.get_json(silent=True) or {}
    sale = sale_service.create_sale(g.farm_id, data)
    return jsonify(sale.to_dict()), 201


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_farm
def get_sale_route(sale_id: int):
    sale = sale_service.get_sale(g.principal, sale_id)
    return jsonify(sale.to_dict())


@sales_bp.route("/<int:sale_id>", methods=["PUT", "PATCH"])
@require_auth
@require_farm
def update_sale_route(sale_id: int):
    data = request.get_json(silent=True) or {}
    sale = sale_service.update_sale(g.principal, sale_id, data)
    return jsonify(sale.to_dict())


@sales_bp.patch("/<int:sale_id>/payment-status")
@require_auth
@require_farm
def update_payment_status_route(sale_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError.single("payload", "Invalid JSON payload")
    sale = sale_service.update_payment_status(g.principal, sale_id, data.get("payment_status"))
    return jsonify(sale.to_dict())


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_farm
def delete_sale_route(sale_id: int):
    sale_service.delete_sale(g.principal, sale_id)
    return jsonify({"message": "Sale deleted"}), 200

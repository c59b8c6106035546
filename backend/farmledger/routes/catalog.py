# Overview: Flask API routes for boats, customers and product types.

"""
Catalog Routes

One blueprint per catalog collection, built from the same factory:
    /api/boats, /api/customers, /api/product-types

MULTI-TENANT: Lists and creates use g.farm_id; reads, updates and deletes
go through the access guard and answer 403 for another farm's ids.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_farm
from ..services import catalog_service
from ..services.catalog_service import BOATS, CUSTOMERS, PRODUCT_TYPES, CatalogKind


def make_catalog_blueprint(name: str, url_prefix: str, kind: CatalogKind) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=url_prefix)

    @bp.get("")
    @require_auth
    @require_farm
    def list_route():
        records = catalog_service.list_records(kind, g.farm_id)
        return jsonify({"items": [r.to_dict() for r in records], "count": len(records)})

    @bp.post("")
    @require_auth
    @require_farm
    def create_route():
        data = request.get_json(silent=True) or {}
        record = catalog_service.create_record(kind, g.farm_id, data)
        return jsonify(record.to_dict()), 201

    @bp.get("/<int:record_id>")
    @require_auth
    @require_farm
    def get_route(record_id: int):
        record = catalog_service.get_record(kind, g.principal, record_id)
        return jsonify(kind.detail(record))

    @bp.route("/<int:record_id>", methods=["PUT", "PATCH"])
    @require_auth
    @require_farm
    def update_route(record_id: int):
        data = request.get_json(silent=True) or {}
        record = catalog_service.update_record(kind, g.principal, record_id, data)
        return jsonify(record.to_dict())

    @bp.delete("/<int:record_id>")
    @require_auth
    @require_farm
    def delete_route(record_id: int):
        catalog_service.delete_record(kind, g.principal, record_id)
        return jsonify({"message": f"{kind.label.capitalize()} deleted"}), 200

    return bp


boats_bp = make_catalog_blueprint("boats", "/api/boats", BOATS)
customers_bp = make_catalog_blueprint("customers", "/api/customers", CUSTOMERS)
product_types_bp = make_catalog_blueprint("product_types", "/api/product-types", PRODUCT_TYPES)

# Overview: Flask API routes for expense operations; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_farm
from ..services import expense_service


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api")


@expenses_bp.get("/expenses")
@require_auth
@require_farm
def list_expenses_route():
    expense_type = request.args.get("expense_type") or None
    expenses = expense_service.list_expenses(g.farm_id, expense_type=expense_type)
    return jsonify({"items": [e.to_dict() for e in expenses], "count": len(expenses)})


@expenses_bp.get("/expense-types")
@require_auth
@require_farm
def list_expense_types_route():
    return jsonify({"items": expense_service.list_expense_types(g.farm_id)})


@expenses_bp.post("/expenses")
@require_auth
@require_farm
def create_expense_route():
    data = request.get_json(silent=True) or {}
    expense = expense_service.create_expense(g.farm_id, data)
    return jsonify(expense.to_dict()), 201


@expenses_bp.get("/expenses/<int:expense_id>")
@require_auth
@require_farm
def get_expense_route(expense_id: int):
    expense = expense_service.get_expense(g.principal, expense_id)
    return jsonify(expense.to_dict())


@expenses_bp.route("/expenses/<int:expense_id>", methods=["PUT", "PATCH"])
@require_auth
@require_farm
def update_expense_route(expense_id: int):
    data = request.get_json(silent=True) or {}
    expense = expense_service.update_expense(g.principal, expense_id, data)
    return jsonify(expense.to_dict())


@expenses_bp.delete("/expenses/<int:expense_id>")
@require_auth
@require_farm
def delete_expense_route(expense_id: int):
    expense_service.delete_expense(g.principal, expense_id)
    return jsonify({"message": "Expense deleted"}), 200

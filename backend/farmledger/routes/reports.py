from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_farm
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _range():
    return reporting_service.resolve_range(
        request.args.get("start_date"),
        request.args.get("end_date"),
    )


@reports_bp.get("/dashboard")
@require_auth
@require_farm
def dashboard_report():
    return jsonify(reporting_service.dashboard(g.farm_id)), 200


@reports_bp.get("/revenue")
@require_auth
@require_farm
def revenue_report():
    start, end = _range()
    return jsonify(reporting_service.revenue(g.farm_id, start, end)), 200


@reports_bp.get("/expenses")
@require_auth
@require_farm
def expenses_report():
    start, end = _range()
    return jsonify(reporting_service.expenses(g.farm_id, start, end)), 200


@reports_bp.get("/profit")
@require_auth
@require_farm
def profit_report():
    start, end = _range()
    return jsonify(reporting_service.profit(g.farm_id, start, end)), 200


@reports_bp.get("/debts")
@require_auth
@require_farm
def debts_report():
    return jsonify(reporting_service.debts(g.farm_id)), 200

# Overview: Flask API routes for reports operations; parses input and returns JSON responses.

"""
Reporting routes (owner only).

- GET /api/reports/daily-sales?date=YYYY-MM-DD
- GET /api/reports/top-products?start_date=&end_date=
- GET /api/reports/low-stock
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..validation import ValidationError, parse_date_param
from ..decorators import require_auth, require_tenant, require_capability

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/daily-sales")
@require_auth
@require_tenant
@require_capability("VIEW_REPORTS")
def daily_sales_route():
    try:
        day = parse_date_param("date", request.args.get("date"))
        return jsonify(reporting_service.daily_sales(g.tenant.id, day))
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except ReportError as e:
        return jsonify({"error": str(e)}), 422


@reports_bp.get("/top-products")
@require_auth
@require_tenant
@require_capability("VIEW_REPORTS")
def top_products_route():
    """
    Ranges up to REPORTS_IMMEDIATE_THRESHOLD_DAYS are answered inline;
    longer ranges are queued and e-mailed to the requesting user.
    """
    try:
        start = parse_date_param("start_date", request.args.get("start_date"))
        end = parse_date_param("end_date", request.args.get("end_date"))
        result = reporting_service.top_products(g.tenant.id, start, end, g.current_user.email)
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except ReportError as e:
        return jsonify({"error": str(e)}), 422
    except Exception:
        current_app.logger.exception("Failed to build top products report")
        return jsonify({"error": "Internal server error"}), 500

    status = 202 if result["generated"] == "queued" else 200
    return jsonify(result), status


@reports_bp.get("/low-stock")
@require_auth
@require_tenant
@require_capability("VIEW_REPORTS")
def low_stock_route():
    return jsonify(reporting_service.low_stock_report(g.tenant.id))

# Overview: Flask API routes for orders operations; parses input and returns JSON responses.

"""
Order routes.

Placing, cancelling and deleting orders move stock; see
services/order_service.py for the transactional rules.

Capabilities that depend on the order's state (update, cancel) are checked
against the loaded order with permissions.authorize().
"""
from flask import Blueprint, request, g, current_app, jsonify

from ..permissions import CapabilityDeniedError, authorize
from ..services import order_service
from ..services.order_service import OrderError
from ..services.tenant_service import TenantAccessError, require_order_in_tenant
from ..validation import ValidationError, ConflictError, parse_date_param
from ..decorators import require_auth, require_tenant, require_capability

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _denied(e: CapabilityDeniedError):
    return jsonify({"error": str(e), "required_capability": e.capability}), 403


@orders_bp.get("")
@require_auth
@require_tenant
@require_capability("VIEW_ORDERS")
def list_orders_route():
    """
    Query params: status, customer_id, start_date, end_date (YYYY-MM-DD),
    page, per_page.
    """
    try:
        result = order_service.list_orders(
            g.tenant.id,
            status=request.args.get("status") or None,
            customer_id=request.args.get("customer_id", type=int),
            start_date=parse_date_param("start_date", request.args.get("start_date")),
            end_date=parse_date_param("end_date", request.args.get("end_date")),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    return jsonify(result)


@orders_bp.post("")
@require_auth
@require_tenant
@require_capability("CREATE_ORDER")
def create_order_route():
    """
    Body: {"customer_id"?: int, "items": [{"product_id", "quantity"}], "notes"?: str}
    """
    payload = request.get_json(silent=True) or {}

    try:
        order = order_service.create_order(
            g.tenant.id,
            payload.get("items"),
            customer_id=payload.get("customer_id"),
            notes=payload.get("notes"),
        )
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Order created successfully", "order": order.to_dict()}), 201


@orders_bp.get("/<int:order_id>")
@require_auth
@require_tenant
@require_capability("VIEW_ORDERS")
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(g.tenant.id, order_id)
    except TenantAccessError:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": order.to_dict()})


@orders_bp.put("/<int:order_id>")
@require_auth
@require_tenant
def update_order_route(order_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        authorize(g.current_user, "UPDATE_ORDER", require_order_in_tenant(order_id, g.tenant.id))
        order = order_service.update_order(g.tenant.id, order_id, payload)
    except TenantAccessError:
        return jsonify({"error": "Order not found"}), 404
    except CapabilityDeniedError as e:
        return _denied(e)
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Order updated successfully", "order": order.to_dict()})


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_tenant
@require_capability("DELETE_ORDER")
def delete_order_route(order_id: int):
    try:
        order_service.delete_order(g.tenant.id, order_id)
    except TenantAccessError:
        return jsonify({"error": "Order not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Order deleted successfully"})


@orders_bp.post("/<int:order_id>/cancel")
@require_auth
@require_tenant
def cancel_order_route(order_id: int):
    try:
        authorize(g.current_user, "CANCEL_ORDER", require_order_in_tenant(order_id, g.tenant.id))
        order = order_service.cancel_order(g.tenant.id, order_id)
    except TenantAccessError:
        return jsonify({"error": "Order not found"}), 404
    except CapabilityDeniedError as e:
        return _denied(e)
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Order cancelled successfully", "order": order.to_dict()})


@orders_bp.post("/<int:order_id>/mark-as-paid")
@require_auth
@require_tenant
@require_capability("MARK_ORDER_PAID")
def mark_order_paid_route(order_id: int):
    try:
        order = order_service.mark_order_paid(g.tenant.id, order_id)
    except TenantAccessError:
        return jsonify({"error": "Order not found"}), 404
    except OrderError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to mark order as paid")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Order marked as paid", "order": order.to_dict()})

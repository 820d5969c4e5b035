# Overview: Flask API routes for customers operations; parses input and returns JSON responses.

"""
Customer routes. Staff may view, create and edit customers; only owners may
delete or restore them.
"""
from flask import Blueprint, request, g, current_app, jsonify

from ..services import customers_service
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_tenant, require_capability

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_tenant
@require_capability("VIEW_CUSTOMERS")
def list_customers_route():
    result = customers_service.list_customers(
        g.tenant.id,
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result)


@customers_bp.post("")
@require_auth
@require_tenant
@require_capability("CREATE_CUSTOMER")
def create_customer_route():
    payload = request.get_json(silent=True) or {}

    try:
        customer = customers_service.create_customer(g.tenant.id, payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Customer created successfully", "customer": customer.to_dict()}), 201


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_tenant
@require_capability("VIEW_CUSTOMERS")
def get_customer_route(customer_id: int):
    try:
        customer = customers_service.get_customer(g.tenant.id, customer_id)
    except TenantAccessError:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify({"customer": customer.to_dict()})


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_tenant
@require_capability("UPDATE_CUSTOMER")
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        customer = customers_service.update_customer(g.tenant.id, customer_id, payload)
    except TenantAccessError:
        return jsonify({"error": "Customer not found"}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Customer updated successfully", "customer": customer.to_dict()})


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_tenant
@require_capability("DELETE_CUSTOMER")
def delete_customer_route(customer_id: int):
    try:
        customers_service.delete_customer(g.tenant.id, customer_id)
    except TenantAccessError:
        return jsonify({"error": "Customer not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"message": "Customer deleted successfully"})


@customers_bp.post("/<int:customer_id>/restore")
@require_auth
@require_tenant
@require_capability("RESTORE_CUSTOMER")
def restore_customer_route(customer_id: int):
    try:
        customer = customers_service.restore_customer(g.tenant.id, customer_id)
    except TenantAccessError:
        return jsonify({"error": "Customer not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"message": "Customer restored successfully", "customer": customer.to_dict()})

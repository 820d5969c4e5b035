# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to g.tenant (set by
@require_tenant from the X-Tenant-ID header).

SECURITY: All routes require authentication.
- Read operations: any role (VIEW_PRODUCTS)
- Write operations: owner only
"""
from flask import Blueprint, request, g, current_app, jsonify

from ..services import products_service
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_tenant, require_capability

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _bool_arg(name: str) -> bool | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in {"1", "true", "yes"}


@products_bp.get("")
@require_auth
@require_tenant
@require_capability("VIEW_PRODUCTS")
def list_products_route():
    """
    List products, newest first.

    Query params:
    - search: matches name or sku
    - low_stock: true to only show products at or below their threshold
    - is_active: true/false
    - page, per_page
    """
    result = products_service.list_products(
        g.tenant.id,
        search=request.args.get("search"),
        low_stock=bool(_bool_arg("low_stock")),
        is_active=_bool_arg("is_active"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return jsonify(result)


@products_bp.post("")
@require_auth
@require_tenant
@require_capability("CREATE_PRODUCT")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        product = products_service.create_product(g.tenant.id, payload)
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except ConflictError as e:
        return jsonify({"error": str(e), "errors": {"sku": [str(e)]}}), 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Product created successfully", "product": product.to_dict()}), 201


@products_bp.get("/<int:product_id>")
@require_auth
@require_tenant
@require_capability("VIEW_PRODUCTS")
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(g.tenant.id, product_id)
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict()})


@products_bp.put("/<int:product_id>")
@require_auth
@require_tenant
@require_capability("UPDATE_PRODUCT")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        product = products_service.update_product(g.tenant.id, product_id, payload)
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 422
    except ConflictError as e:
        return jsonify({"error": str(e), "errors": {"sku": [str(e)]}}), 409
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Product updated successfully", "product": product.to_dict()})


@products_bp.delete("/<int:product_id>")
@require_auth
@require_tenant
@require_capability("DELETE_PRODUCT")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(g.tenant.id, product_id)
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"message": "Product deleted successfully"})


@products_bp.post("/<int:product_id>/restore")
@require_auth
@require_tenant
@require_capability("RESTORE_PRODUCT")
def restore_product_route(product_id: int):
    try:
        product = products_service.restore_product(g.tenant.id, product_id)
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"message": "Product restored successfully", "product": product.to_dict()})

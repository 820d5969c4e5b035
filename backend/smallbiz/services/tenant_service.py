"""
Multi-Tenant Service: Tenant Resolution and Scoping Helpers

WHY: Centralize tenant validation logic for reuse across services and routes.
Every request must be scoped to an active tenant, and cross-tenant access
must be explicitly denied.

SECURITY INVARIANTS:
1. Every tenant-scoped request resolves X-Tenant-ID to an active Tenant
2. The resolved tenant id is passed explicitly into every service call
3. Entity lookups always filter by tenant_id; ids from another tenant
   behave exactly like ids that do not exist
4. Cross-tenant access attempts are logged

USAGE:
    from smallbiz.services.tenant_service import resolve_tenant, require_product_in_tenant

    tenant = resolve_tenant(request.headers.get("X-Tenant-ID"))
    product = require_product_in_tenant(product_id, tenant.id)
"""

import logging

from ..extensions import db
from ..models import Tenant, Product, Customer, Order

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-ID"


class TenantResolutionError(Exception):
    """Raised when the request's tenant identifier is missing, unknown or inactive."""

    def __init__(self, code: str, message: str, status_code: int):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class TenantAccessError(Exception):
    """Raised when an entity is not visible to the tenant in scope."""
    pass


def resolve_tenant(identifier) -> Tenant:
    """
    Map an inbound tenant identifier to an active Tenant.

    Raises:
        TenantResolutionError("tenant_id_missing") when absent or blank
        TenantResolutionError("tenant_invalid") when unknown, malformed or inactive
    """
    if identifier is None or str(identifier).strip() == "":
        raise TenantResolutionError(
            "tenant_id_missing",
            f"Tenant ID is required in {TENANT_HEADER} header",
            400,
        )

    try:
        tenant_id = int(str(identifier).strip())
    except ValueError:
        tenant_id = None

    tenant = None
    if tenant_id is not None:
        tenant = db.session.query(Tenant).filter_by(id=tenant_id, is_active=True).first()

    if tenant is None:
        raise TenantResolutionError("tenant_invalid", "Invalid or inactive tenant", 403)

    return tenant


def get_active_tenants() -> list[Tenant]:
    return db.session.query(Tenant).filter_by(is_active=True).order_by(Tenant.id.asc()).all()


def _log_cross_tenant_attempt(entity: str, entity_id: int, tenant_id: int, owner_tenant_id: int) -> None:
    logger.warning(
        "Cross-tenant access denied: %s %s belongs to tenant %s, requested by tenant %s",
        entity, entity_id, owner_tenant_id, tenant_id,
    )


def _require_in_tenant(model, entity: str, entity_id: int, tenant_id: int, *, with_deleted: bool = False):
    obj = db.session.get(model, entity_id)

    if obj is None:
        raise TenantAccessError(f"{entity.capitalize()} not found")

    if obj.tenant_id != tenant_id:
        _log_cross_tenant_attempt(entity, entity_id, tenant_id, obj.tenant_id)
        raise TenantAccessError(f"{entity.capitalize()} not found")  # Don't reveal it exists elsewhere

    if not with_deleted and getattr(obj, "deleted_at", None) is not None:
        raise TenantAccessError(f"{entity.capitalize()} not found")

    return obj


def require_product_in_tenant(product_id: int, tenant_id: int, *, with_deleted: bool = False) -> Product:
    return _require_in_tenant(Product, "product", product_id, tenant_id, with_deleted=with_deleted)


def require_customer_in_tenant(customer_id: int, tenant_id: int, *, with_deleted: bool = False) -> Customer:
    return _require_in_tenant(Customer, "customer", customer_id, tenant_id, with_deleted=with_deleted)


def require_order_in_tenant(order_id: int, tenant_id: int) -> Order:
    return _require_in_tenant(Order, "order", order_id, tenant_id)

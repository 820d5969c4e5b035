# backend/smallbiz/services/products_service.py
"""
Products Service with Multi-Tenant Support

MULTI-TENANT: All product operations are tenant-scoped.
- list_products filters on tenant_id
- create_product enforces SKU uniqueness within the tenant
- update/delete/restore resolve the product through require_product_in_tenant

Stock on create comes from the payload; every later stock change goes through
stock_service.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from ..extensions import db
from ..models import OrderItem, Product
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    enforce_rules_product,
    validate_payload,
)
from .pagination import paginate
from .tenant_service import require_product_in_tenant
from smallbiz.time_utils import utcnow

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"sku", "name", "description", "price_cents", "low_stock_threshold", "is_active"}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS | {"stock_quantity"},
    required_on_create={"sku", "name", "price_cents", "stock_quantity"},
)

# Stock is owned by the ledger after creation
PRODUCT_UPDATE_POLICY = ModelValidationPolicy(writable_fields=PRODUCT_MUTABLE_FIELDS)


def apply_product_patch(p: Product, patch: dict, fields: set[str]) -> None:
    for k, v in patch.items():
        if k not in fields:
            continue
        setattr(p, k, v)


def _ensure_unique_sku(tenant_id: int, sku: str, exclude_id: int | None = None) -> None:
    q = db.session.query(Product.id).filter(Product.tenant_id == tenant_id, Product.sku == sku)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if q.first() is not None:
        raise ConflictError("SKU already exists for this business.")


def list_products(
    tenant_id: int,
    *,
    search: str | None = None,
    low_stock: bool = False,
    is_active: bool | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Tenant-scoped product listing, newest first.

    Args:
        search: case-insensitive match on name or sku
        low_stock: only products at or below their threshold
        is_active: filter by active flag when given
    """
    query = db.session.query(Product).filter(
        Product.tenant_id == tenant_id,
        Product.deleted_at.is_(None),
    )

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
    if low_stock:
        query = query.filter(Product.stock_quantity <= Product.low_stock_threshold)
    if is_active is not None:
        query = query.filter(Product.is_active.is_(is_active))

    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate(query, page=page, per_page=per_page, serialize=lambda p: p.to_dict())


def create_product(tenant_id: int, payload: dict) -> Product:
    """
    Create a product from a raw JSON payload.

    Raises:
        ValidationError: bad or missing fields
        ConflictError: SKU already exists in this tenant
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
    enforce_rules_product(patch)
    _ensure_unique_sku(tenant_id, patch["sku"])

    p = Product(tenant_id=tenant_id, stock_quantity=patch.get("stock_quantity", 0))
    apply_product_patch(p, patch, PRODUCT_MUTABLE_FIELDS)

    db.session.add(p)
    db.session.commit()
    logger.info("Product %s (sku=%s) created for tenant %s", p.id, p.sku, tenant_id)
    return p


def get_product(tenant_id: int, product_id: int) -> Product:
    return require_product_in_tenant(product_id, tenant_id)


def update_product(tenant_id: int, product_id: int, payload: dict) -> Product:
    p = require_product_in_tenant(product_id, tenant_id)

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
    enforce_rules_product(patch)
    if "sku" in patch:
        _ensure_unique_sku(tenant_id, patch["sku"], exclude_id=p.id)

    apply_product_patch(p, patch, PRODUCT_MUTABLE_FIELDS)
    db.session.commit()
    return p


def delete_product(tenant_id: int, product_id: int) -> None:
    """
    Soft delete. Products referenced by any order line are kept visible so
    order history stays intact.
    """
    p = require_product_in_tenant(product_id, tenant_id)

    in_use = db.session.query(OrderItem.id).filter(OrderItem.product_id == p.id).first()
    if in_use is not None:
        raise ConflictError("Cannot delete product with existing orders.")

    p.deleted_at = utcnow()
    db.session.commit()


def restore_product(tenant_id: int, product_id: int) -> Product:
    p = require_product_in_tenant(product_id, tenant_id, with_deleted=True)
    if p.deleted_at is None:
        raise ConflictError("Product is not deleted.")
    p.deleted_at = None
    db.session.commit()
    return p

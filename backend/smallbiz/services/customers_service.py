# Overview: Service-layer operations for customers; encapsulates business logic and database work.

"""
Customers Service

MULTI-TENANT: Every query filters on tenant_id; single records are resolved
through require_customer_in_tenant so foreign ids look absent.

A customer with orders is never deleted. Other deletions are soft and can be
undone with restore_customer.
"""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer, Order
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    enforce_rules_customer,
    validate_payload,
)
from .pagination import paginate
from .tenant_service import require_customer_in_tenant
from smallbiz.time_utils import utcnow

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address"},
    required_on_create={"name"},
)


def list_customers(
    tenant_id: int,
    *,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Newest first; search matches name, email or phone."""
    query = db.session.query(Customer).filter(
        Customer.tenant_id == tenant_id,
        Customer.deleted_at.is_(None),
    )

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Customer.name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))

    query = query.order_by(Customer.created_at.desc(), Customer.id.desc())
    return paginate(query, page=page, per_page=per_page, serialize=lambda c: c.to_dict())


def create_customer(tenant_id: int, payload: dict) -> Customer:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    enforce_rules_customer(patch)

    c = Customer(tenant_id=tenant_id, **patch)
    db.session.add(c)
    db.session.commit()
    return c


def get_customer(tenant_id: int, customer_id: int) -> Customer:
    return require_customer_in_tenant(customer_id, tenant_id)


def update_customer(tenant_id: int, customer_id: int, payload: dict) -> Customer:
    c = require_customer_in_tenant(customer_id, tenant_id)

    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    enforce_rules_customer(patch)

    for k, v in patch.items():
        setattr(c, k, v)
    db.session.commit()
    return c


def delete_customer(tenant_id: int, customer_id: int) -> None:
    c = require_customer_in_tenant(customer_id, tenant_id)

    has_orders = db.session.query(Order.id).filter(
        Order.tenant_id == tenant_id,
        Order.customer_id == c.id,
    ).first()
    if has_orders is not None:
        raise ConflictError("Cannot delete customer with existing orders.")

    c.deleted_at = utcnow()
    db.session.commit()


def restore_customer(tenant_id: int, customer_id: int) -> Customer:
    c = require_customer_in_tenant(customer_id, tenant_id, with_deleted=True)
    if c.deleted_at is None:
        raise ConflictError("Customer is not deleted.")
    c.deleted_at = None
    db.session.commit()
    return c

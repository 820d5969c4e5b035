"""
Order Service - order placement, cancellation and status changes

WHY: An order is a stock reservation. Creating one takes stock out of every
product on it; cancelling or deleting a pending one puts it all back. Each of
these is one database transaction so stock and orders never disagree.

FLOW (create):
1. validate_order_items()  - field-level validation, before any write
2. run_in_transaction():
   - lock each product row, snapshot its price, guarded stock decrement
   - insert order header, then lines
   - commit; any failure rolls back every decrement and insert
"""

from __future__ import annotations

import logging
import secrets
from datetime import date

from flask import current_app
from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import Order, OrderItem, Product
from ..models.orders import (
    ORDER_STATUS_CANCELLED,
    ORDER_STATUS_PAID,
    ORDER_STATUS_PENDING,
    ORDER_STATUSES,
)
from ..validation import ConflictError, FieldErrors, ValidationError, parse_positive_int
from smallbiz.time_utils import day_bounds
from . import stock_service
from .concurrency import lock_for_update, run_in_transaction
from .pagination import paginate
from .tenant_service import require_customer_in_tenant, require_order_in_tenant, TenantAccessError

logger = logging.getLogger(__name__)


class OrderError(Exception):
    """Raised for illegal order state transitions."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def generate_order_number() -> str:
    prefix = current_app.config.get("ORDER_NUMBER_PREFIX", "ORD-")
    return f"{prefix}{secrets.token_hex(8).upper()}"


def _load_order(order_id: int) -> Order:
    return (
        db.session.query(Order)
        .options(
            joinedload(Order.customer),
            selectinload(Order.items).joinedload(OrderItem.product),
        )
        .filter(Order.id == order_id)
        .one()
    )


def validate_order_items(tenant_id: int, items, customer_id=None, notes=None) -> list[tuple[int, int]]:
    """
    Validate an order request against the tenant's current data.

    Returns normalized (product_id, quantity) pairs in request order.

    Raises ValidationError with keys such as "customer_id", "notes", "items",
    "items.0.product_id" and "items.0.quantity". Stock sufficiency is checked
    against the cumulative quantity requested per product.
    """
    errors = FieldErrors()

    if customer_id is not None:
        parsed_customer_id = parse_positive_int(customer_id)
        if parsed_customer_id is None:
            errors.add("customer_id", "customer_id must be a positive integer.")
        else:
            try:
                require_customer_in_tenant(parsed_customer_id, tenant_id)
            except TenantAccessError:
                errors.add("customer_id", "Customer not found in your business.")

    if notes is not None and not isinstance(notes, str):
        errors.add("notes", "notes must be a string")

    if not isinstance(items, list) or not items:
        errors.add("items", "At least one item is required.")
        errors.raise_if_any()

    lines: list[tuple[int, int]] = []
    requested: dict[int, int] = {}

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            errors.add(f"items.{index}", "Each item must be an object with product_id and quantity.")
            continue

        product_id = parse_positive_int(item.get("product_id"))
        quantity = parse_positive_int(item.get("quantity"))

        if product_id is None:
            errors.add(f"items.{index}.product_id", "product_id is required.")
        if quantity is None:
            errors.add(f"items.{index}.quantity", "quantity must be an integer of at least 1.")
        if product_id is None or quantity is None:
            continue

        product = db.session.query(Product).filter_by(
            id=product_id, tenant_id=tenant_id
        ).filter(Product.deleted_at.is_(None)).first()
        if product is None:
            errors.add(f"items.{index}.product_id", "Product not found in your business.")
            continue

        if not product.is_active:
            errors.add(f"items.{index}.product_id", "Product is not active.")

        requested[product.id] = requested.get(product.id, 0) + quantity
        if not stock_service.has_sufficient_stock(product, requested[product.id]):
            errors.add(
                f"items.{index}.quantity",
                f"Insufficient stock for '{product.name}'. Available: {product.stock_quantity}",
            )

        lines.append((product_id, quantity))

    errors.raise_if_any()
    return lines


def create_order(
    tenant_id: int,
    items,
    customer_id: int | None = None,
    notes: str | None = None,
) -> Order:
    """Create an order and reserve its stock in one transaction."""
    lines = validate_order_items(tenant_id, items, customer_id, notes)
    if customer_id is not None:
        customer_id = parse_positive_int(customer_id)

    def _op():
        total_amount_cents = 0
        items_data = []

        for index, (product_id, quantity) in enumerate(lines):
            product = lock_for_update(
                db.session.query(Product).filter_by(id=product_id, tenant_id=tenant_id)
            ).one()

            unit_price_cents = product.price_cents
            line_total_cents = unit_price_cents * quantity

            # Stock may have moved since validation; the guarded decrement decides.
            try:
                stock_service.decrement_or_raise(product, quantity)
            except stock_service.InsufficientStockError as exc:
                raise ValidationError.for_field(f"items.{index}.quantity", str(exc)) from exc

            items_data.append({
                "product_id": product.id,
                "quantity": quantity,
                "unit_price_cents": unit_price_cents,
                "total_price_cents": line_total_cents,
            })
            total_amount_cents += line_total_cents

        order = Order(
            tenant_id=tenant_id,
            customer_id=customer_id,
            order_number=generate_order_number(),
            total_amount_cents=total_amount_cents,
            status=ORDER_STATUS_PENDING,
            notes=notes,
        )
        db.session.add(order)
        db.session.flush()

        for item_data in items_data:
            db.session.add(OrderItem(order_id=order.id, **item_data))

        return order.id

    order_id = run_in_transaction(_op)
    order = _load_order(order_id)
    logger.info(
        "Order %s created for tenant %s (%s lines, total_cents=%s)",
        order.order_number, tenant_id, len(order.items), order.total_amount_cents,
    )
    return order


def get_order(tenant_id: int, order_id: int) -> Order:
    require_order_in_tenant(order_id, tenant_id)
    return _load_order(order_id)


def cancel_order(tenant_id: int, order_id: int) -> Order:
    """
    Cancel an order and restore its stock.

    Cancelling an already cancelled order changes nothing.
    """
    require_order_in_tenant(order_id, tenant_id)

    def _op():
        order = lock_for_update(
            db.session.query(Order).filter_by(id=order_id, tenant_id=tenant_id)
        ).one()

        if order.status == ORDER_STATUS_CANCELLED:
            return False

        for item in order.items:
            stock_service.increment(item.product, item.quantity)

        order.status = ORDER_STATUS_CANCELLED
        return True

    changed = run_in_transaction(_op)
    if changed:
        logger.info("Order %s cancelled for tenant %s; stock restored", order_id, tenant_id)
    return _load_order(order_id)


def mark_order_paid(tenant_id: int, order_id: int) -> Order:
    """pending -> paid. Stock was already committed at creation."""
    require_order_in_tenant(order_id, tenant_id)

    def _op():
        order = lock_for_update(
            db.session.query(Order).filter_by(id=order_id, tenant_id=tenant_id)
        ).one()

        if order.status == ORDER_STATUS_CANCELLED:
            raise OrderError("Cancelled orders cannot be marked as paid")
        if order.status == ORDER_STATUS_PAID:
            return order.id

        order.status = ORDER_STATUS_PAID
        return order.id

    run_in_transaction(_op)
    return _load_order(order_id)


ORDER_UPDATABLE_FIELDS = {"notes", "customer_id", "items"}


def update_order(tenant_id: int, order_id: int, payload: dict) -> Order:
    """
    Update an order's notes.

    Only pending orders can be edited and only notes are written. Item or
    customer changes are rejected with field-level errors.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    order = require_order_in_tenant(order_id, tenant_id)

    errors = FieldErrors()
    for key in payload:
        if key not in ORDER_UPDATABLE_FIELDS:
            errors.add(key, f"Field not allowed: {key}")

    if "notes" in payload and payload["notes"] is not None and not isinstance(payload["notes"], str):
        errors.add("notes", "notes must be a string")

    customer_changed = "customer_id" in payload and payload["customer_id"] != order.customer_id

    if order.is_pending:
        if "items" in payload:
            errors.add("items", "Order items cannot be changed; cancel the order and create a new one.")
        if customer_changed:
            errors.add("customer_id", "Only notes can be updated on an order.")
    else:
        if "items" in payload:
            errors.add("items", "Order items cannot be updated once the order is no longer pending.")
        if customer_changed:
            errors.add("customer_id", "Customer cannot be changed once the order is no longer pending.")

    errors.raise_if_any()

    if not order.is_pending:
        raise ConflictError("Only pending orders can be updated")

    def _op():
        locked = lock_for_update(
            db.session.query(Order).filter_by(id=order_id, tenant_id=tenant_id)
        ).one()
        if locked.status != ORDER_STATUS_PENDING:
            raise ConflictError("Only pending orders can be updated")
        if "notes" in payload:
            locked.notes = payload["notes"]
        return locked.id

    run_in_transaction(_op)
    return _load_order(order_id)


def delete_order(tenant_id: int, order_id: int) -> None:
    """
    Delete a pending order, restoring stock exactly like cancellation.
    """
    require_order_in_tenant(order_id, tenant_id)

    def _op():
        order = lock_for_update(
            db.session.query(Order).filter_by(id=order_id, tenant_id=tenant_id)
        ).one()

        if order.status != ORDER_STATUS_PENDING:
            raise ConflictError("Only pending orders can be deleted")

        for item in order.items:
            stock_service.increment(item.product, item.quantity)

        db.session.delete(order)

    run_in_transaction(_op)
    logger.info("Order %s deleted for tenant %s; stock restored", order_id, tenant_id)


def list_orders(
    tenant_id: int,
    *,
    status: str | None = None,
    customer_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Tenant-scoped order listing, newest first."""
    if status is not None and status not in ORDER_STATUSES:
        raise ValidationError.for_field("status", f"status must be one of: {', '.join(ORDER_STATUSES)}")

    query = (
        db.session.query(Order)
        .options(
            joinedload(Order.customer),
            selectinload(Order.items).joinedload(OrderItem.product),
        )
        .filter(Order.tenant_id == tenant_id)
    )

    if status:
        query = query.filter(Order.status == status)
    if customer_id:
        query = query.filter(Order.customer_id == customer_id)
    if start_date:
        query = query.filter(Order.created_at >= day_bounds(start_date)[0])
    if end_date:
        query = query.filter(Order.created_at < day_bounds(end_date)[1])

    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    return paginate(query, page=page, per_page=per_page, serialize=lambda o: o.to_dict())

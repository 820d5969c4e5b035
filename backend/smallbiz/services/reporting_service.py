# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

"""
Sales reporting: daily sales, top products and low stock.

All figures are integer cents. A "day" is a UTC calendar day and ranges are
half-open: [start 00:00:00, end + 1 day 00:00:00).
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy import and_, func

from ..extensions import db
from ..models import DailySalesSummary, Order, OrderItem, Product
from ..models.orders import ORDER_STATUS_PAID
from ..validation import ValidationError
from . import stock_service
from .concurrency import run_in_transaction
from smallbiz.time_utils import day_bounds, to_utc_z, today, utcnow

logger = logging.getLogger(__name__)


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _round_cents(value) -> int:
    if value is None:
        return 0
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Daily sales
# ---------------------------------------------------------------------------

def compute_daily_sales(tenant_id: int, day: date) -> dict:
    """Count, sum and average of paid orders created on `day`."""
    lo, hi = day_bounds(day)
    row = db.session.query(
        func.count(Order.id).label("total_orders"),
        func.sum(Order.total_amount_cents).label("total_sales_cents"),
        func.avg(Order.total_amount_cents).label("average_order_value_cents"),
    ).filter(
        Order.tenant_id == tenant_id,
        Order.status == ORDER_STATUS_PAID,
        Order.created_at >= lo,
        Order.created_at < hi,
    ).one()

    return {
        "date": day.isoformat(),
        "total_orders": int(row.total_orders or 0),
        "total_sales_cents": int(row.total_sales_cents or 0),
        "average_order_value_cents": _round_cents(row.average_order_value_cents),
    }


def resolve_daily_sales_date(day: date | None) -> date:
    """Default to yesterday; reject days that have not happened yet."""
    if day is None:
        return today() - timedelta(days=1)
    if day > today():
        raise ValidationError.for_field("date", "date cannot be in the future")
    return day


def daily_sales(tenant_id: int, day: date | None = None) -> dict:
    """
    Sales summary for one day.

    Prefers the row written by the nightly job; otherwise aggregates live.
    """
    day = resolve_daily_sales_date(day)

    summary = db.session.query(DailySalesSummary).filter_by(tenant_id=tenant_id, date=day).first()
    if summary is not None:
        data = summary.to_dict()
        data["source"] = "pre-generated"
    else:
        data = compute_daily_sales(tenant_id, day)
        data["source"] = "on-demand"

    return {"date": day.isoformat(), "summary": data}


def generate_daily_summary(tenant_id: int, day: date) -> DailySalesSummary:
    """Upsert the (tenant, day) summary row from live order data."""
    def _op():
        totals = compute_daily_sales(tenant_id, day)
        summary = db.session.query(DailySalesSummary).filter_by(tenant_id=tenant_id, date=day).first()
        if summary is None:
            summary = DailySalesSummary(tenant_id=tenant_id, date=day)
            db.session.add(summary)

        summary.total_orders = totals["total_orders"]
        summary.total_sales_cents = totals["total_sales_cents"]
        summary.average_order_value_cents = totals["average_order_value_cents"]
        return summary

    summary = run_in_transaction(_op)
    logger.info(
        "Daily sales summary for tenant %s on %s: %s orders, %s cents",
        tenant_id, day.isoformat(), summary.total_orders, summary.total_sales_cents,
    )
    return summary


# ---------------------------------------------------------------------------
# Top products
# ---------------------------------------------------------------------------

def resolve_report_range(start: date | None, end: date | None) -> tuple[date, date]:
    end = end or today()
    start = start or end - timedelta(days=current_app.config["REPORTS_DEFAULT_RANGE_DAYS"])
    if start > end:
        raise ValidationError.for_field("end_date", "end_date must be on or after start_date")
    return start, end


def compute_top_products(tenant_id: int, start: date, end: date, limit: int | None = None) -> list[dict]:
    """
    Best sellers by quantity among paid orders in [start, end].

    Ties on quantity are broken by product id ascending.
    """
    if limit is None:
        limit = current_app.config["REPORTS_TOP_PRODUCTS_LIMIT"]
    lo, hi = day_bounds(start, end)

    total_quantity = func.sum(OrderItem.quantity)
    rows = (
        db.session.query(
            Product.id,
            Product.name,
            Product.sku,
            total_quantity.label("total_quantity"),
            func.sum(OrderItem.total_price_cents).label("total_revenue_cents"),
            func.avg(OrderItem.unit_price_cents).label("average_price_cents"),
        )
        .select_from(OrderItem)
        .join(Order, and_(Order.id == OrderItem.order_id, Order.tenant_id == tenant_id))
        .join(Product, and_(Product.id == OrderItem.product_id, Product.tenant_id == tenant_id))
        .filter(
            Order.status == ORDER_STATUS_PAID,
            Order.created_at >= lo,
            Order.created_at < hi,
        )
        .group_by(Product.id, Product.name, Product.sku)
        .order_by(total_quantity.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )

    return [
        {
            "id": row.id,
            "name": row.name,
            "sku": row.sku,
            "total_quantity": int(row.total_quantity or 0),
            "total_revenue_cents": int(row.total_revenue_cents or 0),
            "average_price_cents": _round_cents(row.average_price_cents),
        }
        for row in rows
    ]


def top_products(tenant_id: int, start: date | None, end: date | None, requester_email: str) -> dict:
    """
    Short ranges are answered in the request; longer ones are queued and the
    result is e-mailed to the requester.
    """
    from ..tasks import send_top_products_report

    start, end = resolve_report_range(start, end)
    days = (end - start).days
    threshold = current_app.config["REPORTS_IMMEDIATE_THRESHOLD_DAYS"]

    if days <= threshold:
        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "generated": "immediate",
            "days_processed": days,
            "top_products": compute_top_products(tenant_id, start, end),
        }

    send_top_products_report.delay(tenant_id, start.isoformat(), end.isoformat(), requester_email)
    logger.info(
        "Queued top products report for tenant %s (%s to %s) to %s",
        tenant_id, start.isoformat(), end.isoformat(), requester_email,
    )
    return {
        "message": "Report generation queued for email delivery",
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "generated": "queued",
        "days_processed": days,
        "email": requester_email,
        "estimated_time": "5-10 minutes",
        "note": f"Reports exceeding {threshold} days are sent via email",
    }


# ---------------------------------------------------------------------------
# Low stock
# ---------------------------------------------------------------------------

def low_stock_report(tenant_id: int) -> dict:
    products = stock_service.low_stock_products(tenant_id)
    rows = [
        {
            "id": p.id,
            "name": p.name,
            "sku": p.sku,
            "stock_quantity": p.stock_quantity,
            "low_stock_threshold": p.low_stock_threshold,
            "price_cents": p.price_cents,
            "needs_restocking": p.stock_quantity == 0,
        }
        for p in products
    ]
    return {
        "generated": "immediate",
        "timestamp": to_utc_z(utcnow()),
        "low_stock_products": rows,
        "count": len(rows),
    }

# Overview: Celery tasks for deferred reports and nightly sales summaries.

from __future__ import annotations

import logging
from datetime import timedelta

import aiosmtplib
from celery import shared_task

from .extensions import db
from .models import Tenant
from .services import notification_service, reporting_service, tenant_service
from .services.reporting_service import ReportError
from .time_utils import parse_iso_date, today

logger = logging.getLogger(__name__)


@shared_task(
    name="smallbiz.tasks.send_top_products_report",
    autoretry_for=(aiosmtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_top_products_report(tenant_id: int, start_date: str, end_date: str, email: str) -> int:
    """Compute the top products for a long range and e-mail them. Returns the row count."""
    tenant = db.session.get(Tenant, tenant_id)
    if tenant is None:
        raise ReportError(f"Tenant {tenant_id} not found")

    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)
    products = reporting_service.compute_top_products(tenant_id, start, end)

    subject, html, text = notification_service.render_top_products_report(
        tenant.name, start.isoformat(), end.isoformat(), products
    )
    notification_service.send_email(email, subject, html, text)

    logger.info("Top products report for tenant %s sent to %s (%s rows)", tenant_id, email, len(products))
    return len(products)


@shared_task(name="smallbiz.tasks.generate_daily_sales_summary")
def generate_daily_sales_summary(tenant_id: int, date: str) -> int:
    summary = reporting_service.generate_daily_summary(tenant_id, parse_iso_date(date))
    return summary.id


@shared_task(name="smallbiz.tasks.dispatch_daily_sales_summaries")
def dispatch_daily_sales_summaries(date: str | None = None) -> int:
    """Queue one summary job per active tenant. Defaults to yesterday."""
    day = parse_iso_date(date) if date else today() - timedelta(days=1)

    tenants = tenant_service.get_active_tenants()
    for tenant in tenants:
        generate_daily_sales_summary.delay(tenant.id, day.isoformat())
        logger.info("Queued daily summary generation for tenant %s (%s)", tenant.id, tenant.name)

    logger.info("Daily sales summary generation queued for %s tenants", len(tenants))
    return len(tenants)

# Overview: Outbound e-mail: report rendering and SMTP delivery.

from __future__ import annotations

import asyncio
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

import aiosmtplib
from flask import current_app, render_template

logger = logging.getLogger(__name__)


def format_cents(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def render_top_products_report(tenant_name: str, start: str, end: str, products: list[dict]) -> tuple[str, str, str]:
    """Returns (subject, html, text) for the top products e-mail."""
    subject = f"Top Products Report: {start} to {end}"
    total_revenue_cents = sum(p["total_revenue_cents"] for p in products)
    total_quantity = sum(p["total_quantity"] for p in products)

    html = render_template(
        "emails/top_products.html",
        tenant_name=tenant_name,
        start_date=start,
        end_date=end,
        products=products,
        total_revenue_cents=total_revenue_cents,
        total_quantity=total_quantity,
        format_cents=format_cents,
        app_name=current_app.config["REPORTS_FROM_NAME"],
    )

    lines = ["Top Products Report", f"Tenant: {tenant_name}", f"Period: {start} to {end}", ""]
    if products:
        for p in products:
            lines.append(
                f"{p['name']} ({p['sku']}): {p['total_quantity']} sold, "
                f"{format_cents(p['total_revenue_cents'])} revenue, "
                f"{format_cents(p['average_price_cents'])} avg price"
            )
        lines.append("")
        lines.append(f"Total Revenue: {format_cents(total_revenue_cents)}")
        lines.append(f"Total Quantity Sold: {total_quantity}")
    else:
        lines.append("No product sales data available for this period.")

    return subject, html, "\n".join(lines)


def send_email(to: str, subject: str, html: str, text: str | None = None) -> bool:
    """
    Deliver one message over SMTP.

    Returns False when SMTP_HOST is not configured. Delivery errors propagate
    so the calling task can retry.
    """
    config = current_app.config
    if not config.get("SMTP_HOST"):
        logger.warning("SMTP not configured, skipping email to %s: %s", to, subject)
        return False

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = formataddr((config["REPORTS_FROM_NAME"], config["REPORTS_FROM_EMAIL"]))
    message["To"] = to

    if text:
        message.attach(MIMEText(text, "plain"))
    message.attach(MIMEText(html, "html"))

    asyncio.run(
        aiosmtplib.send(
            message,
            hostname=config["SMTP_HOST"],
            port=config["SMTP_PORT"],
            username=config.get("SMTP_USER"),
            password=config.get("SMTP_PASSWORD"),
            start_tls=config.get("SMTP_START_TLS", True),
        )
    )

    logger.info("Email sent to %s: %s", to, subject)
    return True

# Overview: Flask CLI command groups for bootstrap, tenant management, and reports.

# backend/smallbiz/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenant management:
# - python -m flask tenants list
# - python -m flask tenants create --name "Acme" --owner-name "Ann" --owner-email ann@acme.test [--domain acme.test]
#   Create a tenant with its owner (prompts for the password if omitted).
# - python -m flask tenants deactivate 3
#   Disable all access for a tenant's users.
#
# Reports:
# - python -m flask reports generate-daily-summaries [--date 2026-01-31] [--sync]
#   Queue (or with --sync, run inline) one daily sales summary per active tenant.
#   Defaults to yesterday.

import click
from datetime import timedelta
from flask.cli import with_appcontext

from .extensions import db
from .models import Tenant, User, Product, Order
from .services import auth_service, reporting_service, tenant_service
from .validation import ValidationError
from .time_utils import parse_iso_date, today


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask tenants create' to add a business.")


@click.group('tenants')
def tenants_group():
    """Tenant (business account) management commands."""


@tenants_group.command('list')
@with_appcontext
def list_tenants():
    """List all tenants."""
    tenants = db.session.query(Tenant).order_by(Tenant.id.asc()).all()

    if not tenants:
        click.echo("No tenants found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Domain':<20} {'Active':<8} {'Users':<7} {'Products':<9} {'Orders'}")
    click.echo("="*80)

    for tenant in tenants:
        user_count = db.session.query(User).filter_by(tenant_id=tenant.id).count()
        product_count = db.session.query(Product).filter_by(tenant_id=tenant.id).count()
        order_count = db.session.query(Order).filter_by(tenant_id=tenant.id).count()
        active_str = "Yes" if tenant.is_active else "No"

        click.echo(
            f"{tenant.id:<5} {tenant.name:<30} {tenant.domain or '-':<20} {active_str:<8} "
            f"{user_count:<7} {product_count:<9} {order_count}"
        )

    click.echo("="*80 + "\n")


@tenants_group.command('create')
@click.option('--name', required=True, help='Business name')
@click.option('--domain', default=None, help='Unique domain (optional)')
@click.option('--owner-name', required=True, help='Owner full name')
@click.option('--owner-email', required=True, help='Owner login e-mail')
@click.option('--owner-password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_tenant_cli(name, domain, owner_name, owner_email, owner_password):
    """Create a new tenant and its owner user."""
    try:
        user = auth_service.register_tenant(
            tenant_name=name,
            domain=domain,
            name=owner_name,
            email=owner_email,
            password=owner_password,
        )
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        for field, messages in e.errors.items():
            for message in messages:
                click.echo(f"  {field}: {message}")
        raise SystemExit(1)

    click.echo(f"PASS Created tenant: {user.tenant.name} (ID: {user.tenant_id}) with owner {user.email}")


@tenants_group.command('deactivate')
@click.argument('tenant_id', type=int)
@with_appcontext
def deactivate_tenant_cli(tenant_id):
    """Deactivate a tenant; its users can no longer sign in or act."""
    tenant = db.session.get(Tenant, tenant_id)
    if not tenant:
        click.echo(f"FAIL Tenant ID {tenant_id} not found")
        raise SystemExit(1)

    tenant.is_active = False
    db.session.commit()
    click.echo(f"PASS Deactivated tenant: {tenant.name} (ID: {tenant.id})")


@click.group('reports')
def reports_group():
    """Report generation commands."""


@reports_group.command('generate-daily-summaries')
@click.option('--date', 'date_str', default=None, help='Day to summarize (YYYY-MM-DD, default yesterday)')
@click.option('--sync', is_flag=True, help='Run inline instead of queueing Celery jobs')
@with_appcontext
def generate_daily_summaries_cli(date_str, sync):
    """Generate daily sales summaries for all active tenants."""
    from .tasks import generate_daily_sales_summary

    try:
        day = parse_iso_date(date_str) if date_str else today() - timedelta(days=1)
    except ValueError:
        raise click.BadParameter("must be a date in YYYY-MM-DD format", param_hint="--date")

    tenants = tenant_service.get_active_tenants()
    for tenant in tenants:
        if sync:
            summary = reporting_service.generate_daily_summary(tenant.id, day)
            click.echo(
                f"Generated daily summary for tenant {tenant.id} ({tenant.name}): "
                f"{summary.total_orders} orders, {summary.total_sales_cents} cents"
            )
        else:
            generate_daily_sales_summary.delay(tenant.id, day.isoformat())
            click.echo(f"Queued daily summary generation for tenant {tenant.id} ({tenant.name})")

    verb = "generated" if sync else "queued"
    click.echo(f"Daily sales summary generation {verb} for {len(tenants)} tenants ({day.isoformat()}).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)
    app.cli.add_command(reports_group)

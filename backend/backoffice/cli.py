# Overview: Flask CLI command groups for bootstrap, reconciliation and maintenance.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to backoffice (PowerShell: $env:FLASK_APP="backoffice").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create the record store table if it does not exist.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system collections
#   List stored collections with their record counts.
#
# Fulfillment reconciliation:
# - python -m flask fulfillment check-integrity [--severity high]
#   Scan orders, invoices and PODs and print every issue, grouped by severity.
# - python -m flask fulfillment auto-fix --user-id 1
#   Invoice completed orders that have no invoice; prints fixed/error counts.
# - python -m flask fulfillment generate-invoices --user-id 1
#   Same batch through the invoice service (duplicate-checked per order).
#
# Maintenance:
# - python -m flask maintenance migrate-statuses
#   Rewrite legacy order/POD statuses (delivered, processing, cancelled).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Severity
from .services import integrity_service, invoice_service, maintenance_service, record_store
from .services.integrity_service import sort_by_severity


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Record store tables ready.")


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

    click.echo("PASS Database reset complete.")


@system_group.command('collections')
@with_appcontext
def list_collections():
    """List stored collections."""
    rows = record_store.list_collections()
    if not rows:
        click.echo("No collections stored.")
        return
    for row in rows:
        info = row.to_dict()
        click.echo(f"{info['name']:<12} {info['record_count']:>6} records  (updated {info['updated_at']})")


@click.group('fulfillment')
def fulfillment_group():
    """Order -> invoice -> POD reconciliation."""


@fulfillment_group.command('check-integrity')
@click.option('--severity', type=click.Choice([s.value for s in Severity]), default=None)
@with_appcontext
def check_integrity_cli(severity):
    """Print integrity issues, high severity first."""
    issues = integrity_service.check_integrity()
    if severity:
        issues = [issue for issue in issues if issue.severity.value == severity]

    if not issues:
        click.echo("PASS No integrity issues found.")
        return

    for issue in sort_by_severity(issues):
        click.echo(f"[{issue.severity.value.upper():<6}] {issue.type.value}: {issue.description}")

    summary = integrity_service.summarize(issues)
    click.echo(f"\n{summary['total']} issue(s): " + ", ".join(
        f"{count} {name}" for name, count in summary["by_severity"].items() if count
    ))


@fulfillment_group.command('auto-fix')
@click.option('--user-id', required=True, help='Acting user recorded as created_by')
@with_appcontext
def auto_fix_cli(user_id):
    """Invoice completed orders that have none."""
    report = integrity_service.auto_fix_integrity_issues(user_id)
    click.echo(f"Fixed: {report.fixed}  Errors: {report.errors}")
    for outcome in report.outcomes:
        if not outcome.ok:
            click.echo(f"FAIL {outcome.item_id}: {outcome.reason}")


@fulfillment_group.command('generate-invoices')
@click.option('--user-id', required=True, help='Acting user recorded as created_by')
@with_appcontext
def generate_invoices_cli(user_id):
    """Create automatic invoices for completed orders without one."""
    result = invoice_service.generate_automatic_invoices(user_id)
    for invoice in result.invoices:
        click.echo(f"PASS {invoice.invoice_number} for order {invoice.order_id}")
    for outcome in result.outcomes:
        if not outcome.ok:
            click.echo(f"FAIL order {outcome.item_id}: {outcome.reason}")
    click.echo(f"Created {result.succeeded}, failed {result.failed}.")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('migrate-statuses')
@with_appcontext
def migrate_statuses_cli():
    """Rewrite legacy order and POD statuses."""
    counts = maintenance_service.migrate_legacy_statuses()
    click.echo(f"Migrated {counts['orders']} orders and {counts['pods']} PODs.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(fulfillment_group)
    app.cli.add_command(maintenance_group)

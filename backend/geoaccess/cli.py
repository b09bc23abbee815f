# Overview: Flask CLI command groups for bootstrap, organization mirror and location inspection.

# backend/geoaccess/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to geoaccess (PowerShell: $env:FLASK_APP="geoaccess").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization mirror:
# - python -m flask orgs list
#   List mirrored organizations with their location policy.
# - python -m flask orgs create --name "Acme Corp" --code "ACME" [--id 7]
#   Register an organization from the directory service.
#
# Location access:
# - python -m flask location summary
#   Per-organization request counts and active zones.
# - python -m flask location requests --org-id 1 [--status pending]
#   List requests for an organization.
# - python -m flask location policy --org-id 1 [--enforce/--no-enforce] [--radius 150] [--role Agent --role QA]
#   Show or update an organization's policy.
# - python -m flask location check --org-id 1 --role Agent --lat 12.9 --lon 77.6
#   Dry-run a login evaluation (no audit row written).

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import GeoAccessError
from .services import geofence_service, location_policy_service, location_request_service, location_summary_service
from .services.tenant_service import list_organizations, register_organization


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready.")


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


# =============================================================================
# ORGANIZATIONS
# =============================================================================

@click.group('orgs')
def orgs_group():
    """Organization mirror commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = list_organizations()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active':<8} {'Enforce':<8} {'Radius'}")
    click.echo("="*80)

    for org in orgs:
        policy = location_policy_service.policy_or_defaults(org.id)
        active_str = "Yes" if org.is_active else "No"
        enforce_str = "Yes" if policy.enforce else "No"

        click.echo(
            f"{org.id:<5} {org.name:<30} {org.code or '-':<15} {active_str:<8} "
            f"{enforce_str:<8} {policy.default_radius_meters}m"
        )

    click.echo("="*80 + "\n")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@click.option('--code', required=True, help='Short code (unique)')
@click.option('--id', 'org_id', type=int, default=None, help='Directory id to mirror')
@with_appcontext
def create_org_cli(name, code, org_id):
    """Register an organization from the directory service."""
    try:
        org = register_organization(name=name, code=code, org_id=org_id)
    except GeoAccessError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Organization: {org.name} (ID: {org.id}, Code: {org.code})")


# =============================================================================
# LOCATION ACCESS
# =============================================================================

@click.group('location')
def location_group():
    """Location access inspection commands."""


@location_group.command('summary')
@with_appcontext
def location_summary():
    """Per-organization location access rollup."""
    rows = location_summary_service.summarize()
    if not rows:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*96)
    click.echo(
        f"{'ID':<5} {'Name':<28} {'Enforce':<8} {'Active':<7} {'Pending':<8} "
        f"{'Approved':<9} {'Stopped':<8} {'Roles'}"
    )
    click.echo("="*96)
    for row in rows:
        click.echo(
            f"{row['org_id']:<5} {(row['name'] or '-'):<28} {('Yes' if row['enforce'] else 'No'):<8} "
            f"{row['active_allowed_count']:<7} {row['pending_count']:<8} {row['approved_count']:<9} "
            f"{row['stopped_count']:<8} {', '.join(row['roles_enforced']) or '-'}"
        )
    click.echo("="*96 + "\n")


@location_group.command('requests')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--status', default=None, help='pending, approved, rejected or stopped')
@with_appcontext
def location_requests(org_id, status):
    """List location requests for an organization, newest first."""
    try:
        requests_ = location_request_service.list_requests(org_id, status=status)
    except GeoAccessError as e:
        click.echo(f"FAIL {e}")
        return

    if not requests_:
        click.echo("No location requests found.")
        return

    for req in requests_:
        flag = " EMERGENCY" if req.emergency else ""
        click.echo(
            f"#{req.id:<5} {req.status:<9} {req.request_type:<10} "
            f"({req.latitude:.5f}, {req.longitude:.5f}) r={req.requested_radius_meters}m"
            f"{flag}  {req.address or ''}"
        )


@location_group.command('policy')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--enforce/--no-enforce', default=None, help='Turn enforcement on or off')
@click.option('--radius', type=int, default=None, help='Default radius in meters')
@click.option('--role', 'roles', multiple=True, help='Restricted role (repeatable)')
@with_appcontext
def location_policy(org_id, enforce, radius, roles):
    """Show or update an organization's location policy."""
    changes = {}
    if enforce is not None:
        changes["enforce"] = enforce
    if radius is not None:
        changes["default_radius_meters"] = radius
    if roles:
        changes["roles"] = list(roles)

    try:
        if changes:
            policy = location_policy_service.update_policy(org_id, actor_id="cli", **changes)
            click.echo("PASS Policy updated")
        else:
            policy = location_policy_service.get_policy(org_id)
    except GeoAccessError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"  enforce: {'Yes' if policy.enforce else 'No'}")
    click.echo(f"  default radius: {policy.default_radius_meters}m")
    click.echo(f"  roles: {', '.join(policy.roles or []) or '-'}")


@location_group.command('check')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--role', required=True, help='Role of the employee logging in')
@click.option('--lat', type=float, default=None, help='Reported latitude')
@click.option('--lon', type=float, default=None, help='Reported longitude')
@with_appcontext
def location_check(org_id, role, lat, lon):
    """Dry-run a login evaluation."""
    try:
        decision = geofence_service.evaluate(org_id, role, lat, lon)
    except GeoAccessError as e:
        click.echo(f"FAIL {e}")
        return

    distance = f" ({decision.distance_meters:.1f}m)" if decision.distance_meters is not None else ""
    click.echo(f"{decision.decision} {decision.reason}{distance}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)
    app.cli.add_command(location_group)

# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/clubcash/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to clubcash (PowerShell: $env:FLASK_APP="clubcash").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Chip types:
# - python -m flask chips seed
#   Create the default denominations when no chip types exist.
# - python -m flask chips list
#   List chip types with their values.
#
# Credit maintenance:
# - python -m flask credit recompute [--player-id 7] [--fix]
#   Compare stored credit balances with unpaid records; --fix repairs drift.
#
# Cash sessions:
# - python -m flask sessions list [--date 2026-03-01] [--open]
#   List cash sessions.
# - python -m flask sessions summary 3
#   Print the reconciliation summary of a session.

import click
from flask.cli import with_appcontext

from .errors import LedgerError
from .extensions import db
from .models import Player
from .money import format_cents
from .services import cash_session_service, chip_service, credit_service, reconciliation_service
from .time_utils import parse_iso_date


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

    click.echo("PASS Database reset complete. Run 'python -m flask chips seed' to add chip types.")


# =============================================================================
# CHIPS
# =============================================================================

@click.group('chips')
def chips_group():
    """Chip type commands."""


@chips_group.command('seed')
@with_appcontext
def seed_chips():
    """Create default chip denominations (idempotent)."""
    created = chip_service.seed_default_chip_types()
    if created:
        click.echo(f"PASS Created {created} chip types")
    else:
        click.echo("SKIP Chip types already exist")


@chips_group.command('list')
@with_appcontext
def list_chips():
    chip_types = chip_service.list_chip_types()
    if not chip_types:
        click.echo("No chip types. Run 'python -m flask chips seed'.")
        return
    for chip_type in chip_types:
        click.echo(f"{chip_type.id:>4}  {chip_type.color:<12} {format_cents(chip_type.value_cents)}")


# =============================================================================
# CREDIT
# =============================================================================

@click.group('credit')
def credit_group():
    """Fiado credit maintenance."""


@credit_group.command('recompute')
@click.option('--player-id', type=int, default=None, help='Only this player')
@click.option('--fix', is_flag=True, help='Write the computed balance back')
@with_appcontext
def recompute_credit(player_id, fix):
    """
    Check credit_balance against the sum of unpaid credit records.

    Exits with status 1 when drift is found and not fixed.
    """
    if player_id is not None:
        player_ids = [player_id]
    else:
        player_ids = [pid for (pid,) in db.session.query(Player.id).order_by(Player.id).all()]

    drift = 0
    for pid in player_ids:
        try:
            stored, computed = credit_service.recompute_credit_balance(pid, fix=fix)
        except LedgerError as e:
            raise click.ClickException(str(e))
        if stored != computed:
            drift += 1
            status = "FIXED" if fix else "DRIFT"
            click.echo(f"{status} player {pid}: stored {format_cents(stored)} computed {format_cents(computed)}")

    if not drift:
        click.echo(f"PASS {len(player_ids)} player balances consistent")
    elif not fix:
        click.echo(f"FAIL {drift} player balances drifted; rerun with --fix")
        raise SystemExit(1)


# =============================================================================
# SESSIONS
# =============================================================================

@click.group('sessions')
def sessions_group():
    """Cash session inspection."""


@sessions_group.command('list')
@click.option('--date', 'date_raw', default=None, help='YYYY-MM-DD')
@click.option('--open', 'open_only', is_flag=True, help='Only open sessions')
@with_appcontext
def list_sessions(date_raw, open_only):
    sessions = cash_session_service.list_sessions(session_date=parse_iso_date(date_raw), open_only=open_only)
    if not sessions:
        click.echo("No cash sessions found")
        return
    for session in sessions:
        state = "OPEN  " if session.is_open else "CLOSED"
        final = format_cents(session.final_balance_cents) if session.final_balance_cents is not None else "-"
        click.echo(f"{session.id:>4}  {session.session_date}  {state}  {session.name:<20} final {final}")


@sessions_group.command('summary')
@click.argument('session_id', type=int)
@with_appcontext
def session_summary(session_id):
    """Print totals, balances and final balance for a session."""
    try:
        summary = reconciliation_service.daily_summary(session_id=session_id)
    except LedgerError as e:
        raise click.ClickException(str(e))

    rows = [
        ("Buy-ins", summary.total_buy_ins),
        ("Cash-outs", summary.total_cash_outs),
        ("Bonus", summary.total_bonuses),
        ("Fiado", summary.total_credits),
        ("Caixinha", summary.total_dealer_tips),
        ("Rake", summary.total_rake),
        ("Dealer payouts", summary.total_dealer_payouts),
        ("Balance", summary.balance),
        ("Real balance", summary.real_balance),
        ("Final balance", summary.final_balance),
    ]
    for label, cents in rows:
        click.echo(f"{label:<16} {format_cents(cents):>16}")
    click.echo(f"{'Transactions':<16} {summary.transaction_count:>16}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(chips_group)
    app.cli.add_command(credit_group)
    app.cli.add_command(sessions_group)

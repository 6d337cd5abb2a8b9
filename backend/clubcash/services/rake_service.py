# Overview: Service-layer operations for rake (house commission).

from __future__ import annotations

from flask import current_app

from ..errors import NotFound
from ..extensions import db
from ..models import PokerTable, RakeEntry
from ..money import format_cents, require_positive_cents
from ..time_utils import utcnow
from .cash_session_service import require_open_session
from .concurrency import run_with_retry


def add_rake(table_id: int, amount_cents: int, notes: str | None = None) -> RakeEntry:
    """Record rake collected at a table; the entry inherits the table's session."""
    require_positive_cents(amount_cents)

    def _op():
        table = db.session.get(PokerTable, table_id)
        if not table:
            raise NotFound(f"Table {table_id} not found")
        if table.session_id is not None:
            require_open_session(table.session_id)

        entry = RakeEntry(
            table_id=table.id,
            session_id=table.session_id,
            amount_cents=amount_cents,
            notes=notes,
            created_at=utcnow(),
        )
        db.session.add(entry)
        db.session.commit()

        current_app.logger.info("Rake of %s at table %s", format_cents(amount_cents), table.id)
        return entry

    return run_with_retry(_op)


def list_rake(session_id: int | None = None, table_id: int | None = None) -> list[RakeEntry]:
    query = db.session.query(RakeEntry)
    if session_id is not None:
        query = query.filter_by(session_id=session_id)
    if table_id is not None:
        query = query.filter_by(table_id=table_id)
    return query.order_by(RakeEntry.created_at.desc(), RakeEntry.id.desc()).all()


def rake_by_table(session_id: int) -> list[dict]:
    """Rake totals per table for a session, largest first."""
    rows = (
        db.session.query(PokerTable.id, PokerTable.name, db.func.sum(RakeEntry.amount_cents))
        .join(RakeEntry, RakeEntry.table_id == PokerTable.id)
        .filter(RakeEntry.session_id == session_id)
        .group_by(PokerTable.id, PokerTable.name)
        .all()
    )
    totals = [
        {"table_id": table_id, "table_name": name, "total_cents": int(total or 0)}
        for table_id, name, total in rows
    ]
    return sorted(totals, key=lambda r: r["total_cents"], reverse=True)

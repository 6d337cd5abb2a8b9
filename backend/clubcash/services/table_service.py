# Overview: Service-layer operations for poker tables; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import BuyIn, CashOut, DealerTip, PokerTable
from . import audit_service
from .cash_session_service import require_open_session
from .concurrency import lock_for_update, run_with_retry
from .credit_service import reverse_credit_from_deleted_buy_in
from .table_tracker import ActiveSession, ActiveSessionTracker, TableEvent, fold_events


def get_table(table_id: int) -> PokerTable:
    table = db.session.get(PokerTable, table_id)
    if not table:
        raise NotFound(f"Table {table_id} not found")
    return table


def list_tables(session_id: int | None = None, active_only: bool = False) -> list[PokerTable]:
    query = db.session.query(PokerTable)
    if session_id is not None:
        query = query.filter_by(session_id=session_id)
    if active_only:
        query = query.filter_by(is_active=True)
    return query.order_by(PokerTable.created_at.desc(), PokerTable.id.desc()).all()


def create_table(name: str, session_id: int | None = None) -> PokerTable:
    """
    Create an active table in an open session.

    session_id may be omitted before any session exists for the day; the
    next session opened that day adopts the table.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Table name is required")

    def _op():
        if session_id is not None:
            require_open_session(session_id)
        table = PokerTable(name=name, session_id=session_id, is_active=True)
        db.session.add(table)
        db.session.commit()
        return table

    return run_with_retry(_op)


def set_table_active(table_id: int, is_active: bool) -> PokerTable:
    """Toggle a table. Reactivation requires its session to be open."""
    def _op():
        table = lock_for_update(db.session.query(PokerTable).filter_by(id=table_id)).first()
        if not table:
            raise NotFound(f"Table {table_id} not found")
        if is_active and table.session_id is not None:
            require_open_session(table.session_id)
        table.is_active = bool(is_active)
        db.session.commit()
        return table

    return run_with_retry(_op)


def delete_table(table_id: int) -> None:
    """
    Permanently delete a table with its buy-ins, cash-outs and rake.

    IRREVERSIBLE. Fiado buy-ins go through the credit reversal first so
    player balances stay equal to their unpaid debt.
    """
    def _op():
        table = lock_for_update(db.session.query(PokerTable).filter_by(id=table_id)).first()
        if not table:
            raise NotFound(f"Table {table_id} not found")

        reversed_credits = 0
        for buy_in in list(table.buy_ins):
            if buy_in.credit_record is not None:
                reverse_credit_from_deleted_buy_in(buy_in.id)
                reversed_credits += 1

        db.session.query(DealerTip).filter_by(table_id=table.id).update(
            {DealerTip.table_id: None}, synchronize_session="fetch"
        )

        audit_service.append_audit_event(
            audit_service.EVENT_TABLE_DELETED,
            f"Mesa '{table.name}' excluída",
            {
                "table_id": table.id,
                "name": table.name,
                "session_id": table.session_id,
                "buy_ins": len(table.buy_ins),
                "cash_outs": len(table.cash_outs),
                "rake_entries": len(table.rake_entries),
                "credits_reversed": reversed_credits,
            },
        )
        db.session.delete(table)
        db.session.commit()

        current_app.logger.info("Deleted table %s (%d fiado credits reversed)", table_id, reversed_credits)

    return run_with_retry(_op)


# =============================================================================
# ACTIVE SESSIONS (read side, no locks)
# =============================================================================

def table_events(table_id: int, player_id: int | None = None) -> list[TableEvent]:
    buy_query = db.session.query(BuyIn).filter_by(table_id=table_id)
    out_query = db.session.query(CashOut).filter_by(table_id=table_id)
    if player_id is not None:
        buy_query = buy_query.filter_by(player_id=player_id)
        out_query = out_query.filter_by(player_id=player_id)

    events = [
        TableEvent(
            kind="buy_in",
            player_id=b.player_id,
            amount_cents=b.amount_cents,
            occurred_at=b.created_at,
            seq=b.id,
            player_name=b.player.name if b.player else "",
        )
        for b in buy_query.all()
    ]
    events.extend(
        TableEvent(
            kind="cash_out",
            player_id=c.player_id,
            amount_cents=c.total_buy_in_cents,
            occurred_at=c.created_at,
            seq=c.id,
        )
        for c in out_query.all()
    )
    return events


def build_tracker(table_id: int, player_id: int | None = None) -> ActiveSessionTracker:
    return fold_events(table_id, table_events(table_id, player_id))


def active_sessions_for_table(table_id: int) -> list[ActiveSession]:
    """
    Players with chips in play at a table, recomputed from the full log.

    Idempotent and lock-free; safe to call as often as the UI likes.
    """
    get_table(table_id)
    return build_tracker(table_id).sessions()


def player_session_total(table_id: int, player_id: int) -> int:
    """Net buy-in the player still has at the table (0 if not seated)."""
    return build_tracker(table_id, player_id).net_for(player_id)


def table_total(table_id: int) -> int:
    """Buy-ins minus chip value paid out at a table."""
    buy_ins = db.session.query(db.func.coalesce(db.func.sum(BuyIn.amount_cents), 0)).filter(
        BuyIn.table_id == table_id
    ).scalar()
    cash_outs = db.session.query(db.func.coalesce(db.func.sum(CashOut.chip_value_cents), 0)).filter(
        CashOut.table_id == table_id
    ).scalar()
    return int(buy_ins) - int(cash_outs)

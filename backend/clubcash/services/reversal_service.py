# Overview: Deletion of recorded transactions with compensation, and undo from the audit trail.

"""
Reversal Engine

WHY: Operators mistype. A wrong buy-in, cash-out, tip or rake entry must be
removable without leaving derived balances wrong, and a mistaken removal
must be recoverable.

DESIGN PRINCIPLES:
- Deletes are hard deletes with explicit compensation, not offsetting
  entries; snapshot, compensation and delete commit together
- Every delete writes a *_cancelled audit entry holding everything needed
  to re-insert the row
- Undo re-inserts through the same rules as a fresh record (closed session,
  credit limit) and consumes its audit entry
- A fiado debt with receipts is never re-created: deleting its buy-in
  detaches the record (voiding it if still unpaid) and undoing it re-links
  the same record with its receipts
"""

from __future__ import annotations

from flask import current_app

from ..errors import IncompleteSnapshot, NotFound, NotUndoable
from ..extensions import db
from ..models import AuditLog, BuyIn, CancelledBuyIn, CashOut, DealerTip, PokerTable, RakeEntry
from ..money import format_cents
from ..payment_methods import CREDIT_FIADO
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from . import audit_service
from .cash_session_service import require_open_session
from .concurrency import lock_for_update, run_with_retry
from .credit_service import grant_credit, relink_detached_record, reverse_credit_from_deleted_buy_in
from .dealer_service import lock_dealer, remove_tip_from_total
from .player_service import lock_player


# Fields an audit snapshot must carry for the row to be re-inserted
REQUIRED_SNAPSHOT_FIELDS = {
    audit_service.EVENT_BUY_IN_CANCELLED: ["table_id", "player_id", "amount_cents", "payment_method"],
    audit_service.EVENT_CASH_OUT_CANCELLED: [
        "table_id", "player_id", "chip_value_cents", "total_buy_in_cents", "payment_method",
    ],
    audit_service.EVENT_DEALER_TIP_CANCELLED: ["dealer_id", "amount_cents"],
    audit_service.EVENT_RAKE_CANCELLED: ["table_id", "amount_cents"],
}


def _lock_row(model, row_id: int, label: str):
    row = lock_for_update(db.session.query(model).filter_by(id=row_id)).first()
    if not row:
        raise NotFound(f"{label} {row_id} not found")
    return row


# =============================================================================
# DELETES
# =============================================================================

def delete_buy_in(buy_in_id: int) -> dict:
    """
    Delete a buy-in, reversing its fiado credit if it has one.

    Unpaid credit: the player's balance drops by what is still owed.
    Paid or partially paid credit: the record and its receipts survive.

    Returns:
        The audit snapshot that was written
    """
    def _op():
        buy_in = _lock_row(BuyIn, buy_in_id, "Buy-in")
        player = lock_player(buy_in.player_id)
        table = db.session.get(PokerTable, buy_in.table_id)

        snapshot = {
            "buy_in_id": buy_in.id,
            "table_id": buy_in.table_id,
            "table_name": table.name if table else None,
            "player_id": player.id,
            "player_name": player.name,
            "session_id": buy_in.session_id,
            "amount_cents": buy_in.amount_cents,
            "payment_method": buy_in.payment_method,
            "is_bonus": buy_in.is_bonus,
            "created_at": to_utc_z(buy_in.created_at),
        }

        record = buy_in.credit_record
        if record is not None:
            snapshot["credit_record_id"] = record.id
            snapshot["credit_was_paid"] = record.is_paid
            snapshot["credit_paid_cents"] = record.paid_cents
            snapshot["credit_remaining_cents"] = record.remaining_cents
            reverse_credit_from_deleted_buy_in(buy_in.id)

        db.session.add(CancelledBuyIn(
            original_buy_in_id=buy_in.id,
            player_id=player.id,
            player_name=player.name,
            table_id=buy_in.table_id,
            table_name=table.name if table else None,
            session_id=buy_in.session_id,
            amount_cents=buy_in.amount_cents,
            payment_method=buy_in.payment_method,
            cancelled_at=utcnow(),
        ))
        audit_service.append_audit_event(
            audit_service.EVENT_BUY_IN_CANCELLED,
            f"Buy-in de {format_cents(buy_in.amount_cents)} ({buy_in.payment_method}) de {player.name} excluído",
            snapshot,
        )
        db.session.delete(buy_in)
        db.session.commit()

        current_app.logger.info("Deleted buy-in %s (player %s, %s)", buy_in_id, player.id, buy_in.payment_method)
        return snapshot

    return run_with_retry(_op)


def delete_cash_out(cash_out_id: int) -> dict:
    """Delete a cash-out. Nothing derived to compensate; the player is seated again."""
    def _op():
        cash_out = _lock_row(CashOut, cash_out_id, "Cash-out")
        snapshot = {
            "cash_out_id": cash_out.id,
            "table_id": cash_out.table_id,
            "player_id": cash_out.player_id,
            "player_name": cash_out.player.name if cash_out.player else None,
            "session_id": cash_out.session_id,
            "chip_value_cents": cash_out.chip_value_cents,
            "total_buy_in_cents": cash_out.total_buy_in_cents,
            "profit_cents": cash_out.profit_cents,
            "payment_method": cash_out.payment_method,
            "created_at": to_utc_z(cash_out.created_at),
        }
        audit_service.append_audit_event(
            audit_service.EVENT_CASH_OUT_CANCELLED,
            f"Cash-out de {format_cents(cash_out.chip_value_cents)} de {snapshot['player_name']} excluído",
            snapshot,
        )
        db.session.delete(cash_out)
        db.session.commit()
        return snapshot

    return run_with_retry(_op)


def delete_tip(tip_id: int) -> dict:
    """Delete a dealer tip and take it off the dealer's cumulative total."""
    def _op():
        tip = _lock_row(DealerTip, tip_id, "Dealer tip")
        snapshot = {
            "tip_id": tip.id,
            "dealer_id": tip.dealer_id,
            "dealer_name": tip.dealer.name if tip.dealer else None,
            "session_id": tip.session_id,
            "table_id": tip.table_id,
            "amount_cents": tip.amount_cents,
            "notes": tip.notes,
            "created_at": to_utc_z(tip.created_at),
        }
        remove_tip_from_total(tip)
        audit_service.append_audit_event(
            audit_service.EVENT_DEALER_TIP_CANCELLED,
            f"Caixinha de {format_cents(tip.amount_cents)} para {snapshot['dealer_name']} excluída",
            snapshot,
        )
        db.session.delete(tip)
        db.session.commit()
        return snapshot

    return run_with_retry(_op)


def delete_rake(rake_id: int) -> dict:
    def _op():
        entry = _lock_row(RakeEntry, rake_id, "Rake entry")
        snapshot = {
            "rake_id": entry.id,
            "table_id": entry.table_id,
            "table_name": entry.table.name if entry.table else None,
            "session_id": entry.session_id,
            "amount_cents": entry.amount_cents,
            "notes": entry.notes,
            "created_at": to_utc_z(entry.created_at),
        }
        audit_service.append_audit_event(
            audit_service.EVENT_RAKE_CANCELLED,
            f"Rake de {format_cents(entry.amount_cents)} excluído",
            snapshot,
        )
        db.session.delete(entry)
        db.session.commit()
        return snapshot

    return run_with_retry(_op)


# =============================================================================
# UNDO
# =============================================================================

def _check_snapshot(entry: AuditLog) -> dict:
    if entry.event_type not in audit_service.UNDOABLE_EVENT_TYPES:
        raise NotUndoable(f"Audit entry {entry.id} ({entry.event_type}) cannot be undone")

    snapshot = entry.snapshot or {}
    missing = [f for f in REQUIRED_SNAPSHOT_FIELDS[entry.event_type] if snapshot.get(f) is None]
    if missing:
        raise IncompleteSnapshot(f"Audit entry {entry.id} is missing {', '.join(missing)}")
    return snapshot


def _restore_table(snapshot: dict) -> PokerTable:
    table = db.session.get(PokerTable, snapshot["table_id"])
    if not table:
        raise NotFound(f"Table {snapshot['table_id']} no longer exists")
    return table


def _check_session(session_id: int | None) -> None:
    if session_id is not None:
        require_open_session(session_id)


def _original_time(snapshot: dict):
    # Re-inserted rows keep their place in the table's timeline
    return parse_iso_datetime(snapshot.get("created_at")) or utcnow()


def _undo_buy_in(snapshot: dict):
    table = _restore_table(snapshot)
    _check_session(snapshot.get("session_id"))
    player = lock_player(snapshot["player_id"])

    buy_in = BuyIn(
        table_id=table.id,
        player_id=player.id,
        session_id=snapshot.get("session_id"),
        amount_cents=snapshot["amount_cents"],
        payment_method=snapshot["payment_method"],
        is_bonus=bool(snapshot.get("is_bonus")),
        created_at=_original_time(snapshot),
    )
    db.session.add(buy_in)
    db.session.flush()

    if buy_in.payment_method == CREDIT_FIADO:
        relinked = None
        if snapshot.get("credit_record_id"):
            relinked = relink_detached_record(snapshot["credit_record_id"], buy_in)
        if relinked is None:
            grant_credit(player.id, buy_in.amount_cents, buy_in=buy_in, notes="Buy-in restaurado", commit=False)

    if snapshot.get("buy_in_id") is not None:
        db.session.query(CancelledBuyIn).filter_by(original_buy_in_id=snapshot["buy_in_id"]).delete(
            synchronize_session="fetch"
        )
    return buy_in


def _undo_cash_out(snapshot: dict):
    table = _restore_table(snapshot)
    _check_session(snapshot.get("session_id"))
    chip_value = snapshot["chip_value_cents"]
    total_buy_in = snapshot["total_buy_in_cents"]

    cash_out = CashOut(
        table_id=table.id,
        player_id=lock_player(snapshot["player_id"]).id,
        session_id=snapshot.get("session_id"),
        chip_value_cents=chip_value,
        total_buy_in_cents=total_buy_in,
        profit_cents=snapshot.get("profit_cents", chip_value - total_buy_in),
        payment_method=snapshot["payment_method"],
        created_at=_original_time(snapshot),
    )
    db.session.add(cash_out)
    return cash_out


def _undo_tip(snapshot: dict):
    _check_session(snapshot.get("session_id"))
    dealer = lock_dealer(snapshot["dealer_id"])
    table_id = snapshot.get("table_id")
    if table_id is not None and not db.session.get(PokerTable, table_id):
        table_id = None

    tip = DealerTip(
        dealer_id=dealer.id,
        session_id=snapshot.get("session_id"),
        table_id=table_id,
        amount_cents=snapshot["amount_cents"],
        notes=snapshot.get("notes"),
        created_at=_original_time(snapshot),
    )
    db.session.add(tip)
    dealer.total_tips_cents += tip.amount_cents
    return tip


def _undo_rake(snapshot: dict):
    table = _restore_table(snapshot)
    _check_session(snapshot.get("session_id"))
    entry = RakeEntry(
        table_id=table.id,
        session_id=snapshot.get("session_id"),
        amount_cents=snapshot["amount_cents"],
        notes=snapshot.get("notes"),
        created_at=_original_time(snapshot),
    )
    db.session.add(entry)
    return entry


_UNDO_HANDLERS = {
    audit_service.EVENT_BUY_IN_CANCELLED: _undo_buy_in,
    audit_service.EVENT_CASH_OUT_CANCELLED: _undo_cash_out,
    audit_service.EVENT_DEALER_TIP_CANCELLED: _undo_tip,
    audit_service.EVENT_RAKE_CANCELLED: _undo_rake,
}


def undo_from_audit_log(log_id: int):
    """
    Re-insert a deleted row from its audit snapshot.

    The audit entry is consumed: a second undo of the same entry fails
    with NotFound.

    Raises:
        NotFound: log entry (or the table/player it refers to) missing
        NotUndoable: event type is not a *_cancelled deletion
        IncompleteSnapshot: snapshot lacks fields needed to re-insert
        SessionClosed: the original session has been closed since
        LimitExceeded: restoring an unpaid fiado buy-in would breach the limit

    Returns:
        The re-inserted model instance
    """
    def _op():
        entry = _lock_row(AuditLog, log_id, "Audit log entry")
        snapshot = _check_snapshot(entry)

        restored = _UNDO_HANDLERS[entry.event_type](snapshot)
        db.session.flush()

        audit_service.append_audit_event(
            audit_service.EVENT_UNDO,
            f"Desfeito: {entry.description}",
            {"undone_event_type": entry.event_type, "undone_log_id": entry.id, "restored_id": restored.id},
        )
        db.session.delete(entry)
        db.session.commit()

        current_app.logger.info("Undid audit entry %s (%s) -> id %s", log_id, entry.event_type, restored.id)
        return restored

    return run_with_retry(_op)

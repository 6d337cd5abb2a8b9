# Overview: Service-layer operations for cash sessions; encapsulates business logic and database work.

"""
Cash Session Lifecycle

WHY: Each cash drawer period is reconciled on its own. Several drawers may
run on the same date.

DESIGN PRINCIPLES:
- Open sessions receive transactions; closed sessions reject them
- Close deactivates the session's tables and freezes final_balance_cents
  in one commit
- Reopen clears closed_at only; the frozen balance is recomputed on the
  next close, and tables stay inactive
- Open adopts same-day records that have no session (one-time backfill)
"""

from __future__ import annotations

from datetime import date

from flask import current_app

from ..errors import NoSessionFound, SessionClosed, ValidationError
from ..extensions import db
from ..models import (
    BuyIn, CancelledBuyIn, CashOut, CashSession, DealerPayout, DealerTip, PaymentReceipt, PokerTable, RakeEntry,
)
from ..money import format_cents
from ..time_utils import day_bounds, utcnow
from . import audit_service
from .chip_service import normalize_inventory, total_value, list_chip_types
from .concurrency import lock_for_update, run_with_retry
from .credit_service import reverse_credit_from_deleted_buy_in


# Record types adopted by a newly opened session
ORPHAN_MODELS = [PokerTable, BuyIn, CashOut, RakeEntry, DealerTip, DealerPayout, PaymentReceipt]


def get_session(session_id: int) -> CashSession:
    session = db.session.get(CashSession, session_id)
    if not session:
        raise NoSessionFound(f"Cash session {session_id} not found")
    return session


def require_open_session(session_id: int) -> CashSession:
    """Raise unless the session exists and is open."""
    session = get_session(session_id)
    if not session.is_open:
        raise SessionClosed(f"Cash session '{session.name}' is closed")
    return session


def list_sessions(session_date: date | None = None, open_only: bool = False) -> list[CashSession]:
    query = db.session.query(CashSession)
    if session_date is not None:
        query = query.filter_by(session_date=session_date)
    if open_only:
        query = query.filter_by(is_open=True)
    return query.order_by(CashSession.session_date.desc(), CashSession.created_at.desc()).all()


def _adopt_orphans(session: CashSession) -> dict[str, int]:
    start, end = day_bounds(session.session_date)
    adopted = {}
    for model in ORPHAN_MODELS:
        count = db.session.query(model).filter(
            model.session_id.is_(None),
            model.created_at >= start,
            model.created_at < end,
        ).update({model.session_id: session.id}, synchronize_session="fetch")
        if count:
            adopted[model.__tablename__] = count
    return adopted


def open_session(
    name: str,
    responsible: str | None = None,
    session_date: date | None = None,
    initial_chip_inventory: dict | None = None,
) -> CashSession:
    """
    Open a new cash session.

    Multiple sessions per date are allowed. Records from that date created
    with no session are attached to this one.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Session name is required")

    def _op():
        session = CashSession(
            name=name,
            responsible=(responsible or "").strip() or None,
            session_date=session_date or utcnow().date(),
            is_open=True,
            initial_chip_inventory=normalize_inventory(initial_chip_inventory) if initial_chip_inventory else None,
            created_at=utcnow(),
        )
        db.session.add(session)
        db.session.flush()

        adopted = _adopt_orphans(session)
        db.session.commit()

        if adopted:
            current_app.logger.info("Session %s adopted orphan records: %s", session.id, adopted)
        return session

    return run_with_retry(_op)


def update_initial_inventory(session_id: int, inventory: dict) -> CashSession:
    def _op():
        session = lock_for_update(db.session.query(CashSession).filter_by(id=session_id)).first()
        if not session:
            raise NoSessionFound(f"Cash session {session_id} not found")
        session.initial_chip_inventory = normalize_inventory(inventory)
        db.session.commit()
        return session

    return run_with_retry(_op)


def close_session(
    session_id: int,
    final_chip_inventory: dict | None = None,
    notes: str | None = None,
) -> CashSession:
    """
    Close a session and freeze its final balance.

    Tables are deactivated in the same transaction; if anything fails the
    session stays open.

    Raises:
        NoSessionFound: invalid session id
        SessionClosed: session already closed
    """
    from .reconciliation_service import daily_summary

    def _op():
        session = lock_for_update(db.session.query(CashSession).filter_by(id=session_id)).first()
        if not session:
            raise NoSessionFound(f"Cash session {session_id} not found")
        if not session.is_open:
            raise SessionClosed(f"Cash session '{session.name}' is already closed")

        summary = daily_summary(session_id=session.id)

        deactivated = db.session.query(PokerTable).filter_by(
            session_id=session.id, is_active=True
        ).update({PokerTable.is_active: False}, synchronize_session="fetch")
        db.session.flush()

        inventory = normalize_inventory(final_chip_inventory) if final_chip_inventory else None
        session.is_open = False
        session.closed_at = utcnow()
        session.final_chip_inventory = inventory
        session.final_chip_value_cents = total_value(inventory, list_chip_types()) if inventory else None
        session.final_balance_cents = summary.final_balance
        session.notes = notes

        audit_service.append_audit_event(
            audit_service.EVENT_SESSION_CLOSED,
            f"Caixa '{session.name}' fechado: saldo final {format_cents(summary.final_balance)}",
            {
                "session_id": session.id,
                "final_balance_cents": summary.final_balance,
                "tables_deactivated": deactivated,
                "summary": summary.to_dict(),
            },
        )
        db.session.commit()

        current_app.logger.info(
            "Closed cash session %s (final balance %s, %d tables deactivated)",
            session.id, summary.final_balance, deactivated,
        )
        return session

    return run_with_retry(_op)


def reopen_session(session_id: int) -> CashSession:
    """
    Reopen a closed session for corrections.

    final_balance_cents keeps the value frozen at the last close.
    """
    def _op():
        session = lock_for_update(db.session.query(CashSession).filter_by(id=session_id)).first()
        if not session:
            raise NoSessionFound(f"Cash session {session_id} not found")
        if session.is_open:
            raise ValidationError(f"Cash session '{session.name}' is already open")

        session.is_open = True
        session.closed_at = None

        audit_service.append_audit_event(
            audit_service.EVENT_SESSION_REOPENED,
            f"Caixa '{session.name}' reaberto",
            {"session_id": session.id, "frozen_final_balance_cents": session.final_balance_cents},
        )
        db.session.commit()

        current_app.logger.info("Reopened cash session %s", session.id)
        return session

    return run_with_retry(_op)


def delete_session(session_id: int) -> None:
    """
    Delete a session and everything it owns.

    Fiado buy-ins are reversed first so player balances stay consistent;
    tips are taken off their dealers' totals. Payment receipts are kept
    (they settled real debt) and only lose their session link.
    """
    from .dealer_service import remove_tip_from_total

    def _op():
        session = lock_for_update(db.session.query(CashSession).filter_by(id=session_id)).first()
        if not session:
            raise NoSessionFound(f"Cash session {session_id} not found")

        buy_ins = db.session.query(BuyIn).filter(
            (BuyIn.session_id == session.id)
            | BuyIn.table_id.in_(db.session.query(PokerTable.id).filter_by(session_id=session.id))
        ).all()
        for buy_in in buy_ins:
            if buy_in.credit_record is not None:
                reverse_credit_from_deleted_buy_in(buy_in.id)
            db.session.delete(buy_in)

        for model in (CashOut, RakeEntry, DealerPayout):
            for row in db.session.query(model).filter_by(session_id=session.id).all():
                db.session.delete(row)

        for tip in db.session.query(DealerTip).filter_by(session_id=session.id).all():
            remove_tip_from_total(tip)
            db.session.delete(tip)

        db.session.query(PaymentReceipt).filter_by(session_id=session.id).update(
            {PaymentReceipt.session_id: None}, synchronize_session="fetch"
        )
        db.session.query(CancelledBuyIn).filter_by(session_id=session.id).update(
            {CancelledBuyIn.session_id: None}, synchronize_session="fetch"
        )

        audit_service.append_audit_event(
            audit_service.EVENT_SESSION_DELETED,
            f"Caixa '{session.name}' excluído",
            {
                "session_id": session.id,
                "name": session.name,
                "session_date": session.session_date.isoformat(),
                "buy_ins_deleted": len(buy_ins),
            },
        )
        db.session.delete(session)
        db.session.commit()

        current_app.logger.info("Deleted cash session %s (%d buy-ins)", session_id, len(buy_ins))

    return run_with_retry(_op)

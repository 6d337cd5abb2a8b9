# Overview: Service-layer operations for fiado credit; encapsulates business logic and database work.

"""
Credit Ledger

WHY: Players buy chips on credit (fiado) up to a limit and settle later,
often in several partial payments spread over many debts.

INVARIANTS:
- player.credit_balance_cents == sum(remaining of unpaid CreditRecords)
- The balance is only changed here, in the same transaction as the
  record/receipt that justifies it, on a row read with FOR UPDATE.
- Grants are validated against the committed balance and never clamped.
- Payments are pre-split into slices that each fit a single record's
  remaining amount (see allocate_fifo); a receipt never overpays.
"""

from __future__ import annotations

from flask import current_app

from ..credit_state import Paid, allocate_fifo, apply_payment
from ..errors import LimitExceeded, NotFound, OverpaymentRejected
from ..extensions import db
from ..models import BuyIn, CashSession, CreditRecord, PaymentReceipt, Player
from ..money import format_cents, require_positive_cents
from ..payment_methods import DEBT_PAYMENT_METHODS, validate_method
from ..time_utils import utcnow
from . import audit_service
from .concurrency import lock_for_update, run_with_retry
from .player_service import lock_player


# =============================================================================
# GRANTS
# =============================================================================

def grant_credit(
    player_id: int,
    amount_cents: int,
    buy_in: BuyIn | None = None,
    notes: str | None = None,
    *,
    commit: bool = True,
) -> CreditRecord:
    """
    Extend fiado to a player.

    Args:
        player_id: Player receiving credit
        amount_cents: Amount of the new debt
        buy_in: Originating buy-in (the two commit together)
        commit: False when called inside a larger unit of work

    Raises:
        LimitExceeded: balance + amount would exceed credit_limit
    """
    require_positive_cents(amount_cents)

    def _op():
        player = lock_player(player_id)

        new_balance = player.credit_balance_cents + amount_cents
        if new_balance > player.credit_limit_cents:
            raise LimitExceeded(
                f"Credit of {format_cents(amount_cents)} would bring {player.name} to "
                f"{format_cents(new_balance)}, over the limit of {format_cents(player.credit_limit_cents)}"
            )

        record = CreditRecord(
            player_id=player.id,
            buy_in=buy_in,
            amount_cents=amount_cents,
            is_paid=False,
            notes=notes,
            created_at=utcnow(),
        )
        db.session.add(record)
        player.credit_balance_cents = new_balance
        db.session.flush()

        if commit:
            db.session.commit()
        return record

    if not commit:
        return _op()
    return run_with_retry(_op)


# =============================================================================
# PAYMENTS
# =============================================================================

def _validate_receipt_session(session_id: int | None) -> None:
    if session_id is not None and not db.session.get(CashSession, session_id):
        raise NotFound(f"Cash session {session_id} not found")


def _apply_receipt(
    record: CreditRecord,
    player: Player,
    amount_cents: int,
    payment_method: str,
    session_id: int | None,
) -> PaymentReceipt:
    now = utcnow()
    new_state = apply_payment(record.state, amount_cents, now)

    receipt = PaymentReceipt(
        credit_record=record,
        player_id=player.id,
        session_id=session_id,
        amount_cents=amount_cents,
        payment_method=payment_method,
        created_at=now,
    )
    db.session.add(receipt)

    player.credit_balance_cents -= amount_cents
    if isinstance(new_state, Paid):
        record.is_paid = True
        record.paid_at = new_state.paid_at

    db.session.flush()
    return receipt


def _log_payment(player: Player, receipts: list[PaymentReceipt], payment_method: str, session_id: int | None) -> None:
    total = sum(r.amount_cents for r in receipts)
    audit_service.append_audit_event(
        audit_service.EVENT_CREDIT_PAYMENT,
        f"Pagamento de fiado de {format_cents(total)} ({payment_method}) de {player.name}",
        {
            "player_id": player.id,
            "amount_cents": total,
            "payment_method": payment_method,
            "session_id": session_id,
            "receipt_ids": [r.id for r in receipts],
            "credit_record_ids": [r.credit_record_id for r in receipts],
        },
    )


def receive_payment(
    credit_record_id: int,
    amount_cents: int,
    payment_method: str,
    session_id: int | None = None,
    *,
    commit: bool = True,
) -> PaymentReceipt:
    """
    Apply one payment to one credit record.

    amount_cents must fit the record's remaining amount; the record becomes
    paid once receipts cover it.

    Raises:
        NotFound: record or session missing
        OverpaymentRejected: amount > remaining, or record already paid
    """
    validate_method(payment_method, DEBT_PAYMENT_METHODS, "debt payment")
    require_positive_cents(amount_cents)

    def _op():
        _validate_receipt_session(session_id)
        record = lock_for_update(db.session.query(CreditRecord).filter_by(id=credit_record_id)).first()
        if not record:
            raise NotFound(f"Credit record {credit_record_id} not found")
        if record.is_voided:
            raise OverpaymentRejected(f"Credit record {credit_record_id} was reversed; nothing is owed")

        player = lock_player(record.player_id)
        receipt = _apply_receipt(record, player, amount_cents, payment_method, session_id)
        _log_payment(player, [receipt], payment_method, session_id)

        if commit:
            db.session.commit()
        return receipt

    if not commit:
        return _op()
    return run_with_retry(_op)


def pay_across_records(
    player_id: int,
    total_cents: int,
    payment_method: str,
    session_id: int | None = None,
    *,
    commit: bool = True,
) -> list[PaymentReceipt]:
    """
    Settle a player's debts oldest-first with one payment.

    The total is split into per-record slices; the last touched record may
    be left partially paid. Nothing above the outstanding debt is banked.

    Raises:
        ExcessPayment: total exceeds the sum of remaining debt
    """
    validate_method(payment_method, DEBT_PAYMENT_METHODS, "debt payment")
    require_positive_cents(total_cents)

    def _op():
        _validate_receipt_session(session_id)
        player = lock_player(player_id)
        records = _unpaid_records_fifo(player.id, lock=True)

        slices = allocate_fifo([r.remaining_cents for r in records], total_cents)

        receipts = []
        for record, amount in zip(records, slices):
            if amount == 0:
                break
            receipts.append(_apply_receipt(record, player, amount, payment_method, session_id))
        _log_payment(player, receipts, payment_method, session_id)

        if commit:
            db.session.commit()
        return receipts

    if not commit:
        return _op()
    return run_with_retry(_op)


# =============================================================================
# REVERSAL
# =============================================================================

def reverse_credit_from_deleted_buy_in(buy_in_id: int) -> CreditRecord | None:
    """
    Undo the credit effect of a fiado buy-in that is about to be deleted.

    - Unpaid record, no receipts: balance drops by the amount, record removed.
    - Unpaid record with partial receipts: balance drops by what is still
      owed; the record is voided and detached so its receipts survive.
    - Paid record: no balance change. The record is detached from the
      buy-in so the delete does not take the settled debt with it.

    Flushes only; the caller deletes the buy-in and commits.
    """
    record = lock_for_update(db.session.query(CreditRecord).filter_by(buy_in_id=buy_in_id)).first()
    if not record:
        return None

    player = lock_player(record.player_id)
    remaining = record.remaining_cents

    if record.is_paid:
        action = "detached"
    else:
        player.credit_balance_cents -= remaining
        if player.credit_balance_cents < 0:
            current_app.logger.warning(
                "Credit balance of player %s went negative (%s) reversing buy-in %s; run credit recompute",
                player.id, player.credit_balance_cents, buy_in_id,
            )
        action = "voided" if record.receipts else "deleted"

    audit_service.append_audit_event(
        audit_service.EVENT_CREDIT_REVERSED,
        f"Fiado de {format_cents(record.amount_cents)} de {player.name} estornado ({action})",
        {
            "credit_record_id": record.id,
            "buy_in_id": buy_in_id,
            "player_id": player.id,
            "amount_cents": record.amount_cents,
            "paid_cents": record.paid_cents,
            "reversed_cents": remaining,
            "action": action,
        },
    )

    record.buy_in = None
    if action == "voided":
        record.voided_at = utcnow()
    elif action == "deleted":
        db.session.delete(record)
    db.session.flush()
    return record


def relink_detached_record(credit_record_id: int, buy_in: BuyIn) -> CreditRecord | None:
    """
    Re-attach a record detached by reverse_credit_from_deleted_buy_in to a
    re-inserted buy-in (undo path).

    A voided record owes its remaining amount again, so the grant rules
    apply to it.

    Returns:
        The record, or None when there is nothing to re-link

    Raises:
        LimitExceeded: restoring the remaining debt would breach the limit
    """
    record = db.session.get(CreditRecord, credit_record_id)
    if not record or record.buy_in_id is not None:
        return None
    if not record.is_paid and not record.is_voided:
        return None

    if record.is_voided:
        player = lock_player(record.player_id)
        owed = record.amount_cents - record.paid_cents
        new_balance = player.credit_balance_cents + owed
        if new_balance > player.credit_limit_cents:
            raise LimitExceeded(
                f"Restoring {format_cents(owed)} of fiado would bring {player.name} to "
                f"{format_cents(new_balance)}, over the limit of {format_cents(player.credit_limit_cents)}"
            )
        player.credit_balance_cents = new_balance
        record.voided_at = None

    record.buy_in = buy_in
    db.session.flush()
    return record


# =============================================================================
# QUERIES / REPAIR
# =============================================================================

def _unpaid_records_fifo(player_id: int, lock: bool = False) -> list[CreditRecord]:
    query = db.session.query(CreditRecord).filter_by(player_id=player_id, is_paid=False, voided_at=None)
    if lock:
        query = lock_for_update(query)
    return query.order_by(CreditRecord.created_at, CreditRecord.id).all()


def get_player_credits(player_id: int, include_paid: bool = False) -> list[CreditRecord]:
    query = db.session.query(CreditRecord).filter_by(player_id=player_id)
    if not include_paid:
        query = query.filter_by(is_paid=False, voided_at=None)
    return query.order_by(CreditRecord.created_at, CreditRecord.id).all()


def list_unpaid_credits() -> list[CreditRecord]:
    """All unpaid records, newest first."""
    return db.session.query(CreditRecord).filter_by(is_paid=False, voided_at=None).order_by(
        CreditRecord.created_at.desc(), CreditRecord.id.desc()
    ).all()


def list_outstanding_by_player() -> list[dict]:
    """
    Receivables grouped per player, largest debt first.

    Players with no credit history are omitted.
    """
    records = db.session.query(CreditRecord).order_by(CreditRecord.created_at).all()

    grouped: dict[int, dict] = {}
    for record in records:
        entry = grouped.setdefault(record.player_id, {
            "player_id": record.player_id,
            "player_name": record.player.name,
            "total_unpaid_cents": 0,
            "total_paid_cents": 0,
            "credits": [],
        })
        entry["credits"].append(record.to_dict())
        if record.is_paid:
            entry["total_paid_cents"] += record.amount_cents
        elif record.is_voided:
            entry["total_paid_cents"] += record.paid_cents
        else:
            entry["total_unpaid_cents"] += record.remaining_cents

    return sorted(grouped.values(), key=lambda e: e["total_unpaid_cents"], reverse=True)


def compute_credit_balance(player_id: int) -> int:
    """What credit_balance_cents should be: sum of remaining on unpaid records."""
    return sum(r.remaining_cents for r in _unpaid_records_fifo(player_id))


def recompute_credit_balance(player_id: int, fix: bool = False) -> tuple[int, int]:
    """
    Compare the stored balance with the records and optionally repair it.

    Returns:
        (stored_cents, computed_cents) as read before any fix
    """
    def _op():
        player = lock_player(player_id)
        stored = player.credit_balance_cents
        computed = compute_credit_balance(player_id)

        if stored != computed:
            current_app.logger.warning(
                "Credit balance drift for player %s: stored=%s computed=%s%s",
                player_id, stored, computed, " (fixed)" if fix else "",
            )
            if fix:
                player.credit_balance_cents = computed
                db.session.commit()
        return stored, computed

    return run_with_retry(_op)

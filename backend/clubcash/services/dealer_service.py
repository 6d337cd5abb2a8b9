# Overview: Service-layer operations for dealers, tips (caixinha) and payouts.

"""
Dealer Tip Pool

WHY: Tips are collected per dealer during a session and paid out later,
sometimes across several sessions.

INVARIANTS:
- dealer.total_tips_cents == sum(DealerTip.amount_cents) for the dealer
- Payouts never touch total_tips_cents; owed = total_tips - sum(payouts)
- A payout may not exceed what is owed
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFound, OverpaymentRejected, ValidationError
from ..extensions import db
from ..models import Dealer, DealerPayout, DealerTip, PokerTable
from ..money import format_cents, require_positive_cents
from ..payment_methods import CASH, INSTANT_METHODS, validate_method
from ..time_utils import utcnow
from .cash_session_service import require_open_session
from .concurrency import lock_for_update, run_with_retry


def get_dealer(dealer_id: int) -> Dealer:
    dealer = db.session.get(Dealer, dealer_id)
    if not dealer:
        raise NotFound(f"Dealer {dealer_id} not found")
    return dealer


def lock_dealer(dealer_id: int) -> Dealer:
    dealer = lock_for_update(db.session.query(Dealer).filter_by(id=dealer_id)).first()
    if not dealer:
        raise NotFound(f"Dealer {dealer_id} not found")
    return dealer


def list_dealers(include_inactive: bool = False) -> list[Dealer]:
    query = db.session.query(Dealer)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(Dealer.name).all()


def create_dealer(name: str) -> Dealer:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Dealer name is required")

    dealer = Dealer(name=name, is_active=True, total_tips_cents=0)
    db.session.add(dealer)
    db.session.commit()
    return dealer


def deactivate_dealer(dealer_id: int) -> Dealer:
    def _op():
        dealer = lock_dealer(dealer_id)
        dealer.is_active = False
        db.session.commit()
        return dealer

    return run_with_retry(_op)


# =============================================================================
# TIPS
# =============================================================================

def add_tip(
    dealer_id: int,
    amount_cents: int,
    session_id: int | None = None,
    table_id: int | None = None,
    notes: str | None = None,
) -> DealerTip:
    """
    Record a tip and add it to the dealer's cumulative total.

    A tip given at a table inherits the table's session when session_id
    is omitted.

    Raises:
        NotFound: dealer or table missing
        ValidationError: session_id differs from the table's session
        SessionClosed: target session is closed
    """
    require_positive_cents(amount_cents)

    def _op():
        tip_session_id = session_id
        if table_id is not None:
            table = db.session.get(PokerTable, table_id)
            if not table:
                raise NotFound(f"Table {table_id} not found")
            if tip_session_id is None:
                tip_session_id = table.session_id
            elif table.session_id is not None and table.session_id != tip_session_id:
                raise ValidationError(
                    f"Table {table_id} belongs to session {table.session_id}, not {tip_session_id}"
                )
        if tip_session_id is not None:
            require_open_session(tip_session_id)

        dealer = lock_dealer(dealer_id)
        tip = DealerTip(
            dealer_id=dealer.id,
            session_id=tip_session_id,
            table_id=table_id,
            amount_cents=amount_cents,
            notes=notes,
            created_at=utcnow(),
        )
        db.session.add(tip)
        dealer.total_tips_cents += amount_cents
        db.session.commit()

        current_app.logger.info("Tip of %s for dealer %s", format_cents(amount_cents), dealer.id)
        return tip

    return run_with_retry(_op)


def remove_tip_from_total(tip: DealerTip) -> None:
    """Take a tip that is being deleted off its dealer's total. Flushes only."""
    dealer = lock_dealer(tip.dealer_id)
    dealer.total_tips_cents -= tip.amount_cents
    if dealer.total_tips_cents < 0:
        current_app.logger.warning(
            "Tip total of dealer %s went negative (%s) removing tip %s",
            dealer.id, dealer.total_tips_cents, tip.id,
        )
    db.session.flush()


def list_tips(dealer_id: int | None = None, session_id: int | None = None) -> list[DealerTip]:
    query = db.session.query(DealerTip)
    if dealer_id is not None:
        query = query.filter_by(dealer_id=dealer_id)
    if session_id is not None:
        query = query.filter_by(session_id=session_id)
    return query.order_by(DealerTip.created_at.desc(), DealerTip.id.desc()).all()


# =============================================================================
# PAYOUTS
# =============================================================================

def total_payouts(dealer_id: int) -> int:
    return int(
        db.session.query(db.func.coalesce(db.func.sum(DealerPayout.amount_cents), 0))
        .filter(DealerPayout.dealer_id == dealer_id)
        .scalar()
    )


def amount_owed(dealer_id: int) -> int:
    """Tips to date minus payouts to date."""
    dealer = get_dealer(dealer_id)
    return dealer.total_tips_cents - total_payouts(dealer.id)


def payout_dealer(
    dealer_id: int,
    amount_cents: int,
    payment_method: str = CASH,
    session_id: int | None = None,
) -> DealerPayout:
    """
    Pay a dealer part or all of what they are owed.

    Raises:
        OverpaymentRejected: amount is more than the dealer is owed
    """
    validate_method(payment_method, INSTANT_METHODS, "dealer payout")
    require_positive_cents(amount_cents)

    def _op():
        if session_id is not None:
            require_open_session(session_id)

        dealer = lock_dealer(dealer_id)
        owed = dealer.total_tips_cents - total_payouts(dealer.id)
        if amount_cents > owed:
            raise OverpaymentRejected(
                f"Payout of {format_cents(amount_cents)} exceeds {format_cents(owed)} owed to {dealer.name}"
            )

        payout = DealerPayout(
            dealer_id=dealer.id,
            session_id=session_id,
            amount_cents=amount_cents,
            payment_method=payment_method,
            created_at=utcnow(),
        )
        db.session.add(payout)
        db.session.commit()

        current_app.logger.info("Paid dealer %s %s", dealer.id, format_cents(amount_cents))
        return payout

    return run_with_retry(_op)


def list_payouts(dealer_id: int | None = None, session_id: int | None = None) -> list[DealerPayout]:
    query = db.session.query(DealerPayout)
    if dealer_id is not None:
        query = query.filter_by(dealer_id=dealer_id)
    if session_id is not None:
        query = query.filter_by(session_id=session_id)
    return query.order_by(DealerPayout.created_at.desc(), DealerPayout.id.desc()).all()


def dealer_balances() -> list[dict]:
    """Per active dealer: cumulative tips, payouts and amount owed."""
    rows = []
    for dealer in list_dealers():
        paid = total_payouts(dealer.id)
        rows.append({
            "dealer_id": dealer.id,
            "dealer_name": dealer.name,
            "total_tips_cents": dealer.total_tips_cents,
            "total_payouts_cents": paid,
            "owed_cents": dealer.total_tips_cents - paid,
        })
    return rows

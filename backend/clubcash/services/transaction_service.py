# Overview: Service-layer operations for buy-ins and cash-outs; encapsulates business logic and database work.

"""
Table Transactions

WHY: Every chip movement at a table is a buy-in (chips out to a player) or
a cash-out (chips back from a player). Fiado buy-ins also create debt.

DESIGN PRINCIPLES:
- Transactions are only accepted while the table's session is open
- A fiado buy-in and its CreditRecord commit together or not at all
- cash_out.total_buy_in_cents is the player's net at the table at the
  moment of the cash-out, so the active-session fold can replay it
- Debt settled from a cash-out is a regular FIFO payment with method fichas
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import BuyIn, CashOut, PokerTable
from ..money import format_cents, require_positive_cents, require_non_negative_cents
from ..payment_methods import BONUS, BUY_IN_METHODS, CREDIT_FIADO, FICHAS, PAYOUT_METHODS, validate_method
from ..time_utils import utcnow
from .cash_session_service import require_open_session
from .concurrency import lock_for_update, run_with_retry
from .credit_service import compute_credit_balance, grant_credit, pay_across_records
from .player_service import get_or_create_player, lock_player
from .table_service import player_session_total


def _load_open_table(table_id: int) -> PokerTable:
    table = lock_for_update(db.session.query(PokerTable).filter_by(id=table_id)).first()
    if not table:
        raise NotFound(f"Table {table_id} not found")
    if table.session_id is not None:
        require_open_session(table.session_id)
    if not table.is_active:
        raise ValidationError(f"Table '{table.name}' is not active")
    return table


# =============================================================================
# BUY-INS
# =============================================================================

def record_buy_in(
    table_id: int,
    amount_cents: int,
    payment_method: str,
    player_id: int | None = None,
    player_name: str | None = None,
    is_bonus: bool = False,
) -> BuyIn:
    """
    Record chips going out to a player.

    Either player_id or player_name is required; an unknown name creates
    the player on the spot.

    Raises:
        NotFound: table or player missing
        SessionClosed: the table's session is closed
        LimitExceeded: credit_fiado over the player's limit (nothing saved)
    """
    validate_method(payment_method, BUY_IN_METHODS, "buy-in")
    require_positive_cents(amount_cents)
    if player_id is None and not (player_name or "").strip():
        raise ValidationError("player_id or player_name is required")

    def _op():
        table = _load_open_table(table_id)

        if player_id is not None:
            player = lock_player(player_id)
        else:
            player = get_or_create_player(player_name)
        if not player.is_active:
            raise ValidationError(f"Player '{player.name}' is inactive")

        buy_in = BuyIn(
            table_id=table.id,
            player_id=player.id,
            session_id=table.session_id,
            amount_cents=amount_cents,
            payment_method=payment_method,
            is_bonus=bool(is_bonus) or payment_method == BONUS,
            created_at=utcnow(),
        )
        db.session.add(buy_in)
        db.session.flush()

        if payment_method == CREDIT_FIADO:
            grant_credit(
                player.id,
                amount_cents,
                buy_in=buy_in,
                notes=f"Buy-in mesa {table.name}",
                commit=False,
            )

        db.session.commit()

        current_app.logger.info(
            "Buy-in %s: player %s, table %s, %s via %s",
            buy_in.id, player.id, table.id, format_cents(amount_cents), payment_method,
        )
        return buy_in

    return run_with_retry(_op)


def list_buy_ins(
    session_id: int | None = None,
    table_id: int | None = None,
    player_id: int | None = None,
) -> list[BuyIn]:
    query = db.session.query(BuyIn)
    if session_id is not None:
        query = query.filter_by(session_id=session_id)
    if table_id is not None:
        query = query.filter_by(table_id=table_id)
    if player_id is not None:
        query = query.filter_by(player_id=player_id)
    return query.order_by(BuyIn.created_at.desc(), BuyIn.id.desc()).all()


# =============================================================================
# CASH-OUTS
# =============================================================================

def record_cash_out(
    table_id: int,
    player_id: int,
    chip_value_cents: int,
    payment_method: str,
    settle_debt: bool = False,
) -> CashOut:
    """
    Record a player returning chips.

    total_buy_in_cents is taken from the player's current net at the table;
    profit may be negative. With settle_debt, up to chip_value_cents of the
    player's fiado is paid off FIFO in the same transaction.

    Raises:
        NotFound: table or player missing
        SessionClosed: the table's session is closed
    """
    validate_method(payment_method, PAYOUT_METHODS, "cash-out")
    require_non_negative_cents(chip_value_cents, "chip_value_cents")

    def _op():
        table = _load_open_table(table_id)
        player = lock_player(player_id)

        total_buy_in = player_session_total(table.id, player.id)
        cash_out = CashOut(
            table_id=table.id,
            player_id=player.id,
            session_id=table.session_id,
            chip_value_cents=chip_value_cents,
            total_buy_in_cents=total_buy_in,
            profit_cents=chip_value_cents - total_buy_in,
            payment_method=payment_method,
            created_at=utcnow(),
        )
        db.session.add(cash_out)
        db.session.flush()

        if settle_debt and chip_value_cents > 0:
            outstanding = compute_credit_balance(player.id)
            settled = min(chip_value_cents, outstanding)
            if settled > 0:
                pay_across_records(player.id, settled, FICHAS, table.session_id, commit=False)
                current_app.logger.info(
                    "Cash-out %s settled %s of player %s debt",
                    cash_out.id, format_cents(settled), player.id,
                )

        db.session.commit()
        return cash_out

    return run_with_retry(_op)


def list_cash_outs(
    session_id: int | None = None,
    table_id: int | None = None,
    player_id: int | None = None,
) -> list[CashOut]:
    query = db.session.query(CashOut)
    if session_id is not None:
        query = query.filter_by(session_id=session_id)
    if table_id is not None:
        query = query.filter_by(table_id=table_id)
    if player_id is not None:
        query = query.filter_by(player_id=player_id)
    return query.order_by(CashOut.created_at.desc(), CashOut.id.desc()).all()

# Overview: Read-side financial summary of a cash session or date range.

"""
Cash Session Reconciler

WHY: The operator needs two numbers at any time: what the tables moved
(balance) and what the drawer should physically hold (real_balance).

RULES:
- balance       = total_buy_ins - total_cash_outs (face value, bonus and
                  fiado included)
- real_balance  = balance without bonus and fiado buy-ins
- final_balance = real_balance + total_rake - total_dealer_payouts
- total_cash_outs counts chip value returned, not profit

Pure aggregation: no locks, no writes, safe to call arbitrarily often.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

from ..errors import ValidationError
from ..extensions import db
from ..models import BuyIn, CashOut, DealerPayout, DealerTip, RakeEntry
from ..payment_methods import BONUS, CREDIT_FIADO
from .cash_session_service import get_session


@dataclass(frozen=True)
class Summary:
    total_buy_ins: int
    total_cash_outs: int
    total_bonuses: int
    total_credits: int
    total_dealer_tips: int
    total_rake: int
    total_dealer_payouts: int
    balance: int
    real_balance: int
    final_balance: int
    transaction_count: int

    def to_dict(self) -> dict:
        data = {f"{key}_cents": value for key, value in asdict(self).items()}
        data["transaction_count"] = data.pop("transaction_count_cents")
        return data


def is_off_drawer(buy_in: BuyIn) -> bool:
    """Bonus and fiado buy-ins put no money in the drawer."""
    return buy_in.is_bonus or buy_in.payment_method in (BONUS, CREDIT_FIADO)


def summarize(
    buy_ins: list[BuyIn],
    cash_outs: list[CashOut],
    tips: list[DealerTip],
    rake: list[RakeEntry],
    payouts: list[DealerPayout],
) -> Summary:
    total_buy_ins = sum(b.amount_cents for b in buy_ins)
    total_cash_outs = sum(c.chip_value_cents for c in cash_outs)
    total_bonuses = sum(b.amount_cents for b in buy_ins if b.is_bonus or b.payment_method == BONUS)
    total_credits = sum(b.amount_cents for b in buy_ins if b.payment_method == CREDIT_FIADO)
    drawer_buy_ins = sum(b.amount_cents for b in buy_ins if not is_off_drawer(b))
    total_rake = sum(r.amount_cents for r in rake)
    total_payouts = sum(p.amount_cents for p in payouts)

    real_balance = drawer_buy_ins - total_cash_outs
    return Summary(
        total_buy_ins=total_buy_ins,
        total_cash_outs=total_cash_outs,
        total_bonuses=total_bonuses,
        total_credits=total_credits,
        total_dealer_tips=sum(t.amount_cents for t in tips),
        total_rake=total_rake,
        total_dealer_payouts=total_payouts,
        balance=total_buy_ins - total_cash_outs,
        real_balance=real_balance,
        final_balance=real_balance + total_rake - total_payouts,
        transaction_count=len(buy_ins) + len(cash_outs),
    )


def _rows(model, session_id: int | None, start: datetime | None, end: datetime | None):
    query = db.session.query(model)
    if session_id is not None:
        query = query.filter(model.session_id == session_id)
    if start is not None:
        query = query.filter(model.created_at >= start)
    if end is not None:
        query = query.filter(model.created_at < end)
    return query.all()


def daily_summary(
    session_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> Summary:
    """
    Summarize one session, or every record created in [start, end).

    Raises:
        NoSessionFound: session_id given but invalid
        ValidationError: neither a session nor a range was given
    """
    if session_id is not None:
        get_session(session_id)
    elif start is None or end is None:
        raise ValidationError("daily_summary needs a session_id or a start/end range")

    return summarize(
        _rows(BuyIn, session_id, start, end),
        _rows(CashOut, session_id, start, end),
        _rows(DealerTip, session_id, start, end),
        _rows(RakeEntry, session_id, start, end),
        _rows(DealerPayout, session_id, start, end),
    )

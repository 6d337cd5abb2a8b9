# Overview: Pure state machine for a single fiado debt and FIFO settlement.

"""
CreditRecord states:

    Unpaid(amount, paid) --apply_payment--> Unpaid(amount, paid + x)   while remaining > 0
    Unpaid(amount, paid) --apply_payment--> Paid(amount, paid_at)      when remaining == 0

Paid is terminal. No database access here; credit_service persists the
result.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .errors import ExcessPayment, OverpaymentRejected, ValidationError


@dataclass(frozen=True)
class Unpaid:
    amount_cents: int
    paid_cents: int = 0

    @property
    def remaining_cents(self) -> int:
        return self.amount_cents - self.paid_cents


@dataclass(frozen=True)
class Paid:
    amount_cents: int
    paid_at: datetime | None

    @property
    def remaining_cents(self) -> int:
        return 0


def apply_payment(state: Unpaid | Paid, amount_cents: int, at: datetime) -> Unpaid | Paid:
    """
    Apply one receipt to a debt.

    Raises:
        ValidationError: amount is not positive
        OverpaymentRejected: record already paid, or amount > remaining
    """
    if amount_cents <= 0:
        raise ValidationError("Payment amount must be positive")
    if isinstance(state, Paid):
        raise OverpaymentRejected("Credit record is already paid")
    if amount_cents > state.remaining_cents:
        raise OverpaymentRejected(
            f"Payment of {amount_cents} exceeds remaining {state.remaining_cents} on credit record"
        )

    paid = state.paid_cents + amount_cents
    if paid == state.amount_cents:
        return Paid(amount_cents=state.amount_cents, paid_at=at)
    return Unpaid(amount_cents=state.amount_cents, paid_cents=paid)


def allocate_fifo(remainings: list[int], total_cents: int) -> list[int]:
    """
    Split total_cents across debts ordered oldest-first.

    Returns one slice per debt (0 for untouched debts). Each slice is
    <= that debt's remaining, so every slice is a valid apply_payment call.
    A total above the sum of remainings is rejected, not banked.
    """
    if total_cents <= 0:
        raise ValidationError("Payment amount must be positive")

    outstanding = sum(remainings)
    if total_cents > outstanding:
        raise ExcessPayment(f"Payment of {total_cents} exceeds outstanding debt of {outstanding}")

    slices = []
    left = total_cents
    for remaining in remainings:
        take = min(left, remaining)
        slices.append(take)
        left -= take
    return slices

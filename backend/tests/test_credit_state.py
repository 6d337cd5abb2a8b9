# Overview: Pytest coverage for the pure credit record state machine and FIFO allocation.

from datetime import datetime

import pytest

from clubcash.credit_state import Paid, Unpaid, allocate_fifo, apply_payment
from clubcash.errors import ExcessPayment, OverpaymentRejected, ValidationError


NOW = datetime(2026, 3, 1, 22, 0, 0)


class TestApplyPayment:

    def test_partial_payment_stays_unpaid(self):
        state = apply_payment(Unpaid(amount_cents=5000), 2000, NOW)
        assert state == Unpaid(amount_cents=5000, paid_cents=2000)
        assert state.remaining_cents == 3000

    def test_exact_remaining_marks_paid(self):
        state = apply_payment(Unpaid(amount_cents=5000, paid_cents=2000), 3000, NOW)
        assert isinstance(state, Paid)
        assert state.paid_at == NOW
        assert state.remaining_cents == 0

    def test_overpayment_rejected(self):
        with pytest.raises(OverpaymentRejected):
            apply_payment(Unpaid(amount_cents=5000, paid_cents=2000), 3001, NOW)

    def test_paid_record_rejects_payment(self):
        with pytest.raises(OverpaymentRejected):
            apply_payment(Paid(amount_cents=5000, paid_at=NOW), 1, NOW)

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_rejected(self, amount):
        with pytest.raises(ValidationError):
            apply_payment(Unpaid(amount_cents=5000), amount, NOW)


class TestAllocateFifo:

    def test_oldest_first(self):
        # $50 then $30, pay $60
        assert allocate_fifo([5000, 3000], 6000) == [5000, 1000]

    def test_exact_total(self):
        assert allocate_fifo([5000, 3000], 8000) == [5000, 3000]

    def test_untouched_records_get_zero(self):
        assert allocate_fifo([5000, 3000, 2000], 4000) == [4000, 0, 0]

    def test_excess_rejected(self):
        with pytest.raises(ExcessPayment):
            allocate_fifo([5000, 3000], 8001)

    def test_no_debt_rejects_any_payment(self):
        with pytest.raises(ExcessPayment):
            allocate_fifo([], 100)

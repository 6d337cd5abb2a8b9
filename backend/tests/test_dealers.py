# Overview: Pytest coverage for dealer tips, payouts and rake.

import pytest

from clubcash.errors import NotFound, OverpaymentRejected, SessionClosed, ValidationError
from clubcash.extensions import db
from clubcash.models import Dealer
from clubcash.services import cash_session_service, dealer_service, rake_service, reversal_service, table_service


def _dealer(dealer_id):
    db.session.expire_all()
    return db.session.get(Dealer, dealer_id)


class TestTipsAndPayouts:

    def test_payout_reduces_owed_not_total(self, dealer, cash_session):
        dealer_service.add_tip(dealer.id, 2000, session_id=cash_session.id)
        dealer_service.add_tip(dealer.id, 3000, session_id=cash_session.id)
        assert _dealer(dealer.id).total_tips_cents == 5000

        dealer_service.payout_dealer(dealer.id, 5000, session_id=cash_session.id)

        assert dealer_service.amount_owed(dealer.id) == 0
        assert _dealer(dealer.id).total_tips_cents == 5000

    def test_payout_above_owed_rejected(self, dealer, cash_session):
        dealer_service.add_tip(dealer.id, 2000, session_id=cash_session.id)

        with pytest.raises(OverpaymentRejected):
            dealer_service.payout_dealer(dealer.id, 2001)

        assert dealer_service.list_payouts(dealer_id=dealer.id) == []
        assert dealer_service.amount_owed(dealer.id) == 2000

    def test_partial_payouts(self, dealer):
        dealer_service.add_tip(dealer.id, 5000)
        dealer_service.payout_dealer(dealer.id, 1000, payment_method="pix")
        dealer_service.payout_dealer(dealer.id, 1500)

        assert dealer_service.total_payouts(dealer.id) == 2500
        assert dealer_service.amount_owed(dealer.id) == 2500

    def test_payout_method_must_be_currency(self, dealer):
        dealer_service.add_tip(dealer.id, 5000)
        with pytest.raises(ValidationError):
            dealer_service.payout_dealer(dealer.id, 1000, payment_method="credit_fiado")

    def test_tip_for_unknown_dealer(self, db_session):
        with pytest.raises(NotFound):
            dealer_service.add_tip(999, 100)

    def test_deleting_tip_decrements_total(self, dealer, cash_session):
        tip = dealer_service.add_tip(dealer.id, 2000, session_id=cash_session.id)
        dealer_service.add_tip(dealer.id, 3000, session_id=cash_session.id)

        reversal_service.delete_tip(tip.id)

        assert _dealer(dealer.id).total_tips_cents == 3000
        assert dealer_service.amount_owed(dealer.id) == 3000

    def test_tip_at_table_inherits_table_session(self, dealer, poker_table, cash_session):
        tip = dealer_service.add_tip(dealer.id, 1500, table_id=poker_table.id)

        assert tip.session_id == cash_session.id
        assert tip.table_id == poker_table.id

    def test_tip_at_table_of_closed_session_rejected(self, dealer, poker_table, cash_session):
        cash_session_service.close_session(cash_session.id)

        with pytest.raises(SessionClosed):
            dealer_service.add_tip(dealer.id, 1500, table_id=poker_table.id)

        assert dealer_service.list_tips() == []
        assert _dealer(dealer.id).total_tips_cents == 0

    def test_tip_session_must_match_table(self, dealer, poker_table, cash_session):
        other = cash_session_service.open_session("Caixa 2", responsible="Maria")

        with pytest.raises(ValidationError):
            dealer_service.add_tip(dealer.id, 1500, session_id=other.id, table_id=poker_table.id)

    def test_balances_listing(self, dealer):
        dealer_service.add_tip(dealer.id, 4000)
        dealer_service.payout_dealer(dealer.id, 1000)

        [row] = dealer_service.dealer_balances()
        assert row == {
            "dealer_id": dealer.id,
            "dealer_name": "Carla",
            "total_tips_cents": 4000,
            "total_payouts_cents": 1000,
            "owed_cents": 3000,
        }


class TestRake:

    def test_rake_inherits_table_session(self, poker_table, cash_session):
        entry = rake_service.add_rake(poker_table.id, 700, notes="pote grande")
        assert entry.session_id == cash_session.id

    def test_rake_by_table(self, poker_table, cash_session):
        other = table_service.create_table("Mesa 2", session_id=cash_session.id)
        rake_service.add_rake(poker_table.id, 500)
        rake_service.add_rake(poker_table.id, 300)
        rake_service.add_rake(other.id, 1000)

        rows = rake_service.rake_by_table(cash_session.id)

        assert [(r["table_name"], r["total_cents"]) for r in rows] == [("Mesa 2", 1000), ("Mesa 1", 800)]

    def test_rake_unknown_table(self, db_session):
        with pytest.raises(NotFound):
            rake_service.add_rake(404, 100)

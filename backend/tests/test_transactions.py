# Overview: Pytest coverage for buy-ins and cash-outs at a table.

import pytest

from clubcash.errors import LimitExceeded, NotFound, ValidationError
from clubcash.extensions import db
from clubcash.models import BuyIn, CashOut, CreditRecord, PaymentReceipt, Player
from clubcash.services import credit_service, player_service, table_service, transaction_service


def _balance(player_id):
    db.session.expire_all()
    return db.session.get(Player, player_id).credit_balance_cents


class TestBuyIn:

    def test_fiado_over_limit_saves_nothing(self, poker_table, player):
        transaction_service.record_buy_in(poker_table.id, 48000, "credit_fiado", player_id=player.id)

        with pytest.raises(LimitExceeded):
            transaction_service.record_buy_in(poker_table.id, 5000, "credit_fiado", player_id=player.id)

        assert db.session.query(BuyIn).count() == 1
        assert db.session.query(CreditRecord).count() == 1
        assert _balance(player.id) == 48000

    def test_fiado_links_credit_record(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)

        assert buy_in.credit_record is not None
        assert buy_in.credit_record.amount_cents == 10000
        assert buy_in.session_id == poker_table.session_id

    def test_cash_buy_in_creates_no_debt(self, poker_table, player):
        transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
        assert db.session.query(CreditRecord).count() == 0
        assert _balance(player.id) == 0

    def test_new_player_by_name(self, poker_table):
        buy_in = transaction_service.record_buy_in(poker_table.id, 2000, "pix", player_name="  Marcos ")

        assert buy_in.player.name == "Marcos"
        again = transaction_service.record_buy_in(poker_table.id, 2000, "pix", player_name="Marcos")
        assert again.player_id == buy_in.player_id

    def test_bonus_method_sets_flag(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 2000, "bonus", player_id=player.id)
        assert buy_in.is_bonus is True

    def test_inactive_player_rejected(self, poker_table, player):
        player_service.deactivate_player(player.id)
        with pytest.raises(ValidationError):
            transaction_service.record_buy_in(poker_table.id, 1000, "cash", player_id=player.id)

    def test_inactive_table_rejected(self, poker_table, player):
        table_service.set_table_active(poker_table.id, False)
        with pytest.raises(ValidationError):
            transaction_service.record_buy_in(poker_table.id, 1000, "cash", player_id=player.id)

    def test_fichas_not_a_buy_in_method(self, poker_table, player):
        with pytest.raises(ValidationError):
            transaction_service.record_buy_in(poker_table.id, 1000, "fichas", player_id=player.id)

    def test_player_required(self, poker_table):
        with pytest.raises(ValidationError):
            transaction_service.record_buy_in(poker_table.id, 1000, "cash")

    def test_unknown_table(self, player):
        with pytest.raises(NotFound):
            transaction_service.record_buy_in(777, 1000, "cash", player_id=player.id)


class TestCashOut:

    def test_profit_from_net_buy_in(self, poker_table, player):
        transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
        transaction_service.record_buy_in(poker_table.id, 5000, "pix", player_id=player.id)

        cash_out = transaction_service.record_cash_out(poker_table.id, player.id, 22000, "pix")

        assert cash_out.total_buy_in_cents == 15000
        assert cash_out.profit_cents == 7000

    def test_cash_out_without_buy_in(self, poker_table, player):
        cash_out = transaction_service.record_cash_out(poker_table.id, player.id, 3000, "cash")
        assert cash_out.total_buy_in_cents == 0
        assert cash_out.profit_cents == 3000

    def test_zero_chip_value_allowed(self, poker_table, player):
        transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
        cash_out = transaction_service.record_cash_out(poker_table.id, player.id, 0, "cash")
        assert cash_out.profit_cents == -10000

    def test_settle_debt_pays_fifo_with_fichas(self, poker_table, player):
        transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)
        transaction_service.record_buy_in(poker_table.id, 5000, "credit_fiado", player_id=player.id)

        transaction_service.record_cash_out(poker_table.id, player.id, 12000, "fichas", settle_debt=True)

        assert _balance(player.id) == 3000
        receipts = db.session.query(PaymentReceipt).order_by(PaymentReceipt.id).all()
        assert [r.amount_cents for r in receipts] == [10000, 2000]
        assert {r.payment_method for r in receipts} == {"fichas"}
        assert credit_service.compute_credit_balance(player.id) == 3000

    def test_settle_debt_capped_at_outstanding(self, poker_table, player):
        transaction_service.record_buy_in(poker_table.id, 4000, "credit_fiado", player_id=player.id)

        transaction_service.record_cash_out(poker_table.id, player.id, 9000, "cash", settle_debt=True)

        assert _balance(player.id) == 0
        assert db.session.query(PaymentReceipt).one().amount_cents == 4000

    def test_fiado_not_a_payout_method(self, poker_table, player):
        with pytest.raises(ValidationError):
            transaction_service.record_cash_out(poker_table.id, player.id, 1000, "credit_fiado")
        assert db.session.query(CashOut).count() == 0

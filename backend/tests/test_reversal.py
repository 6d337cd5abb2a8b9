# Overview: Pytest coverage for transaction deletes and undo from the audit log.

"""
Reversal Engine Tests

Covers:
- delete_buy_in compensation for unpaid, partially paid and paid fiado
- cash-out delete re-seats the player
- undo re-inserts through normal rules and consumes its audit entry
- NotUndoable / IncompleteSnapshot
- table delete reverses fiado before the cascade
"""

import pytest

from clubcash.errors import IncompleteSnapshot, LimitExceeded, NotFound, NotUndoable, SessionClosed
from clubcash.extensions import db
from clubcash.models import (
    AuditLog, BuyIn, CancelledBuyIn, CashOut, CreditRecord, Dealer, PaymentReceipt, Player, RakeEntry,
)
from clubcash.services import (
    audit_service, cash_session_service, credit_service, dealer_service, player_service, rake_service,
    reversal_service, table_service, transaction_service,
)


def _balance(player_id):
    db.session.expire_all()
    return db.session.get(Player, player_id).credit_balance_cents


def _log_for(event_type):
    return db.session.query(AuditLog).filter_by(event_type=event_type).order_by(AuditLog.id.desc()).first()


class TestDeleteBuyIn:

    def test_unpaid_fiado_reverses_balance(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)

        snapshot = reversal_service.delete_buy_in(buy_in.id)

        assert _balance(player.id) == 0
        assert db.session.get(BuyIn, buy_in.id) is None
        assert db.session.query(CreditRecord).count() == 0
        assert snapshot["credit_was_paid"] is False
        assert snapshot["amount_cents"] == 10000

        cancelled = db.session.query(CancelledBuyIn).one()
        assert cancelled.original_buy_in_id == buy_in.id
        assert cancelled.player_name == "João Silva"
        assert cancelled.table_name == "Mesa 1"

    def test_paid_fiado_leaves_balance_alone(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)
        transaction_service.record_buy_in(poker_table.id, 5000, "credit_fiado", player_id=player.id)
        credit_service.pay_across_records(player.id, 10000, "pix")
        assert _balance(player.id) == 5000

        reversal_service.delete_buy_in(buy_in.id)

        assert _balance(player.id) == 5000
        assert credit_service.compute_credit_balance(player.id) == 5000
        paid = db.session.query(CreditRecord).filter_by(is_paid=True).one()
        assert paid.buy_in_id is None

    def test_cash_buy_in_snapshot(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)

        reversal_service.delete_buy_in(buy_in.id)

        entry = _log_for(audit_service.EVENT_BUY_IN_CANCELLED)
        assert entry.snapshot["player_id"] == player.id
        assert entry.snapshot["table_id"] == poker_table.id
        assert entry.snapshot["session_id"] == poker_table.session_id
        assert entry.snapshot["payment_method"] == "cash"
        assert "credit_record_id" not in entry.snapshot

    def test_unknown_buy_in(self, db_session):
        with pytest.raises(NotFound):
            reversal_service.delete_buy_in(5555)


class TestDeleteCashOut:

    def test_player_is_seated_again(self, poker_table, player):
        transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
        cash_out = transaction_service.record_cash_out(poker_table.id, player.id, 12000, "cash")
        assert table_service.active_sessions_for_table(poker_table.id) == []

        reversal_service.delete_cash_out(cash_out.id)

        [session] = table_service.active_sessions_for_table(poker_table.id)
        assert session.total_buy_in_cents == 10000
        assert db.session.query(CashOut).count() == 0


class TestUndo:

    def test_undo_unpaid_fiado_buy_in(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)
        original_created_at = buy_in.created_at
        reversal_service.delete_buy_in(buy_in.id)
        entry = _log_for(audit_service.EVENT_BUY_IN_CANCELLED)

        restored = reversal_service.undo_from_audit_log(entry.id)

        assert restored.amount_cents == 10000
        assert restored.payment_method == "credit_fiado"
        assert restored.created_at.replace(microsecond=0) == original_created_at.replace(microsecond=0)
        assert restored.credit_record is not None
        assert _balance(player.id) == 10000
        assert db.session.get(AuditLog, entry.id) is None
        assert db.session.query(CancelledBuyIn).count() == 0
        assert _log_for(audit_service.EVENT_UNDO) is not None

    def test_undo_is_single_use(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
        reversal_service.delete_buy_in(buy_in.id)
        entry_id = _log_for(audit_service.EVENT_BUY_IN_CANCELLED).id

        reversal_service.undo_from_audit_log(entry_id)

        with pytest.raises(NotFound):
            reversal_service.undo_from_audit_log(entry_id)
        assert db.session.query(BuyIn).count() == 1

    def test_undo_paid_fiado_relinks_settled_record(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)
        credit_service.pay_across_records(player.id, 10000, "pix")
        reversal_service.delete_buy_in(buy_in.id)
        entry = _log_for(audit_service.EVENT_BUY_IN_CANCELLED)

        restored = reversal_service.undo_from_audit_log(entry.id)

        records = db.session.query(CreditRecord).all()
        assert len(records) == 1
        assert records[0].is_paid is True
        assert records[0].buy_in_id == restored.id
        assert _balance(player.id) == 0

    def test_undo_partially_paid_fiado_restores_remaining_debt(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)
        receipt = credit_service.receive_payment(buy_in.credit_record.id, 3000, "cash")
        record_id = receipt.credit_record_id

        snapshot = reversal_service.delete_buy_in(buy_in.id)

        assert snapshot["credit_remaining_cents"] == 7000
        assert _balance(player.id) == 0
        assert db.session.get(PaymentReceipt, receipt.id) is not None

        entry = _log_for(audit_service.EVENT_BUY_IN_CANCELLED)
        restored = reversal_service.undo_from_audit_log(entry.id)

        assert _balance(player.id) == 7000
        assert credit_service.compute_credit_balance(player.id) == 7000
        assert db.session.get(PaymentReceipt, receipt.id) is not None
        record = db.session.query(CreditRecord).one()
        assert record.id == record_id
        assert record.buy_in_id == restored.id
        assert record.is_voided is False
        assert record.paid_cents == 3000
        assert record.remaining_cents == 7000

    def test_undo_partially_paid_fiado_rechecks_limit(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)
        credit_service.receive_payment(buy_in.credit_record.id, 3000, "cash")
        reversal_service.delete_buy_in(buy_in.id)
        entry = _log_for(audit_service.EVENT_BUY_IN_CANCELLED)
        player_service.set_credit_limit(player.id, 5000)

        with pytest.raises(LimitExceeded):
            reversal_service.undo_from_audit_log(entry.id)

        assert _balance(player.id) == 0
        assert db.session.query(CreditRecord).one().is_voided is True

    def test_undo_fiado_rechecks_limit(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)
        reversal_service.delete_buy_in(buy_in.id)
        entry = _log_for(audit_service.EVENT_BUY_IN_CANCELLED)
        player_service.set_credit_limit(player.id, 5000)

        with pytest.raises(LimitExceeded):
            reversal_service.undo_from_audit_log(entry.id)

        assert db.session.query(BuyIn).count() == 0
        assert db.session.get(AuditLog, entry.id) is not None
        assert _balance(player.id) == 0

    def test_undo_into_closed_session_rejected(self, poker_table, player, cash_session):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
        reversal_service.delete_buy_in(buy_in.id)
        entry = _log_for(audit_service.EVENT_BUY_IN_CANCELLED)
        cash_session_service.close_session(cash_session.id)

        with pytest.raises(SessionClosed):
            reversal_service.undo_from_audit_log(entry.id)

    def test_undo_cash_out(self, poker_table, player):
        transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
        cash_out = transaction_service.record_cash_out(poker_table.id, player.id, 8000, "cash")
        reversal_service.delete_cash_out(cash_out.id)

        restored = reversal_service.undo_from_audit_log(_log_for(audit_service.EVENT_CASH_OUT_CANCELLED).id)

        assert restored.total_buy_in_cents == 10000
        assert restored.profit_cents == -2000
        assert table_service.active_sessions_for_table(poker_table.id) == []

    def test_undo_tip_restores_total(self, dealer, cash_session):
        tip = dealer_service.add_tip(dealer.id, 2500, session_id=cash_session.id)
        reversal_service.delete_tip(tip.id)

        reversal_service.undo_from_audit_log(_log_for(audit_service.EVENT_DEALER_TIP_CANCELLED).id)

        db.session.expire_all()
        assert db.session.get(Dealer, dealer.id).total_tips_cents == 2500

    def test_undo_rake(self, poker_table):
        entry = rake_service.add_rake(poker_table.id, 900)
        reversal_service.delete_rake(entry.id)

        reversal_service.undo_from_audit_log(_log_for(audit_service.EVENT_RAKE_CANCELLED).id)

        assert [r.amount_cents for r in db.session.query(RakeEntry).all()] == [900]

    def test_not_undoable_event(self, cash_session):
        cash_session_service.close_session(cash_session.id)
        entry = _log_for(audit_service.EVENT_SESSION_CLOSED)

        with pytest.raises(NotUndoable):
            reversal_service.undo_from_audit_log(entry.id)

    def test_incomplete_snapshot(self, db_session):
        entry = audit_service.append_audit_event(
            audit_service.EVENT_BUY_IN_CANCELLED,
            "Buy-in excluído (formato antigo)",
            {"amount": 100},
        )
        db.session.commit()

        with pytest.raises(IncompleteSnapshot):
            reversal_service.undo_from_audit_log(entry.id)
        assert db.session.get(AuditLog, entry.id) is not None

    def test_undo_after_table_deleted(self, poker_table, player):
        buy_in = transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
        reversal_service.delete_buy_in(buy_in.id)
        entry = _log_for(audit_service.EVENT_BUY_IN_CANCELLED)
        table_service.delete_table(poker_table.id)

        with pytest.raises(NotFound):
            reversal_service.undo_from_audit_log(entry.id)


class TestDeleteTable:

    def test_delete_table_reverses_fiado(self, poker_table, player, dealer, cash_session):
        transaction_service.record_buy_in(poker_table.id, 10000, "credit_fiado", player_id=player.id)
        transaction_service.record_buy_in(poker_table.id, 2000, "cash", player_id=player.id)
        tip = dealer_service.add_tip(dealer.id, 1000, session_id=cash_session.id, table_id=poker_table.id)

        table_service.delete_table(poker_table.id)

        assert _balance(player.id) == 0
        assert db.session.query(BuyIn).count() == 0
        assert db.session.query(CreditRecord).count() == 0
        assert dealer_service.list_tips()[0].table_id is None
        assert dealer_service.list_tips()[0].id == tip.id
        entry = _log_for(audit_service.EVENT_TABLE_DELETED)
        assert entry.snapshot["credits_reversed"] == 1

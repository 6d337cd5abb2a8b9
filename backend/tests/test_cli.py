# Overview: Tests for the Flask CLI command groups.

from clubcash.extensions import db
from clubcash.services import cash_session_service, credit_service, transaction_service


def test_chips_seed_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["chips", "seed"])
    second = runner.invoke(args=["chips", "seed"])

    assert first.exit_code == 0
    assert "PASS Created" in first.output
    assert "SKIP" in second.output

    listing = runner.invoke(args=["chips", "list"])
    assert "R$ 1,00" in listing.output


def test_credit_recompute_reports_and_fixes_drift(app, player):
    credit_service.grant_credit(player.id, 7000)
    player.credit_balance_cents = 100
    db.session.commit()
    runner = app.test_cli_runner()

    check = runner.invoke(args=["credit", "recompute"])
    assert check.exit_code == 1
    assert "DRIFT" in check.output

    fixed = runner.invoke(args=["credit", "recompute", "--fix"])
    assert fixed.exit_code == 0
    assert "FIXED" in fixed.output

    clean = runner.invoke(args=["credit", "recompute", "--player-id", str(player.id)])
    assert clean.exit_code == 0
    assert "PASS" in clean.output


def test_sessions_summary(app, poker_table, player, cash_session):
    transaction_service.record_buy_in(poker_table.id, 10000, "cash", player_id=player.id)
    runner = app.test_cli_runner()

    result = runner.invoke(args=["sessions", "summary", str(cash_session.id)])

    assert result.exit_code == 0
    assert "Real balance" in result.output
    assert "R$ 100,00" in result.output


def test_sessions_summary_unknown(app, db_session):
    result = app.test_cli_runner().invoke(args=["sessions", "summary", "999"])
    assert result.exit_code != 0


def test_sessions_list_open_only(app, db_session):
    cash_session_service.open_session("Caixa A")
    closed = cash_session_service.open_session("Caixa B")
    cash_session_service.close_session(closed.id)

    result = app.test_cli_runner().invoke(args=["sessions", "list", "--open"])

    assert "Caixa A" in result.output
    assert "Caixa B" not in result.output

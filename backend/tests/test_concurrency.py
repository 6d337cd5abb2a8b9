# Overview: Pytest coverage for the retry/rollback transaction wrapper and limit re-validation.

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from clubcash.errors import LimitExceeded
from clubcash.extensions import db
from clubcash.models import CreditRecord, Player
from clubcash.services import credit_service
from clubcash.services.concurrency import run_with_retry


def test_retries_stale_data_then_succeeds(db_session):
    calls = []

    def _op():
        calls.append(1)
        if len(calls) < 3:
            raise StaleDataError("version mismatch")
        return "ok"

    assert run_with_retry(_op, backoff_base=0) == "ok"
    assert len(calls) == 3


def test_gives_up_after_attempts(db_session):
    calls = []

    def _op():
        calls.append(1)
        raise OperationalError("UPDATE players", {}, Exception("database is locked"))

    with pytest.raises(OperationalError):
        run_with_retry(_op, attempts=2, backoff_base=0)
    assert len(calls) == 2


def test_other_errors_roll_back_without_retry(db_session):
    calls = []

    def _op():
        calls.append(1)
        db.session.add(Player(name="Fantasma", credit_limit_cents=0, credit_balance_cents=0, is_active=True))
        db.session.flush()
        raise ValueError("boom")

    with pytest.raises(ValueError):
        run_with_retry(_op)

    assert len(calls) == 1
    assert db.session.query(Player).filter_by(name="Fantasma").count() == 0



def test_grant_rechecks_limit_against_committed_balance(player):
    # Another connection commits a larger balance after this session cached the row
    cached = db.session.get(Player, player.id)
    assert cached.credit_balance_cents == 0

    with db.engine.begin() as conn:
        conn.execute(
            update(Player)
            .where(Player.id == player.id)
            .values(credit_balance_cents=48000, version_id=Player.version_id + 1)
        )
    assert cached.credit_balance_cents == 0

    with pytest.raises(LimitExceeded):
        credit_service.grant_credit(player.id, 5000)

    db.session.expire_all()
    assert db.session.get(Player, player.id).credit_balance_cents == 48000
    assert db.session.query(CreditRecord).count() == 0

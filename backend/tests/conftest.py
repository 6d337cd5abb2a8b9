"""
Pytest fixtures for club cash backend tests.

Provides test database setup, domain fixtures, and test client.
"""

import pytest

from clubcash import create_app
from clubcash.extensions import db
from clubcash.services import cash_session_service, dealer_service, player_service, table_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEFAULT_CREDIT_LIMIT_CENTS': 50000,
        'DB_RETRY_ATTEMPTS': 3,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def cash_session(db_session):
    """Open cash session for today."""
    return cash_session_service.open_session("Caixa 1", responsible="Maria")


@pytest.fixture(scope='function')
def poker_table(cash_session):
    """Active table in the open session."""
    return table_service.create_table("Mesa 1", session_id=cash_session.id)


@pytest.fixture(scope='function')
def player(db_session):
    """Player with the default R$ 500,00 fiado limit."""
    return player_service.create_player("João Silva", credit_limit_cents=50000)


@pytest.fixture(scope='function')
def dealer(db_session):
    return dealer_service.create_dealer("Carla")

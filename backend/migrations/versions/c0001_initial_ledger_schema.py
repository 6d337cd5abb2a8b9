"""initial ledger schema

Revision ID: c0001
Revises:
Create Date: 2026-03-01 00:00:00.000000

Creates the complete club cash schema:
- players / credit_records / payment_receipts: fiado ledger
- cash_sessions / poker_tables / chip_types: drawer periods and tables
- buy_ins / cash_outs / rake_entries: table transactions
- dealers / dealer_tips / dealer_payouts: caixinha
- audit_logs / cancelled_buy_ins: reversal trail
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    # ============================================================================
    # players: credit_balance_cents is a materialized sum of unpaid debt
    # ============================================================================
    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('cpf', sa.String(length=14), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('credit_balance_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('credit_limit_cents', sa.Integer(), nullable=False, server_default='50000'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_players_name', 'players', ['name'])
    op.create_index('ix_players_is_active', 'players', ['is_active'])

    # ============================================================================
    # cash_sessions: many per date allowed
    # ============================================================================
    op.create_table(
        'cash_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('responsible', sa.String(length=128), nullable=True),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('is_open', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('initial_chip_inventory', sa.JSON(), nullable=True),
        sa.Column('final_chip_inventory', sa.JSON(), nullable=True),
        sa.Column('final_chip_value_cents', sa.Integer(), nullable=True),
        sa.Column('final_balance_cents', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_cash_sessions_session_date', 'cash_sessions', ['session_date'])
    op.create_index('ix_cash_sessions_is_open', 'cash_sessions', ['is_open'])
    op.create_index('ix_cash_sessions_created_at', 'cash_sessions', ['created_at'])

    op.create_table(
        'poker_tables',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_poker_tables_session_id', 'poker_tables', ['session_id'])
    op.create_index('ix_poker_tables_is_active', 'poker_tables', ['is_active'])
    op.create_index('ix_poker_tables_created_at', 'poker_tables', ['created_at'])

    op.create_table(
        'chip_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=32), nullable=False),
        sa.Column('value_cents', sa.Integer(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # Table transactions
    # ============================================================================
    op.create_table(
        'buy_ins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('table_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('is_bonus', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['table_id'], ['poker_tables.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['player_id'], ['players.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_buy_ins_table_id', 'buy_ins', ['table_id'])
    op.create_index('ix_buy_ins_player_id', 'buy_ins', ['player_id'])
    op.create_index('ix_buy_ins_session_id', 'buy_ins', ['session_id'])
    op.create_index('ix_buy_ins_created_at', 'buy_ins', ['created_at'])
    op.create_index('ix_buy_ins_table_player', 'buy_ins', ['table_id', 'player_id'])

    op.create_table(
        'cash_outs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('table_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('chip_value_cents', sa.Integer(), nullable=False),
        sa.Column('total_buy_in_cents', sa.Integer(), nullable=False),
        sa.Column('profit_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['table_id'], ['poker_tables.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['player_id'], ['players.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_cash_outs_table_id', 'cash_outs', ['table_id'])
    op.create_index('ix_cash_outs_player_id', 'cash_outs', ['player_id'])
    op.create_index('ix_cash_outs_session_id', 'cash_outs', ['session_id'])
    op.create_index('ix_cash_outs_created_at', 'cash_outs', ['created_at'])
    op.create_index('ix_cash_outs_table_player', 'cash_outs', ['table_id', 'player_id'])

    op.create_table(
        'rake_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('table_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['table_id'], ['poker_tables.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_rake_entries_table_id', 'rake_entries', ['table_id'])
    op.create_index('ix_rake_entries_session_id', 'rake_entries', ['session_id'])
    op.create_index('ix_rake_entries_created_at', 'rake_entries', ['created_at'])

    # ============================================================================
    # Fiado ledger
    # ============================================================================
    op.create_table(
        'credit_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('buy_in_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('voided_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['player_id'], ['players.id'], ),
        sa.ForeignKeyConstraint(['buy_in_id'], ['buy_ins.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_credit_records_player_id', 'credit_records', ['player_id'])
    op.create_index('ix_credit_records_buy_in_id', 'credit_records', ['buy_in_id'])
    op.create_index('ix_credit_records_is_paid', 'credit_records', ['is_paid'])
    op.create_index('ix_credit_records_created_at', 'credit_records', ['created_at'])
    op.create_index(
        'ix_credit_records_player_paid_created', 'credit_records', ['player_id', 'is_paid', 'created_at']
    )

    op.create_table(
        'payment_receipts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('credit_record_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['credit_record_id'], ['credit_records.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['player_id'], ['players.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_payment_receipts_credit_record_id', 'payment_receipts', ['credit_record_id'])
    op.create_index('ix_payment_receipts_player_id', 'payment_receipts', ['player_id'])
    op.create_index('ix_payment_receipts_session_id', 'payment_receipts', ['session_id'])
    op.create_index('ix_payment_receipts_created_at', 'payment_receipts', ['created_at'])

    # ============================================================================
    # Dealers
    # ============================================================================
    op.create_table(
        'dealers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('total_tips_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_dealers_is_active', 'dealers', ['is_active'])

    op.create_table(
        'dealer_tips',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('dealer_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('table_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['dealer_id'], ['dealers.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ),
        sa.ForeignKeyConstraint(['table_id'], ['poker_tables.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_dealer_tips_dealer_id', 'dealer_tips', ['dealer_id'])
    op.create_index('ix_dealer_tips_session_id', 'dealer_tips', ['session_id'])
    op.create_index('ix_dealer_tips_created_at', 'dealer_tips', ['created_at'])

    op.create_table(
        'dealer_payouts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('dealer_id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False, server_default='cash'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['dealer_id'], ['dealers.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_dealer_payouts_dealer_id', 'dealer_payouts', ['dealer_id'])
    op.create_index('ix_dealer_payouts_session_id', 'dealer_payouts', ['session_id'])
    op.create_index('ix_dealer_payouts_created_at', 'dealer_payouts', ['created_at'])

    # ============================================================================
    # Reversal trail
    # ============================================================================
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_audit_logs_event_type', 'audit_logs', ['event_type'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])

    op.create_table(
        'cancelled_buy_ins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('original_buy_in_id', sa.Integer(), nullable=True),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('player_name', sa.String(length=128), nullable=False),
        sa.Column('table_id', sa.Integer(), nullable=True),
        sa.Column('table_name', sa.String(length=64), nullable=True),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['player_id'], ['players.id'], ),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_cancelled_buy_ins_player_id', 'cancelled_buy_ins', ['player_id'])
    op.create_index('ix_cancelled_buy_ins_session_id', 'cancelled_buy_ins', ['session_id'])
    op.create_index('ix_cancelled_buy_ins_cancelled_at', 'cancelled_buy_ins', ['cancelled_at'])


def downgrade():
    for table in (
        'cancelled_buy_ins', 'audit_logs', 'dealer_payouts', 'dealer_tips', 'dealers',
        'payment_receipts', 'credit_records', 'rake_entries', 'cash_outs', 'buy_ins',
        'chip_types', 'poker_tables', 'cash_sessions', 'players',
    ):
        op.drop_table(table)

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class BuyIn(db.Model):
    """
    Money (or credit) a player puts in for chips at a table.

    A credit_fiado buy-in owns exactly one CreditRecord for the same amount,
    created in the same transaction.
    """
    __tablename__ = "buy_ins"
    __table_args__ = (
        db.Index("ix_buy_ins_table_player", "table_id", "player_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("poker_tables.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)
    is_bonus = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    table = db.relationship("PokerTable", back_populates="buy_ins")
    player = db.relationship("Player", backref=db.backref("buy_ins", lazy=True))
    credit_record = db.relationship("CreditRecord", back_populates="buy_in", uselist=False, cascade="all")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_id": self.table_id,
            "player_id": self.player_id,
            "player_name": self.player.name if self.player else None,
            "session_id": self.session_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "is_bonus": self.is_bonus,
            "created_at": to_utc_z(self.created_at),
        }


class CashOut(db.Model):
    """
    Chips a player returns.

    total_buy_in_cents is the player's net at the table when the cash-out
    was taken; profit_cents = chip_value_cents - total_buy_in_cents.
    """
    __tablename__ = "cash_outs"
    __table_args__ = (
        db.Index("ix_cash_outs_table_player", "table_id", "player_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("poker_tables.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=True, index=True)

    chip_value_cents = db.Column(db.Integer, nullable=False)
    total_buy_in_cents = db.Column(db.Integer, nullable=False)
    profit_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    table = db.relationship("PokerTable", back_populates="cash_outs")
    player = db.relationship("Player", backref=db.backref("cash_outs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_id": self.table_id,
            "player_id": self.player_id,
            "player_name": self.player.name if self.player else None,
            "session_id": self.session_id,
            "chip_value_cents": self.chip_value_cents,
            "total_buy_in_cents": self.total_buy_in_cents,
            "profit_cents": self.profit_cents,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }


class RakeEntry(db.Model):
    """House commission collected from a table."""
    __tablename__ = "rake_entries"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    table_id = db.Column(db.Integer, db.ForeignKey("poker_tables.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    table = db.relationship("PokerTable", back_populates="rake_entries")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table_id": self.table_id,
            "table_name": self.table.name if self.table else None,
            "session_id": self.session_id,
            "amount_cents": self.amount_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }

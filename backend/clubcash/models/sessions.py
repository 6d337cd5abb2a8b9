from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class CashSession(db.Model):
    """
    One cash-drawer operating period.

    LIFECYCLE:
    - open: receives buy-ins, cash-outs, rake and tips
    - closed: final_balance_cents frozen, tables deactivated
    - reopened: is_open again, closed_at cleared, frozen balance kept until
      the next close; tables are not restored
    - deleted: cascades all owned tables and their transactions

    A date may hold many sessions (several drawers per day).
    """
    __tablename__ = "cash_sessions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    responsible = db.Column(db.String(128), nullable=True)
    session_date = db.Column(db.Date, nullable=False, index=True)

    is_open = db.Column(db.Boolean, nullable=False, default=True, index=True)

    # chip_type_id (as str) -> count
    initial_chip_inventory = db.Column(db.JSON, nullable=True)
    final_chip_inventory = db.Column(db.JSON, nullable=True)
    final_chip_value_cents = db.Column(db.Integer, nullable=True)

    # realBalance + rake - dealer payouts, frozen at close
    final_balance_cents = db.Column(db.Integer, nullable=True)

    notes = db.Column(db.Text, nullable=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    tables = db.relationship(
        "PokerTable",
        back_populates="session",
        cascade="all, delete-orphan",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "responsible": self.responsible,
            "session_date": self.session_date.isoformat() if self.session_date else None,
            "is_open": self.is_open,
            "initial_chip_inventory": self.initial_chip_inventory,
            "final_chip_inventory": self.final_chip_inventory,
            "final_chip_value_cents": self.final_chip_value_cents,
            "final_balance_cents": self.final_balance_cents,
            "notes": self.notes,
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PokerTable(db.Model):
    """
    A physical table, owned by one cash session.

    session_id is nullable only for tables created before any session
    existed that day; opening a session adopts them.
    Deleting a table destroys its buy-ins, cash-outs and rake (irreversible).
    """
    __tablename__ = "poker_tables"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id", ondelete="CASCADE"), nullable=True, index=True)
    name = db.Column(db.String(64), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    session = db.relationship("CashSession", back_populates="tables")
    buy_ins = db.relationship("BuyIn", back_populates="table", cascade="all, delete-orphan", lazy=True)
    cash_outs = db.relationship("CashOut", back_populates="table", cascade="all, delete-orphan", lazy=True)
    rake_entries = db.relationship("RakeEntry", back_populates="table", cascade="all, delete-orphan", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ChipType(db.Model):
    """Chip denomination used to value chip inventories."""
    __tablename__ = "chip_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    color = db.Column(db.String(32), nullable=False)
    value_cents = db.Column(db.Integer, nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "color": self.color,
            "value_cents": self.value_cents,
            "sort_order": self.sort_order,
        }

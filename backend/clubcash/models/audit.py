from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class AuditLog(db.Model):
    """
    Append-only trail of destructive or reversible actions.

    metadata holds a full snapshot of what was removed so the *_cancelled
    event types can be undone by re-insertion. Rows are never updated;
    a successful undo deletes its entry (single use).
    """
    __tablename__ = "audit_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(64), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    # "metadata" is reserved on declarative models
    snapshot = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "description": self.description,
            "metadata": self.snapshot,
            "created_at": to_utc_z(self.created_at),
        }


class CancelledBuyIn(db.Model):
    """Reporting copy of every deleted buy-in (shown on the session close report)."""
    __tablename__ = "cancelled_buy_ins"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    original_buy_in_id = db.Column(db.Integer, nullable=True)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=False, index=True)
    player_name = db.Column(db.String(128), nullable=False)
    table_id = db.Column(db.Integer, nullable=True)
    table_name = db.Column(db.String(64), nullable=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id", ondelete="SET NULL"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "original_buy_in_id": self.original_buy_in_id,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "table_id": self.table_id,
            "table_name": self.table_name,
            "session_id": self.session_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "cancelled_at": to_utc_z(self.cancelled_at),
        }

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Dealer(db.Model):
    """
    Dealer receiving tips (caixinha).

    total_tips_cents is cumulative: payouts never decrement it. What the
    club still owes is total_tips_cents minus the sum of payouts.
    """
    __tablename__ = "dealers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    total_tips_cents = db.Column(db.Integer, nullable=False, default=0)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "total_tips_cents": self.total_tips_cents,
            "created_at": to_utc_z(self.created_at),
        }


class DealerTip(db.Model):
    __tablename__ = "dealer_tips"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    dealer_id = db.Column(db.Integer, db.ForeignKey("dealers.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=True, index=True)
    table_id = db.Column(db.Integer, db.ForeignKey("poker_tables.id", ondelete="SET NULL"), nullable=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    dealer = db.relationship("Dealer", backref=db.backref("tips", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "dealer_id": self.dealer_id,
            "dealer_name": self.dealer.name if self.dealer else None,
            "session_id": self.session_id,
            "table_id": self.table_id,
            "amount_cents": self.amount_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class DealerPayout(db.Model):
    __tablename__ = "dealer_payouts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    dealer_id = db.Column(db.Integer, db.ForeignKey("dealers.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False, default="cash")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    dealer = db.relationship("Dealer", backref=db.backref("payouts", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "dealer_id": self.dealer_id,
            "dealer_name": self.dealer.name if self.dealer else None,
            "session_id": self.session_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }

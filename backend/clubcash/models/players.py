from __future__ import annotations

from ..extensions import db
from ..credit_state import Paid, Unpaid
from ..time_utils import to_utc_z, utcnow


class Player(db.Model):
    """
    Club player.

    credit_balance_cents is a materialized view over credit_records:
    it must equal the sum of the remaining amounts of unpaid records.
    Only credit_service mutates it, in the same transaction as the record
    change that justifies it. Players are deactivated, never purged.
    """
    __tablename__ = "players"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, index=True)
    cpf = db.Column(db.String(14), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    credit_balance_cents = db.Column(db.Integer, nullable=False, default=0)
    credit_limit_cents = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def available_credit_cents(self) -> int:
        return self.credit_limit_cents - self.credit_balance_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "cpf": self.cpf,
            "phone": self.phone,
            "credit_balance_cents": self.credit_balance_cents,
            "credit_limit_cents": self.credit_limit_cents,
            "available_credit_cents": self.available_credit_cents,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CreditRecord(db.Model):
    """
    One fiado debt.

    LIFECYCLE:
    - Unpaid: remaining = amount - sum(receipts) > 0
    - Paid: remaining == 0, paid_at stamped (terminal except via undo)
    - Voided: buy-in deleted after partial payment; nothing owed, receipts kept

    buy_in_id is nullable: paid and voided records are detached from their
    buy-in when it is deleted, so receipts survive and undo can re-link.
    """
    __tablename__ = "credit_records"
    __table_args__ = (
        db.Index("ix_credit_records_player_paid_created", "player_id", "is_paid", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=False, index=True)
    buy_in_id = db.Column(db.Integer, db.ForeignKey("buy_ins.id", ondelete="CASCADE"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    is_paid = db.Column(db.Boolean, nullable=False, default=False, index=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    voided_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    player = db.relationship("Player", backref=db.backref("credit_records", lazy=True))
    buy_in = db.relationship("BuyIn", back_populates="credit_record")
    receipts = db.relationship(
        "PaymentReceipt",
        back_populates="credit_record",
        cascade="all, delete-orphan",
        order_by="PaymentReceipt.id",
        lazy=True,
    )

    @property
    def paid_cents(self) -> int:
        return sum(r.amount_cents for r in self.receipts)

    @property
    def is_voided(self) -> bool:
        return self.voided_at is not None

    @property
    def remaining_cents(self) -> int:
        if self.is_paid or self.is_voided:
            return 0
        return self.amount_cents - self.paid_cents

    @property
    def state(self) -> Unpaid | Paid:
        if self.is_paid:
            return Paid(amount_cents=self.amount_cents, paid_at=self.paid_at)
        return Unpaid(amount_cents=self.amount_cents, paid_cents=self.paid_cents)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "player_id": self.player_id,
            "buy_in_id": self.buy_in_id,
            "amount_cents": self.amount_cents,
            "paid_cents": self.paid_cents,
            "remaining_cents": self.remaining_cents,
            "is_paid": self.is_paid,
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "voided_at": to_utc_z(self.voided_at) if self.voided_at else None,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class PaymentReceipt(db.Model):
    """Append-only log of each (possibly partial) payment against a CreditRecord."""
    __tablename__ = "payment_receipts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    credit_record_id = db.Column(
        db.Integer, db.ForeignKey("credit_records.id", ondelete="CASCADE"), nullable=False, index=True
    )
    player_id = db.Column(db.Integer, db.ForeignKey("players.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=True, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    credit_record = db.relationship("CreditRecord", back_populates="receipts")
    player = db.relationship("Player", backref=db.backref("payment_receipts", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "credit_record_id": self.credit_record_id,
            "player_id": self.player_id,
            "session_id": self.session_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }

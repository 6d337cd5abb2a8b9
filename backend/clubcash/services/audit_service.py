# Overview: Service-layer operations for the audit trail.

"""
Audit trail invariants

- Append-only: entries are never updated.
- Entries are written inside the same DB transaction as the action they
  record (flush, never commit here).
- The only delete is the single-use undo in reversal_service.
"""

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import AuditLog
from ..time_utils import day_bounds


EVENT_BUY_IN_CANCELLED = "buy_in_cancelled"
EVENT_CASH_OUT_CANCELLED = "cash_out_cancelled"
EVENT_DEALER_TIP_CANCELLED = "dealer_tip_cancelled"
EVENT_RAKE_CANCELLED = "rake_cancelled"
EVENT_TABLE_DELETED = "table_deleted"
EVENT_SESSION_CLOSED = "session_closed"
EVENT_SESSION_REOPENED = "session_reopened"
EVENT_SESSION_DELETED = "session_deleted"
EVENT_CREDIT_PAYMENT = "credit_payment"
EVENT_CREDIT_REVERSED = "credit_reversed"
EVENT_UNDO = "undo"

UNDOABLE_EVENT_TYPES = [
    EVENT_BUY_IN_CANCELLED,
    EVENT_CASH_OUT_CANCELLED,
    EVENT_DEALER_TIP_CANCELLED,
    EVENT_RAKE_CANCELLED,
]


def append_audit_event(event_type: str, description: str, metadata: dict | None = None) -> AuditLog:
    entry = AuditLog(
        event_type=event_type,
        description=description[:255],
        snapshot=metadata or {},
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def list_audit_logs(day: date | None = None, event_type: str | None = None) -> list[AuditLog]:
    """Audit entries, newest first, optionally for one calendar day (UTC)."""
    query = db.session.query(AuditLog)
    if day is not None:
        start, end = day_bounds(day)
        query = query.filter(AuditLog.created_at >= start, AuditLog.created_at < end)
    if event_type:
        query = query.filter_by(event_type=event_type)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).all()

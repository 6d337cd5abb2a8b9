# Overview: Flask API routes for the audit trail and undo; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..services import audit_service, reversal_service
from ..time_utils import parse_iso_date
from .request_utils import error_response


audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit")


@audit_bp.get("")
def list_audit_logs_route():
    """
    Query params:
    - date: YYYY-MM-DD (UTC day)
    - event_type: e.g. buy_in_cancelled
    """
    try:
        logs = audit_service.list_audit_logs(
            day=parse_iso_date(request.args.get("date")),
            event_type=request.args.get("event_type"),
        )
        return jsonify({"audit_logs": [entry.to_dict() for entry in logs]})
    except Exception as e:
        return error_response(e, "list audit logs")


@audit_bp.post("/<int:log_id>/undo")
def undo_route(log_id: int):
    """Re-insert the row deleted by a *_cancelled entry. Single use."""
    try:
        restored = reversal_service.undo_from_audit_log(log_id)
        return jsonify({"restored": restored.to_dict()}), 201
    except Exception as e:
        return error_response(e, "undo audit entry")

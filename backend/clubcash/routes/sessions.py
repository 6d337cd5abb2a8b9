# Overview: Flask API routes for cash sessions; parses input and returns JSON responses.

"""
Cash Session API Routes

DESIGN:
- Open / close / reopen / delete a cash drawer period
- Summary is recomputed on every request; final_balance_cents on the
  session row is the value frozen at close
"""

from flask import Blueprint, jsonify, request

from ..services import cash_session_service, reconciliation_service, table_service
from ..models import CancelledBuyIn
from ..extensions import db
from ..time_utils import parse_iso_date
from .request_utils import error_response, json_body


sessions_bp = Blueprint("sessions", __name__, url_prefix="/api/sessions")


@sessions_bp.post("")
def open_session_route():
    """
    Open a cash session.

    Request body:
    {
        "name": "Caixa 1",
        "responsible": "Maria",           (optional)
        "session_date": "2026-03-01",     (optional, defaults to today UTC)
        "initial_chip_inventory": {"1": 100, "2": 40}  (optional)
    }
    """
    try:
        data = json_body()
        session = cash_session_service.open_session(
            name=data.get("name"),
            responsible=data.get("responsible"),
            session_date=parse_iso_date(data.get("session_date")),
            initial_chip_inventory=data.get("initial_chip_inventory"),
        )
        return jsonify({"session": session.to_dict()}), 201
    except Exception as e:
        return error_response(e, "open cash session")


@sessions_bp.get("")
def list_sessions_route():
    try:
        sessions = cash_session_service.list_sessions(
            session_date=parse_iso_date(request.args.get("date")),
            open_only=request.args.get("open_only", "false").lower() == "true",
        )
        return jsonify({"sessions": [s.to_dict() for s in sessions]})
    except Exception as e:
        return error_response(e, "list cash sessions")


@sessions_bp.get("/<int:session_id>")
def get_session_route(session_id: int):
    session = cash_session_service.get_session(session_id)
    tables = table_service.list_tables(session_id=session_id)
    return jsonify({
        "session": session.to_dict(),
        "tables": [t.to_dict() for t in tables],
    })


@sessions_bp.get("/<int:session_id>/summary")
def session_summary_route(session_id: int):
    summary = reconciliation_service.daily_summary(session_id=session_id)
    cancelled = db.session.query(CancelledBuyIn).filter_by(session_id=session_id).order_by(
        CancelledBuyIn.cancelled_at.desc()
    ).all()
    return jsonify({
        "summary": summary.to_dict(),
        "cancelled_buy_ins": [c.to_dict() for c in cancelled],
    })


@sessions_bp.put("/<int:session_id>/initial-inventory")
def update_initial_inventory_route(session_id: int):
    try:
        data = json_body()
        session = cash_session_service.update_initial_inventory(session_id, data.get("inventory"))
        return jsonify({"session": session.to_dict()})
    except Exception as e:
        return error_response(e, "update initial chip inventory")


@sessions_bp.post("/<int:session_id>/close")
def close_session_route(session_id: int):
    """
    Close a session, deactivate its tables and freeze final_balance_cents.

    Request body (optional):
    {
        "final_chip_inventory": {"1": 80, "2": 35},
        "notes": "Faltou 1 ficha verde"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        session = cash_session_service.close_session(
            session_id,
            final_chip_inventory=data.get("final_chip_inventory"),
            notes=data.get("notes"),
        )
        return jsonify({"session": session.to_dict()})
    except Exception as e:
        return error_response(e, "close cash session")


@sessions_bp.post("/<int:session_id>/reopen")
def reopen_session_route(session_id: int):
    try:
        session = cash_session_service.reopen_session(session_id)
        return jsonify({"session": session.to_dict()})
    except Exception as e:
        return error_response(e, "reopen cash session")


@sessions_bp.delete("/<int:session_id>")
def delete_session_route(session_id: int):
    try:
        cash_session_service.delete_session(session_id)
        return jsonify({"deleted": session_id})
    except Exception as e:
        return error_response(e, "delete cash session")

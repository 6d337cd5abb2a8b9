# Overview: Flask API routes for poker tables; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..services import table_service
from .request_utils import error_response, json_body


tables_bp = Blueprint("tables", __name__, url_prefix="/api/tables")


@tables_bp.post("")
def create_table_route():
    """
    Request body:
    {
        "name": "Mesa 1",
        "session_id": 3   (optional)
    }
    """
    try:
        data = json_body()
        table = table_service.create_table(data.get("name"), session_id=data.get("session_id"))
        return jsonify({"table": table.to_dict()}), 201
    except Exception as e:
        return error_response(e, "create table")


@tables_bp.get("")
def list_tables_route():
    tables = table_service.list_tables(
        session_id=request.args.get("session_id", type=int),
        active_only=request.args.get("active_only", "false").lower() == "true",
    )
    return jsonify({"tables": [t.to_dict() for t in tables]})


@tables_bp.get("/<int:table_id>")
def get_table_route(table_id: int):
    table = table_service.get_table(table_id)
    sessions = table_service.active_sessions_for_table(table_id)
    return jsonify({
        "table": table.to_dict(),
        "total_cents": table_service.table_total(table_id),
        "active_sessions": [s.to_dict() for s in sessions],
    })


@tables_bp.get("/<int:table_id>/active-sessions")
def active_sessions_route(table_id: int):
    sessions = table_service.active_sessions_for_table(table_id)
    return jsonify({"active_sessions": [s.to_dict() for s in sessions]})


@tables_bp.patch("/<int:table_id>")
def toggle_table_route(table_id: int):
    try:
        data = json_body()
        if "is_active" not in data:
            return jsonify({"error": "is_active required"}), 400
        table = table_service.set_table_active(table_id, bool(data["is_active"]))
        return jsonify({"table": table.to_dict()})
    except Exception as e:
        return error_response(e, "update table")


@tables_bp.delete("/<int:table_id>")
def delete_table_route(table_id: int):
    """Irreversible: removes the table's buy-ins, cash-outs and rake."""
    try:
        table_service.delete_table(table_id)
        return jsonify({"deleted": table_id})
    except Exception as e:
        return error_response(e, "delete table")

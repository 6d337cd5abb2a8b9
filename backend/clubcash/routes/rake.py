# Overview: Flask API routes for rake entries; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..services import rake_service, reversal_service
from .request_utils import amount_from, error_response, json_body


rake_bp = Blueprint("rake", __name__, url_prefix="/api/rake")


@rake_bp.post("")
def add_rake_route():
    try:
        data = json_body()
        if not data.get("table_id"):
            return jsonify({"error": "table_id required"}), 400
        entry = rake_service.add_rake(data["table_id"], amount_from(data), notes=data.get("notes"))
        return jsonify({"rake": entry.to_dict()}), 201
    except Exception as e:
        return error_response(e, "add rake")


@rake_bp.get("")
def list_rake_route():
    entries = rake_service.list_rake(
        session_id=request.args.get("session_id", type=int),
        table_id=request.args.get("table_id", type=int),
    )
    return jsonify({"rake": [r.to_dict() for r in entries]})


@rake_bp.get("/sessions/<int:session_id>/by-table")
def rake_by_table_route(session_id: int):
    return jsonify({"tables": rake_service.rake_by_table(session_id)})


@rake_bp.delete("/<int:rake_id>")
def delete_rake_route(rake_id: int):
    try:
        snapshot = reversal_service.delete_rake(rake_id)
        return jsonify({"deleted": rake_id, "snapshot": snapshot})
    except Exception as e:
        return error_response(e, "delete rake")

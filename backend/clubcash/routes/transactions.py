# Overview: Flask API routes for buy-ins and cash-outs; parses input and returns JSON responses.

"""
Table Transaction API Routes

DESIGN:
- Buy-ins accept an existing player_id or a player_name (created inline)
- credit_fiado buy-ins fail with 409 when over the player's limit; nothing
  is saved in that case
- DELETE goes through the reversal engine (audit snapshot + compensation)
"""

from flask import Blueprint, jsonify, request

from ..services import reversal_service, transaction_service
from .request_utils import amount_from, error_response, json_body


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api")


# =============================================================================
# BUY-INS
# =============================================================================

@transactions_bp.post("/buy-ins")
def create_buy_in_route():
    """
    Request body:
    {
        "table_id": 1,
        "player_id": 7,            (or "player_name": "Novo Jogador")
        "amount_cents": 10000,     (or "amount": "100,00")
        "payment_method": "pix",
        "is_bonus": false          (optional)
    }
    """
    try:
        data = json_body()
        if not data.get("table_id") or not data.get("payment_method"):
            return jsonify({"error": "table_id and payment_method required"}), 400

        buy_in = transaction_service.record_buy_in(
            table_id=data["table_id"],
            amount_cents=amount_from(data),
            payment_method=data["payment_method"],
            player_id=data.get("player_id"),
            player_name=data.get("player_name"),
            is_bonus=bool(data.get("is_bonus", False)),
        )
        return jsonify({"buy_in": buy_in.to_dict()}), 201
    except Exception as e:
        return error_response(e, "record buy-in")


@transactions_bp.get("/buy-ins")
def list_buy_ins_route():
    buy_ins = transaction_service.list_buy_ins(
        session_id=request.args.get("session_id", type=int),
        table_id=request.args.get("table_id", type=int),
        player_id=request.args.get("player_id", type=int),
    )
    return jsonify({"buy_ins": [b.to_dict() for b in buy_ins]})


@transactions_bp.delete("/buy-ins/<int:buy_in_id>")
def delete_buy_in_route(buy_in_id: int):
    try:
        snapshot = reversal_service.delete_buy_in(buy_in_id)
        return jsonify({"deleted": buy_in_id, "snapshot": snapshot})
    except Exception as e:
        return error_response(e, "delete buy-in")


# =============================================================================
# CASH-OUTS
# =============================================================================

@transactions_bp.post("/cash-outs")
def create_cash_out_route():
    """
    Request body:
    {
        "table_id": 1,
        "player_id": 7,
        "chip_value_cents": 15000,   (or "chip_value": "150,00")
        "payment_method": "cash",
        "settle_debt": false         (optional: abate fiado from chip value)
    }
    """
    try:
        data = json_body()
        if not all([data.get("table_id"), data.get("player_id"), data.get("payment_method")]):
            return jsonify({"error": "table_id, player_id and payment_method required"}), 400

        cash_out = transaction_service.record_cash_out(
            table_id=data["table_id"],
            player_id=data["player_id"],
            chip_value_cents=amount_from(data, "chip_value"),
            payment_method=data["payment_method"],
            settle_debt=bool(data.get("settle_debt", False)),
        )
        return jsonify({"cash_out": cash_out.to_dict()}), 201
    except Exception as e:
        return error_response(e, "record cash-out")


@transactions_bp.get("/cash-outs")
def list_cash_outs_route():
    cash_outs = transaction_service.list_cash_outs(
        session_id=request.args.get("session_id", type=int),
        table_id=request.args.get("table_id", type=int),
        player_id=request.args.get("player_id", type=int),
    )
    return jsonify({"cash_outs": [c.to_dict() for c in cash_outs]})


@transactions_bp.delete("/cash-outs/<int:cash_out_id>")
def delete_cash_out_route(cash_out_id: int):
    try:
        snapshot = reversal_service.delete_cash_out(cash_out_id)
        return jsonify({"deleted": cash_out_id, "snapshot": snapshot})
    except Exception as e:
        return error_response(e, "delete cash-out")

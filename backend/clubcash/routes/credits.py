# Overview: Flask API routes for fiado credit and debt payments; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..services import credit_service
from .request_utils import amount_from, error_response, json_body


credits_bp = Blueprint("credits", __name__, url_prefix="/api/credits")


@credits_bp.get("")
def list_unpaid_credits_route():
    """Unpaid credit records, newest first."""
    records = credit_service.list_unpaid_credits()
    return jsonify({"credits": [r.to_dict() for r in records]})


@credits_bp.get("/receivables")
def receivables_route():
    """Outstanding debt grouped per player, largest first."""
    return jsonify({"players": credit_service.list_outstanding_by_player()})


@credits_bp.get("/players/<int:player_id>")
def player_credits_route(player_id: int):
    include_paid = request.args.get("include_paid", "false").lower() == "true"
    records = credit_service.get_player_credits(player_id, include_paid=include_paid)
    return jsonify({
        "credits": [r.to_dict() for r in records],
        "outstanding_cents": credit_service.compute_credit_balance(player_id),
    })


@credits_bp.post("/<int:credit_record_id>/payments")
def receive_payment_route(credit_record_id: int):
    """
    Pay (part of) one credit record.

    Request body:
    {
        "amount_cents": 5000,
        "payment_method": "pix",
        "session_id": 3          (optional)
    }
    """
    try:
        data = json_body()
        receipt = credit_service.receive_payment(
            credit_record_id,
            amount_from(data),
            data.get("payment_method"),
            session_id=data.get("session_id"),
        )
        return jsonify({"receipt": receipt.to_dict(), "credit": receipt.credit_record.to_dict()}), 201
    except Exception as e:
        return error_response(e, "receive credit payment")


@credits_bp.post("/players/<int:player_id>/payments")
def pay_across_records_route(player_id: int):
    """
    Settle a player's debts oldest-first with one payment.

    Request body:
    {
        "amount_cents": 6000,
        "payment_method": "cash",
        "session_id": 3          (optional)
    }
    """
    try:
        data = json_body()
        receipts = credit_service.pay_across_records(
            player_id,
            amount_from(data),
            data.get("payment_method"),
            session_id=data.get("session_id"),
        )
        return jsonify({
            "receipts": [r.to_dict() for r in receipts],
            "outstanding_cents": credit_service.compute_credit_balance(player_id),
        }), 201
    except Exception as e:
        return error_response(e, "pay across credit records")

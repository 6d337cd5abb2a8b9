# Overview: Flask API routes for dealers, tips and payouts; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..services import dealer_service, reversal_service
from ..payment_methods import CASH
from .request_utils import amount_from, error_response, json_body


dealers_bp = Blueprint("dealers", __name__, url_prefix="/api/dealers")


@dealers_bp.post("")
def create_dealer_route():
    try:
        data = json_body()
        dealer = dealer_service.create_dealer(data.get("name"))
        return jsonify({"dealer": dealer.to_dict()}), 201
    except Exception as e:
        return error_response(e, "create dealer")


@dealers_bp.get("")
def list_dealers_route():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    dealers = dealer_service.list_dealers(include_inactive=include_inactive)
    return jsonify({"dealers": [d.to_dict() for d in dealers]})


@dealers_bp.get("/balances")
def dealer_balances_route():
    return jsonify({"dealers": dealer_service.dealer_balances()})


@dealers_bp.get("/<int:dealer_id>")
def get_dealer_route(dealer_id: int):
    dealer = dealer_service.get_dealer(dealer_id)
    return jsonify({
        "dealer": dealer.to_dict(),
        "owed_cents": dealer_service.amount_owed(dealer_id),
        "total_payouts_cents": dealer_service.total_payouts(dealer_id),
    })


@dealers_bp.delete("/<int:dealer_id>")
def deactivate_dealer_route(dealer_id: int):
    try:
        dealer = dealer_service.deactivate_dealer(dealer_id)
        return jsonify({"dealer": dealer.to_dict()})
    except Exception as e:
        return error_response(e, "deactivate dealer")


# =============================================================================
# TIPS
# =============================================================================

@dealers_bp.post("/<int:dealer_id>/tips")
def add_tip_route(dealer_id: int):
    """
    Request body:
    {
        "amount_cents": 2000,
        "session_id": 3,     (optional)
        "table_id": 1,       (optional)
        "notes": "..."       (optional)
    }
    """
    try:
        data = json_body()
        tip = dealer_service.add_tip(
            dealer_id,
            amount_from(data),
            session_id=data.get("session_id"),
            table_id=data.get("table_id"),
            notes=data.get("notes"),
        )
        return jsonify({"tip": tip.to_dict()}), 201
    except Exception as e:
        return error_response(e, "add dealer tip")


@dealers_bp.get("/tips")
def list_tips_route():
    tips = dealer_service.list_tips(
        dealer_id=request.args.get("dealer_id", type=int),
        session_id=request.args.get("session_id", type=int),
    )
    return jsonify({"tips": [t.to_dict() for t in tips]})


@dealers_bp.delete("/tips/<int:tip_id>")
def delete_tip_route(tip_id: int):
    try:
        snapshot = reversal_service.delete_tip(tip_id)
        return jsonify({"deleted": tip_id, "snapshot": snapshot})
    except Exception as e:
        return error_response(e, "delete dealer tip")


# =============================================================================
# PAYOUTS
# =============================================================================

@dealers_bp.post("/<int:dealer_id>/payouts")
def payout_route(dealer_id: int):
    try:
        data = json_body()
        payout = dealer_service.payout_dealer(
            dealer_id,
            amount_from(data),
            payment_method=data.get("payment_method") or CASH,
            session_id=data.get("session_id"),
        )
        return jsonify({
            "payout": payout.to_dict(),
            "owed_cents": dealer_service.amount_owed(dealer_id),
        }), 201
    except Exception as e:
        return error_response(e, "pay dealer")


@dealers_bp.get("/payouts")
def list_payouts_route():
    payouts = dealer_service.list_payouts(
        dealer_id=request.args.get("dealer_id", type=int),
        session_id=request.args.get("session_id", type=int),
    )
    return jsonify({"payouts": [p.to_dict() for p in payouts]})

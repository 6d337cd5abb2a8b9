# Overview: Flask API routes for players; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..services import credit_service, player_service
from .request_utils import amount_from, error_response, json_body


players_bp = Blueprint("players", __name__, url_prefix="/api/players")


@players_bp.post("")
def create_player_route():
    """
    Create a player.

    Request body:
    {
        "name": "João",
        "cpf": "000.000.000-00",   (optional)
        "phone": "+55 11 99999-0000",  (optional)
        "credit_limit_cents": 50000  (optional, defaults to DEFAULT_CREDIT_LIMIT_CENTS)
    }
    """
    try:
        data = json_body()
        player = player_service.create_player(
            name=data.get("name"),
            cpf=data.get("cpf"),
            phone=data.get("phone"),
            credit_limit_cents=amount_from(data, "credit_limit", required=False),
        )
        return jsonify({"player": player.to_dict()}), 201
    except Exception as e:
        return error_response(e, "create player")


@players_bp.get("")
def list_players_route():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    players = player_service.list_players(include_inactive=include_inactive)
    return jsonify({"players": [p.to_dict() for p in players]})


@players_bp.get("/<int:player_id>")
def get_player_route(player_id: int):
    player = player_service.get_player(player_id)
    credits = credit_service.get_player_credits(player_id, include_paid=True)
    return jsonify({
        "player": player.to_dict(),
        "credits": [c.to_dict() for c in credits],
    })


@players_bp.patch("/<int:player_id>")
def update_player_route(player_id: int):
    try:
        data = json_body()
        player = player_service.update_player(
            player_id,
            name=data.get("name"),
            cpf=data.get("cpf"),
            phone=data.get("phone"),
        )
        limit = amount_from(data, "credit_limit", required=False)
        if limit is not None:
            player = player_service.set_credit_limit(player_id, limit)
        return jsonify({"player": player.to_dict()})
    except Exception as e:
        return error_response(e, "update player")


@players_bp.delete("/<int:player_id>")
def deactivate_player_route(player_id: int):
    """Soft delete: history and outstanding credit are kept."""
    try:
        player = player_service.deactivate_player(player_id)
        return jsonify({"player": player.to_dict()})
    except Exception as e:
        return error_response(e, "deactivate player")

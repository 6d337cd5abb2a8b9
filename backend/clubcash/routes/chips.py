# Overview: Flask API routes for chip types and inventory valuation; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..services import chip_service
from .request_utils import amount_from, error_response, json_body


chips_bp = Blueprint("chips", __name__, url_prefix="/api/chips")


@chips_bp.get("")
def list_chip_types_route():
    return jsonify({"chip_types": [c.to_dict() for c in chip_service.list_chip_types()]})


@chips_bp.post("")
def create_chip_type_route():
    try:
        data = json_body()
        chip_type = chip_service.create_chip_type(
            data.get("color"),
            amount_from(data, "value"),
            sort_order=data.get("sort_order"),
        )
        return jsonify({"chip_type": chip_type.to_dict()}), 201
    except Exception as e:
        return error_response(e, "create chip type")


@chips_bp.post("/value")
def value_inventory_route():
    """
    Value a chip inventory.

    Request body: {"inventory": {"1": 10, "2": 4}}
    Unknown chip type ids are ignored.
    """
    try:
        data = json_body()
        inventory = chip_service.normalize_inventory(data.get("inventory") or {})
        total = chip_service.total_value(inventory, chip_service.list_chip_types())
        return jsonify({"total_cents": total})
    except Exception as e:
        return error_response(e, "value chip inventory")

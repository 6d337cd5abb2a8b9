# Overview: Request parsing shared by the API blueprints.

from __future__ import annotations

from flask import current_app, jsonify, request

from ..errors import LedgerError, ValidationError
from ..money import to_cents


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def amount_from(data: dict, key: str = "amount", required: bool = True) -> int | None:
    """
    Read an amount as "<key>_cents" (int) or "<key>" (decimal reais, e.g. "12,50").
    """
    if data.get(f"{key}_cents") is not None:
        return to_cents(data[f"{key}_cents"], f"{key}_cents")
    if data.get(key) is not None:
        value = data[key]
        if isinstance(value, int) and not isinstance(value, bool):
            # Whole reais when no _cents suffix
            value = str(value)
        return to_cents(value, key)
    if required:
        raise ValidationError(f"{key}_cents or {key} required")
    return None


def error_response(exc: Exception, action: str):
    """Map a failure to a JSON error; unexpected ones are logged and hidden."""
    if isinstance(exc, LedgerError):
        return jsonify({"error": str(exc), "kind": type(exc).__name__}), exc.status_code
    if isinstance(exc, ValueError):
        return jsonify({"error": str(exc)}), 400
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for inventory availability; read-only JSON views.

# backend/slabworks/routes/inventory.py

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Faucet, FaucetType, Sink, SinkType
from ..validation import FieldErrors, ValidationError, to_int
from ..services import inventory_service
from ..decorators import require_auth


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _parse_exclude(raw: str | None) -> list[int]:
    """?exclude=1,2,3 -> [1, 2, 3]: slabs already picked in the open form."""
    if not raw:
        return []
    errors = FieldErrors()
    ids = [to_int(part, "exclude", errors, minimum=1) for part in raw.split(",") if part.strip()]
    errors.raise_if_any("Invalid exclude list")
    return ids


@inventory_bp.get("/stones")
@require_auth
def stones_route():
    """Per stone: uncut slab count and reservable slab count."""
    try:
        return jsonify({"stones": inventory_service.stone_availability(g.company_id)}), 200
    except Exception:
        current_app.logger.exception("Failed to load stone availability")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/stones/<int:stone_id>/slabs")
@require_auth
def available_slabs_route(stone_id: int):
    try:
        exclude = _parse_exclude(request.args.get("exclude"))
        slabs = inventory_service.available_slabs(stone_id, g.company_id, exclude)
        return jsonify({"slabs": [slab.to_dict() for slab in slabs]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except Exception:
        current_app.logger.exception("Failed to load available slabs")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/sink-types")
@require_auth
def sink_types_route():
    try:
        types = inventory_service.fixture_type_availability(Sink, SinkType, g.company_id)
        return jsonify({"sink_types": types}), 200
    except Exception:
        current_app.logger.exception("Failed to load sink types")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/faucet-types")
@require_auth
def faucet_types_route():
    try:
        types = inventory_service.fixture_type_availability(Faucet, FaucetType, g.company_id)
        return jsonify({"faucet_types": types}), 200
    except Exception:
        current_app.logger.exception("Failed to load faucet types")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for the deal pipeline; parses input and returns JSON responses.

# backend/slabworks/routes/deals.py

from flask import Blueprint, request, jsonify, g, current_app

from ..validation import FieldErrors, ValidationError, to_int
from ..services import deal_service
from ..services.customer_service import CustomerNotFoundError
from ..services.deal_service import DealNotFoundError
from ..decorators import require_auth


deals_bp = Blueprint("deals", __name__, url_prefix="/api/deals")


@deals_bp.post("/")
@require_auth
def create_deal_route():
    try:
        deal = deal_service.create_deal(
            request.get_json(silent=True),
            g.company_id,
            user_id=g.current_user.id,
        )
        return jsonify({"deal": deal.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except (DealNotFoundError, CustomerNotFoundError) as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create deal")
        return jsonify({"error": "Internal server error"}), 500


@deals_bp.post("/<int:deal_id>/move")
@require_auth
def move_deal_route(deal_id: int):
    try:
        data = request.get_json(silent=True) or {}
        errors = FieldErrors()
        to_list = to_int(data.get("to_list"), "to_list", errors, minimum=1)
        if to_list is None:
            errors.add("to_list", "Target list is required")
        errors.raise_if_any()

        deal = deal_service.move_deal(deal_id, to_list, g.company_id)
        return jsonify({"deal": deal.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except DealNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to move deal")
        return jsonify({"error": "Internal server error"}), 500


@deals_bp.post("/reorder")
@require_auth
def reorder_deals_route():
    """Body: {"updates": [{"id", "list_id", "position"}, ...]}"""
    try:
        data = request.get_json(silent=True) or {}
        updated = deal_service.reorder_deals(data.get("updates"), g.company_id)
        return jsonify({"success": True, "updated": updated}), 200
    except ValidationError as e:
        return jsonify({"error": str(e), "errors": e.errors}), 400
    except DealNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to reorder deals")
        return jsonify({"error": "Internal server error"}), 500


@deals_bp.delete("/<int:deal_id>")
@require_auth
def delete_deal_route(deal_id: int):
    try:
        deal_service.delete_deal(deal_id, g.company_id)
        return jsonify({"success": True}), 200
    except DealNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete deal")
        return jsonify({"error": "Internal server error"}), 500

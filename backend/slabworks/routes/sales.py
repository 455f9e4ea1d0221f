# Overview: Flask API routes for sales contracts; parses input and returns JSON responses.

# backend/slabworks/routes/sales.py
"""
Sales contract routes.

Every write goes through services.contract_service.Contract; the route only
parses the payload and maps service errors to HTTP status codes.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..models import Sale
from ..validation import ConflictError, ValidationError
from ..services import ledger_service, notification_service
from ..services.contract_schemas import (
    parse_add_slab_submission,
    parse_contract_submission,
    parse_cut_slab_submission,
)
from ..services.contract_service import Contract, ContractError
from ..services.customer_service import CustomerNotFoundError
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _error_response(exc: Exception, action: str):
    """Shared error mapping for contract routes; also queues an error notification."""
    if isinstance(exc, ValidationError):
        notification_service.notify_error(str(exc))
        return jsonify({"error": str(exc), "errors": exc.errors}), 400
    if isinstance(exc, ConflictError):
        notification_service.notify_error(str(exc))
        return jsonify({"error": str(exc), "details": exc.details}), 409
    if isinstance(exc, (ContractError, CustomerNotFoundError)):
        notification_service.notify_error(str(exc))
        return jsonify({"error": str(exc)}), 404

    current_app.logger.exception("Failed to %s", action)
    notification_service.notify_error("Something went wrong, please try again")
    return jsonify({"error": "Internal server error"}), 500


def _sale_payload(sale_id: int) -> dict:
    sale = db.session.query(Sale).filter_by(id=sale_id, company_id=g.company_id).first()
    return sale.to_dict() if sale else None


@sales_bp.post("/quote")
@require_auth
def quote_route():
    """Price a submission without reserving anything."""
    try:
        submission = parse_contract_submission(request.get_json(silent=True))
        quote = Contract(submission).quote(g.company_id)
        return jsonify({"quote": quote}), 200
    except Exception as exc:
        return _error_response(exc, "quote sale")


@sales_bp.post("/")
@require_auth
def sell_route():
    try:
        submission = parse_contract_submission(request.get_json(silent=True))
        contract = Contract(submission)
        sale_id = contract.sell(g.current_user)

        current_app.logger.info("Sale %s created by user %s", sale_id, g.current_user.id)
        notification_service.notify_success("Sale completed successfully")
        return jsonify({"sale": _sale_payload(sale_id), "contract": contract.data.to_dict()}), 201
    except Exception as exc:
        return _error_response(exc, "create sale")


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    """Sale row, the hydrated submission and its event history."""
    try:
        contract = Contract.from_sales_id(sale_id, g.company_id)
        events = ledger_service.list_sale_events(sale_id, g.company_id)
        return jsonify({
            "sale": _sale_payload(sale_id),
            "contract": contract.data.to_dict(),
            "events": [event.to_dict() for event in events],
        }), 200
    except Exception as exc:
        return _error_response(exc, "load sale")


@sales_bp.put("/<int:sale_id>")
@require_auth
def edit_sale_route(sale_id: int):
    try:
        submission = parse_contract_submission(request.get_json(silent=True))
        contract = Contract(submission, sale_id=sale_id, company_id=g.company_id)
        contract.edit(g.current_user)

        current_app.logger.info("Sale %s edited by user %s", sale_id, g.current_user.id)
        notification_service.notify_success("Sale updated successfully")
        return jsonify({"sale": _sale_payload(sale_id), "contract": contract.data.to_dict()}), 200
    except Exception as exc:
        return _error_response(exc, "edit sale")


@sales_bp.post("/<int:sale_id>/unsell")
@require_auth
def unsell_route(sale_id: int):
    """Cancel the sale and release its units. Repeating the call is a no-op."""
    try:
        contract = Contract.from_sales_id(sale_id, g.company_id)
        canceled = contract.unsell(g.current_user)

        if canceled:
            current_app.logger.info("Sale %s canceled by user %s", sale_id, g.current_user.id)
            notification_service.notify_success("Sale canceled, all units returned to stock")
        return jsonify({"sale": _sale_payload(sale_id), "canceled": canceled}), 200
    except Exception as exc:
        return _error_response(exc, "unsell sale")


@sales_bp.post("/<int:sale_id>/slabs")
@require_auth
def add_slab_route(sale_id: int):
    """Add one slab (and optionally a sink) to an existing sale."""
    try:
        submission = parse_add_slab_submission(request.get_json(silent=True))
        contract = Contract.from_sales_id(sale_id, g.company_id)
        contract.add_slab(g.current_user, submission)

        current_app.logger.info(
            "Slab %s added to sale %s by user %s", submission.slab_id, sale_id, g.current_user.id
        )
        notification_service.notify_success("Slab added to existing sale successfully")
        return jsonify({"sale": _sale_payload(sale_id), "contract": contract.data.to_dict()}), 200
    except Exception as exc:
        return _error_response(exc, "add slab to sale")


@sales_bp.post("/<int:sale_id>/slabs/<int:slab_id>/cut")
@require_auth
def cut_slab_route(sale_id: int, slab_id: int):
    try:
        submission = parse_cut_slab_submission(request.get_json(silent=True))
        contract = Contract.from_sales_id(sale_id, g.company_id)
        result = contract.cut_slab(g.current_user, slab_id, submission)

        current_app.logger.info("Slab %s of sale %s cut by user %s", slab_id, sale_id, g.current_user.id)
        notification_service.notify_success(
            "Slab cut successfully" if submission.remnant else "Slab marked as cut with no leftovers"
        )
        return jsonify({"sale": _sale_payload(sale_id), "cut": result}), 200
    except Exception as exc:
        return _error_response(exc, "cut slab")

# Overview: Service-layer operations for the deal pipeline; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Deal, DealList
from ..validation import FieldErrors, ValidationError, to_cents, to_int, to_text
from slabworks.time_utils import utcnow
from .customer_service import get_company_customer


class DealNotFoundError(Exception):
    """Unknown deal/list id, or one owned by another company."""


def _get_deal(deal_id: int, company_id: int) -> Deal:
    deal = (
        db.session.query(Deal)
        .filter_by(id=deal_id, company_id=company_id)
        .filter(Deal.deleted_at.is_(None))
        .first()
    )
    if deal is None:
        raise DealNotFoundError("Deal not found")
    return deal


def _get_list(list_id: int, company_id: int) -> DealList:
    deal_list = (
        db.session.query(DealList)
        .filter_by(id=list_id, company_id=company_id)
        .filter(DealList.deleted_at.is_(None))
        .first()
    )
    if deal_list is None:
        raise DealNotFoundError("Deal list not found")
    return deal_list


def _next_position(list_id: int) -> int:
    current = (
        db.session.query(func.coalesce(func.max(Deal.position), 0))
        .filter(Deal.list_id == list_id, Deal.deleted_at.is_(None))
        .scalar()
    )
    return int(current) + 1


def create_deal(payload: dict, company_id: int, user_id: int | None = None) -> Deal:
    """Add a deal at the end of its list."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors = FieldErrors()
    customer_id = to_int(payload.get("customer_id"), "customer_id", errors, minimum=1)
    list_id = to_int(payload.get("list_id"), "list_id", errors, minimum=1)
    amount_cents = to_cents(payload.get("amount_cents"), "amount_cents", errors)
    if customer_id is None:
        errors.add("customer_id", "Customer is required")
    if list_id is None:
        errors.add("list_id", "List is required")
    errors.raise_if_any()

    get_company_customer(customer_id, company_id)
    _get_list(list_id, company_id)

    deal = Deal(
        company_id=company_id,
        customer_id=customer_id,
        user_id=user_id,
        list_id=list_id,
        name=to_text(payload.get("name")),
        description=to_text(payload.get("description")),
        amount_cents=amount_cents,
        status=to_text(payload.get("status")),
        position=_next_position(list_id),
    )
    db.session.add(deal)
    db.session.commit()
    return deal


def move_deal(deal_id: int, to_list_id: int, company_id: int) -> Deal:
    """Move a deal to the end of another list."""
    deal = _get_deal(deal_id, company_id)
    _get_list(to_list_id, company_id)

    deal.position = _next_position(to_list_id)
    deal.list_id = to_list_id
    db.session.commit()
    return deal


def reorder_deals(updates, company_id: int) -> int:
    """
    Apply a batch of {id, list_id, position} moves in one transaction.

    Every referenced deal and list must belong to the company; otherwise
    nothing is written. Returns the number of deals updated.
    """
    if not isinstance(updates, list) or not updates:
        raise ValidationError("No updates provided", errors={"updates": "No updates provided"})

    errors = FieldErrors()
    parsed = []
    for i, entry in enumerate(updates):
        if not isinstance(entry, dict):
            errors.add(f"updates.{i}", "Invalid update")
            continue
        deal_id = to_int(entry.get("id"), f"updates.{i}.id", errors, minimum=1)
        list_id = to_int(entry.get("list_id"), f"updates.{i}.list_id", errors, minimum=1)
        position = to_int(entry.get("position"), f"updates.{i}.position", errors, minimum=0)
        if deal_id is None or list_id is None or position is None:
            errors.add(f"updates.{i}", "id, list_id and position are required")
            continue
        parsed.append((deal_id, list_id, position))
    errors.raise_if_any()

    try:
        for deal_id, list_id, position in parsed:
            deal = _get_deal(deal_id, company_id)
            _get_list(list_id, company_id)
            deal.list_id = list_id
            deal.position = position
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return len(parsed)


def delete_deal(deal_id: int, company_id: int) -> None:
    deal = _get_deal(deal_id, company_id)
    deal.deleted_at = utcnow()
    db.session.commit()

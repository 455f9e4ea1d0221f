# Overview: Append-only audit trail for contract lifecycle events.

from __future__ import annotations

from typing import Optional

from ..extensions import db
from ..models import SaleEvent
from slabworks.time_utils import utcnow
"""
Sale Event Invariants (authoritative)

- Append-only: no updates or deletes of existing events.
- Events are written inside the same DB transaction as the change they
  record; the caller commits.
"""

EVENT_SOLD = "sale.sold"
EVENT_EDITED = "sale.edited"
EVENT_CANCELED = "sale.canceled"
EVENT_SLAB_ADDED = "sale.slab_added"
EVENT_SLAB_CUT = "sale.slab_cut"


def append_sale_event(
    *,
    company_id: int,
    sale_id: int,
    event_type: str,
    actor_user_id: int | None = None,
    note: Optional[str] = None,
    payload: Optional[dict] = None,
) -> SaleEvent:
    ev = SaleEvent(
        company_id=company_id,
        sale_id=sale_id,
        event_type=event_type,
        actor_user_id=actor_user_id,
        note=note,
        payload=payload,
        occurred_at=utcnow(),
    )
    db.session.add(ev)
    db.session.flush()  # ensures ev.id is assigned without committing
    return ev


def list_sale_events(sale_id: int, company_id: int) -> list[SaleEvent]:
    return (
        db.session.query(SaleEvent)
        .filter_by(sale_id=sale_id, company_id=company_id)
        .order_by(SaleEvent.occurred_at, SaleEvent.id)
        .all()
    )

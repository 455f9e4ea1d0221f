# Overview: Service-layer operations for slab/sink/faucet inventory and reservations.

from __future__ import annotations

from typing import Iterable

from flask import g
from sqlalchemy import and_, case, delete, false, func, update

from ..extensions import db
from ..models import Faucet, FaucetType, Sink, SinkType, SlabInventory, Stone
from ..validation import ConflictError
from slabworks.time_utils import utcnow
from .concurrency import lock_for_update
from .contract_schemas import RoomSubmission
"""
Slabworks Reservation Invariants (authoritative)

Availability:
- A slab is reservable iff sale_id IS NULL AND cut_date IS NULL.
- A sink/faucet unit is reservable iff sale_id IS NULL AND is_deleted = false.
- Every query that needs "available" uses slab_is_available() /
  fixture_is_available(); the predicate is never re-derived inline.

Reservation:
- Reserving is a conditional UPDATE guarded by the availability predicate.
  Zero rows affected means another sale got there first: raise a conflict and
  let the caller roll back the whole transaction.
- Exception: a slab the same sale held before an edit released it is
  re-bound on sale_id IS NULL alone, since a cut slab keeps its sale.
- Cutting sets cut_date only on a slab the sale holds; a cut slab is never
  available again until an add-to-sale on the same sale un-cuts it.
- Releasing clears sale_id, the room snapshot and notes in one UPDATE per
  table, keyed by sale_id. Releasing twice matches zero rows.

Tenancy:
- Slabs are company-scoped through their stone; sinks/faucets through
  their type.
"""


class SlabUnavailableError(ConflictError):
    """A referenced slab is sold, cut, or no longer exists for this company."""


class FixtureUnavailableError(ConflictError):
    """No unreserved sink/faucet unit of the requested type is left."""


# Columns written when a slab is sold and cleared when it is released
SLAB_SNAPSHOT_COLUMNS = (
    "room_uuid",
    "room",
    "edge",
    "backsplash",
    "tear_out",
    "stove",
    "waterfall",
    "corbels",
    "seam",
    "ten_year_sealer",
    "square_feet",
    "price_cents",
    "extras",
)


def slab_is_available():
    return and_(SlabInventory.sale_id.is_(None), SlabInventory.cut_date.is_(None))


def fixture_is_available(model):
    return and_(model.sale_id.is_(None), model.is_deleted == false())


def _company_slabs(company_id: int):
    return (
        db.session.query(SlabInventory)
        .join(Stone, Stone.id == SlabInventory.stone_id)
        .filter(Stone.company_id == company_id)
    )


def stone_names(company_id: int) -> dict[int, str]:
    """
    Stone id -> name for a company, cached for the current request only.

    Lives on flask.g so it is dropped with the app context; there is no
    cross-request state to invalidate.
    """
    cache = g.setdefault("_stone_names", {})
    if company_id not in cache:
        rows = db.session.query(Stone.id, Stone.name).filter(Stone.company_id == company_id).all()
        cache[company_id] = {stone_id: name for stone_id, name in rows}
    return cache[company_id]


def get_company_slabs(slab_ids: Iterable[int], company_id: int) -> dict[int, SlabInventory]:
    ids = list(set(slab_ids))
    if not ids:
        return {}
    slabs = _company_slabs(company_id).filter(SlabInventory.id.in_(ids)).all()
    return {slab.id: slab for slab in slabs}


def available_slabs(stone_id: int, company_id: int, exclude_ids: Iterable[int] = ()) -> list[SlabInventory]:
    """Reservable slabs of a stone, minus slabs already picked in the open form."""
    query = _company_slabs(company_id).filter(
        SlabInventory.stone_id == stone_id,
        slab_is_available(),
    )
    exclude = list(exclude_ids)
    if exclude:
        query = query.filter(SlabInventory.id.notin_(exclude))
    return query.order_by(SlabInventory.bundle, SlabInventory.id).all()


def stone_availability(company_id: int) -> list[dict]:
    """Per stone: uncut slab count ("amount") and reservable slab count."""
    available_case = func.sum(
        case((slab_is_available(), 1), else_=0)
    )
    rows = (
        db.session.query(
            Stone,
            func.count(SlabInventory.id),
            available_case,
        )
        .outerjoin(
            SlabInventory,
            and_(SlabInventory.stone_id == Stone.id, SlabInventory.cut_date.is_(None)),
        )
        .filter(Stone.company_id == company_id)
        .group_by(Stone.id)
        .order_by(Stone.name)
        .all()
    )
    return [
        {
            "stone": stone.to_dict(),
            "amount": int(amount or 0),
            "available": int(available or 0),
        }
        for stone, amount, available in rows
    ]


def fixture_prices(
    company_id: int,
    sink_type_ids: Iterable[int],
    faucet_type_ids: Iterable[int],
) -> tuple[dict[int, int], dict[int, int]]:
    """Retail price lookup for the fixture types a submission selects."""
    sink_ids = list(set(sink_type_ids))
    faucet_ids = list(set(faucet_type_ids))

    sink_prices: dict[int, int] = {}
    if sink_ids:
        rows = db.session.query(SinkType.id, SinkType.retail_price_cents).filter(
            SinkType.company_id == company_id,
            SinkType.id.in_(sink_ids),
        ).all()
        sink_prices = {type_id: price or 0 for type_id, price in rows}

    faucet_prices: dict[int, int] = {}
    if faucet_ids:
        rows = db.session.query(FaucetType.id, FaucetType.retail_price_cents).filter(
            FaucetType.company_id == company_id,
            FaucetType.id.in_(faucet_ids),
        ).all()
        faucet_prices = {type_id: price or 0 for type_id, price in rows}

    return sink_prices, faucet_prices


def fixture_type_availability(model, type_model, company_id: int) -> list[dict]:
    """Catalog entries with their count of reservable units."""
    type_fk = model.sink_type_id if model is Sink else model.faucet_type_id
    available = func.sum(case((fixture_is_available(model), 1), else_=0))
    rows = (
        db.session.query(type_model, available)
        .outerjoin(model, type_fk == type_model.id)
        .filter(type_model.company_id == company_id)
        .group_by(type_model.id)
        .order_by(type_model.name)
        .all()
    )
    return [dict(fixture_type.to_dict(), available=int(count or 0)) for fixture_type, count in rows]


def room_snapshot(room: RoomSubmission) -> dict:
    return {
        "room_uuid": room.room_id,
        "room": room.room,
        "edge": room.edge,
        "backsplash": room.backsplash,
        "tear_out": room.tear_out,
        "stove": room.stove,
        "waterfall": room.waterfall,
        "corbels": room.corbels,
        "seam": room.seam,
        "ten_year_sealer": room.ten_year_sealer,
        "square_feet": room.square_feet,
        "price_cents": room.retail_price_cents,
        "extras": room.extras_json(),
    }


def reserve_slab(
    slab_id: int,
    sale_id: int,
    room: RoomSubmission,
    *,
    kept: bool = False,
    notes: str | None = None,
) -> None:
    """
    Bind one slab to a sale and write the room snapshot onto it.

    Raises SlabUnavailableError when the slab was sold or cut in the
    meantime (compare-and-swap on the availability predicate).

    kept=True re-binds a slab the same sale held until it was released
    earlier in this transaction. A cut slab stays on its sale, so only
    sale_id IS NULL is required for it.
    """
    guard = SlabInventory.sale_id.is_(None) if kept else slab_is_available()
    values = dict(sale_id=sale_id, **room_snapshot(room))
    if notes is not None:
        values["notes"] = notes
    result = db.session.execute(
        update(SlabInventory)
        .where(SlabInventory.id == slab_id, guard)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise SlabUnavailableError(
            f"Slab {slab_id} is no longer available",
            details={"slab_id": slab_id},
        )


def reserve_fixture(
    model,
    type_id: int,
    company_id: int,
    sale_id: int,
    slab_id: int,
) -> int:
    """
    Reserve the lowest-id available unit of a sink/faucet type.

    Returns the reserved unit id. Raises FixtureUnavailableError when no
    unit is left or the chosen unit was taken concurrently.
    """
    if model is Sink:
        type_model, type_fk, label = SinkType, Sink.sink_type_id, "sink"
    else:
        type_model, type_fk, label = FaucetType, Faucet.faucet_type_id, "faucet"

    candidate = lock_for_update(
        db.session.query(model.id)
        .join(type_model, type_model.id == type_fk)
        .filter(
            type_fk == type_id,
            type_model.company_id == company_id,
            fixture_is_available(model),
        )
        .order_by(model.id)
        .limit(1)
    ).first()

    if candidate is None:
        raise FixtureUnavailableError(
            f"No {label} of type {type_id} is available",
            details={f"{label}_type_id": type_id},
        )

    unit_id = candidate[0]
    result = db.session.execute(
        update(model)
        .where(model.id == unit_id, fixture_is_available(model))
        .values(sale_id=sale_id, slab_id=slab_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise FixtureUnavailableError(
            f"{label.capitalize()} {unit_id} is no longer available",
            details={f"{label}_id": unit_id},
        )
    return unit_id


def slab_ids_for_sale(sale_id: int, uncut_only: bool = False) -> list[int]:
    query = db.session.query(SlabInventory.id).filter(SlabInventory.sale_id == sale_id)
    if uncut_only:
        query = query.filter(SlabInventory.cut_date.is_(None))
    rows = query.all()
    return [row[0] for row in rows]


def release_sale_units(sale_id: int) -> dict[str, int]:
    """
    Release every slab, sink and faucet reserved by a sale.

    Clears sale_id, the room snapshot and notes. Returns rows affected per
    table; all zeros when the sale holds nothing (e.g. already canceled).
    """
    cleared = {column: None for column in SLAB_SNAPSHOT_COLUMNS}
    slabs = db.session.execute(
        update(SlabInventory)
        .where(SlabInventory.sale_id == sale_id)
        .values(sale_id=None, notes=None, **cleared)
        .execution_options(synchronize_session=False)
    )
    sinks = db.session.execute(
        update(Sink)
        .where(Sink.sale_id == sale_id)
        .values(sale_id=None, slab_id=None, notes=None)
        .execution_options(synchronize_session=False)
    )
    faucets = db.session.execute(
        update(Faucet)
        .where(Faucet.sale_id == sale_id)
        .values(sale_id=None, slab_id=None, notes=None)
        .execution_options(synchronize_session=False)
    )
    return {
        "slabs": slabs.rowcount,
        "sinks": sinks.rowcount,
        "faucets": faucets.rowcount,
    }


def remnant_parent_ids(slab_ids: Iterable[int]) -> set[int]:
    """Subset of slab_ids that have at least one remnant child."""
    ids = list(set(slab_ids))
    if not ids:
        return set()
    rows = (
        db.session.query(SlabInventory.parent_id)
        .filter(SlabInventory.parent_id.in_(ids))
        .distinct()
        .all()
    )
    return {row[0] for row in rows}


def create_remnant(slab: SlabInventory, length=None, width=None) -> SlabInventory:
    """
    Unsold remainder of a partially used slab, available for other sales.

    Dimensions default to the parent's until the leftover is measured.
    """
    remnant = SlabInventory(
        stone_id=slab.stone_id,
        bundle=slab.bundle,
        length=length if length is not None else slab.length,
        width=width if width is not None else slab.width,
        url=slab.url,
        parent_id=slab.id,
    )
    db.session.add(remnant)
    db.session.flush()
    return remnant


def delete_unsold_remnants(slab_ids: Iterable[int]) -> int:
    """
    Hard-delete remnants of the given slabs that were never sold.

    Sold remnants belong to another sale and are kept.
    """
    ids = list(set(slab_ids))
    if not ids:
        return 0
    result = db.session.execute(
        delete(SlabInventory)
        .where(SlabInventory.parent_id.in_(ids), SlabInventory.sale_id.is_(None))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def cut_slab(
    slab_id: int,
    sale_id: int,
    company_id: int,
    remnant: bool,
    length=None,
    width=None,
) -> dict:
    """
    Mark a slab the sale holds as cut and record what is left of it.

    Re-cutting keeps the first cut_date. The slab's unsold remnants are
    replaced: by one measured remnant when remnant=True, by nothing when
    the cut left no usable piece. Sold remnants are never touched.
    """
    slab = _company_slabs(company_id).filter(
        SlabInventory.id == slab_id,
        SlabInventory.sale_id == sale_id,
    ).first()
    if slab is None:
        raise SlabUnavailableError(
            f"Slab {slab_id} is not reserved by sale {sale_id}",
            details={"slab_id": slab_id, "sale_id": sale_id},
        )

    result = db.session.execute(
        update(SlabInventory)
        .where(
            SlabInventory.id == slab_id,
            SlabInventory.sale_id == sale_id,
            SlabInventory.cut_date.is_(None),
        )
        .values(cut_date=utcnow())
        .execution_options(synchronize_session=False)
    )

    delete_unsold_remnants([slab_id])
    remnant_id = None
    if remnant:
        remnant_id = create_remnant(slab, length=length, width=width).id

    return {"cut": result.rowcount == 1, "remnant_id": remnant_id}


def uncut_slab(slab_id: int, sale_id: int, notes: str | None, square_feet) -> bool:
    """Put a cut slab of the sale back in the to-cut queue. False if it was not cut."""
    result = db.session.execute(
        update(SlabInventory)
        .where(
            SlabInventory.id == slab_id,
            SlabInventory.sale_id == sale_id,
            SlabInventory.cut_date.isnot(None),
        )
        .values(cut_date=None, notes=notes, square_feet=square_feet)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def sale_cut_progress(sale_id: int) -> tuple[int, int]:
    """(slabs held by the sale, of which still uncut)."""
    total, uncut = (
        db.session.query(
            func.count(SlabInventory.id),
            func.sum(case((SlabInventory.cut_date.is_(None), 1), else_=0)),
        )
        .filter(SlabInventory.sale_id == sale_id)
        .one()
    )
    return int(total or 0), int(uncut or 0)

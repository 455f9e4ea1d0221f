from __future__ import annotations

import uuid
from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import Any

from ..validation import (
    EMAIL_RE,
    PHONE_RE,
    FieldErrors,
    ValidationError,
    to_bool,
    to_cents,
    to_decimal,
    to_int,
    to_text,
)

ROOM_TEXT_DEFAULTS = {
    "room": "kitchen",
    "edge": "Flat",
    "backsplash": "No",
    "tear_out": "No",
    "stove": "F/S",
    "waterfall": "No",
    "seam": "Standard",
}

MIN_ADDRESS_LENGTH = 10


@dataclass
class SlabSelection:
    id: int
    # False when only part of the slab is used; the rest becomes a remnant
    is_full: bool = True


@dataclass
class FixtureSelection:
    type_id: int


@dataclass
class ExtraItem:
    key: str
    price_cents: int
    quantity: int = 1

    @property
    def total_cents(self) -> int:
        return self.price_cents * self.quantity


@dataclass
class RoomSubmission:
    room_id: str
    slabs: list[SlabSelection]
    room: str = ROOM_TEXT_DEFAULTS["room"]
    edge: str = ROOM_TEXT_DEFAULTS["edge"]
    backsplash: str = ROOM_TEXT_DEFAULTS["backsplash"]
    tear_out: str = ROOM_TEXT_DEFAULTS["tear_out"]
    stove: str = ROOM_TEXT_DEFAULTS["stove"]
    waterfall: str = ROOM_TEXT_DEFAULTS["waterfall"]
    seam: str = ROOM_TEXT_DEFAULTS["seam"]
    corbels: int = 0
    ten_year_sealer: bool = False
    square_feet: Decimal = Decimal("0")
    # Per square foot; None means "use the stone's retail price"
    retail_price_cents: int | None = None
    sink_type: list[FixtureSelection] = field(default_factory=list)
    faucet_type: list[FixtureSelection] = field(default_factory=list)
    extras: list[ExtraItem] = field(default_factory=list)

    def extras_json(self) -> dict:
        return {
            item.key: (
                item.price_cents
                if item.quantity == 1
                else {"price_cents": item.price_cents, "quantity": item.quantity}
            )
            for item in self.extras
        }


@dataclass
class ContractSubmission:
    name: str
    rooms: list[RoomSubmission]
    customer_id: int | None = None
    seller_id: int | None = None
    billing_address: str | None = None
    billing_zip_code: str | None = None
    project_address: str | None = None
    same_address: bool = True
    phone: str | None = None
    email: str | None = None
    notes_to_sale: str | None = None
    # Explicit override; None means the computed room total is the price
    price_cents: int | None = None
    builder: bool = False
    company_name: str | None = None

    @property
    def slab_ids(self) -> list[int]:
        return [slab.id for room in self.rooms for slab in room.slabs]

    def to_dict(self) -> dict:
        data = asdict(self)
        for room, room_obj in zip(data["rooms"], self.rooms):
            room["square_feet"] = float(room_obj.square_feet)
            room["extras"] = room_obj.extras_json()
        return data


def _parse_extras(raw: Any, prefix: str, errors: FieldErrors) -> list[ExtraItem]:
    """
    Extras are keyed add-ons. A value is either a cents amount or a line
    item object {"price_cents": int, "quantity": int}.
    """
    if raw is None:
        return []
    if not isinstance(raw, dict):
        errors.add(prefix, "extras must be an object")
        return []

    items: list[ExtraItem] = []
    for key, value in raw.items():
        path = f"{prefix}.{key}"
        if isinstance(value, dict):
            price = to_cents(value.get("price_cents", 0), path, errors)
            quantity = to_int(value.get("quantity", 1), f"{path}.quantity", errors, minimum=0)
            if price is None or quantity is None:
                continue
            items.append(ExtraItem(key=str(key), price_cents=price, quantity=quantity))
        else:
            price = to_cents(value, path, errors)
            if price is None:
                continue
            items.append(ExtraItem(key=str(key), price_cents=price))
    return items


def extras_from_json(raw: Any) -> list[ExtraItem]:
    """Rebuild extras from the JSON snapshot stored on a sold slab."""
    errors = FieldErrors()
    items = _parse_extras(raw, "extras", errors)
    errors.raise_if_any("Stored extras are invalid")
    return items


def _parse_fixtures(raw: Any, prefix: str, errors: FieldErrors) -> list[FixtureSelection]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        errors.add(prefix, f"{prefix} must be a list")
        return []

    selections = []
    for i, entry in enumerate(raw):
        path = f"{prefix}.{i}"
        if not isinstance(entry, dict):
            errors.add(path, "Invalid fixture selection")
            continue
        type_id = to_int(entry.get("type_id", entry.get("id")), f"{path}.type_id", errors, minimum=1)
        if type_id is None:
            errors.add(f"{path}.type_id", "type_id is required")
            continue
        selections.append(FixtureSelection(type_id=type_id))
    return selections


def _parse_slabs(raw: Any, prefix: str, errors: FieldErrors) -> list[SlabSelection]:
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        errors.add(prefix, "slabs must be a list")
        return []
    if not raw:
        errors.add(prefix, "Room must include at least one slab")
        return []

    slabs = []
    for i, entry in enumerate(raw):
        path = f"{prefix}.{i}"
        if not isinstance(entry, dict):
            errors.add(path, "Invalid slab selection")
            continue
        slab_id = to_int(entry.get("id"), f"{path}.id", errors, minimum=1)
        if slab_id is None:
            errors.add(f"{path}.id", "Slab id is required")
            continue
        slabs.append(SlabSelection(id=slab_id, is_full=to_bool(entry.get("is_full"), default=True)))
    return slabs


def _parse_room(raw: Any, prefix: str, errors: FieldErrors) -> RoomSubmission | None:
    if not isinstance(raw, dict):
        errors.add(prefix, "Invalid room")
        return None

    slabs = _parse_slabs(raw.get("slabs"), f"{prefix}.slabs", errors)
    text_fields = {
        key: to_text(raw.get(key)) or default
        for key, default in ROOM_TEXT_DEFAULTS.items()
    }

    square_feet = to_decimal(raw.get("square_feet"), f"{prefix}.square_feet", errors)
    retail_price = to_cents(raw.get("retail_price_cents"), f"{prefix}.retail_price_cents", errors)
    corbels = to_int(raw.get("corbels"), f"{prefix}.corbels", errors, minimum=0)

    return RoomSubmission(
        room_id=to_text(raw.get("room_id")) or str(uuid.uuid4()),
        slabs=slabs,
        corbels=corbels or 0,
        ten_year_sealer=to_bool(raw.get("ten_year_sealer")),
        square_feet=square_feet if square_feet is not None else Decimal("0"),
        retail_price_cents=retail_price,
        sink_type=_parse_fixtures(raw.get("sink_type"), f"{prefix}.sink_type", errors),
        faucet_type=_parse_fixtures(raw.get("faucet_type"), f"{prefix}.faucet_type", errors),
        extras=_parse_extras(raw.get("extras"), f"{prefix}.extras", errors),
        **text_fields,
    )


def parse_contract_submission(payload: Any) -> ContractSubmission:
    """
    Validate and normalize a sell/edit submission.

    Raises ValidationError carrying every field-level problem found; nothing
    has been written when this raises.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors = FieldErrors()

    name = to_text(payload.get("name"))
    if not name:
        errors.add("name", "Name is required")

    customer_id = to_int(payload.get("customer_id"), "customer_id", errors, minimum=1)
    seller_id = to_int(payload.get("seller_id"), "seller_id", errors, minimum=1)

    billing_address = to_text(payload.get("billing_address"))
    if customer_id is None and not billing_address:
        errors.add("billing_address", "Billing address is required")
    elif billing_address and len(billing_address) < MIN_ADDRESS_LENGTH:
        errors.add("billing_address", "Billing address is required")

    same_address = to_bool(payload.get("same_address"), default=True)
    project_address = to_text(payload.get("project_address"))
    if project_address and len(project_address) < MIN_ADDRESS_LENGTH:
        errors.add("project_address", "Project address is required")

    phone = to_text(payload.get("phone"))
    if phone and not PHONE_RE.match(phone):
        errors.add("phone", "Required format: 317-316-1456")

    email = to_text(payload.get("email"))
    if email and not EMAIL_RE.match(email):
        errors.add("email", "Please enter a valid email")

    price_cents = to_cents(payload.get("price_cents"), "price_cents", errors)

    raw_rooms = payload.get("rooms")
    rooms: list[RoomSubmission] = []
    if not isinstance(raw_rooms, list) or not raw_rooms:
        errors.add("rooms", "At least one room is required")
    else:
        for i, raw_room in enumerate(raw_rooms):
            room = _parse_room(raw_room, f"rooms.{i}", errors)
            if room is not None:
                rooms.append(room)

    seen: set[int] = set()
    for i, room in enumerate(rooms):
        for slab in room.slabs:
            if slab.id in seen:
                errors.add(f"rooms.{i}.slabs", f"Slab {slab.id} is selected more than once")
            seen.add(slab.id)

    errors.raise_if_any()

    return ContractSubmission(
        name=name,
        rooms=rooms,
        customer_id=customer_id,
        seller_id=seller_id,
        billing_address=billing_address,
        billing_zip_code=to_text(payload.get("billing_zip_code")),
        project_address=project_address,
        same_address=same_address,
        phone=phone,
        email=email,
        notes_to_sale=to_text(payload.get("notes_to_sale")),
        price_cents=price_cents,
        builder=to_bool(payload.get("builder")),
        company_name=to_text(payload.get("company_name")),
    )


@dataclass
class AddSlabSubmission:
    """One more slab for an existing sale, optionally with a sink."""
    slab_id: int
    is_full: bool = True
    square_feet: Decimal = Decimal("0")
    notes: str | None = None
    sink_type_id: int | None = None


@dataclass
class CutSlabSubmission:
    # False when the cut left no usable piece
    remnant: bool = False
    length: Decimal | None = None
    width: Decimal | None = None


def parse_add_slab_submission(payload: Any) -> AddSlabSubmission:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors = FieldErrors()
    slab_id = to_int(payload.get("slab_id"), "slab_id", errors, minimum=1)
    if slab_id is None:
        errors.add("slab_id", "Slab id is required")
    square_feet = to_decimal(payload.get("square_feet"), "square_feet", errors)
    sink_type_id = to_int(payload.get("sink_type_id"), "sink_type_id", errors, minimum=1)
    errors.raise_if_any()

    return AddSlabSubmission(
        slab_id=slab_id,
        is_full=to_bool(payload.get("is_full"), default=True),
        square_feet=square_feet if square_feet is not None else Decimal("0"),
        notes=to_text(payload.get("notes")),
        sink_type_id=sink_type_id,
    )


def parse_cut_slab_submission(payload: Any) -> CutSlabSubmission:
    """
    A remnant needs positive length and width; a missing or zero dimension
    means the cut left nothing worth keeping.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors = FieldErrors()
    length = to_decimal(payload.get("length"), "length", errors)
    width = to_decimal(payload.get("width"), "width", errors)
    errors.raise_if_any()

    has_dimensions = bool(length) and bool(width)
    remnant = to_bool(payload.get("remnant")) and has_dimensions
    return CutSlabSubmission(
        remnant=remnant,
        length=length if remnant else None,
        width=width if remnant else None,
    )

"""
Sales contracts: sell, edit, unsell, add-slab and cut, with slab/sink/faucet reservations.

WHY: A sale is only meaningful together with the physical units it
reserves. Every operation here writes the sale row and the reservations in
one transaction; a conflict on any unit rolls the whole operation back.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from ..extensions import db
from ..models import (
    Faucet, Sale, Sink, SlabInventory, User,
    SALE_STATUS_ACTIVE, SALE_STATUS_PARTIALLY_CUT, SALE_STATUS_CUT, SALE_STATUS_CANCELED,
)
from ..validation import ConflictError, FieldErrors
from slabworks.time_utils import utcnow
from . import inventory_service, ledger_service, pricing_service
from .concurrency import begin_write, lock_for_update, run_with_retry
from .contract_schemas import (
    ROOM_TEXT_DEFAULTS,
    AddSlabSubmission,
    ContractSubmission,
    CutSlabSubmission,
    FixtureSelection,
    RoomSubmission,
    SlabSelection,
    extras_from_json,
)
from .customer_service import resolve_customer
from .inventory_service import SlabUnavailableError


class ContractError(Exception):
    """Raised for contract operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleNotFoundError(ContractError):
    """Unknown sale id, or a sale of another company."""


class SaleCanceledError(ConflictError):
    """Canceled sales are read-only."""


class Contract:
    """
    A sale transaction and its reservations.

    data is the validated submission (see contract_schemas). sale_id is
    None until sell() succeeds, or set when hydrated with from_sales_id().
    """

    def __init__(self, data: ContractSubmission, sale_id: int | None = None, company_id: int | None = None):
        self.data = data
        self.sale_id = sale_id
        self.company_id = company_id
        self.status: str | None = None

    # -- hydration --

    @classmethod
    def from_sales_id(cls, sale_id: int, company_id: int | None = None) -> "Contract":
        """
        Rebuild the submission a sale was written from.

        Rooms come from the snapshot columns of the slabs the sale still
        reserves, grouped by room_uuid. A canceled sale hydrates with no rooms.
        """
        query = db.session.query(Sale).filter_by(id=sale_id)
        if company_id is not None:
            query = query.filter_by(company_id=company_id)
        sale = query.first()
        if sale is None:
            raise SaleNotFoundError("Sale not found")

        customer = sale.customer
        slabs = (
            db.session.query(SlabInventory)
            .filter(SlabInventory.sale_id == sale.id)
            .order_by(SlabInventory.id)
            .all()
        )
        partial_ids = inventory_service.remnant_parent_ids(slab.id for slab in slabs)

        sinks_by_slab: dict[int, list[int]] = {}
        for slab_id, type_id in (
            db.session.query(Sink.slab_id, Sink.sink_type_id)
            .filter(Sink.sale_id == sale.id, Sink.is_deleted.is_(False))
            .order_by(Sink.id)
        ):
            sinks_by_slab.setdefault(slab_id, []).append(type_id)

        faucets_by_slab: dict[int, list[int]] = {}
        for slab_id, type_id in (
            db.session.query(Faucet.slab_id, Faucet.faucet_type_id)
            .filter(Faucet.sale_id == sale.id, Faucet.is_deleted.is_(False))
            .order_by(Faucet.id)
        ):
            faucets_by_slab.setdefault(slab_id, []).append(type_id)

        rooms: dict[str, RoomSubmission] = {}
        for slab in slabs:
            room_id = slab.room_uuid or f"slab-{slab.id}"
            room = rooms.get(room_id)
            if room is None:
                room = RoomSubmission(
                    room_id=room_id,
                    slabs=[],
                    room=slab.room or ROOM_TEXT_DEFAULTS["room"],
                    edge=slab.edge or ROOM_TEXT_DEFAULTS["edge"],
                    backsplash=slab.backsplash or ROOM_TEXT_DEFAULTS["backsplash"],
                    tear_out=slab.tear_out or ROOM_TEXT_DEFAULTS["tear_out"],
                    stove=slab.stove or ROOM_TEXT_DEFAULTS["stove"],
                    waterfall=slab.waterfall or ROOM_TEXT_DEFAULTS["waterfall"],
                    seam=slab.seam or ROOM_TEXT_DEFAULTS["seam"],
                    corbels=slab.corbels or 0,
                    ten_year_sealer=bool(slab.ten_year_sealer),
                    square_feet=Decimal(slab.square_feet or 0),
                    retail_price_cents=slab.price_cents,
                    extras=extras_from_json(slab.extras),
                )
                rooms[room_id] = room

            room.slabs.append(SlabSelection(id=slab.id, is_full=slab.id not in partial_ids))
            room.sink_type.extend(FixtureSelection(type_id=t) for t in sinks_by_slab.get(slab.id, []))
            room.faucet_type.extend(FixtureSelection(type_id=t) for t in faucets_by_slab.get(slab.id, []))

        data = ContractSubmission(
            name=customer.name,
            rooms=list(rooms.values()),
            customer_id=customer.id,
            seller_id=sale.seller_id,
            billing_address=customer.address,
            billing_zip_code=customer.postal_code,
            project_address=sale.project_address,
            same_address=(sale.project_address or "") == (customer.address or ""),
            phone=customer.phone,
            email=customer.email,
            notes_to_sale=sale.notes,
            # Only a hand-set price travels back as an override
            price_cents=sale.price_cents if sale.price_overridden else None,
            builder=bool(customer.company_name),
            company_name=customer.company_name,
        )
        contract = cls(data, sale_id=sale.id, company_id=sale.company_id)
        contract.status = sale.status
        return contract

    # -- pricing --

    def _load_slabs(self, company_id: int) -> dict[int, SlabInventory]:
        """Slabs referenced by the submission; unknown ids are field errors."""
        slabs = inventory_service.get_company_slabs(self.data.slab_ids, company_id)
        errors = FieldErrors()
        for i, room in enumerate(self.data.rooms):
            for j, selection in enumerate(room.slabs):
                if selection.id not in slabs:
                    errors.add(f"rooms.{i}.slabs.{j}.id", "Slab not found")
        errors.raise_if_any("Unknown slab")

        # Rooms without an explicit price use the stone's retail price
        for room in self.data.rooms:
            if room.retail_price_cents is None:
                room.retail_price_cents = slabs[room.slabs[0].id].stone.retail_price_cents
        return slabs

    def _load_fixture_prices(self, company_id: int) -> tuple[dict[int, int], dict[int, int]]:
        sink_prices, faucet_prices = inventory_service.fixture_prices(
            company_id,
            (s.type_id for room in self.data.rooms for s in room.sink_type),
            (f.type_id for room in self.data.rooms for f in room.faucet_type),
        )
        errors = FieldErrors()
        for i, room in enumerate(self.data.rooms):
            for j, sink in enumerate(room.sink_type):
                if sink.type_id not in sink_prices:
                    errors.add(f"rooms.{i}.sink_type.{j}.type_id", "Sink type not found")
            for j, faucet in enumerate(room.faucet_type):
                if faucet.type_id not in faucet_prices:
                    errors.add(f"rooms.{i}.faucet_type.{j}.type_id", "Faucet type not found")
        errors.raise_if_any("Unknown fixture type")
        return sink_prices, faucet_prices

    def quote(self, company_id: int) -> dict:
        """Price the submission without writing anything."""
        self._load_slabs(company_id)
        sink_prices, faucet_prices = self._load_fixture_prices(company_id)
        rooms = [
            {
                "room_id": room.room_id,
                "room": room.room,
                "price_cents": pricing_service.room_price_cents(room, sink_prices, faucet_prices),
            }
            for room in self.data.rooms
        ]
        return {
            "rooms": rooms,
            "total_cents": sum(r["price_cents"] for r in rooms),
            "price_cents": pricing_service.sale_price_cents(self.data, sink_prices, faucet_prices),
            "square_feet": float(pricing_service.total_square_feet(self.data)),
        }

    # -- reservations --

    def _seller_id(self, user: User) -> int:
        if self.data.seller_id is None or self.data.seller_id == user.id:
            return user.id
        seller = db.session.query(User).filter_by(id=self.data.seller_id, company_id=user.company_id).first()
        if seller is None:
            errors = FieldErrors()
            errors.add("seller_id", "Sales rep not found")
            errors.raise_if_any()
        return seller.id

    def _lock_open_sale(self, company_id: int, action: str = "change") -> Sale:
        sale = lock_for_update(
            db.session.query(Sale).filter_by(id=self.sale_id, company_id=company_id)
        ).first()
        if sale is None:
            raise SaleNotFoundError("Sale not found")
        if sale.is_canceled:
            raise SaleCanceledError(f"Cannot {action} a canceled sale", details={"sale_id": sale.id})
        return sale

    @staticmethod
    def _refresh_cut_status(sale: Sale) -> None:
        total, uncut = inventory_service.sale_cut_progress(sale.id)
        if total == 0 or uncut == total:
            sale.status = SALE_STATUS_ACTIVE
        elif uncut == 0:
            sale.status = SALE_STATUS_CUT
        else:
            sale.status = SALE_STATUS_PARTIALLY_CUT

    def _reserve_rooms(
        self,
        rooms: list[RoomSubmission],
        sale_id: int,
        company_id: int,
        slabs: dict[int, SlabInventory],
        remnant_parents: set[int],
        kept_ids: set[int] = frozenset(),
        notes: str | None = None,
    ) -> None:
        for room in rooms:
            # Sinks and faucets are attached once per room, to its first slab
            first_slab_id = room.slabs[0].id
            for selection in room.slabs:
                try:
                    inventory_service.reserve_slab(
                        selection.id,
                        sale_id,
                        room,
                        kept=selection.id in kept_ids,
                        notes=notes,
                    )
                except SlabUnavailableError as exc:
                    stone_name = inventory_service.stone_names(company_id).get(slabs[selection.id].stone_id)
                    raise SlabUnavailableError(
                        f"Slab {selection.id} ({stone_name}) is no longer available",
                        details=exc.details,
                    ) from exc

                if not selection.is_full and selection.id not in remnant_parents:
                    inventory_service.create_remnant(slabs[selection.id])

            for sink in room.sink_type:
                inventory_service.reserve_fixture(Sink, sink.type_id, company_id, sale_id, first_slab_id)
            for faucet in room.faucet_type:
                inventory_service.reserve_fixture(Faucet, faucet.type_id, company_id, sale_id, first_slab_id)

    def sell(self, user: User) -> int:
        """
        Create the sale and reserve every referenced unit.

        Returns the new sale id. Raises ValidationError, CustomerNotFoundError
        or a ConflictError subclass; nothing is persisted in those cases.
        """
        customer_id = self.data.customer_id

        def _op():
            # A retried attempt must not reuse a customer row that was rolled back
            self.data.customer_id = customer_id
            begin_write()
            slabs = self._load_slabs(user.company_id)
            sink_prices, faucet_prices = self._load_fixture_prices(user.company_id)
            seller_id = self._seller_id(user)
            customer = resolve_customer(self.data, user.company_id)

            sale = Sale(
                company_id=user.company_id,
                customer_id=customer.id,
                seller_id=seller_id,
                status=SALE_STATUS_ACTIVE,
                sale_date=utcnow(),
                notes=self.data.notes_to_sale,
                square_feet=pricing_service.total_square_feet(self.data),
                price_cents=pricing_service.sale_price_cents(self.data, sink_prices, faucet_prices),
                price_overridden=self.data.price_cents is not None,
                project_address=self.data.project_address or customer.address,
            )
            db.session.add(sale)
            db.session.flush()

            self._reserve_rooms(
                self.data.rooms,
                sale.id,
                user.company_id,
                slabs,
                inventory_service.remnant_parent_ids(slabs),
            )

            ledger_service.append_sale_event(
                company_id=user.company_id,
                sale_id=sale.id,
                event_type=ledger_service.EVENT_SOLD,
                actor_user_id=user.id,
                payload={"slab_ids": self.data.slab_ids, "price_cents": sale.price_cents},
            )

            db.session.commit()
            return sale.id, sale.status

        self.sale_id, self.status = run_with_retry(_op)
        self.company_id = user.company_id
        return self.sale_id

    def edit(self, user: User) -> None:
        """
        Replace the sale's rooms and reservations with the submission.

        Releases everything first, then reserves the new set, inside one
        transaction. Slabs the sale already held are re-bound even when they
        have been cut; newly added slabs must pass the availability check.
        """
        if self.sale_id is None:
            raise SaleNotFoundError("Sale not found")

        customer_id = self.data.customer_id

        def _op():
            self.data.customer_id = customer_id
            begin_write()
            sale = self._lock_open_sale(user.company_id, "edit")

            slabs = self._load_slabs(user.company_id)
            sink_prices, faucet_prices = self._load_fixture_prices(user.company_id)
            customer = resolve_customer(self.data, user.company_id)

            previous_ids = set(inventory_service.slab_ids_for_sale(sale.id))
            new_ids = set(self.data.slab_ids)
            now_full = {
                selection.id
                for room in self.data.rooms
                for selection in room.slabs
                if selection.is_full
            }
            # Leftovers of slabs already cut are real stock and stay
            cut_ids = previous_ids - set(inventory_service.slab_ids_for_sale(sale.id, uncut_only=True))
            inventory_service.delete_unsold_remnants(((previous_ids - new_ids) | now_full) - cut_ids)
            inventory_service.release_sale_units(sale.id)

            self._reserve_rooms(
                self.data.rooms,
                sale.id,
                user.company_id,
                slabs,
                inventory_service.remnant_parent_ids(new_ids),
                kept_ids=previous_ids & new_ids,
            )
            self._refresh_cut_status(sale)

            sale.customer_id = customer.id
            sale.notes = self.data.notes_to_sale
            sale.square_feet = pricing_service.total_square_feet(self.data)
            sale.price_cents = pricing_service.sale_price_cents(self.data, sink_prices, faucet_prices)
            sale.price_overridden = self.data.price_cents is not None
            sale.project_address = self.data.project_address or customer.address

            ledger_service.append_sale_event(
                company_id=user.company_id,
                sale_id=sale.id,
                event_type=ledger_service.EVENT_EDITED,
                actor_user_id=user.id,
                payload={
                    "released_slab_ids": sorted(previous_ids - new_ids),
                    "reserved_slab_ids": sorted(new_ids - previous_ids),
                    "price_cents": sale.price_cents,
                },
            )

            db.session.commit()

        run_with_retry(_op)

    def add_slab(self, user: User, submission: AddSlabSubmission) -> None:
        """
        Put one more slab, and optionally a sink, on the sale.

        The slab becomes a room of its own priced like any other room; its
        price is added to the sale unless the sale price was set by hand. A
        slab the sale already holds and has cut goes back to the uncut queue.
        """
        if self.sale_id is None:
            raise SaleNotFoundError("Sale not found")

        def _op():
            begin_write()
            sale = self._lock_open_sale(user.company_id)

            slab = inventory_service.get_company_slabs([submission.slab_id], user.company_id).get(submission.slab_id)
            errors = FieldErrors()
            if slab is None:
                errors.add("slab_id", "Slab not found")
            sink_prices: dict[int, int] = {}
            if submission.sink_type_id is not None:
                sink_prices, _ = inventory_service.fixture_prices(user.company_id, [submission.sink_type_id], [])
                if submission.sink_type_id not in sink_prices:
                    errors.add("sink_type_id", "Sink type not found")
            errors.raise_if_any("Invalid slab selection")

            room = None
            added_cents = 0
            if slab.sale_id == sale.id:
                if not inventory_service.uncut_slab(slab.id, sale.id, submission.notes, submission.square_feet):
                    raise SlabUnavailableError(
                        f"Slab {slab.id} is already on this sale",
                        details={"slab_id": slab.id},
                    )
            else:
                room = RoomSubmission(
                    room_id=str(uuid.uuid4()),
                    slabs=[SlabSelection(id=slab.id, is_full=submission.is_full)],
                    square_feet=submission.square_feet,
                    retail_price_cents=slab.stone.retail_price_cents,
                    sink_type=(
                        [FixtureSelection(type_id=submission.sink_type_id)]
                        if submission.sink_type_id is not None
                        else []
                    ),
                )
                self._reserve_rooms(
                    [room],
                    sale.id,
                    user.company_id,
                    {slab.id: slab},
                    inventory_service.remnant_parent_ids([slab.id]),
                    notes=submission.notes,
                )
                added_cents = pricing_service.room_price_cents(room, sink_prices, {})
                sale.square_feet = Decimal(sale.square_feet or 0) + submission.square_feet
                if not sale.price_overridden:
                    sale.price_cents += added_cents

            self._refresh_cut_status(sale)
            ledger_service.append_sale_event(
                company_id=user.company_id,
                sale_id=sale.id,
                event_type=ledger_service.EVENT_SLAB_ADDED,
                actor_user_id=user.id,
                payload={
                    "slab_id": slab.id,
                    "uncut": room is None,
                    "added_cents": added_cents,
                    "price_cents": sale.price_cents,
                },
            )

            db.session.commit()
            return room, sale.status

        room, self.status = run_with_retry(_op)
        if room is not None:
            self.data.rooms.append(room)

    def cut_slab(self, user: User, slab_id: int, submission: CutSlabSubmission) -> dict:
        """
        Mark one of the sale's slabs as cut.

        Returns {"cut", "remnant_id", "status"}; status becomes "cut" once
        every slab of the sale is cut, "partially_cut" before that.
        """
        if self.sale_id is None:
            raise SaleNotFoundError("Sale not found")

        def _op():
            begin_write()
            sale = self._lock_open_sale(user.company_id, "cut slabs of")
            result = inventory_service.cut_slab(
                slab_id,
                sale.id,
                user.company_id,
                submission.remnant,
                length=submission.length,
                width=submission.width,
            )
            self._refresh_cut_status(sale)

            ledger_service.append_sale_event(
                company_id=user.company_id,
                sale_id=sale.id,
                event_type=ledger_service.EVENT_SLAB_CUT,
                actor_user_id=user.id,
                payload={"slab_id": slab_id, "remnant_id": result["remnant_id"], "status": sale.status},
            )

            db.session.commit()
            return dict(result, status=sale.status)

        result = run_with_retry(_op)
        self.status = result["status"]
        return result

    def unsell(self, user: User | None = None) -> bool:
        """
        Cancel the sale and release everything it reserves.

        Returns False when the sale was already canceled; that call is a
        no-op that matches zero units rather than an error.
        """
        if self.sale_id is None:
            raise SaleNotFoundError("Sale not found")

        company_id = user.company_id if user is not None else self.company_id

        def _op():
            begin_write()
            query = db.session.query(Sale).filter_by(id=self.sale_id)
            if company_id is not None:
                query = query.filter_by(company_id=company_id)
            sale = lock_for_update(query).first()
            if sale is None:
                raise SaleNotFoundError("Sale not found")

            slab_ids = inventory_service.slab_ids_for_sale(sale.id)
            inventory_service.delete_unsold_remnants(
                inventory_service.slab_ids_for_sale(sale.id, uncut_only=True)
            )
            released = inventory_service.release_sale_units(sale.id)

            if sale.status == SALE_STATUS_CANCELED:
                db.session.commit()
                return False

            sale.status = SALE_STATUS_CANCELED
            sale.canceled_at = utcnow()

            ledger_service.append_sale_event(
                company_id=sale.company_id,
                sale_id=sale.id,
                event_type=ledger_service.EVENT_CANCELED,
                actor_user_id=user.id if user is not None else None,
                payload={"released": released, "slab_ids": slab_ids},
            )

            db.session.commit()
            return True

        canceled = run_with_retry(_op)
        self.status = SALE_STATUS_CANCELED
        return canceled

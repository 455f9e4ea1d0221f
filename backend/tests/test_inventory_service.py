# Overview: Pytest coverage for availability predicates and reservation primitives.

import pytest
from datetime import datetime

from slabworks.extensions import db
from slabworks.models import Faucet, Sink, SinkType, SlabInventory
from slabworks.services import inventory_service
from slabworks.services.inventory_service import FixtureUnavailableError, SlabUnavailableError

from conftest import make_submission


class TestAvailability:
    def test_cut_slabs_are_not_available(self, db_session, company_a, stone_a, slabs_a):
        slabs_a[0].cut_date = datetime(2026, 1, 5)
        db_session.commit()

        available = inventory_service.available_slabs(stone_a.id, company_a.id)
        assert [s.id for s in available] == [s.id for s in slabs_a[1:]]

    def test_exclude_ids_hides_slabs_picked_in_form(self, db_session, company_a, stone_a, slabs_a):
        available = inventory_service.available_slabs(
            stone_a.id, company_a.id, exclude_ids=[slabs_a[0].id, slabs_a[2].id]
        )
        assert [s.id for s in available] == [slabs_a[1].id, slabs_a[3].id]

    def test_other_company_sees_nothing(self, db_session, company_b, stone_a, slabs_a):
        assert inventory_service.available_slabs(stone_a.id, company_b.id) == []
        assert inventory_service.get_company_slabs([s.id for s in slabs_a], company_b.id) == {}

    def test_stone_availability_counts(self, db_session, company_a, stone_a, slabs_a):
        slabs_a[0].cut_date = datetime(2026, 1, 5)
        db_session.commit()

        rows = inventory_service.stone_availability(company_a.id)
        assert len(rows) == 1
        assert rows[0]["stone"]["name"] == "Black Pearl"
        assert rows[0]["amount"] == 3
        assert rows[0]["available"] == 3

    def test_fixture_type_availability_ignores_deleted_units(self, db_session, company_a, sink_type_a):
        unit = db_session.query(Sink).filter_by(sink_type_id=sink_type_a.id).first()
        unit.is_deleted = True
        db_session.commit()

        rows = inventory_service.fixture_type_availability(Sink, SinkType, company_a.id)
        assert [(r["name"], r["available"]) for r in rows] == [("Undermount 60/40", 1)]

    def test_stone_names_cached_per_request(self, app, db_session, company_a, stone_a):
        assert inventory_service.stone_names(company_a.id) == {stone_a.id: "Black Pearl"}

        stone_a.name = "Renamed"
        db_session.commit()
        # Same app context: the cached lookup is still served
        assert inventory_service.stone_names(company_a.id) == {stone_a.id: "Black Pearl"}

        with app.app_context():
            assert inventory_service.stone_names(company_a.id) == {stone_a.id: "Renamed"}


class TestReservationPrimitives:
    @pytest.fixture
    def sale_id(self, db_session, company_a, user_a, customer_a):
        from slabworks.models import Sale
        sale = Sale(company_id=company_a.id, customer_id=customer_a.id, seller_id=user_a.id)
        db_session.add(sale)
        db_session.commit()
        return sale.id

    def test_reserve_slab_writes_snapshot(self, db_session, slabs_a, sale_id):
        room = make_submission([slabs_a[0].id]).rooms[0]
        room.retail_price_cents = 5500

        inventory_service.reserve_slab(slabs_a[0].id, sale_id, room)
        db_session.commit()

        slab = db_session.get(SlabInventory, slabs_a[0].id)
        assert slab.sale_id == sale_id
        assert slab.room_uuid == room.room_id
        assert slab.edge == "Eased"
        assert slab.price_cents == 5500
        assert slab.extras == {"adjustment": 10000}

    def test_second_reservation_of_same_slab_conflicts(self, db_session, slabs_a, sale_id):
        room = make_submission([slabs_a[0].id]).rooms[0]
        inventory_service.reserve_slab(slabs_a[0].id, sale_id, room)

        with pytest.raises(SlabUnavailableError) as exc:
            inventory_service.reserve_slab(slabs_a[0].id, sale_id + 1, room)
        assert exc.value.details == {"slab_id": slabs_a[0].id}

    def test_reserve_fixture_takes_lowest_free_unit(self, db_session, company_a, slabs_a, sink_type_a, sale_id):
        units = db_session.query(Sink).order_by(Sink.id).all()

        first = inventory_service.reserve_fixture(Sink, sink_type_a.id, company_a.id, sale_id, slabs_a[0].id)
        second = inventory_service.reserve_fixture(Sink, sink_type_a.id, company_a.id, sale_id, slabs_a[0].id)

        assert [first, second] == [u.id for u in units]
        with pytest.raises(FixtureUnavailableError):
            inventory_service.reserve_fixture(Sink, sink_type_a.id, company_a.id, sale_id, slabs_a[0].id)

    def test_reserve_fixture_is_company_scoped(self, db_session, company_b, slabs_a, faucet_type_a, sale_id):
        with pytest.raises(FixtureUnavailableError):
            inventory_service.reserve_fixture(Faucet, faucet_type_a.id, company_b.id, sale_id, slabs_a[0].id)

    def test_release_clears_everything_and_is_repeatable(
        self, db_session, company_a, slabs_a, sink_type_a, faucet_type_a, sale_id
    ):
        room = make_submission([slabs_a[0].id]).rooms[0]
        inventory_service.reserve_slab(slabs_a[0].id, sale_id, room)
        inventory_service.reserve_fixture(Sink, sink_type_a.id, company_a.id, sale_id, slabs_a[0].id)
        inventory_service.reserve_fixture(Faucet, faucet_type_a.id, company_a.id, sale_id, slabs_a[0].id)
        db_session.commit()

        assert inventory_service.release_sale_units(sale_id) == {"slabs": 1, "sinks": 1, "faucets": 1}
        db_session.commit()

        slab = db_session.get(SlabInventory, slabs_a[0].id)
        assert slab.sale_id is None
        assert slab.room_uuid is None
        assert slab.edge is None
        assert db_session.query(Sink).filter(Sink.sale_id.isnot(None)).count() == 0
        assert db_session.query(Faucet).filter(Faucet.slab_id.isnot(None)).count() == 0

        assert inventory_service.release_sale_units(sale_id) == {"slabs": 0, "sinks": 0, "faucets": 0}

    def test_only_unsold_remnants_are_deleted(self, db_session, slabs_a, sale_id):
        parent = slabs_a[0]
        unsold = inventory_service.create_remnant(parent)
        sold = inventory_service.create_remnant(parent)
        sold.sale_id = sale_id
        unsold_id, sold_id = unsold.id, sold.id
        db_session.commit()

        assert inventory_service.remnant_parent_ids([parent.id, slabs_a[1].id]) == {parent.id}
        assert inventory_service.delete_unsold_remnants([parent.id]) == 1
        db_session.commit()

        remaining = {row[0] for row in db_session.query(SlabInventory.id).filter(SlabInventory.parent_id == parent.id)}
        assert remaining == {sold_id}
        assert unsold_id not in remaining

# Overview: Pytest coverage for sell/edit payload validation.

import pytest
from decimal import Decimal

from slabworks.validation import ValidationError
from slabworks.services.contract_schemas import (
    extras_from_json,
    parse_add_slab_submission,
    parse_contract_submission,
    parse_cut_slab_submission,
)

from conftest import contract_payload


class TestParseContractSubmission:
    def test_valid_payload(self):
        submission = parse_contract_submission(contract_payload([1, 2]))

        assert submission.name == "Jane Homeowner"
        assert submission.slab_ids == [1, 2]
        room = submission.rooms[0]
        assert room.square_feet == Decimal("40.00")
        assert room.edge == "Eased"
        assert room.backsplash == "No"
        assert room.retail_price_cents is None
        assert room.room_id  # generated when the client sends none
        assert [(e.key, e.total_cents) for e in room.extras] == [("adjustment", 10000)]

    def test_room_without_slabs_is_a_field_error(self):
        payload = contract_payload([], room_overrides={"slabs": []})

        with pytest.raises(ValidationError) as exc:
            parse_contract_submission(payload)

        assert exc.value.errors["rooms.0.slabs"] == "Room must include at least one slab"

    def test_at_least_one_room(self):
        with pytest.raises(ValidationError) as exc:
            parse_contract_submission(contract_payload([1], rooms=[]))
        assert "rooms" in exc.value.errors

    def test_slab_selected_twice_across_rooms(self):
        payload = contract_payload([1])
        payload["rooms"].append({"room": "bath", "slabs": [{"id": 1}]})

        with pytest.raises(ValidationError) as exc:
            parse_contract_submission(payload)
        assert "rooms.1.slabs" in exc.value.errors

    def test_collects_every_field_error(self):
        payload = contract_payload(
            [1],
            name="",
            phone="3173161456",
            email="not-an-email",
            billing_address="short",
        )

        with pytest.raises(ValidationError) as exc:
            parse_contract_submission(payload)

        assert set(exc.value.errors) >= {"name", "phone", "email", "billing_address"}

    def test_billing_address_optional_for_existing_customer(self):
        payload = contract_payload([1], customer_id=5)
        del payload["billing_address"]

        submission = parse_contract_submission(payload)
        assert submission.customer_id == 5
        assert submission.billing_address is None

    def test_is_full_and_fixture_keys(self):
        payload = contract_payload(
            [1],
            room_overrides={
                "slabs": [{"id": 1, "is_full": False}],
                "sink_type": [{"id": 4}],
                "faucet_type": [{"type_id": 9}],
            },
        )

        room = parse_contract_submission(payload).rooms[0]
        assert room.slabs[0].is_full is False
        assert [s.type_id for s in room.sink_type] == [4]
        assert [f.type_id for f in room.faucet_type] == [9]

    def test_rejects_fractional_ids_and_negative_square_feet(self):
        payload = contract_payload(
            [1],
            room_overrides={"slabs": [{"id": "1.5"}], "square_feet": "-3"},
        )

        with pytest.raises(ValidationError) as exc:
            parse_contract_submission(payload)
        assert "rooms.0.slabs.0.id" in exc.value.errors
        assert "rooms.0.square_feet" in exc.value.errors

    def test_non_object_payload(self):
        with pytest.raises(ValidationError):
            parse_contract_submission(None)


def test_extras_snapshot_round_trip():
    submission = parse_contract_submission(
        contract_payload([1], room_overrides={"extras": {
            "adjustment": 10000,
            "outlet_cutout": {"price_cents": 2500, "quantity": 2},
        }})
    )
    stored = submission.rooms[0].extras_json()

    rebuilt = extras_from_json(stored)
    assert sorted((e.key, e.price_cents, e.quantity) for e in rebuilt) == [
        ("adjustment", 10000, 1),
        ("outlet_cutout", 2500, 2),
    ]
    assert extras_from_json(None) == []


class TestParseSlabActions:
    def test_add_slab_defaults(self):
        submission = parse_add_slab_submission({"slab_id": "7"})
        assert submission.slab_id == 7
        assert submission.is_full is True
        assert submission.square_feet == Decimal("0")
        assert submission.sink_type_id is None

    def test_add_slab_requires_slab_id(self):
        with pytest.raises(ValidationError) as exc:
            parse_add_slab_submission({"square_feet": "-1"})
        assert set(exc.value.errors) == {"slab_id", "square_feet"}

    def test_remnant_needs_both_dimensions(self):
        assert parse_cut_slab_submission({"remnant": True, "length": "40"}).remnant is False
        assert parse_cut_slab_submission(None).remnant is False

        cut = parse_cut_slab_submission({"remnant": True, "length": "40", "width": "20.5"})
        assert cut.remnant is True
        assert (cut.length, cut.width) == (Decimal("40.00"), Decimal("20.50"))

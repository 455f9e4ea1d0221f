import unittest
from decimal import Decimal

from slabworks.services import pricing_service
from slabworks.services.contract_schemas import (
    ContractSubmission,
    ExtraItem,
    FixtureSelection,
    RoomSubmission,
    SlabSelection,
)


def _room(**kwargs) -> RoomSubmission:
    defaults = dict(room_id="r1", slabs=[SlabSelection(id=1)])
    defaults.update(kwargs)
    return RoomSubmission(**defaults)


class RoomPriceTests(unittest.TestCase):
    def test_kitchen_with_extra_and_sink(self):
        # 40 sq ft x $55 + $100 extra + $250 sink = $2550
        room = _room(
            square_feet=Decimal("40"),
            retail_price_cents=5500,
            extras=[ExtraItem(key="adjustment", price_cents=10000)],
            sink_type=[FixtureSelection(type_id=7)],
        )
        self.assertEqual(pricing_service.room_price_cents(room, {7: 25000}, {}), 255000)

    def test_each_selected_fixture_is_charged(self):
        room = _room(
            square_feet=Decimal("0"),
            retail_price_cents=5500,
            sink_type=[FixtureSelection(type_id=7), FixtureSelection(type_id=7)],
            faucet_type=[FixtureSelection(type_id=3)],
        )
        self.assertEqual(pricing_service.room_price_cents(room, {7: 25000}, {3: 12000}), 62000)

    def test_unpriced_fixture_type_raises(self):
        room = _room(
            square_feet=Decimal("40"),
            retail_price_cents=5500,
            faucet_type=[FixtureSelection(type_id=99)],
        )
        with self.assertRaises(KeyError):
            pricing_service.room_price_cents(room, {}, {3: 12000})

    def test_area_rounds_half_up_to_whole_cent(self):
        # 10.25 sq ft x 1 cent = 10.25 -> 10; 0.5 -> 1
        self.assertEqual(pricing_service.area_price_cents(Decimal("10.25"), 1), 10)
        self.assertEqual(pricing_service.area_price_cents(Decimal("0.50"), 1), 1)
        self.assertEqual(pricing_service.area_price_cents(Decimal("12.34"), 4999), 61688)

    def test_missing_price_counts_as_zero(self):
        self.assertEqual(pricing_service.area_price_cents(Decimal("40"), None), 0)

    def test_extras_with_quantity(self):
        room = _room(extras=[
            ExtraItem(key="outlet_cutout", price_cents=2500, quantity=3),
            ExtraItem(key="adjustment", price_cents=1000),
        ])
        self.assertEqual(pricing_service.extras_total_cents(room), 8500)


class ContractTotalTests(unittest.TestCase):
    def setUp(self):
        self.submission = ContractSubmission(
            name="Jane",
            rooms=[
                _room(room_id="a", square_feet=Decimal("40"), retail_price_cents=5500),
                _room(room_id="b", square_feet=Decimal("12.5"), retail_price_cents=6000),
            ],
        )

    def test_total_is_sum_of_rooms(self):
        self.assertEqual(pricing_service.contract_total_cents(self.submission, {}, {}), 220000 + 75000)

    def test_override_wins(self):
        self.submission.price_cents = 199900
        self.assertEqual(pricing_service.sale_price_cents(self.submission, {}, {}), 199900)

    def test_zero_override_is_respected(self):
        self.submission.price_cents = 0
        self.assertEqual(pricing_service.sale_price_cents(self.submission, {}, {}), 0)

    def test_total_square_feet(self):
        self.assertEqual(pricing_service.total_square_feet(self.submission), Decimal("52.5"))


if __name__ == "__main__":
    unittest.main()

"""
Contract pricing.

Room price:
    square_feet * retail_price_per_sqft
    + sum(extras)
    + sum(retail price of each selected sink type)
    + sum(retail price of each selected faucet type)

All amounts are integer cents. The area term is the only fractional one and
is rounded half-up to a whole cent. Fixture price maps must cover every
selected type; a missing type raises KeyError.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping

from .contract_schemas import ContractSubmission, RoomSubmission


def area_price_cents(square_feet: Decimal, retail_price_cents: int | None) -> int:
    amount = Decimal(square_feet or 0) * Decimal(retail_price_cents or 0)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def extras_total_cents(room: RoomSubmission) -> int:
    return sum(item.total_cents for item in room.extras)


def room_price_cents(
    room: RoomSubmission,
    sink_prices: Mapping[int, int],
    faucet_prices: Mapping[int, int],
) -> int:
    """sink_prices / faucet_prices map a fixture type id to its retail price in cents."""
    total = area_price_cents(room.square_feet, room.retail_price_cents)
    total += extras_total_cents(room)
    for sink in room.sink_type:
        total += sink_prices[sink.type_id]
    for faucet in room.faucet_type:
        total += faucet_prices[faucet.type_id]
    return total


def contract_total_cents(
    submission: ContractSubmission,
    sink_prices: Mapping[int, int],
    faucet_prices: Mapping[int, int],
) -> int:
    return sum(room_price_cents(room, sink_prices, faucet_prices) for room in submission.rooms)


def sale_price_cents(
    submission: ContractSubmission,
    sink_prices: Mapping[int, int],
    faucet_prices: Mapping[int, int],
) -> int:
    """Explicit override wins; otherwise the computed room total."""
    if submission.price_cents is not None:
        return submission.price_cents
    return contract_total_cents(submission, sink_prices, faucet_prices)


def total_square_feet(submission: ContractSubmission) -> Decimal:
    return sum((room.square_feet for room in submission.rooms), Decimal("0"))

# Overview: Pytest coverage for the deal pipeline.

import pytest

from slabworks.models import Deal
from slabworks.validation import ValidationError
from slabworks.services import deal_service
from slabworks.services.deal_service import DealNotFoundError

from conftest import auth_headers, get_auth_token


def _deal(company_id, customer_id, list_id, **extra):
    payload = {"customer_id": customer_id, "list_id": list_id}
    payload.update(extra)
    return deal_service.create_deal(payload, company_id)


class TestDealService:
    def test_new_deals_are_appended(self, db_session, company_a, customer_a, deal_lists_a):
        first = _deal(company_a.id, customer_a.id, deal_lists_a[0].id, amount_cents=450000)
        second = _deal(company_a.id, customer_a.id, deal_lists_a[0].id)

        assert (first.position, second.position) == (1, 2)
        assert first.amount_cents == 450000

    def test_create_requires_customer_and_list(self, db_session, company_a):
        with pytest.raises(ValidationError) as exc:
            deal_service.create_deal({}, company_a.id)
        assert set(exc.value.errors) == {"customer_id", "list_id"}

    def test_move_goes_to_end_of_target_list(self, db_session, company_a, customer_a, deal_lists_a):
        target = deal_lists_a[1]
        _deal(company_a.id, customer_a.id, target.id)
        moving = _deal(company_a.id, customer_a.id, deal_lists_a[0].id)

        moved = deal_service.move_deal(moving.id, target.id, company_a.id)

        assert moved.list_id == target.id
        assert moved.position == 2

    def test_reorder_is_all_or_nothing(self, db_session, company_a, company_b, customer_a, deal_lists_a):
        a = _deal(company_a.id, customer_a.id, deal_lists_a[0].id)
        b = _deal(company_a.id, customer_a.id, deal_lists_a[0].id)

        updated = deal_service.reorder_deals(
            [
                {"id": a.id, "list_id": deal_lists_a[1].id, "position": 0},
                {"id": b.id, "list_id": deal_lists_a[0].id, "position": 5},
            ],
            company_a.id,
        )
        assert updated == 2
        assert (db_session.get(Deal, a.id).list_id, db_session.get(Deal, b.id).position) == (deal_lists_a[1].id, 5)

        with pytest.raises(DealNotFoundError):
            deal_service.reorder_deals(
                [
                    {"id": a.id, "list_id": deal_lists_a[0].id, "position": 9},
                    {"id": 99999, "list_id": deal_lists_a[0].id, "position": 1},
                ],
                company_a.id,
            )
        assert db_session.get(Deal, a.id).position == 0

    def test_reorder_is_company_scoped(self, db_session, company_a, company_b, customer_a, deal_lists_a):
        deal = _deal(company_a.id, customer_a.id, deal_lists_a[0].id)
        with pytest.raises(DealNotFoundError):
            deal_service.reorder_deals([{"id": deal.id, "list_id": deal_lists_a[0].id, "position": 3}], company_b.id)

    def test_reorder_rejects_empty_batch(self, db_session, company_a):
        with pytest.raises(ValidationError):
            deal_service.reorder_deals([], company_a.id)

    def test_delete_is_soft(self, db_session, company_a, customer_a, deal_lists_a):
        deal = _deal(company_a.id, customer_a.id, deal_lists_a[0].id)

        deal_service.delete_deal(deal.id, company_a.id)

        assert db_session.get(Deal, deal.id).deleted_at is not None
        with pytest.raises(DealNotFoundError):
            deal_service.move_deal(deal.id, deal_lists_a[1].id, company_a.id)
        # Deleted deals no longer occupy a position
        assert _deal(company_a.id, customer_a.id, deal_lists_a[0].id).position == 1


def test_deal_routes(client, user_a, customer_a, deal_lists_a):
    headers = auth_headers(get_auth_token(client, user_a.email))

    created = client.post('/api/deals/', json={
        'customer_id': customer_a.id,
        'list_id': deal_lists_a[0].id,
        'name': 'Kitchen remodel',
    }, headers=headers)
    assert created.status_code == 201
    deal_id = created.json['deal']['id']

    moved = client.post(f'/api/deals/{deal_id}/move', json={'to_list': deal_lists_a[1].id}, headers=headers)
    assert moved.status_code == 200
    assert moved.json['deal']['list_id'] == deal_lists_a[1].id

    reordered = client.post('/api/deals/reorder', json={'updates': [
        {'id': deal_id, 'list_id': deal_lists_a[0].id, 'position': 0},
    ]}, headers=headers)
    assert reordered.status_code == 200
    assert reordered.json['updated'] == 1

    assert client.delete(f'/api/deals/{deal_id}', headers=headers).status_code == 200
    assert client.delete(f'/api/deals/{deal_id}', headers=headers).status_code == 404

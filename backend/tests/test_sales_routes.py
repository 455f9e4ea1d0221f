# Overview: Pytest coverage for the HTTP surface: auth, sales, inventory and notifications.

import pytest

from slabworks.extensions import db
from slabworks.models import Sale, SlabInventory

from conftest import auth_headers, contract_payload, get_auth_token


@pytest.fixture
def headers(client, user_a):
    token = get_auth_token(client, user_a.email)
    assert token
    return auth_headers(token)


class TestAuthRoutes:
    def test_login_wrong_password(self, client, user_a):
        response = client.post('/api/auth/login', json={'email': user_a.email, 'password': 'nope-nope'})
        assert response.status_code == 401

    def test_login_requires_both_fields(self, client):
        response = client.post('/api/auth/login', json={'email': 'x@example.com'})
        assert response.status_code == 400

    def test_me_and_logout(self, client, user_a, headers):
        me = client.get('/api/auth/me', headers=headers)
        assert me.status_code == 200
        assert me.json['user']['id'] == user_a.id
        assert me.json['company_id'] == user_a.company_id

        assert client.post('/api/auth/logout', headers=headers).status_code == 200
        assert client.get('/api/auth/me', headers=headers).status_code == 401

    def test_protected_route_without_token(self, client):
        assert client.get('/api/inventory/stones').status_code == 401


class TestSalesRoutes:
    def test_sell_edit_unsell_round(self, client, headers, slabs_a):
        response = client.post('/api/sales/', json=contract_payload([slabs_a[0].id]), headers=headers)
        assert response.status_code == 201
        sale_id = response.json['sale']['id']
        assert response.json['sale']['price_cents'] == 40 * 5500 + 10000

        detail = client.get(f'/api/sales/{sale_id}', headers=headers)
        assert detail.status_code == 200
        assert [s['id'] for s in detail.json['contract']['rooms'][0]['slabs']] == [slabs_a[0].id]
        assert [e['event_type'] for e in detail.json['events']] == ['sale.sold']

        edited = client.put(
            f'/api/sales/{sale_id}',
            json=contract_payload([slabs_a[1].id]),
            headers=headers,
        )
        assert edited.status_code == 200
        assert db.session.get(SlabInventory, slabs_a[0].id).sale_id is None
        assert db.session.get(SlabInventory, slabs_a[1].id).sale_id == sale_id

        canceled = client.post(f'/api/sales/{sale_id}/unsell', headers=headers)
        assert canceled.status_code == 200
        assert canceled.json['canceled'] is True
        assert canceled.json['sale']['status'] == 'canceled'

        again = client.post(f'/api/sales/{sale_id}/unsell', headers=headers)
        assert again.status_code == 200
        assert again.json['canceled'] is False

    def test_validation_error_is_400_with_field_errors(self, client, headers, slabs_a):
        payload = contract_payload([], room_overrides={'slabs': []})

        response = client.post('/api/sales/', json=payload, headers=headers)

        assert response.status_code == 400
        assert response.json['errors']['rooms.0.slabs'] == 'Room must include at least one slab'
        assert db.session.query(Sale).count() == 0

    def test_sold_slab_is_409(self, client, headers, slabs_a):
        assert client.post('/api/sales/', json=contract_payload([slabs_a[0].id]), headers=headers).status_code == 201

        response = client.post('/api/sales/', json=contract_payload([slabs_a[0].id]), headers=headers)

        assert response.status_code == 409
        assert response.json['details'] == {'slab_id': slabs_a[0].id}

    def test_other_company_sale_is_404(self, client, headers, user_b, slab_b):
        token_b = get_auth_token(client, user_b.email)
        created = client.post('/api/sales/', json=contract_payload([slab_b.id]), headers=auth_headers(token_b))
        sale_id = created.json['sale']['id']

        assert client.get(f'/api/sales/{sale_id}', headers=headers).status_code == 404
        assert client.post(f'/api/sales/{sale_id}/unsell', headers=headers).status_code == 404
        assert db.session.get(SlabInventory, slab_b.id).sale_id == sale_id

    def test_quote_does_not_write(self, client, headers, slabs_a, sink_type_a):
        payload = contract_payload([slabs_a[0].id], room_overrides={'sink_type': [{'type_id': sink_type_a.id}]})

        response = client.post('/api/sales/quote', json=payload, headers=headers)

        assert response.status_code == 200
        assert response.json['quote']['total_cents'] == 255000
        assert response.json['quote']['price_cents'] == 255000
        assert db.session.query(Sale).count() == 0

    def test_notifications_are_drained(self, client, headers, slabs_a):
        client.post('/api/sales/', json=contract_payload([slabs_a[0].id]), headers=headers)

        first = client.get('/api/notifications')
        assert first.json['notifications'] == [
            {'category': 'success', 'message': 'Sale completed successfully'}
        ]
        assert client.get('/api/notifications').json['notifications'] == []

    def test_detail_sent_back_through_put_is_repriced(self, client, headers, slabs_a):
        created = client.post('/api/sales/', json=contract_payload([slabs_a[0].id]), headers=headers)
        sale_id = created.json['sale']['id']

        contract = client.get(f'/api/sales/{sale_id}', headers=headers).json['contract']
        assert contract['price_cents'] is None
        contract['rooms'][0]['square_feet'] = 80

        edited = client.put(f'/api/sales/{sale_id}', json=contract, headers=headers)
        assert edited.status_code == 200
        assert edited.json['sale']['price_cents'] == 80 * 5500 + 10000

    def test_add_and_cut_slab(self, client, headers, slabs_a):
        created = client.post('/api/sales/', json=contract_payload([slabs_a[0].id]), headers=headers)
        sale_id = created.json['sale']['id']

        added = client.post(
            f'/api/sales/{sale_id}/slabs',
            json={'slab_id': slabs_a[1].id, 'square_feet': '10'},
            headers=headers,
        )
        assert added.status_code == 200
        assert added.json['sale']['price_cents'] == 40 * 5500 + 10000 + 10 * 5500
        assert len(added.json['contract']['rooms']) == 2

        cut = client.post(
            f'/api/sales/{sale_id}/slabs/{slabs_a[0].id}/cut',
            json={'remnant': True, 'length': 40, 'width': 20},
            headers=headers,
        )
        assert cut.status_code == 200
        assert cut.json['cut']['status'] == 'partially_cut'
        assert cut.json['sale']['status'] == 'partially_cut'
        remnant = db.session.get(SlabInventory, cut.json['cut']['remnant_id'])
        assert remnant.parent_id == slabs_a[0].id

        again = client.post(
            f'/api/sales/{sale_id}/slabs',
            json={'slab_id': slabs_a[1].id},
            headers=headers,
        )
        assert again.status_code == 409

        missing = client.post(f'/api/sales/{sale_id}/slabs', json={}, headers=headers)
        assert missing.status_code == 400
        assert 'slab_id' in missing.json['errors']


class TestInventoryRoutes:
    def test_stones_and_available_slabs(self, client, headers, stone_a, slabs_a):
        stones = client.get('/api/inventory/stones', headers=headers)
        assert stones.status_code == 200
        assert stones.json['stones'][0]['available'] == 4

        slabs = client.get(
            f'/api/inventory/stones/{stone_a.id}/slabs?exclude={slabs_a[0].id},{slabs_a[1].id}',
            headers=headers,
        )
        assert slabs.status_code == 200
        assert [s['id'] for s in slabs.json['slabs']] == [slabs_a[2].id, slabs_a[3].id]

    def test_bad_exclude_list(self, client, headers, stone_a):
        response = client.get(f'/api/inventory/stones/{stone_a.id}/slabs?exclude=abc', headers=headers)
        assert response.status_code == 400

    def test_fixture_types(self, client, headers, sink_type_a, faucet_type_a):
        sinks = client.get('/api/inventory/sink-types', headers=headers)
        faucets = client.get('/api/inventory/faucet-types', headers=headers)
        assert sinks.json['sink_types'][0]['available'] == 2
        assert faucets.json['faucet_types'][0]['available'] == 1


def test_health(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.json['status'] == 'healthy'

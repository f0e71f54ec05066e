"""HTTP tests for the inventory routes: status codes, envelope and auth."""
from datetime import timedelta

import pytest

from tests.factories import SUPPLIER_RUT, CUSTOMER_RUT


def stock_for(client, headers, product_id):
    response = client.get('/inventory', headers=headers)
    assert response.status_code == 200
    levels = {row['productId']: row['quantity'] for row in response.get_json()['data']}
    return levels[product_id]


def post_entry(client, headers, product_id, quantity=20, price=100):
    return client.post('/inventory/entries', headers=headers, json={
        'supplierRut': SUPPLIER_RUT,
        'details': [{'productId': product_id, 'quantity': quantity, 'purchasePrice': price}],
    })


def post_exit(client, headers, product_id, quantity):
    return client.post('/inventory/exits', headers=headers, json={
        'customerRut': CUSTOMER_RUT,
        'details': [{'productId': product_id, 'quantity': quantity}],
    })


class TestAuthentication:
    """Every route requires a bearer token with an allowed role."""

    def test_missing_token(self, client, seeded):
        response = client.get('/inventory')
        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_garbage_token(self, client, seeded):
        response = client.get('/inventory', headers={'Authorization': 'Bearer not-a-jwt'})
        assert response.status_code == 401

    def test_expired_token(self, client, seeded, auth_headers):
        headers = auth_headers(expires_in=timedelta(hours=-1))
        assert client.get('/inventory', headers=headers).status_code == 401

    def test_read_only_role_cannot_write(self, client, seeded, auth_headers):
        headers = auth_headers('Finanzas')

        assert client.get('/inventory', headers=headers).status_code == 200
        response = post_entry(client, headers, seeded['product_id'])
        assert response.status_code == 403

    def test_unknown_role(self, client, seeded, auth_headers):
        assert client.get('/inventory/exits', headers=auth_headers('Invitado')).status_code == 403


class TestMovementFlow:

    def test_entry_exit_and_reversal(self, client, seeded, auth_headers):
        headers = auth_headers('Ventas')
        product_id = seeded['product_id']

        response = post_entry(client, headers, product_id, quantity=20, price=100)
        assert response.status_code == 201
        body = response.get_json()
        assert body['status'] == 'success'
        assert body['data']['totalPrice'] == 2000
        assert body['data']['supplier']['rut'] == '12.345.678-5'
        assert stock_for(client, headers, product_id) == 20

        response = post_exit(client, headers, product_id, 5)
        assert response.status_code == 201
        exit_data = response.get_json()['data']
        assert exit_data['details'][0]['salePrice'] == 150
        assert exit_data['totalPrice'] == 750
        assert stock_for(client, headers, product_id) == 15

        response = client.get(f"/inventory/exits/{exit_data['id']}", headers=headers)
        assert response.status_code == 200
        assert response.get_json()['data']['customer']['rut'] == '87.654.321-4'

        response = client.delete(f"/inventory/exits/{exit_data['id']}", headers=headers)
        assert response.status_code == 200
        assert response.get_json()['data']['reversedProducts'][0]['newStock'] == 20
        assert client.get(f"/inventory/exits/{exit_data['id']}", headers=headers).status_code == 404

    def test_lists(self, client, seeded, auth_headers):
        headers = auth_headers()
        post_entry(client, headers, seeded['product_id'], quantity=3)
        post_entry(client, headers, seeded['product_id'], quantity=4)

        response = client.get('/inventory/entries', headers=headers)
        assert response.status_code == 200
        quantities = [entry['details'][0]['quantity'] for entry in response.get_json()['data']]
        assert quantities == [4, 3]

        response = client.get('/inventory/exits', headers=headers)
        assert response.get_json()['data'] == []

    def test_insufficient_stock(self, client, seeded, auth_headers):
        headers = auth_headers()
        post_entry(client, headers, seeded['product_id'], quantity=15)

        response = post_exit(client, headers, seeded['product_id'], 999)

        assert response.status_code == 409
        body = response.get_json()
        assert body['status'] == 'error'
        assert body['requested'] == 999
        assert body['available'] == 15
        assert stock_for(client, headers, seeded['product_id']) == 15

    def test_delete_consumed_entry_conflicts(self, client, seeded, auth_headers):
        headers = auth_headers()
        entry_id = post_entry(client, headers, seeded['product_id'], quantity=20).get_json()['data']['id']
        post_exit(client, headers, seeded['product_id'], 15)

        response = client.delete(f'/inventory/entries/{entry_id}', headers=headers)

        assert response.status_code == 409
        assert response.get_json()['direction'] == 'entry'
        assert stock_for(client, headers, seeded['product_id']) == 5

    def test_inactive_product_exit_conflicts(self, client, seeded, auth_headers):
        headers = auth_headers()
        post_entry(client, headers, seeded['product_id'], quantity=5)
        assert client.delete(f"/products/{seeded['product_id']}", headers=headers).status_code == 200

        assert post_exit(client, headers, seeded['product_id'], 1).status_code == 409


class TestMovementErrors:

    @pytest.mark.parametrize('body', [
        {'supplierRut': SUPPLIER_RUT, 'details': []},
        {'supplierRut': SUPPLIER_RUT, 'details': [{'productId': 1, 'quantity': 0, 'purchasePrice': 1}]},
        {'supplierRut': '12345678-9', 'details': [{'productId': 1, 'quantity': 1, 'purchasePrice': 1}]},
        {'details': [{'productId': 1, 'quantity': 1, 'purchasePrice': 1}]},
    ])
    def test_invalid_entry_body(self, client, seeded, auth_headers, body):
        response = client.post('/inventory/entries', headers=auth_headers(), json=body)
        assert response.status_code == 400

    def test_oversized_quantity_is_a_client_error(self, client, seeded, auth_headers):
        response = post_entry(client, auth_headers(), seeded['product_id'], quantity=10 ** 19, price=1)

        assert response.status_code == 400
        assert response.get_json()['field'] == 'quantity'

    def test_oversized_sale_price(self, client, seeded, auth_headers):
        response = client.patch(f"/products/{seeded['product_id']}", headers=auth_headers(),
                                json={'salePrice': 10 ** 19})
        assert response.status_code == 400

    def test_non_json_body(self, client, seeded, auth_headers):
        response = client.post('/inventory/exits', headers=auth_headers(), data='customerRut=1',
                               content_type='application/x-www-form-urlencoded')
        assert response.status_code == 400

    def test_unknown_product(self, client, seeded, auth_headers):
        response = post_entry(client, auth_headers(), 9999)
        assert response.status_code == 404
        assert response.get_json()['product_id'] == 9999

    def test_unknown_customer(self, client, seeded, auth_headers):
        response = client.post('/inventory/exits', headers=auth_headers(), json={
            'customerRut': '11111111-1',
            'details': [{'productId': seeded['product_id'], 'quantity': 1}],
        })
        assert response.status_code == 404

    def test_missing_movements(self, client, seeded, auth_headers):
        headers = auth_headers()
        assert client.get('/inventory/entries/123', headers=headers).status_code == 404
        assert client.delete('/inventory/entries/123', headers=headers).status_code == 404
        assert client.delete('/inventory/exits/123', headers=headers).status_code == 404

    def test_unknown_route_is_json(self, client, seeded):
        response = client.get('/no-such-route')
        assert response.status_code == 404
        assert response.get_json()['status'] == 'error'


class TestCatalogAndDirectoryRoutes:

    def test_product_crud(self, client, seeded, auth_headers):
        headers = auth_headers('Gerencia')

        response = client.post('/products', headers=headers, json={'product': 'GRAVA', 'salePrice': 9900})
        assert response.status_code == 201
        product_id = response.get_json()['data']['id']

        assert client.post('/products', headers=headers,
                           json={'product': 'GRAVA', 'salePrice': 1}).status_code == 409

        response = client.patch(f'/products/{product_id}', headers=headers, json={'salePrice': 10500})
        assert response.get_json()['data']['salePrice'] == 10500

        response = client.get('/products', headers=headers)
        assert [p['product'] for p in response.get_json()['data']] == ['ARENA', 'GRAVA']

    def test_sales_role_cannot_edit_catalog(self, client, seeded, auth_headers):
        response = client.post('/products', headers=auth_headers('Ventas'),
                               json={'product': 'GRAVA', 'salePrice': 9900})
        assert response.status_code == 403

    def test_customer_lifecycle(self, client, seeded, auth_headers):
        headers = auth_headers()
        payload = {
            'name': 'Inmobiliaria Sur',
            'rut': '11111111-1',
            'address': 'Los Carrera 300',
            'phone': '+56977778888',
            'email': 'obras@inmosur.cl',
        }

        response = client.post('/customers', headers=headers, json=payload)
        assert response.status_code == 201
        customer = response.get_json()['data']
        assert customer['rut'] == '11.111.111-1'

        assert client.post('/customers', headers=headers, json=payload).status_code == 409

        assert client.delete(f"/customers/{customer['id']}", headers=headers).status_code == 200
        ruts = [c['rut'] for c in client.get('/customers', headers=headers).get_json()['data']]
        assert '11.111.111-1' not in ruts

        response = client.post('/customers', headers=headers, json=payload)
        assert response.status_code == 201
        assert response.get_json()['data']['id'] == customer['id']

    def test_supplier_routes(self, client, seeded, auth_headers):
        headers = auth_headers()
        response = client.get(f"/suppliers/{seeded['supplier_id']}", headers=headers)
        assert response.status_code == 200
        assert response.get_json()['data']['rut'] == '12.345.678-5'

        response = client.patch(f"/suppliers/{seeded['supplier_id']}", headers=headers, json={'rut': 'abc'})
        assert response.status_code == 400


def test_metrics_endpoint(client):
    response = client.get('/metrics')
    assert response.status_code == 200
    assert b'http_requests_total' in response.data


def test_ledger_operations_are_counted(client, seeded, auth_headers):
    headers = auth_headers()
    post_entry(client, headers, seeded['product_id'], quantity=2)
    post_exit(client, headers, seeded['product_id'], 50)

    text = client.get('/metrics').get_data(as_text=True)

    assert 'inventory_ledger_operations_total{operation="entry.create",outcome="committed"}' in text
    assert 'inventory_ledger_operations_total{operation="exit.create",outcome="rejected"}' in text

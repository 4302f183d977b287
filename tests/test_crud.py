import pytest

from customers.customer import Customer
from products.product import Product


class TestCustomerCrud:
    def test_create_get_update(self, client, auth_headers):
        created = client.post('/customers/', headers=auth_headers, json={
            'customerName': 'Ravi Stores', 'phone': '9888800000', 'pincode': '600001',
        })
        assert created.status_code == 201
        body = created.get_json()
        assert body['message'] == 'Customer created successfully'
        customer_id = body['data']['id']
        assert body['data']['createdBy'] == 'admin_user'

        updated = client.put(f'/customers/{customer_id}', headers=auth_headers, json={'email': 'ravi@example.com'})
        assert updated.get_json()['data']['email'] == 'ravi@example.com'
        assert updated.get_json()['data']['updatedBy'] == 'admin_user'

        fetched = client.get(f'/customers/{customer_id}', headers=auth_headers).get_json()['data']
        assert fetched['customerName'] == 'Ravi Stores'

    def test_required_fields(self, client, auth_headers):
        response = client.post('/customers/', headers=auth_headers, json={'email': 'x@example.com'})
        assert response.status_code == 400
        fields = {error['field'] for error in response.get_json()['errors']}
        assert fields == {'customerName', 'phone'}

    def test_required_field_cannot_be_cleared(self, client, auth_headers, customer):
        response = client.put(f'/customers/{customer.id}', headers=auth_headers, json={'customerName': ''})
        assert response.status_code == 400

    def test_soft_delete_restore_hard_delete(self, client, auth_headers, customer, db_session):
        deleted = client.delete(f'/customers/{customer.id}', headers=auth_headers)
        assert deleted.get_json()['message'] == 'Customer soft deleted successfully'
        assert client.get('/customers/', headers=auth_headers).get_json()['total'] == 0

        restored = client.post(f'/customers/{customer.id}/restore', headers=auth_headers)
        assert restored.get_json()['data']['deletedAt'] is None

        client.delete(f'/customers/{customer.id}/hard', headers=auth_headers)
        assert db_session.query(Customer).count() == 0

    def test_pagination(self, client, auth_headers, db_session):
        for n in range(3):
            db_session.add(Customer(customer_name=f'Customer {n}', phone=f'90000000{n}'))
        db_session.commit()

        body = client.get('/customers/?page=2&limit=2', headers=auth_headers).get_json()

        assert body['total'] == 3
        assert body['page'] == 2
        assert body['totalPages'] == 2
        assert len(body['data']) == 1


class TestProductCrud:
    def test_duplicate_barcode_is_constraint_violation(self, client, auth_headers):
        payload = {'productName': 'Soap', 'barCode': 'SOAP-1', 'salesPrice': '25.50'}
        assert client.post('/products/', headers=auth_headers, json=payload).status_code == 201

        response = client.post('/products/', headers=auth_headers, json=payload)

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Duplicate entry'
        assert Product.query.count() == 1

    def test_numeric_fields_validated(self, client, auth_headers):
        response = client.post('/products/', headers=auth_headers, json={
            'productName': 'Soap', 'barCode': 'SOAP-2', 'salesPrice': 'cheap',
        })
        assert response.status_code == 400
        assert response.get_json()['errors'][0]['field'] == 'salesPrice'

    def test_product_shows_current_stock(self, client, auth_headers, make_product):
        product = make_product(stock=4)
        data = client.get(f'/products/{product.id}', headers=auth_headers).get_json()['data']
        assert data['currentStock'] == '4.00'
        assert data['salesPrice'] == '100.00'


@pytest.mark.parametrize('path, payload', [
    ('/units/', {'unitName': 'Box'}),
    ('/brands/', {'brandName': 'Acme'}),
    ('/categories/', {'categoryName': 'Cleaning'}),
    ('/branches/', {'branchName': 'North'}),
    ('/addresses/', {'addressBill': '12 Main Road'}),
    ('/suppliers/', {'supplierName': 'Kaveri Supplies'}),
])
def test_reference_data_endpoints(client, auth_headers, path, payload):
    created = client.post(path, headers=auth_headers, json=payload)
    assert created.status_code == 201
    record_id = created.get_json()['data']['id']
    assert client.get(f'{path}{record_id}', headers=auth_headers).status_code == 200

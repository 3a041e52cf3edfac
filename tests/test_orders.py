import pytest

from storefront.extensions import db
from storefront.models import (
    AddressType,
    Order,
    Product,
    Shop,
    Transaction,
    UserAddress,
    UserRole,
    UserShopAccess,
)


@pytest.fixture
def guest_order(client, catalog, guest_payload):
    response = client.post('/api/guest/checkout', json=guest_payload(
        [{'id': catalog['sheet'], 'quantity': 2}]))
    return response.get_json()['data']['order']


def _stock(app, product_id):
    with app.app_context():
        return db.session.get(Product, product_id).stock


def test_cancel_restores_stock_once(
        client, app, admin_headers, catalog, guest_order):
    assert _stock(app, catalog['sheet']) == 8

    url = f"/api/order/{guest_order['id']}"
    response = client.put(
        url, headers=admin_headers, json={'status': 'cancelled'})
    assert response.status_code == 200
    assert response.get_json()['data']['order_status'] == 'cancelled'
    assert _stock(app, catalog['sheet']) == 10

    client.put(url, headers=admin_headers, json={'status': 'cancelled'})
    assert _stock(app, catalog['sheet']) == 10


def test_cancelled_order_cannot_reopen(
        client, admin_headers, guest_order):
    url = f"/api/order/{guest_order['id']}"
    client.put(url, headers=admin_headers, json={'status': 'cancelled'})
    response = client.put(
        url, headers=admin_headers, json={'status': 'processing'})
    assert response.status_code == 400
    assert response.get_json()['message'] == (
        'Cannot change order from cancelled to processing')


def test_invalid_status(client, admin_headers, guest_order):
    response = client.put(
        f"/api/order/{guest_order['id']}",
        headers=admin_headers,
        json={'status': 'shipped'})
    assert response.status_code == 422


def test_record_partial_payment(client, admin_headers, guest_order):
    response = client.put(
        f"/api/order/{guest_order['id']}",
        headers=admin_headers,
        json={'paid_amount': 500})
    data = response.get_json()['data']
    assert data['payment_status'] == 'partial_paid'
    assert data['paid_amount'] == 500.0
    assert data['due_amount'] == 1300.0


def test_admin_creates_order(
        client, app, admin_headers, create_user, catalog):
    user_id = create_user('buyer@example.com', phone='01711111111')
    response = client.post('/api/order', headers=admin_headers, json={
        'customerId': user_id,
        'items': [{'id': catalog['towel'], 'quantity': 2}],
        'shippingAddress': {
            'street': '12 Lake Road',
            'city': 'Dhaka',
            'country': 'Bangladesh',
        },
        'paymentMethod': {'type': 'cod'},
    })
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['total'] == 1000.0
    assert data['payment_status'] == 'paid'
    assert data['due_amount'] == 0.0
    assert data['shipping']['phone'] == '01711111111'

    with app.app_context():
        address = UserAddress.query.filter_by(user_id=user_id).one()
        assert address.address_type == AddressType.SHIPPING
        assert address.is_default is True
        transaction = Transaction.query.filter_by(
            order_id=data['id']).one()
        assert transaction.source == 'admin_order'


def test_admin_order_with_partial_payment(
        client, admin_headers, create_user, catalog):
    user_id = create_user('buyer@example.com')
    response = client.post('/api/order', headers=admin_headers, json={
        'customerId': user_id,
        'items': [{'id': catalog['towel'], 'quantity': 1}],
        'shippingAddress': {
            'street': '12 Lake Road',
            'city': 'Dhaka',
            'country': 'Bangladesh',
        },
        'paidAmount': 200,
    })
    data = response.get_json()['data']
    assert data['payment_status'] == 'partial_paid'
    assert data['due_amount'] == 300.0


def test_admin_order_validation(client, admin_headers):
    response = client.post('/api/order', headers=admin_headers, json={
        'shippingAddress': {'street': '12 Lake Road'},
    })
    assert response.status_code == 422
    errors = response.get_json()['errors']
    assert 'customerId' in errors
    assert 'items' in errors
    assert 'shippingAddress.city' in errors
    assert 'shippingAddress.country' in errors


def test_admin_order_unknown_customer(client, admin_headers, catalog):
    response = client.post('/api/order', headers=admin_headers, json={
        'customerId': 9999,
        'items': [{'id': catalog['towel'], 'quantity': 1}],
        'shippingAddress': {
            'street': '12 Lake Road',
            'city': 'Dhaka',
            'country': 'Bangladesh',
        },
    })
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Customer not found'


def test_list_and_show_orders(client, admin_headers, guest_order):
    response = client.get('/api/order', headers=admin_headers)
    listing = response.get_json()['data']
    assert listing['total'] == 1
    assert 'items' not in listing['items'][0]

    response = client.get(
        f"/api/order/{guest_order['id']}", headers=admin_headers)
    detail = response.get_json()['data']
    assert detail['items'][0]['quantity'] == 2
    assert detail['items'][0]['line_total'] == 1800.0


def test_invoice(client, admin_headers, guest_order):
    response = client.get(
        f"/api/orders/invoice/{guest_order['orderNumber']}",
        headers=admin_headers)
    data = response.get_json()['data']
    assert data['shop']['name'] == 'Web Shop'
    assert data['transactions'][0]['source'] == 'guest_checkout'


def test_sales_manager_sees_only_their_shop(
        client, app, create_user, token_for, guest_order):
    manager_id = create_user(
        'manager@example.com', role=UserRole.SALES_MANAGER)
    with app.app_context():
        db.session.add(Shop(id=1, name='Gulshan Showroom'))
        db.session.add(UserShopAccess(
            user_id=manager_id, shop_id=1, is_primary=True))
        db.session.commit()
    headers = token_for(manager_id)

    response = client.get('/api/order', headers=headers)
    assert response.get_json()['data']['total'] == 0
    response = client.get(
        f"/api/order/{guest_order['id']}", headers=headers)
    assert response.status_code == 404


def test_orders_are_staff_only(client, customer_headers):
    response = client.get('/api/order', headers=customer_headers)
    assert response.status_code == 403


def _admin_order(items, customer_id, **extra):
    payload = {
        'customerId': customer_id,
        'items': items,
        'shippingAddress': {
            'street': '12 Lake Road',
            'city': 'Dhaka',
            'country': 'Bangladesh',
        },
    }
    payload.update(extra)
    return payload


def _assert_nothing_saved(app, catalog):
    with app.app_context():
        assert Order.query.count() == 0
        assert Transaction.query.count() == 0
    assert _stock(app, catalog['towel']) == 3


@pytest.mark.parametrize('item', [5, 'TW-200', {'quantity': 1}])
def test_admin_order_rejects_items_without_id(
        client, app, admin_headers, create_user, catalog, item):
    user_id = create_user('buyer@example.com')
    response = client.post(
        '/api/order',
        headers=admin_headers,
        json=_admin_order([item], user_id))
    assert response.status_code == 422
    assert 'items.0.id' in response.get_json()['errors']
    _assert_nothing_saved(app, catalog)


@pytest.mark.parametrize('quantity', ['two', None, 0, 101])
def test_admin_order_rejects_bad_quantity(
        client, app, admin_headers, create_user, catalog, quantity):
    user_id = create_user('buyer@example.com')
    response = client.post(
        '/api/order',
        headers=admin_headers,
        json=_admin_order(
            [{'id': catalog['towel'], 'quantity': quantity}], user_id))
    assert response.status_code == 422
    assert 'items.0.quantity' in response.get_json()['errors']
    _assert_nothing_saved(app, catalog)


def test_admin_order_caps_paid_amount(
        client, admin_headers, create_user, catalog):
    user_id = create_user('buyer@example.com')
    response = client.post('/api/order', headers=admin_headers, json=(
        _admin_order(
            [{'id': catalog['towel'], 'quantity': 1}],
            user_id,
            paidAmount=900)))
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['paid_amount'] == 500.0
    assert data['due_amount'] == 0.0
    assert data['payment_status'] == 'paid'


def test_numeric_sku_matches_before_id(
        client, app, admin_headers, create_user, catalog):
    with app.app_context():
        db.session.add(Product(
            name='Numbered Pillow',
            slug='numbered-pillow',
            sku=str(catalog['towel']),
            price=250,
            stock=5,
        ))
        db.session.commit()
    user_id = create_user('buyer@example.com')

    response = client.post('/api/order', headers=admin_headers, json=(
        _admin_order(
            [{'id': str(catalog['towel']), 'quantity': 1}], user_id)))
    data = response.get_json()['data']
    assert data['total'] == 250.0
    assert data['items'][0]['sku'] == str(catalog['towel'])

    response = client.post('/api/order', headers=admin_headers, json=(
        _admin_order([{'id': catalog['towel'], 'quantity': 1}], user_id)))
    assert response.get_json()['data']['total'] == 500.0


def test_sales_manager_without_shop_sees_nothing(
        client, app, create_user, token_for, guest_order):
    with app.app_context():
        order = db.session.get(Order, guest_order['id'])
        order.shop_id = None
        db.session.commit()
    manager_id = create_user(
        'manager@example.com', role=UserRole.SALES_MANAGER)
    headers = token_for(manager_id)

    response = client.get('/api/order', headers=headers)
    assert response.get_json()['data']['total'] == 0
    response = client.get(
        f"/api/order/{guest_order['id']}", headers=headers)
    assert response.status_code == 404

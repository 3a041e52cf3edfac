from decimal import Decimal

from storefront.extensions import db
from storefront.models import (
    AuditLog,
    Order,
    OrderStatus,
    PaymentStatus,
    Product,
    Transaction,
)


def _stock(app, product_id):
    with app.app_context():
        return db.session.get(Product, product_id).stock


def test_guest_checkout_totals(client, app, catalog, guest_payload):
    response = client.post('/api/guest/checkout', json=guest_payload([
        {'id': catalog['sheet'], 'quantity': 2},
        {'id': catalog['towel'], 'quantity': 1},
    ]))
    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['message'] == 'Order placed successfully'
    assert body['meta']['request_id']

    order = body['data']['order']
    assert order['subTotal'] == 2500.0
    assert order['discount'] == 200.0
    assert order['total'] == 2300.0
    assert order['status'] == 'pending'
    assert order['paymentStatus'] == 'unpaid'
    assert order['orderNumber'].startswith('HTB4')
    assert body['data']['paymentMethod'] == {
        'type': 'cod', 'name': 'Cash on Delivery'}
    assert body['data']['courierWarning'] is None

    assert _stock(app, catalog['sheet']) == 8
    assert _stock(app, catalog['towel']) == 2

    with app.app_context():
        saved = db.session.get(Order, order['id'])
        assert saved.total == saved.sub_total - saved.discount
        assert saved.due_amount == Decimal('2300.00')
        assert saved.shop_id == 4
        assert saved.is_guest_order is True
        assert saved.guest_email == 'guest@example.com'
        line_sum = sum(d.line_total for d in saved.details)
        assert line_sum == saved.total
        transaction = Transaction.query.filter_by(order_id=saved.id).one()
        assert transaction.source == 'guest_checkout'
        audit = AuditLog.query.filter_by(action='ORDER_CREATE').one()
        assert audit.actor_role == 'GUEST'


def test_order_by_sku(client, catalog, guest_payload):
    response = client.post('/api/guest/checkout', json=guest_payload([
        {'id': 'TW-200', 'quantity': 1},
    ]))
    assert response.status_code == 201
    assert response.get_json()['data']['order']['total'] == 500.0


def test_prepaid_order_is_paid(client, catalog, guest_payload):
    response = client.post('/api/guest/checkout', json=guest_payload(
        [{'id': catalog['towel'], 'quantity': 1}], payment_type='bkash'))
    order = response.get_json()['data']['order']
    assert order['paymentStatus'] == 'paid'


def test_insufficient_stock_leaves_stock_unchanged(
        client, app, catalog, guest_payload):
    response = client.post('/api/guest/checkout', json=guest_payload([
        {'id': catalog['sheet'], 'quantity': 1},
        {'id': catalog['towel'], 'quantity': 5},
    ]))
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert body['message'] == 'Insufficient stock for product: Bath Towel'
    assert body['data']['available'] == 3
    assert body['data']['requested'] == 5

    assert _stock(app, catalog['sheet']) == 10
    assert _stock(app, catalog['towel']) == 3
    with app.app_context():
        assert Order.query.count() == 0


def test_unknown_product(client, guest_payload):
    response = client.post('/api/guest/checkout', json=guest_payload([
        {'id': 9999, 'quantity': 1},
    ]))
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Product not found: 9999'


def test_inactive_product_cannot_be_ordered(
        client, catalog, guest_payload):
    response = client.post('/api/guest/checkout', json=guest_payload([
        {'id': catalog['curtain'], 'quantity': 1},
    ]))
    assert response.status_code == 400


def test_guest_checkout_validation(client, catalog):
    response = client.post('/api/guest/checkout', json={
        'customer': {'email': 'not-an-email'},
        'items': [],
        'paymentMethod': {'type': 'barter'},
    })
    assert response.status_code == 422
    errors = response.get_json()['errors']
    assert 'customer.email' in errors
    assert 'customer.phone' in errors
    assert 'items' in errors
    assert 'shippingAddress' in errors
    assert 'paymentMethod.type' in errors


def test_quantity_limits(client, catalog, guest_payload):
    response = client.post('/api/guest/checkout', json=guest_payload([
        {'id': catalog['sheet'], 'quantity': 0},
    ]))
    assert response.status_code == 422
    assert 'items.0.quantity' in response.get_json()['errors']


def test_registered_checkout(client, app, catalog, customer_headers):
    response = client.post(
        '/api/check-out',
        headers=customer_headers,
        json={
            'items': [{'id': catalog['sheet'], 'quantity': 1}],
            'shippingAddress': {
                'phone': '01712345678',
                'addressLine1': 'House 1',
                'city': 'Dhaka',
                'postalCode': '1207',
                'country': 'Bangladesh',
            },
            'paymentMethod': 'cod',
            'gift': {'wrapping': True, 'message': 'Happy birthday'},
        })
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['total'] == 900.0
    assert data['shipping']['name'] == 'Test'
    assert data['shipping']['email'] == 'customer@example.com'
    assert data['gift']['wrapping'] is True
    assert data['courier_warning'] is None

    with app.app_context():
        order = db.session.get(Order, data['id'])
        assert order.order_status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.UNPAID
        assert order.customer.user_id is not None

    mine = client.get('/api/my-orders', headers=customer_headers)
    assert mine.get_json()['data']['total'] == 1


def test_checkout_requires_login(client, catalog):
    response = client.post('/api/check-out', json={
        'items': [{'id': catalog['sheet'], 'quantity': 1}],
    })
    assert response.status_code == 401


def test_admin_cannot_use_customer_checkout(client, admin_headers, catalog):
    response = client.post('/api/check-out', headers=admin_headers, json={
        'items': [{'id': catalog['sheet'], 'quantity': 1}],
    })
    assert response.status_code == 403


def test_payment_methods(client):
    response = client.get('/api/get-payment-methods')
    methods = response.get_json()['data']
    assert [m['code'] for m in methods] == ['cod', 'bkash']

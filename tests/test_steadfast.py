import json

import httpx
import pytest
import respx

from storefront.extensions import db
from storefront.models import Order, Product, ShipmentStatus
from storefront.services.steadfast_service import (
    SteadfastClient,
    courier_phone,
)

BASE_URL = 'https://courier.test/api/v1'

CONSIGNMENT = {
    'status': 200,
    'message': 'Consignment has been created successfully.',
    'consignment': {
        'consignment_id': 1424107,
        'invoice': 'HTB4',
        'tracking_code': '15BAEB8A',
        'status': 'in_review',
    },
}


@pytest.fixture
def courier():
    return SteadfastClient(BASE_URL, 'key', 'secret', timeout=5)


@pytest.fixture
def courier_enabled(app):
    app.config['STEADFAST_ENABLED'] = True
    return app


def _checkout(client, catalog, guest_payload, quantity=1):
    return client.post('/api/guest/checkout', json=guest_payload(
        [{'id': catalog['sheet'], 'quantity': quantity}]))


def test_create_order_success(courier):
    with respx.mock(assert_all_called=False) as respx_mock:
        route = respx_mock.post(f'{BASE_URL}/create_order').respond(
            200, json=CONSIGNMENT)
        result = courier.create_order({'invoice': 'HTB4'})

    assert result['success'] is True
    assert result['data']['consignment']['tracking_code'] == '15BAEB8A'
    request = route.calls.last.request
    assert request.headers['Api-Key'] == 'key'
    assert request.headers['Secret-Key'] == 'secret'


def test_create_order_validation_error(courier):
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.post(f'{BASE_URL}/create_order').respond(422, json={
            'status': 400,
            'message': 'Validation failed',
            'errors': {
                'recipient_phone': ['The recipient phone is invalid.'],
            },
        })
        result = courier.create_order({'invoice': 'HTB4'})

    assert result['success'] is False
    assert result['status_code'] == 422
    assert result['error'] == (
        'Validation failed: '
        '{"recipient_phone": ["The recipient phone is invalid."]}')


def test_create_order_transport_error(courier):
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.post(f'{BASE_URL}/create_order').mock(
            side_effect=httpx.ConnectError('connection refused'))
        result = courier.create_order({'invoice': 'HTB4'})

    assert result['success'] is False
    assert result['status_code'] == 500
    assert 'connection refused' in result['error']


def test_create_order_without_consignment(courier):
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.post(f'{BASE_URL}/create_order').respond(
            200, json={'status': 400, 'message': 'Insufficient balance'})
        result = courier.create_order({'invoice': 'HTB4'})

    assert result['success'] is False
    assert result['error'] == 'Insufficient balance'


def test_status_lookups(courier):
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(f'{BASE_URL}/status_by_cid/1424107').respond(
            200, json={'status': 200, 'delivery_status': 'delivered'})
        respx_mock.get(f'{BASE_URL}/status_by_trackingcode/NOPE').respond(
            404)

        assert courier.status_by_consignment_id(1424107) == {
            'status': 200, 'delivery_status': 'delivered'}
        assert courier.status_by_tracking_code('NOPE') is None


def test_courier_phone(app):
    with app.app_context():
        assert courier_phone('01712345678') == '01712345678'
        assert courier_phone('+8801712345678') == '01712345678'
        assert courier_phone('12345') == '01234567890'


def test_booking_stores_consignment(
        client, app, courier_enabled, catalog, guest_payload):
    with respx.mock(assert_all_called=False) as respx_mock:
        route = respx_mock.post(url__regex=r'.*/create_order').respond(
            200, json=CONSIGNMENT)
        response = _checkout(client, catalog, guest_payload, quantity=2)

    assert response.status_code == 201
    order = response.get_json()['data']['order']
    assert order['consignmentId'] == '1424107'
    assert order['trackingCode'] == '15BAEB8A'

    payload = json.loads(route.calls.last.request.content)
    assert payload['invoice'] == order['orderNumber']
    assert payload['cod_amount'] == 1800.0
    assert payload['recipient_phone'] == '01712345678'
    assert payload['recipient_email'] == 'guest@example.com'
    assert payload['total_lot'] == 2
    assert payload['item_description'] == 'Cotton Bed Sheet (Qty: 2)'

    with app.app_context():
        saved = db.session.get(Order, order['id'])
        assert saved.shipment_status == ShipmentStatus.BOOKED
        assert saved.courier_status == 'in_review'


def test_booking_failure_keeps_order(
        client, app, courier_enabled, catalog, guest_payload):
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.post(url__regex=r'.*/create_order').respond(
            500, json={'message': 'Server error'})
        response = _checkout(client, catalog, guest_payload)

    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['courierWarning'] == 'Server error'
    assert data['order']['consignmentId'] is None

    with app.app_context():
        saved = db.session.get(Order, data['order']['id'])
        assert saved.shipment_status == ShipmentStatus.BOOKING_FAILED
        assert db.session.get(Product, catalog['sheet']).stock == 9


def test_required_booking_failure_rolls_back(
        client, app, courier_enabled, catalog, guest_payload):
    app.config['COURIER_REQUIRED'] = True
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.post(url__regex=r'.*/create_order').mock(
            side_effect=httpx.ConnectTimeout('timed out'))
        response = _checkout(client, catalog, guest_payload)

    assert response.status_code == 500
    body = response.get_json()
    assert body['message'] == 'Failed to create shipping order'
    assert 'timed out' in body['data']['courier_error']

    with app.app_context():
        assert Order.query.count() == 0
        assert db.session.get(Product, catalog['sheet']).stock == 10


def test_disabled_courier_is_not_called(client, catalog, guest_payload):
    with respx.mock(assert_all_called=False) as respx_mock:
        route = respx_mock.post(url__regex=r'.*/create_order').respond(
            200, json=CONSIGNMENT)
        response = _checkout(client, catalog, guest_payload)

    assert response.status_code == 201
    assert not route.called


def test_tracking_status_endpoint(
        client, app, admin_headers, catalog, guest_payload):
    response = _checkout(client, catalog, guest_payload)
    order = response.get_json()['data']['order']

    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(url__regex=r'.*/status_by_invoice/.*').respond(
            200, json={'status': 200, 'delivery_status': 'delivered'})
        response = client.get(
            '/api/order/tracking-status',
            headers=admin_headers,
            query_string={'invoice': order['orderNumber']})

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['courier']['delivery_status'] == 'delivered'
    assert data['order']['order_number'] == order['orderNumber']
    assert data['order']['courier_status'] == 'delivered'


def test_tracking_status_requires_identifier(client, admin_headers):
    response = client.get(
        '/api/order/tracking-status', headers=admin_headers)
    assert response.status_code == 422


def test_tracking_status_not_found(client, admin_headers):
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(url__regex=r'.*/status_by_cid/.*').respond(404)
        response = client.get(
            '/api/order/tracking-status',
            headers=admin_headers,
            query_string={'consignment_id': '1'})
    assert response.status_code == 404


def test_tracking_status_courier_error(client, admin_headers):
    with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(url__regex=r'.*/status_by_trackingcode/.*').respond(
            200, json={'status': 404, 'message': 'Not found'})
        response = client.get(
            '/api/order/tracking-status',
            headers=admin_headers,
            query_string={'tracking_code': 'ABC'})
    assert response.status_code == 400
    assert response.get_json()['data']['courier_response']['status'] == 404


def test_tracking_status_is_staff_only(client, customer_headers):
    response = client.get(
        '/api/order/tracking-status',
        headers=customer_headers,
        query_string={'invoice': 'HTB1'})
    assert response.status_code == 403

from storefront.extensions import db
from storefront.models import AccountStatus, PersonalAccessToken, User


def _login(client, login='customer@example.com', password='secret123'):
    return client.post('/api/user-login', json={
        'email': login, 'password': password,
    })


def test_register_and_use_token(client, app):
    response = client.post('/api/user-registration', json={
        'first_name': 'Nadia',
        'last_name': 'Islam',
        'email': 'Nadia@Example.com',
        'phone': '01912345678',
        'password': 'secret123',
        'conf_password': 'secret123',
    })
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['user']['email'] == 'nadia@example.com'
    assert data['user']['role'] == 'CUSTOMER'
    assert data['token_type'] == 'Bearer'
    assert data['guest_orders_linked'] == 0

    response = client.get(
        '/api/my-profile',
        headers={'Authorization': f"Bearer {data['token']}"})
    assert response.status_code == 200
    assert response.get_json()['data']['name'] == 'Nadia Islam'

    with app.app_context():
        token = PersonalAccessToken.query.one()
        secret = data['token'].split('|', 1)[1]
        assert token.token_hash != secret
        assert len(token.token_hash) == 64


def test_register_validation(client, create_user):
    create_user('taken@example.com')
    response = client.post('/api/user-registration', json={
        'email': 'taken@example.com',
        'phone': '123',
        'password': 'abc',
        'conf_password': 'abcd',
    })
    assert response.status_code == 422
    errors = response.get_json()['errors']
    assert set(errors) == {
        'first_name', 'email', 'phone', 'password', 'conf_password'}


def test_login_by_email_or_phone(client, create_user):
    create_user(phone='01700000000')
    assert _login(client).status_code == 200
    response = _login(client, login='01700000000')
    assert response.status_code == 200
    assert response.get_json()['data']['token']


def test_login_failures(client, create_user):
    create_user()
    assert _login(client, login='nobody@example.com').status_code == 401
    assert _login(client, password='wrong').status_code == 401
    response = client.post('/api/user-login', json={})
    assert response.status_code == 422


def test_lockout_after_repeated_failures(client, app, create_user):
    user_id = create_user()
    for _ in range(5):
        assert _login(client, password='wrong').status_code == 401

    response = _login(client)
    assert response.status_code == 423
    assert 'locked_until' in response.get_json()['data']

    with app.app_context():
        user = db.session.get(User, user_id)
        assert user.failed_login_attempts == 5
        assert user.locked_until is not None


def test_successful_login_resets_failures(client, app, create_user):
    user_id = create_user()
    _login(client, password='wrong')
    assert _login(client).status_code == 200
    with app.app_context():
        user = db.session.get(User, user_id)
        assert user.failed_login_attempts == 0
        assert user.login_count == 1


def test_inactive_account_cannot_login(client, create_user):
    create_user(status=AccountStatus.SUSPENDED)
    response = _login(client)
    assert response.status_code == 403
    assert response.get_json()['data'] == {'status': 'suspended'}


def test_logout_revokes_token(client, customer_headers):
    assert client.post(
        '/api/logout', headers=customer_headers).status_code == 200
    response = client.get('/api/my-profile', headers=customer_headers)
    assert response.status_code == 401


def test_malformed_tokens(client, customer_headers):
    for header in ('Bearer nonsense', 'Bearer 1|wrong', 'Token abc'):
        response = client.get(
            '/api/my-profile', headers={'Authorization': header})
        assert response.status_code == 401


def test_update_profile(client, customer_headers):
    response = client.put('/api/my-profile', headers=customer_headers, json={
        'last_name': 'Rahman',
        'notification_preferences': {'promotions': True},
    })
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['name'] == 'Test Rahman'
    assert data['notification_preferences']['promotions'] is True


def test_change_password(client, customer_headers):
    response = client.post(
        '/api/change-password', headers=customer_headers, json={
            'current_password': 'secret123',
            'password': 'newsecret1',
            'conf_password': 'newsecret1',
        })
    assert response.status_code == 200
    assert _login(client, password='newsecret1').status_code == 200
    assert _login(client).status_code == 401


def test_request_id_is_echoed(client):
    response = client.get(
        '/api/get-payment-methods', headers={'X-Request-ID': 'abc-123'})
    assert response.headers['X-Request-ID'] == 'abc-123'
    assert response.get_json()['meta']['request_id'] == 'abc-123'

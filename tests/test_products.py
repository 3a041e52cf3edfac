from datetime import datetime, timedelta
from decimal import Decimal

from storefront.extensions import db
from storefront.models import Product, ShopProduct


def test_admin_creates_product(client, app, admin_headers, catalog):
    response = client.post('/api/product', headers=admin_headers, json={
        'name': 'Linen Pillow Cover',
        'sku': 'PC-1',
        'price': 350,
        'stock': 20,
        'category_id': catalog['bed_sheets'],
        'discount_percent': 5,
        'shops': [{'shop_id': 4, 'quantity': 20}],
    })
    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['message'] == 'Product created successfully'
    assert body['data']['slug'] == 'linen-pillow-cover'
    assert body['data']['sale_price'] == 332.5
    assert body['data']['shops'][0]['quantity'] == 20

    with app.app_context():
        product = Product.query.filter_by(sku='PC-1').one()
        assert product.price == Decimal('350.00')
        assert product.stock == 20
        assert product.category_id == catalog['bed_sheets']
        link = ShopProduct.query.filter_by(product_id=product.id).one()
        assert link.shop_id == 4


def test_create_product_validation(client, admin_headers):
    response = client.post('/api/product', headers=admin_headers, json={
        'name': 'Duplicate',
        'sku': 'BS-100',
        'price': 0,
    })
    assert response.status_code == 422
    errors = response.get_json()['errors']
    assert 'sku' in errors
    assert 'price' in errors


def test_customer_cannot_create_product(client, customer_headers):
    response = client.post('/api/product', headers=customer_headers, json={
        'name': 'Nope', 'sku': 'NO-1', 'price': 10,
    })
    assert response.status_code == 403


def test_create_product_requires_token(client):
    response = client.post('/api/product', json={'name': 'Nope'})
    assert response.status_code == 401
    assert response.get_json()['success'] is False


def test_public_listing_hides_inactive(client):
    response = client.get('/api/products')
    assert response.status_code == 200
    skus = {p['sku'] for p in response.get_json()['data']['items']}
    assert skus == {'BS-100', 'TW-200'}


def test_listing_by_root_category_includes_descendants(client, catalog):
    response = client.get(
        f"/api/products?category_id={catalog['bedding']}")
    items = response.get_json()['data']['items']
    assert [p['sku'] for p in items] == ['BS-100']


def test_listing_rejects_bad_category(client):
    response = client.get('/api/products?category_id=abc')
    assert response.status_code == 422


def test_product_detail(client, catalog):
    response = client.get(f"/api/products/{catalog['sheet']}")
    data = response.get_json()['data']
    assert data['price'] == 1000.0
    assert data['sale_price'] == 900.0
    assert data['discount_active'] is True
    assert [c['slug'] for c in data['breadcrumb']] == [
        'bedding', 'bed-sheets']


def test_inactive_product_detail_is_404(client, catalog):
    response = client.get(f"/api/products/{catalog['curtain']}")
    assert response.status_code == 404


def test_soft_delete_product(client, app, admin_headers, catalog):
    response = client.delete(
        f"/api/product/{catalog['towel']}", headers=admin_headers)
    assert response.status_code == 200

    with app.app_context():
        product = db.session.get(Product, catalog['towel'])
        assert product.is_deleted is True
    assert client.get(
        f"/api/products/{catalog['towel']}").status_code == 404


def _set(app, product_id, **fields):
    with app.app_context():
        product = db.session.get(Product, product_id)
        for field, value in fields.items():
            setattr(product, field, value)
        db.session.commit()


def _skus(response):
    data = response.get_json()['data']
    items = data['items'] if isinstance(data, dict) else data
    return [p['sku'] for p in items]


def test_duplicate_product(client, app, admin_headers, catalog):
    url = f"/api/product/{catalog['sheet']}/duplicate"
    response = client.post(url, headers=admin_headers)
    assert response.status_code == 201
    copy = response.get_json()['data']
    assert copy['name'] == 'Cotton Bed Sheet Copy'
    assert copy['slug'] == 'cotton-bed-sheet-copy'
    assert copy['sku'] == 'BS-100-Copy'
    assert copy['status'] == 'INACTIVE'
    assert copy['is_featured'] is False
    assert copy['price'] == 1000.0
    assert copy['shops'] == [
        {'shop_id': 4, 'shop_name': 'Web Shop', 'quantity': 10}]

    second = client.post(url, headers=admin_headers).get_json()['data']
    assert second['name'] == 'Cotton Bed Sheet Copy 2'
    assert second['sku'] == 'BS-100-Copy-2'
    assert second['slug'] == 'cotton-bed-sheet-copy-2'

    assert 'BS-100-Copy' not in _skus(client.get('/api/products'))


def test_duplicate_keeps_sku_within_column_limit(
        client, app, admin_headers, catalog):
    _set(app, catalog['towel'], sku='X' * 64, name='T' * 200)
    url = f"/api/product/{catalog['towel']}/duplicate"

    first = client.post(url, headers=admin_headers).get_json()['data']
    assert first['sku'] == 'X' * 59 + '-Copy'
    assert len(first['name']) == 200
    assert first['name'].endswith(' Copy')

    second = client.post(url, headers=admin_headers).get_json()['data']
    assert second['sku'] == 'X' * 57 + '-Copy-2'
    assert second['name'].endswith(' Copy 2')
    assert len(second['name']) == 200


def test_admin_updates_product(client, admin_headers, catalog):
    url = f"/api/product/{catalog['sheet']}"
    response = client.put(url, headers=admin_headers, json={
        'name': 'Percale Bed Sheet', 'price': 1200,
    })
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['slug'] == 'percale-bed-sheet'
    assert data['sale_price'] == 1080.0

    response = client.put(url, headers=admin_headers, json={
        'discount_start': '2026-02-01T00:00:00',
        'discount_end': '2026-01-01T00:00:00',
    })
    assert response.status_code == 422
    assert 'discount_end' in response.get_json()['errors']

    response = client.put(url, headers=admin_headers, json={
        'discount_start': '2026-02-01T00:00:00',
    })
    assert response.status_code == 200
    response = client.put(url, headers=admin_headers, json={
        'discount_end': '2026-01-15T00:00:00',
    })
    assert response.status_code == 422


def test_update_rejects_taken_sku(client, admin_headers, catalog):
    response = client.put(
        f"/api/product/{catalog['sheet']}",
        headers=admin_headers,
        json={'sku': 'TW-200'})
    assert response.status_code == 422
    assert 'sku' in response.get_json()['errors']


def test_listing_price_filters(client):
    assert _skus(client.get('/api/products?min_price=600')) == ['BS-100']
    assert _skus(client.get('/api/products?max_price=600')) == ['TW-200']
    assert _skus(client.get(
        '/api/products?min_price=400&max_price=1000'
        '&order_by=price&direction=asc')) == ['TW-200', 'BS-100']

    for query in ('min_price=abc', 'max_price=-5'):
        response = client.get(f'/api/products?{query}')
        assert response.status_code == 422


def test_listing_ordering(client):
    response = client.get('/api/products?order_by=price&direction=desc')
    assert _skus(response) == ['BS-100', 'TW-200']
    response = client.get('/api/products?order_by=name&direction=asc')
    assert _skus(response) == ['TW-200', 'BS-100']

    response = client.get('/api/products?order_by=stock')
    assert response.status_code == 422
    assert 'order_by' in response.get_json()['errors']
    response = client.get('/api/products?direction=up')
    assert response.status_code == 422
    assert 'direction' in response.get_json()['errors']


def test_listing_per_page(client):
    data = client.get('/api/products?per_page=1').get_json()['data']
    assert len(data['items']) == 1
    assert data['total'] == 2
    assert data['pages'] == 2

    data = client.get('/api/products?per_page=500').get_json()['data']
    assert data['per_page'] == 100


def test_new_arrivals(client, app, catalog):
    _set(
        app,
        catalog['towel'],
        created_at=datetime.utcnow() - timedelta(days=60))
    assert _skus(client.get('/api/products/new-arrivals')) == ['BS-100']


def test_trending(client, app, catalog):
    _set(app, catalog['towel'], is_trending=True)
    assert _skus(client.get('/api/products/trending')) == [
        'TW-200', 'BS-100']


def test_on_sale_window(client, app, catalog):
    url = '/api/products/on-sale'
    assert _skus(client.get(url)) == ['BS-100']

    now = datetime.utcnow()
    _set(app, catalog['sheet'], discount_start=now + timedelta(days=1))
    assert _skus(client.get(url)) == []

    _set(
        app,
        catalog['sheet'],
        discount_start=now - timedelta(days=2),
        discount_end=now - timedelta(days=1))
    assert _skus(client.get(url)) == []

    _set(app, catalog['sheet'], discount_end=now + timedelta(days=1))
    assert _skus(client.get(url)) == ['BS-100']


def test_similar_products(client, admin_headers, catalog):
    client.post('/api/product', headers=admin_headers, json={
        'name': 'Silk Bed Sheet',
        'sku': 'BS-200',
        'price': 2500,
        'category_id': catalog['bed_sheets'],
    })
    response = client.get(f"/api/products/{catalog['sheet']}/similar")
    assert _skus(response) == ['BS-200']

    response = client.get(f"/api/products/{catalog['towel']}/similar")
    assert _skus(response) == []


def test_product_by_slug(client, catalog):
    response = client.get('/api/products/slug/cotton-bed-sheet')
    data = response.get_json()['data']
    assert data['id'] == catalog['sheet']
    assert data['rating'] == {'avg': 0.0, 'count': 0}

    response = client.get('/api/products/slug/blackout-curtain')
    assert response.status_code == 404

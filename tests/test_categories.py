def _create(client, headers, name, parent_id=None):
    return client.post('/api/category', headers=headers, json={
        'name': name, 'parent_id': parent_id,
    })


def test_tree(client, catalog):
    response = client.get('/api/categories/tree')
    tree = response.get_json()['data']
    assert [node['slug'] for node in tree] == ['bedding']
    children = tree[0]['children']
    assert [node['slug'] for node in children] == ['bed-sheets']
    assert children[0]['level'] == 2
    assert children[0]['children'] == []


def test_create_nested_categories(client, admin_headers, catalog):
    response = _create(
        client, admin_headers, 'Cotton Sheets', catalog['bed_sheets'])
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['level'] == 3
    assert data['slug'] == 'cotton-sheets'

    response = client.get(f"/api/categories/{data['id']}/breadcrumb")
    assert [c['name'] for c in response.get_json()['data']] == [
        'Bedding', 'Bed Sheets', 'Cotton Sheets']


def test_depth_limit(client, admin_headers, catalog):
    third = _create(
        client, admin_headers, 'Cotton Sheets', catalog['bed_sheets'])
    third_id = third.get_json()['data']['id']

    response = _create(client, admin_headers, 'Too Deep', third_id)
    assert response.status_code == 400
    assert response.get_json()['message'] == (
        'Categories can only be nested 3 levels deep')


def test_cannot_move_under_descendant(client, admin_headers, catalog):
    response = client.put(
        f"/api/category/{catalog['bedding']}",
        headers=admin_headers,
        json={'parent_id': catalog['bed_sheets']})
    assert response.status_code == 400
    assert response.get_json()['message'] == (
        'A category cannot be moved under itself')


def test_duplicate_names_get_unique_slugs(client, admin_headers):
    first = _create(client, admin_headers, 'Towels').get_json()['data']
    second = _create(client, admin_headers, 'Towels').get_json()['data']
    assert first['slug'] == 'towels'
    assert second['slug'] == 'towels-2'


def test_delete_rules(client, admin_headers, catalog):
    response = client.delete(
        f"/api/category/{catalog['bedding']}", headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Category has sub categories'

    response = client.delete(
        f"/api/category/{catalog['bed_sheets']}", headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json()['message'] == (
        'Category is used by 1 products')

    empty = _create(client, admin_headers, 'Rugs').get_json()['data']
    response = client.delete(
        f"/api/category/{empty['id']}", headers=admin_headers)
    assert response.status_code == 200
    slugs = [n['slug'] for n in client.get(
        '/api/categories/tree').get_json()['data']]
    assert 'rugs' not in slugs


def test_category_by_slug(client, catalog):
    response = client.get('/api/categories/slug/bedding')
    data = response.get_json()['data']
    assert data['id'] == catalog['bedding']
    assert [c['slug'] for c in data['children']] == ['bed-sheets']


def test_only_admin_creates_categories(client, customer_headers):
    response = _create(client, customer_headers, 'Rugs')
    assert response.status_code == 403


def test_name_required(client, admin_headers):
    response = client.post(
        '/api/category', headers=admin_headers, json={'name': ' '})
    assert response.status_code == 422

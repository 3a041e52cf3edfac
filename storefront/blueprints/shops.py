from flask import Blueprint, current_app, request
from flask_login import login_required, current_user
from sqlalchemy import func
from storefront.extensions import db
from storefront.middleware import role_required
from storefront.models import Order, Product, Shop, ShopProduct
from storefront.services.audit_service import log_audit
from storefront.services.product_service import (
    product_to_dict,
    set_shop_quantities,
)
from storefront.utils import (
    api_error,
    api_success,
    get_page_args,
    is_valid_email,
    paginate_query,
    validation_error,
)
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('shops', __name__)

SHOP_FIELDS = (
    'name',
    'phone',
    'email',
    'address_line',
    'city',
    'state',
    'postal_code',
    'country',
    'details',
    'is_active',
)


def shop_to_dict(shop: Shop):
    return {
        'id': shop.id,
        'name': shop.name,
        'phone': shop.phone,
        'email': shop.email,
        'address': {
            'address_line': shop.address_line,
            'city': shop.city,
            'state': shop.state,
            'postal_code': shop.postal_code,
            'country': shop.country,
        },
        'details': shop.details,
        'is_active': shop.is_active,
        'created_at': shop.created_at.isoformat(),
    }


def _validate_shop(data, shop=None):
    errors = {}
    if shop is None or 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            errors['name'] = ['The name field is required.']
        else:
            existing = Shop.query.filter_by(name=name).first()
            if existing and (shop is None or existing.id != shop.id):
                errors['name'] = ['The name has already been taken.']
    if data.get('email') and not is_valid_email(data['email']):
        errors['email'] = ['The email must be a valid email address.']
    return errors


@bp.route('/api/shop', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def list_shops():
    page, per_page = get_page_args()
    query = Shop.query.order_by(Shop.name)
    return api_success(
        paginate_query(query, page, per_page, serializer=shop_to_dict))


@bp.route('/api/shop', methods=['POST'])
@login_required
@role_required('ADMIN')
def create_shop():
    data = request.get_json(silent=True) or {}
    errors = _validate_shop(data)
    if errors:
        return validation_error(errors)

    shop = Shop()
    for field in SHOP_FIELDS:
        if field in data:
            setattr(shop, field, data[field])
    shop.name = shop.name.strip()
    db.session.add(shop)
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='SHOP_CREATE',
        target_type='SHOP',
        target_id=shop.id,
        payload={'name': shop.name}
    )
    return api_success(shop_to_dict(shop), 'Shop created successfully', 201)


@bp.route('/api/shop/<int:shop_id>', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def show_shop(shop_id):
    return api_success(shop_to_dict(db.get_or_404(Shop, shop_id)))


@bp.route('/api/shop/<int:shop_id>', methods=['PUT', 'PATCH'])
@login_required
@role_required('ADMIN')
def update_shop(shop_id):
    shop = db.get_or_404(Shop, shop_id)
    data = request.get_json(silent=True) or {}
    errors = _validate_shop(data, shop)
    if errors:
        return validation_error(errors)

    for field in SHOP_FIELDS:
        if field in data:
            setattr(shop, field, data[field])
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='SHOP_UPDATE',
        target_type='SHOP',
        target_id=shop.id,
        payload={'fields': sorted(data.keys())}
    )
    return api_success(shop_to_dict(shop), 'Shop updated successfully')


@bp.route('/api/shop/<int:shop_id>', methods=['DELETE'])
@login_required
@role_required('ADMIN')
def delete_shop(shop_id):
    shop = db.get_or_404(Shop, shop_id)
    if shop.id == current_app.config.get('DEFAULT_SHOP_ID'):
        return api_error('The default web shop cannot be deleted', 400)
    if Order.query.filter_by(shop_id=shop.id).first():
        return api_error('Shop has orders and cannot be deleted', 400)
    db.session.delete(shop)
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='SHOP_DELETE',
        target_type='SHOP',
        target_id=shop_id,
    )
    return api_success(None, 'Shop deleted successfully')


@bp.route('/api/shop-list', methods=['GET'])
@login_required
def shop_list():
    shops = Shop.query.filter_by(is_active=True).order_by(Shop.name).all()
    return api_success([{'id': s.id, 'name': s.name} for s in shops])


@bp.route('/api/shops-with-product-count', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def shops_with_product_count():
    rows = db.session.query(
        Shop,
        func.count(ShopProduct.product_id),
        func.coalesce(func.sum(ShopProduct.quantity), 0),
    ).outerjoin(
        ShopProduct, ShopProduct.shop_id == Shop.id
    ).group_by(Shop.id).order_by(Shop.name).all()

    return api_success([
        {
            'id': shop.id,
            'name': shop.name,
            'is_active': shop.is_active,
            'product_count': count,
            'total_quantity': int(quantity),
        }
        for shop, count, quantity in rows
    ])


@bp.route('/api/shop/<int:shop_id>/products', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def shop_products(shop_id):
    shop = db.get_or_404(Shop, shop_id)
    page, per_page = get_page_args()
    query = db.session.query(Product, ShopProduct.quantity).join(
        ShopProduct, ShopProduct.product_id == Product.id
    ).filter(
        ShopProduct.shop_id == shop.id,
        Product.is_deleted.is_(False),
    ).order_by(Product.name)

    def serialize(row):
        product, quantity = row
        data = product_to_dict(product)
        data['shop_quantity'] = quantity
        return data

    result = paginate_query(query, page, per_page, serializer=serialize)
    result['shop'] = {'id': shop.id, 'name': shop.name}
    return api_success(result)


@bp.route('/api/shop/<int:shop_id>/products', methods=['PUT'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def set_shop_products(shop_id):
    shop = db.get_or_404(Shop, shop_id)
    data = request.get_json(silent=True) or {}
    items = data.get('products')
    if not isinstance(items, list) or not items:
        return validation_error(
            {'products': ['Provide a list of product quantities.']})

    for item in items:
        product = Product.query.filter_by(
            id=item.get('product_id'), is_deleted=False).first()
        if product is None:
            db.session.rollback()
            return api_error(
                f"Product not found: {item.get('product_id')}", 404)
        set_shop_quantities(product, [{
            'shop_id': shop.id,
            'quantity': item.get('quantity'),
        }])
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='SHOP_STOCK_UPDATE',
        target_type='SHOP',
        target_id=shop.id,
        payload={'products': items}
    )
    return api_success(None, 'Shop quantities updated')

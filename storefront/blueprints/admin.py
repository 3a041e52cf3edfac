from flask import Blueprint, request
from flask_login import login_required, current_user
from storefront.middleware import role_required
from storefront.models import Product
from storefront.services import product_service
from storefront.services.audit_service import log_audit
from storefront.utils import api_success, get_page_args, paginate_query
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__)


def _get_product_or_404(product_id):
    return Product.query.filter_by(
        id=product_id, is_deleted=False).first_or_404()


def _admin_product(product):
    data = product_service.product_to_dict(product)
    data['cost'] = float(product.cost) if product.cost is not None else None
    data['sold_count'] = product.sold_count
    data['shops'] = [
        {
            'shop_id': link.shop_id,
            'shop_name': link.shop.name,
            'quantity': link.quantity,
        }
        for link in product.shop_products
    ]
    return data


@bp.route('/api/product', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def list_products():
    page, per_page = get_page_args()
    query = product_service.filter_products(
        request.args, include_inactive=True)
    return api_success(
        paginate_query(query, page, per_page, serializer=_admin_product))


@bp.route('/api/product', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def create_product():
    data = request.get_json(silent=True) or {}
    product = product_service.create_product(data, actor_id=current_user.id)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='PRODUCT_CREATE',
        target_type='PRODUCT',
        target_id=product.id,
        payload={'sku': product.sku, 'price': str(product.price)}
    )
    return api_success(
        _admin_product(product), 'Product created successfully', 201)


@bp.route('/api/product/<int:product_id>', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def show_product(product_id):
    return api_success(_admin_product(_get_product_or_404(product_id)))


@bp.route('/api/product/<int:product_id>', methods=['PUT', 'PATCH'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def update_product(product_id):
    product = _get_product_or_404(product_id)
    data = request.get_json(silent=True) or {}
    product_service.update_product(product, data)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='PRODUCT_UPDATE',
        target_type='PRODUCT',
        target_id=product.id,
        payload={'fields': sorted(data.keys())}
    )
    return api_success(
        _admin_product(product), 'Product updated successfully')


@bp.route('/api/product/<int:product_id>', methods=['DELETE'])
@login_required
@role_required('ADMIN')
def delete_product(product_id):
    product = _get_product_or_404(product_id)
    product_service.delete_product(product, actor_id=current_user.id)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='PRODUCT_DELETE',
        target_type='PRODUCT',
        target_id=product.id,
        payload={'sku': product.sku}
    )
    return api_success(None, 'Product deleted successfully')


@bp.route('/api/product/<int:product_id>/duplicate', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def duplicate_product(product_id):
    product = _get_product_or_404(product_id)
    copy = product_service.duplicate_product(
        product, actor_id=current_user.id)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='PRODUCT_DUPLICATE',
        target_type='PRODUCT',
        target_id=copy.id,
        payload={'source_id': product.id, 'sku': copy.sku}
    )
    return api_success(
        _admin_product(copy), 'Product duplicated successfully', 201)

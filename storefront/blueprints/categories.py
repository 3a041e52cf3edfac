from flask import Blueprint, request
from flask_login import login_required, current_user
from storefront.middleware import role_required
from storefront.models import Category
from storefront.services import category_service
from storefront.services.audit_service import log_audit
from storefront.utils import api_success, validation_error
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('categories', __name__)


def _get_category_or_404(category_id):
    return Category.query.filter_by(
        id=category_id, is_deleted=False).first_or_404()


@bp.route('/api/categories/tree', methods=['GET'])
def category_tree():
    return api_success(category_service.build_tree())


@bp.route('/api/categories', methods=['GET'])
def root_categories():
    roots = category_service.active_categories().filter(
        Category.parent_id.is_(None)
    ).order_by(Category.sort_order, Category.name).all()
    return api_success([category_service.category_to_dict(c) for c in roots])


@bp.route('/api/categories/<int:category_id>/children', methods=['GET'])
def category_children(category_id):
    category = _get_category_or_404(category_id)
    children = category.children.filter_by(
        is_deleted=False, is_active=True
    ).order_by(Category.sort_order, Category.name).all()
    return api_success({
        'category': category_service.category_to_dict(category),
        'children': [category_service.category_to_dict(c) for c in children],
    })


@bp.route('/api/categories/slug/<slug>', methods=['GET'])
def category_by_slug(slug):
    category = category_service.active_categories().filter_by(
        slug=slug).first_or_404()
    data = category_service.category_to_dict(category)
    data['children'] = [
        category_service.category_to_dict(c)
        for c in category.children.filter_by(
            is_deleted=False, is_active=True).order_by(Category.sort_order)
    ]
    data['breadcrumb'] = category_service.breadcrumb(category)
    return api_success(data)


@bp.route('/api/categories/<int:category_id>/breadcrumb', methods=['GET'])
def category_breadcrumb(category_id):
    category = _get_category_or_404(category_id)
    return api_success(category_service.breadcrumb(category))


# Admin CRUD

@bp.route('/api/category', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def list_categories():
    categories = Category.query.filter_by(is_deleted=False).order_by(
        Category.level, Category.sort_order, Category.name).all()
    return api_success(
        [category_service.category_to_dict(c) for c in categories])


@bp.route('/api/category', methods=['POST'])
@login_required
@role_required('ADMIN')
def create_category():
    data = request.get_json(silent=True) or {}
    if not (data.get('name') or '').strip():
        return validation_error({'name': ['The name field is required.']})

    category = category_service.create_category(data)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='CATEGORY_CREATE',
        target_type='CATEGORY',
        target_id=category.id,
        payload={'name': category.name, 'parent_id': category.parent_id}
    )
    return api_success(
        category_service.category_to_dict(category),
        'Category created successfully',
        201)


@bp.route('/api/category/<int:category_id>', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def show_category(category_id):
    category = _get_category_or_404(category_id)
    return api_success(category_service.category_to_dict(category))


@bp.route('/api/category/<int:category_id>', methods=['PUT', 'PATCH'])
@login_required
@role_required('ADMIN')
def update_category(category_id):
    category = _get_category_or_404(category_id)
    data = request.get_json(silent=True) or {}
    if 'name' in data and not (data.get('name') or '').strip():
        return validation_error({'name': ['The name field is required.']})

    category_service.update_category(category, data)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='CATEGORY_UPDATE',
        target_type='CATEGORY',
        target_id=category.id,
        payload={'fields': sorted(data.keys())}
    )
    return api_success(
        category_service.category_to_dict(category),
        'Category updated successfully')


@bp.route('/api/category/<int:category_id>', methods=['DELETE'])
@login_required
@role_required('ADMIN')
def delete_category(category_id):
    category = _get_category_or_404(category_id)
    category_service.delete_category(category, actor_id=current_user.id)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='CATEGORY_DELETE',
        target_type='CATEGORY',
        target_id=category.id,
    )
    return api_success(None, 'Category deleted successfully')

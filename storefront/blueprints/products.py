from flask import Blueprint, request
from storefront.models import Category, Product
from storefront.services import product_service
from storefront.services.category_service import breadcrumb, descendant_ids
from storefront.utils import (
    api_success,
    get_page_args,
    get_product_rating_summary,
    paginate_query,
)
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('products', __name__)


def _limit(default=12):
    limit = request.args.get('limit', default, type=int) or default
    return min(max(1, limit), 50)


def _product_detail(product):
    summary = get_product_rating_summary([product.id])
    data = product_service.product_to_dict(
        product,
        rating=summary.get(product.id, {'avg': 0.0, 'count': 0}),
    )
    data['breadcrumb'] = breadcrumb(product.category) if (
        product.category) else []
    data['similar'] = product_service.products_to_list(
        product_service.similar_products(product, limit=4))
    return data


@bp.route('/api/products', methods=['GET'])
def product_list():
    page, per_page = get_page_args()
    query = product_service.filter_products(request.args)
    result = paginate_query(query, page, per_page)
    result['items'] = product_service.products_to_list(result['items'])
    return api_success(result, 'Products retrieved successfully')


@bp.route('/api/products/featured', methods=['GET'])
def featured():
    products = product_service.featured_products(limit=_limit())
    return api_success(product_service.products_to_list(products))


@bp.route('/api/products/new-arrivals', methods=['GET'])
def new_arrivals():
    products = product_service.new_arrivals(limit=_limit())
    return api_success(product_service.products_to_list(products))


@bp.route('/api/products/trending', methods=['GET'])
def trending():
    products = product_service.trending_products(limit=_limit())
    return api_success(product_service.products_to_list(products))


@bp.route('/api/products/on-sale', methods=['GET'])
def on_sale():
    products = product_service.on_sale_products(limit=_limit())
    return api_success(product_service.products_to_list(products))


@bp.route('/api/products/category/<int:category_id>', methods=['GET'])
def by_category(category_id):
    category = Category.query.filter_by(
        id=category_id, is_deleted=False, is_active=True).first_or_404()
    page, per_page = get_page_args()
    query = product_service.visible_products().filter(
        Product.category_id.in_(descendant_ids(category))
    ).order_by(Product.created_at.desc(), Product.id.desc())
    result = paginate_query(query, page, per_page)
    result['items'] = product_service.products_to_list(result['items'])
    result['category'] = {
        'id': category.id,
        'name': category.name,
        'slug': category.slug,
    }
    return api_success(result)


@bp.route('/api/products/<int:product_id>/similar', methods=['GET'])
def similar(product_id):
    product = product_service.visible_products().filter_by(
        id=product_id).first_or_404()
    products = product_service.similar_products(product, limit=_limit(8))
    return api_success(product_service.products_to_list(products))


@bp.route('/api/products/slug/<slug>', methods=['GET'])
def product_by_slug(slug):
    product = product_service.visible_products().filter_by(
        slug=slug).first_or_404()
    return api_success(_product_detail(product))


@bp.route('/api/products/<int:product_id>', methods=['GET'])
def product_detail(product_id):
    product = product_service.visible_products().filter_by(
        id=product_id).first_or_404()
    return api_success(_product_detail(product))

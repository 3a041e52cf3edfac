from flask import Blueprint, current_app
from storefront.models import Category
from storefront.services import product_service
from storefront.services.category_service import (
    active_categories,
    category_to_dict,
)
from storefront.utils import api_success
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('api', __name__)


@bp.route('/api/public/home', methods=['GET'])
def public_home():
    categories = active_categories().filter(
        Category.parent_id.is_(None)
    ).order_by(Category.sort_order, Category.name).limit(10).all()

    return api_success({
        'featured_products': product_service.products_to_list(
            product_service.featured_products(limit=12)),
        'new_arrivals': product_service.products_to_list(
            product_service.new_arrivals(limit=8)),
        'on_sale': product_service.products_to_list(
            product_service.on_sale_products(limit=8)),
        'top_categories': [category_to_dict(c) for c in categories],
        'currency': {
            'code': current_app.config.get('CURRENCY'),
            'symbol': current_app.config.get('CURRENCY_SYMBOL'),
        },
    })

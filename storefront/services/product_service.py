from flask import current_app
from sqlalchemy import or_
from storefront.extensions import db
from storefront.exceptions import ServiceError, ValidationFailed
from storefront.models import (
    Category,
    Product,
    ProductStatus,
    Shop,
    ShopProduct,
)
from storefront.services.category_service import descendant_ids
from storefront.services.pricing_service import product_sell_price
from storefront.utils import (
    add_error,
    get_product_rating_summary,
    money,
    to_decimal,
    unique_slug,
)
from datetime import datetime, timedelta
import logging

logger = logging.getLogger(__name__)

ORDERABLE_FIELDS = ('id', 'name', 'price', 'created_at', 'updated_at')
NEW_ARRIVAL_DAYS = 30


def visible_products():
    return Product.query.filter_by(
        is_deleted=False, status=ProductStatus.ACTIVE)


def product_to_dict(product: Product, rating=None, now=None):
    sale_price, discount, discounted = product_sell_price(product, now=now)
    data = {
        'id': product.id,
        'name': product.name,
        'slug': product.slug,
        'sku': product.sku,
        'description': product.description,
        'price': money(product.price),
        'sale_price': money(sale_price),
        'discount': money(discount),
        'discount_active': discounted,
        'discount_percent': money(product.discount_percent),
        'discount_fixed': money(product.discount_fixed),
        'discount_start': (
            product.discount_start.isoformat()
            if product.discount_start else None
        ),
        'discount_end': (
            product.discount_end.isoformat()
            if product.discount_end else None
        ),
        'currency': current_app.config.get('CURRENCY', 'BDT'),
        'currency_symbol': current_app.config.get('CURRENCY_SYMBOL'),
        'stock': product.stock,
        'in_stock': product.stock > 0,
        'status': product.status.value,
        'is_featured': product.is_featured,
        'is_trending': product.is_trending,
        'category': (
            {
                'id': product.category.id,
                'name': product.category.name,
                'slug': product.category.slug,
            } if product.category else None
        ),
        'created_at': product.created_at.isoformat(),
    }
    if rating is not None:
        data['rating'] = rating
    return data


def products_to_list(products):
    summary = get_product_rating_summary([p.id for p in products])
    now = datetime.utcnow()
    return [
        product_to_dict(
            p,
            rating=summary.get(p.id, {'avg': 0.0, 'count': 0}),
            now=now,
        )
        for p in products
    ]


def filter_products(args, include_inactive=False):
    """Build the catalog listing query from request arguments."""
    if include_inactive:
        query = Product.query.filter_by(is_deleted=False)
        status = args.get('status')
        if status:
            try:
                query = query.filter_by(status=ProductStatus(status.upper()))
            except ValueError:
                raise ValidationFailed({'status': ['Invalid status']})
    else:
        query = visible_products()

    search = (args.get('search') or '').strip()
    if search:
        like = f'%{search}%'
        query = query.filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
        ))

    category_id = args.get('category_id')
    if category_id:
        if not str(category_id).isdigit():
            raise ValidationFailed({
                'category_id': [
                    f'Category ID must be a valid integer. '
                    f'Invalid value: {category_id}'
                ]
            })
        category = Category.query.filter_by(
            id=int(category_id), is_deleted=False).first()
        if category is None:
            raise ValidationFailed({
                'category_id': [
                    f'Category not found. The category with ID '
                    f'{category_id} does not exist.'
                ]
            })
        query = query.filter(
            Product.category_id.in_(descendant_ids(category)))

    for field in ('min_price', 'max_price'):
        raw = args.get(field)
        if raw in (None, ''):
            continue
        value = to_decimal(raw)
        if value is None or not value.is_finite() or value < 0:
            raise ValidationFailed(
                {field: [f'{field} must be a non-negative number']})
        if field == 'min_price':
            query = query.filter(Product.price >= value)
        else:
            query = query.filter(Product.price <= value)

    order_by = args.get('order_by') or 'created_at'
    if order_by not in ORDERABLE_FIELDS:
        raise ValidationFailed({'order_by': ['Invalid order by field']})
    direction = args.get('direction') or 'desc'
    if direction not in ('asc', 'desc'):
        raise ValidationFailed(
            {'direction': ['Direction must be either asc or desc']})
    column = getattr(Product, order_by)
    query = query.order_by(
        column.asc() if direction == 'asc' else column.desc(),
        Product.id.desc(),
    )
    return query


def featured_products(limit=12):
    return visible_products().filter_by(is_featured=True).order_by(
        Product.updated_at.desc()).limit(limit).all()


def new_arrivals(limit=12, days=NEW_ARRIVAL_DAYS):
    since = datetime.utcnow() - timedelta(days=days)
    return visible_products().filter(Product.created_at >= since).order_by(
        Product.created_at.desc()).limit(limit).all()


def trending_products(limit=12):
    return visible_products().order_by(
        Product.is_trending.desc(),
        Product.sold_count.desc(),
        Product.id.desc(),
    ).limit(limit).all()


def on_sale_products(limit=12, now=None):
    now = now or datetime.utcnow()
    return visible_products().filter(
        or_(Product.discount_percent > 0, Product.discount_fixed > 0),
        or_(Product.discount_start.is_(None), Product.discount_start <= now),
        or_(Product.discount_end.is_(None), Product.discount_end >= now),
    ).order_by(Product.updated_at.desc()).limit(limit).all()


def similar_products(product: Product, limit=8):
    if product.category_id is None:
        return []
    return visible_products().filter(
        Product.category_id == product.category_id,
        Product.id != product.id,
    ).order_by(Product.sold_count.desc(), Product.id.desc()).limit(
        limit).all()


def _parse_datetime(value, field, errors):
    if value in (None, ''):
        return None
    try:
        return datetime.fromisoformat(str(value).replace('Z', ''))
    except ValueError:
        add_error(errors, field, f'{field} must be an ISO date')
        return None


def _validate_product_data(data, product=None):
    errors = {}
    creating = product is None
    cleaned = {}

    if creating or 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            add_error(errors, 'name', 'The name field is required.')
        cleaned['name'] = name

    if creating or 'sku' in data:
        sku = (data.get('sku') or '').strip()
        if not sku:
            add_error(errors, 'sku', 'The sku field is required.')
        else:
            existing = Product.query.filter_by(sku=sku).first()
            if existing and (creating or existing.id != product.id):
                add_error(errors, 'sku', 'The sku has already been taken.')
        cleaned['sku'] = sku

    if creating or 'price' in data:
        price = to_decimal(data.get('price'))
        if price is None or price <= 0:
            add_error(errors, 'price', 'Price must be greater than 0.')
        cleaned['price'] = price

    if 'cost' in data:
        cleaned['cost'] = to_decimal(data.get('cost'))

    if 'stock' in data or creating:
        stock = data.get('stock', 0)
        if not isinstance(stock, int) or isinstance(stock, bool) or stock < 0:
            add_error(errors, 'stock', 'Stock must be a non-negative integer.')
        cleaned['stock'] = stock

    if 'discount_percent' in data:
        percent = to_decimal(data.get('discount_percent'), 0)
        if percent < 0 or percent > 100:
            add_error(
                errors,
                'discount_percent',
                'Discount percent must be between 0 and 100.')
        cleaned['discount_percent'] = percent

    if 'discount_fixed' in data:
        fixed = to_decimal(data.get('discount_fixed'), 0)
        if fixed < 0:
            add_error(
                errors, 'discount_fixed', 'Fixed discount cannot be negative.')
        cleaned['discount_fixed'] = fixed

    for field in ('discount_start', 'discount_end'):
        if field in data:
            cleaned[field] = _parse_datetime(data.get(field), field, errors)
    start = cleaned.get(
        'discount_start', product.discount_start if product else None)
    end = cleaned.get(
        'discount_end', product.discount_end if product else None)
    if start and end and start > end:
        add_error(
            errors,
            'discount_end',
            'Discount end must be after discount start.')

    if 'category_id' in data:
        category_id = data.get('category_id')
        if category_id is not None and not Category.query.filter_by(
                id=category_id, is_deleted=False).first():
            add_error(errors, 'category_id', 'Category not found.')
        cleaned['category_id'] = category_id

    if 'status' in data:
        try:
            cleaned['status'] = ProductStatus(str(data['status']).upper())
        except ValueError:
            add_error(errors, 'status', 'Invalid status.')

    for field in ('description', 'is_featured', 'is_trending'):
        if field in data:
            cleaned[field] = data[field]

    if errors:
        raise ValidationFailed(errors)
    return cleaned


def set_shop_quantities(product: Product, shops):
    """Replace per-shop quantities from ``[{'shop_id', 'quantity'}]``."""
    for entry in shops or []:
        shop = db.session.get(Shop, entry.get('shop_id'))
        if shop is None:
            raise ServiceError(f"Shop not found: {entry.get('shop_id')}", 404)
        quantity = int(entry.get('quantity') or 0)
        if quantity < 0:
            raise ServiceError('Shop quantity cannot be negative')
        link = ShopProduct.query.filter_by(
            shop_id=shop.id, product_id=product.id).first()
        if link is None:
            link = ShopProduct(shop_id=shop.id, product_id=product.id)
            db.session.add(link)
        link.quantity = quantity


def create_product(data, actor_id=None):
    cleaned = _validate_product_data(data)
    product = Product(created_by=actor_id, **cleaned)
    product.slug = unique_slug(Product, data.get('slug') or cleaned['name'])
    db.session.add(product)
    db.session.flush()
    set_shop_quantities(product, data.get('shops'))
    db.session.commit()
    return product


def update_product(product: Product, data):
    cleaned = _validate_product_data(data, product)
    for field, value in cleaned.items():
        setattr(product, field, value)
    if 'name' in cleaned or data.get('slug'):
        product.slug = unique_slug(
            Product,
            data.get('slug') or product.name,
            exclude_id=product.id)
    if 'shops' in data:
        set_shop_quantities(product, data.get('shops'))
    db.session.commit()
    return product


def delete_product(product: Product, actor_id=None):
    product.is_deleted = True
    product.deleted_at = datetime.utcnow()
    product.deleted_by = actor_id
    db.session.commit()


def _unique_copy(field, value, limit, sep=' '):
    """Append ``Copy`` (then ``Copy 2``...) keeping the column limit."""
    column = getattr(Product, field)
    suffix = f'{sep}Copy'
    counter = 2
    while True:
        candidate = value[:limit - len(suffix)] + suffix
        if not Product.query.filter(column == candidate).first():
            return candidate
        suffix = f'{sep}Copy{sep}{counter}'
        counter += 1


def duplicate_product(product: Product, actor_id=None):
    name = _unique_copy('name', product.name, 200)
    copy = Product(
        name=name,
        slug=unique_slug(Product, name),
        sku=_unique_copy('sku', product.sku, 64, sep='-'),
        description=product.description,
        category_id=product.category_id,
        price=product.price,
        cost=product.cost,
        discount_percent=product.discount_percent,
        discount_fixed=product.discount_fixed,
        discount_start=product.discount_start,
        discount_end=product.discount_end,
        stock=product.stock,
        status=ProductStatus.INACTIVE,
        is_featured=False,
        is_trending=False,
        created_by=actor_id,
    )
    db.session.add(copy)
    db.session.flush()
    for link in product.shop_products:
        db.session.add(ShopProduct(
            shop_id=link.shop_id,
            product_id=copy.id,
            quantity=link.quantity,
        ))
    db.session.commit()
    return copy

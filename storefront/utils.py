from datetime import datetime
from decimal import Decimal
from flask import current_app, g, jsonify, request
from sqlalchemy import func
from storefront.extensions import db
from storefront.models import ProductReview
import logging
import re
import time
import unicodedata
import uuid

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
BD_PHONE_RE = re.compile(r'^\d{11}$')


def _meta():
    started = getattr(g, 'request_started', None)
    elapsed = None
    if started is not None:
        elapsed = round((time.perf_counter() - started) * 1000, 2)
    return {
        'request_id': getattr(g, 'request_id', None),
        'timestamp': datetime.utcnow().isoformat() + 'Z',
        'response_time_ms': elapsed,
    }


def api_success(data=None, message='Success', status=200):
    return jsonify({
        'success': True,
        'message': message,
        'data': data,
        'meta': _meta(),
    }), status


def api_error(message, status=400, errors=None, data=None):
    body = {'success': False, 'message': message}
    if errors is not None:
        body['errors'] = errors
    if data is not None:
        body['data'] = data
    return jsonify(body), status


def validation_error(errors):
    return api_error('Validation failed', 422, errors=errors)


def service_error_response(exc):
    return api_error(
        exc.message, exc.status_code, errors=exc.errors, data=exc.data)


def money(value):
    if value is None:
        return None
    return float(value)


def to_decimal(value, default=None):
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value))
    except (ArithmeticError, ValueError):
        return default


def normalize_phone(phone):
    """Strip everything but digits, keeping a leading plus sign."""
    if not phone:
        return phone
    phone = str(phone).strip()
    digits = re.sub(r'\D', '', phone)
    return '+' + digits if phone.startswith('+') else digits


def is_valid_email(value) -> bool:
    return bool(value and EMAIL_RE.match(str(value)))


def is_valid_bd_phone(value) -> bool:
    return bool(value and BD_PHONE_RE.match(str(value)))


def add_error(errors, field, message):
    errors.setdefault(field, []).append(message)


def get_page_args():
    page = max(1, request.args.get('page', 1, type=int) or 1)
    default = current_app.config.get('ITEMS_PER_PAGE', 20)
    limit = current_app.config.get('MAX_PER_PAGE', 100)
    per_page = request.args.get('per_page', default, type=int) or default
    per_page = min(max(1, per_page), limit)
    return page, per_page


def paginate_query(query, page=1, per_page=20, serializer=None):
    pagination = query.paginate(
        page=page,
        per_page=per_page,
        error_out=False
    )
    items = pagination.items
    if serializer is not None:
        items = [serializer(item) for item in items]
    return {
        'items': items,
        'page': pagination.page,
        'pages': pagination.pages,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'has_next': pagination.has_next,
        'has_prev': pagination.has_prev
    }


def get_product_rating_summary(product_ids):
    if not product_ids:
        return {}

    rows = db.session.query(
        ProductReview.product_id,
        ProductReview.rating,
        func.count(ProductReview.id)
    ).filter(
        ProductReview.product_id.in_(product_ids),
        ProductReview.is_deleted.is_(False),
        ProductReview.is_approved.is_(True)
    ).group_by(ProductReview.product_id, ProductReview.rating).all()

    summary = {}
    for product_id, rating, count in rows:
        entry = summary.setdefault(product_id, {
            'count': 0,
            'sum': 0,
            'percents': {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
        })
        entry['count'] += count
        entry['sum'] += rating * count
        entry['percents'][rating] = entry['percents'].get(rating, 0) + count

    # Normalize to avg + percents
    for product_id, entry in summary.items():
        total = entry['count']
        avg = round(entry['sum'] / total, 2) if total else 0.0
        percents = {
            k: int(round((v / total) * 100)) if total else 0
            for k, v in entry['percents'].items()
        }
        summary[product_id] = {
            'avg': avg,
            'count': total,
            'percents': percents
        }

    return summary


def slugify(value):
    ascii_name = (
        unicodedata.normalize('NFKD', str(value or '').strip().lower())
        .encode('ascii', 'ignore')
        .decode('ascii')
    )
    slug = re.sub(r'[^a-z0-9]+', '-', ascii_name).strip('-')
    return slug or uuid.uuid4().hex[:12]


def unique_slug(model, value, exclude_id=None):
    """Slugify ``value`` and add a numeric suffix until it is unused."""
    base = slugify(value)
    slug = base
    suffix = 2
    while True:
        query = model.query.filter_by(slug=slug)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if not query.first():
            return slug
        slug = f'{base}-{suffix}'
        suffix += 1

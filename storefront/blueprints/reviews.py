import logging
from datetime import datetime

from flask import Blueprint, request
from flask_login import login_required, current_user
from sqlalchemy import func, or_

from storefront.extensions import db
from storefront.middleware import role_required
from storefront.models import (
    Customer,
    Order,
    OrderDetails,
    OrderStatus,
    Product,
    ProductReview,
    ProductStatus,
    UserRole,
)
from storefront.services.audit_service import actor_fields, log_audit
from storefront.utils import (
    add_error,
    api_error,
    api_success,
    get_page_args,
    get_product_rating_summary,
    is_valid_email,
    paginate_query,
    validation_error,
)

logger = logging.getLogger(__name__)
bp = Blueprint('reviews', __name__)


def review_to_dict(review: ProductReview):
    return {
        'id': review.id,
        'product_id': review.product_id,
        'user_id': review.user_id,
        'reviewer_name': review.reviewer_name,
        'rating': review.rating,
        'title': review.title,
        'review': review.review,
        'is_approved': review.is_approved,
        'is_verified_purchase': review.is_verified_purchase,
        'is_recommended': review.is_recommended,
        'created_at': review.created_at.isoformat(),
    }


def _parse_rating(value):
    try:
        rating = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None
    return min(5, max(1, rating))


def _is_verified_purchase(product_id, email):
    if not email:
        return False
    email = email.lower()
    found = db.session.query(Order.id).join(
        OrderDetails, OrderDetails.order_id == Order.id
    ).join(
        Customer, Customer.id == Order.customer_id
    ).filter(
        OrderDetails.product_id == product_id,
        Order.order_status == OrderStatus.COMPLETED,
        or_(
            func.lower(Customer.email) == email,
            func.lower(Order.guest_email) == email,
            func.lower(Order.shipping_email) == email,
        )
    ).first()
    return found is not None


def _can_manage(review):
    if not current_user.is_authenticated:
        return False
    return (
        review.user_id == current_user.id
        or current_user.role == UserRole.ADMIN
    )


def _get_review_or_404(review_id):
    return ProductReview.query.filter_by(
        id=review_id, is_deleted=False).first_or_404()


@bp.route('/api/reviews', methods=['POST'])
def create_review():
    data = request.get_json(silent=True) or {}
    errors = {}

    product = None
    if not data.get('product_id'):
        add_error(errors, 'product_id', 'The product id field is required.')
    else:
        product = Product.query.filter_by(
            id=data.get('product_id'),
            is_deleted=False,
            status=ProductStatus.ACTIVE
        ).first()
        if product is None:
            add_error(errors, 'product_id', 'The selected product is invalid.')

    rating = _parse_rating(data.get('rating'))
    if rating is None:
        add_error(errors, 'rating', 'The rating must be a number.')

    content = (data.get('review') or data.get('comment') or '').strip()
    if len(content) > 5000:
        add_error(
            errors, 'review', 'The review may not exceed 5000 characters.')

    if current_user.is_authenticated:
        name = (data.get('reviewer_name') or current_user.full_name).strip()
        email = (data.get('reviewer_email') or current_user.email or '')
    else:
        name = (data.get('reviewer_name') or '').strip()
        email = (data.get('reviewer_email') or '')
        if not name:
            add_error(
                errors,
                'reviewer_name',
                'The reviewer name field is required.')
        if not email:
            add_error(
                errors,
                'reviewer_email',
                'The reviewer email field is required.')
    email = email.strip().lower()
    if email and not is_valid_email(email):
        add_error(
            errors,
            'reviewer_email',
            'The reviewer email must be a valid email address.')

    if errors:
        return validation_error(errors)

    review = ProductReview(
        product_id=product.id,
        user_id=current_user.id if current_user.is_authenticated else None,
        reviewer_name=name,
        reviewer_email=email or None,
        rating=rating,
        title=(data.get('title') or '').strip() or None,
        review=content or None,
        is_recommended=bool(data.get('is_recommended', True)),
        is_verified_purchase=_is_verified_purchase(product.id, email),
        is_approved=False,
    )
    db.session.add(review)
    db.session.commit()

    actor_id, actor_role = actor_fields(current_user)
    log_audit(
        actor_id=actor_id,
        actor_role=actor_role,
        action='REVIEW_CREATE',
        target_type='REVIEW',
        target_id=review.id,
        payload={'product_id': product.id, 'rating': rating}
    )

    return api_success(
        review_to_dict(review),
        'Review submitted successfully and is awaiting approval',
        201)


@bp.route('/api/products/<int:product_id>/reviews', methods=['GET'])
def product_reviews(product_id):
    Product.query.filter_by(id=product_id, is_deleted=False).first_or_404()
    page, per_page = get_page_args()
    query = ProductReview.query.filter_by(
        product_id=product_id,
        is_approved=True,
        is_deleted=False
    ).order_by(ProductReview.created_at.desc(), ProductReview.id.desc())

    result = paginate_query(query, page, per_page, serializer=review_to_dict)
    summary = get_product_rating_summary([product_id]).get(product_id)
    result['summary'] = summary or {
        'avg': 0.0,
        'count': 0,
        'percents': {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
    }
    return api_success(result)


@bp.route('/api/reviews/<int:review_id>', methods=['GET'])
def show_review(review_id):
    review = _get_review_or_404(review_id)
    if not review.is_approved and not _can_manage(review):
        return api_error('Review not found', 404)
    return api_success(review_to_dict(review))


@bp.route('/api/reviews/<int:review_id>', methods=['PUT', 'PATCH'])
@login_required
def update_review(review_id):
    review = _get_review_or_404(review_id)
    if not _can_manage(review):
        return api_error('No permission to update this review', 403)

    data = request.get_json(silent=True) or {}
    if 'rating' in data:
        rating = _parse_rating(data.get('rating'))
        if rating is None:
            return validation_error(
                {'rating': ['The rating must be a number.']})
        review.rating = rating
    if 'title' in data:
        review.title = (data.get('title') or '').strip() or None
    if 'review' in data or 'comment' in data:
        content = (data.get('review') or data.get('comment') or '').strip()
        review.review = content or None
    if 'is_recommended' in data:
        review.is_recommended = bool(data['is_recommended'])

    # Edited reviews go back through moderation
    review.is_approved = False
    review.approved_at = None
    review.approved_by = None
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='REVIEW_UPDATE',
        target_type='REVIEW',
        target_id=review.id,
        payload={'fields': sorted(data.keys())}
    )
    return api_success(review_to_dict(review), 'Review updated successfully')


@bp.route('/api/reviews/<int:review_id>', methods=['DELETE'])
@login_required
def delete_review(review_id):
    review = _get_review_or_404(review_id)
    if not _can_manage(review):
        return api_error('No permission to delete this review', 403)

    review.is_deleted = True
    review.deleted_at = datetime.utcnow()
    review.deleted_by = current_user.id
    if review.user_id == current_user.id:
        review.deleted_reason = 'User deleted'
    else:
        review.deleted_reason = 'Admin deleted'
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='REVIEW_DELETE',
        target_type='REVIEW',
        target_id=review.id,
        payload={
            'product_id': review.product_id,
            'reason': review.deleted_reason,
        }
    )
    return api_success(None, 'Review deleted successfully')


# Moderation

def _approve(review):
    review.is_approved = True
    review.approved_at = datetime.utcnow()
    review.approved_by = current_user.id


def _reject(review, reason):
    review.is_approved = False
    review.is_deleted = True
    review.deleted_at = datetime.utcnow()
    review.deleted_by = current_user.id
    review.deleted_reason = reason


def _bulk_ids(data):
    ids = data.get('ids')
    if not isinstance(ids, list) or not ids:
        return None
    try:
        return [int(i) for i in ids]
    except (TypeError, ValueError):
        return None


@bp.route('/api/admin/reviews/pending', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def pending_reviews():
    page, per_page = get_page_args()
    query = ProductReview.query.filter_by(
        is_approved=False, is_deleted=False
    ).order_by(ProductReview.created_at.asc())
    return api_success(
        paginate_query(query, page, per_page, serializer=review_to_dict))


@bp.route('/api/admin/reviews/<int:review_id>/approve', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def approve_review(review_id):
    review = _get_review_or_404(review_id)
    _approve(review)
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='REVIEW_APPROVE',
        target_type='REVIEW',
        target_id=review.id,
        payload={'product_id': review.product_id}
    )
    return api_success(review_to_dict(review), 'Review approved')


@bp.route('/api/admin/reviews/<int:review_id>/reject', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def reject_review(review_id):
    review = _get_review_or_404(review_id)
    data = request.get_json(silent=True) or {}
    reason = (data.get('reason') or 'Rejected by moderator').strip()
    _reject(review, reason[:500])
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='REVIEW_REJECT',
        target_type='REVIEW',
        target_id=review.id,
        payload={'product_id': review.product_id, 'reason': reason}
    )
    return api_success(None, 'Review rejected')


@bp.route('/api/admin/reviews/bulk-approve', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def bulk_approve():
    ids = _bulk_ids(request.get_json(silent=True) or {})
    if ids is None:
        return validation_error({'ids': ['Provide a list of review ids.']})

    reviews = ProductReview.query.filter(
        ProductReview.id.in_(ids),
        ProductReview.is_deleted.is_(False)
    ).all()
    for review in reviews:
        _approve(review)
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='REVIEW_BULK_APPROVE',
        target_type='REVIEW',
        payload={'ids': [r.id for r in reviews]}
    )
    return api_success(
        {'count': len(reviews)}, f'{len(reviews)} reviews approved')


@bp.route('/api/admin/reviews/bulk-reject', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def bulk_reject():
    data = request.get_json(silent=True) or {}
    ids = _bulk_ids(data)
    if ids is None:
        return validation_error({'ids': ['Provide a list of review ids.']})

    reason = (data.get('reason') or 'Rejected by moderator').strip()
    reviews = ProductReview.query.filter(
        ProductReview.id.in_(ids),
        ProductReview.is_deleted.is_(False)
    ).all()
    for review in reviews:
        _reject(review, reason[:500])
    db.session.commit()

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='REVIEW_BULK_REJECT',
        target_type='REVIEW',
        payload={'ids': [r.id for r in reviews], 'reason': reason}
    )
    return api_success(
        {'count': len(reviews)}, f'{len(reviews)} reviews rejected')

from sqlalchemy import or_
from storefront.extensions import db
from storefront.exceptions import ServiceError, ValidationFailed
from storefront.models import (
    AccountStatus,
    CorporateProfile,
    PaymentTerms,
    User,
    UserRole,
)
from storefront.services.account_service import (
    build_user,
    user_to_dict,
    validate_user_fields,
)
from storefront.services.token_service import issue_token, revoke_all_tokens
from storefront.utils import (
    add_error,
    is_valid_email,
    money,
    to_decimal,
)
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

PAYMENT_TERM_LABELS = {
    PaymentTerms.PREPAID: 'Prepaid',
    PaymentTerms.NET_15: 'Net 15 days',
    PaymentTerms.NET_30: 'Net 30 days',
    PaymentTerms.NET_45: 'Net 45 days',
    PaymentTerms.NET_60: 'Net 60 days',
}

PROFILE_FIELDS = (
    'company_legal_name',
    'trade_name',
    'business_type',
    'industry',
    'primary_contact_name',
    'primary_contact_email',
    'primary_contact_phone',
    'billing_address',
)


def payment_term_options():
    return [
        {'value': term.value, 'label': label}
        for term, label in PAYMENT_TERM_LABELS.items()
    ]


def _parse_payment_terms(value, errors):
    try:
        return PaymentTerms(value)
    except ValueError:
        add_error(
            errors,
            'payment_terms',
            'Payment terms must be one of: '
            + ', '.join(t.value for t in PaymentTerms))
        return None


def _parse_credit_limit(value, errors):
    limit = to_decimal(value)
    if limit is None or limit < 0:
        add_error(
            errors, 'credit_limit', 'Credit limit must be a positive number.')
        return None
    return limit


def _check_unique(field, value, errors):
    if not value:
        return
    if CorporateProfile.query.filter(
            getattr(CorporateProfile, field) == value).first():
        add_error(errors, field, f'The {field} has already been taken.')


def validate_registration(data):
    errors = validate_user_fields(
        data, min_password=8, max_password=20, strong_password=True)
    for field in ('company_legal_name', 'primary_contact_name',
                  'primary_contact_phone'):
        if not (data.get(field) or '').strip():
            add_error(errors, field, f'The {field} field is required.')
    if not is_valid_email(data.get('primary_contact_email')):
        add_error(
            errors,
            'primary_contact_email',
            'A valid primary contact email is required.')
    _check_unique('trade_license_number', data.get('trade_license_number'),
                  errors)
    _check_unique('vat_registration_number',
                  data.get('vat_registration_number'), errors)
    if data.get('payment_terms'):
        _parse_payment_terms(data['payment_terms'], errors)
    if data.get('credit_limit') not in (None, ''):
        _parse_credit_limit(data['credit_limit'], errors)
    return errors


def register_corporate(data):
    errors = validate_registration(data)
    if errors:
        raise ValidationFailed(errors)

    try:
        user = build_user(
            data, UserRole.CORPORATE, status=AccountStatus.PENDING)
        profile = CorporateProfile(
            user_id=user.id,
            trade_license_number=data.get('trade_license_number') or None,
            vat_registration_number=(
                data.get('vat_registration_number') or None),
            payment_terms=PaymentTerms(
                data.get('payment_terms') or PaymentTerms.PREPAID.value),
            credit_limit=to_decimal(data.get('credit_limit'), 0),
        )
        for field in PROFILE_FIELDS:
            if data.get(field) is not None:
                setattr(profile, field, str(data[field]).strip())
        user.corporate_profile = profile
        token = issue_token(user, 'corporate-auth-token')
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Corporate account %s registered for %s",
        user.id,
        profile.company_legal_name,
    )
    return user, token


def profile_to_dict(profile: CorporateProfile):
    if profile is None:
        return None
    return {
        'company_legal_name': profile.company_legal_name,
        'trade_name': profile.trade_name,
        'trade_license_number': profile.trade_license_number,
        'vat_registration_number': profile.vat_registration_number,
        'business_type': profile.business_type,
        'industry': profile.industry,
        'primary_contact_name': profile.primary_contact_name,
        'primary_contact_email': profile.primary_contact_email,
        'primary_contact_phone': profile.primary_contact_phone,
        'billing_address': profile.billing_address,
        'payment_terms': profile.payment_terms.value,
        'credit_limit': money(profile.credit_limit),
        'approved_at': (
            profile.approved_at.isoformat() if profile.approved_at else None
        ),
        'rejection_reason': profile.rejection_reason,
        'suspension_reason': profile.suspension_reason,
    }


def account_to_dict(user: User, include_admin=False):
    data = {
        'user': user_to_dict(user),
        'corporate_profile': profile_to_dict(user.corporate_profile),
    }
    if include_admin and user.corporate_profile is not None:
        data['corporate_profile']['admin_notes'] = (
            user.corporate_profile.admin_notes)
    return data


def update_corporate_profile(user: User, data):
    profile = user.corporate_profile
    errors = {}
    for field in ('company_legal_name', 'primary_contact_name',
                  'primary_contact_phone'):
        if field in data and not (data.get(field) or '').strip():
            add_error(errors, field, f'The {field} field is required.')
    if 'primary_contact_email' in data and not is_valid_email(
            data.get('primary_contact_email')):
        add_error(
            errors,
            'primary_contact_email',
            'A valid primary contact email is required.')
    if errors:
        raise ValidationFailed(errors)

    for field in PROFILE_FIELDS:
        if field in data:
            value = data.get(field)
            setattr(profile, field, value.strip() if value else None)
    db.session.commit()
    return user


def corporate_accounts_query(status=None, search=None):
    query = User.query.join(
        CorporateProfile, CorporateProfile.user_id == User.id
    ).filter(User.role == UserRole.CORPORATE)
    if status:
        try:
            query = query.filter(User.status == AccountStatus(status))
        except ValueError:
            raise ValidationFailed({'status': ['Invalid status']})
    if search:
        like = f'%{search.strip()}%'
        query = query.filter(or_(
            CorporateProfile.company_legal_name.ilike(like),
            CorporateProfile.trade_name.ilike(like),
            CorporateProfile.primary_contact_name.ilike(like),
            User.email.ilike(like),
            User.phone.ilike(like),
        ))
    return query.order_by(User.created_at.desc(), User.id.desc())


def get_corporate_account(user_id):
    user = User.query.filter_by(
        id=user_id, role=UserRole.CORPORATE).first()
    if user is None or user.corporate_profile is None:
        raise ServiceError('Corporate account not found', 404)
    return user


def approve_account(user: User, admin: User, data=None):
    data = data or {}
    if user.status == AccountStatus.ACTIVE:
        raise ServiceError('Account is already active')

    errors = {}
    terms = None
    limit = None
    if data.get('payment_terms'):
        terms = _parse_payment_terms(data['payment_terms'], errors)
    if data.get('credit_limit') not in (None, ''):
        limit = _parse_credit_limit(data['credit_limit'], errors)
    if errors:
        raise ValidationFailed(errors)

    profile = user.corporate_profile
    if terms is not None:
        profile.payment_terms = terms
    if limit is not None:
        profile.credit_limit = limit
    if data.get('admin_notes'):
        profile.admin_notes = data['admin_notes']
    user.status = AccountStatus.ACTIVE
    profile.approved_at = datetime.utcnow()
    profile.approved_by = admin.id
    profile.rejected_at = None
    profile.rejection_reason = None
    db.session.commit()
    return user


def _require_reason(data):
    reason = (data or {}).get('reason')
    reason = reason.strip() if isinstance(reason, str) else ''
    if not reason:
        raise ValidationFailed({'reason': ['The reason field is required.']})
    return reason[:500]


def reject_account(user: User, data):
    reason = _require_reason(data)
    if user.status == AccountStatus.ACTIVE:
        raise ServiceError('Active accounts must be suspended, not rejected')
    profile = user.corporate_profile
    user.status = AccountStatus.REJECTED
    profile.rejected_at = datetime.utcnow()
    profile.rejection_reason = reason
    if data.get('admin_notes'):
        profile.admin_notes = data['admin_notes']
    db.session.commit()
    revoke_all_tokens(user)
    return user


def suspend_account(user: User, data):
    reason = _require_reason(data)
    if user.status != AccountStatus.ACTIVE:
        raise ServiceError('Only active accounts can be suspended')
    profile = user.corporate_profile
    user.status = AccountStatus.SUSPENDED
    profile.suspended_at = datetime.utcnow()
    profile.suspension_reason = reason
    db.session.commit()
    revoke_all_tokens(user)
    return user


def reactivate_account(user: User, admin: User):
    if user.status not in (AccountStatus.SUSPENDED, AccountStatus.REJECTED):
        raise ServiceError(
            'Only suspended or rejected accounts can be reactivated')
    profile = user.corporate_profile
    user.status = AccountStatus.ACTIVE
    profile.suspended_at = None
    profile.suspension_reason = None
    profile.rejected_at = None
    profile.rejection_reason = None
    if profile.approved_at is None:
        profile.approved_at = datetime.utcnow()
        profile.approved_by = admin.id
    db.session.commit()
    return user


def update_credit_terms(user: User, data):
    errors = {}
    profile = user.corporate_profile
    if 'payment_terms' in data:
        terms = _parse_payment_terms(data.get('payment_terms'), errors)
    if 'credit_limit' in data:
        limit = _parse_credit_limit(data.get('credit_limit'), errors)
    if not errors and not ({'payment_terms', 'credit_limit'} & set(data)):
        add_error(
            errors,
            'credit_limit',
            'Provide credit_limit or payment_terms to update.')
    if errors:
        raise ValidationFailed(errors)
    if 'payment_terms' in data:
        profile.payment_terms = terms
    if 'credit_limit' in data:
        profile.credit_limit = limit
    db.session.commit()
    return user

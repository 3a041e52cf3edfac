from flask import current_app
from sqlalchemy import func, or_
from storefront.extensions import db
from storefront.exceptions import (
    AccountStateError,
    ServiceError,
    ValidationFailed,
)
from storefront.models import AccountStatus, User, UserRole
from storefront.services.guest_order_service import link_guest_orders_to_user
from storefront.services.order_service import customer_for_user
from storefront.services.token_service import issue_token
from storefront.utils import add_error, is_valid_bd_phone, is_valid_email
from datetime import datetime, timedelta
import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATION_PREFERENCES = {
    'order_updates': True,
    'promotions': False,
    'newsletter': False,
}

STATUS_MESSAGES = {
    AccountStatus.PENDING: (
        'Your account is pending admin approval. '
        'You will be notified once approved.'
    ),
    AccountStatus.REJECTED: 'Your account application has been rejected.',
    AccountStatus.SUSPENDED: (
        'Your account has been suspended. Please contact support.'
    ),
    AccountStatus.INACTIVE: (
        'Your account is inactive. Please contact support.'
    ),
}


def find_by_login(login):
    login = (login or '').strip()
    if not login:
        return None
    return User.query.filter(or_(
        func.lower(User.email) == login.lower(),
        User.phone == login,
    )).first()


def validate_password(password, errors, min_length=6, max_length=20,
                      strong=False):
    password = password or ''
    if not min_length <= len(password) <= max_length:
        add_error(
            errors,
            'password',
            f'Password must be between {min_length} and {max_length} '
            f'characters.')
    if strong and not (
            re.search(r'[a-z]', password)
            and re.search(r'[A-Z]', password)
            and re.search(r'\d', password)):
        add_error(
            errors,
            'password',
            'Password must contain an upper case letter, a lower case '
            'letter and a digit.')


def validate_user_fields(data, min_password=6, max_password=20,
                         strong_password=False):
    errors = {}
    if not (data.get('first_name') or '').strip():
        add_error(errors, 'first_name', 'The first name field is required.')

    email = (data.get('email') or '').strip()
    if not is_valid_email(email):
        add_error(errors, 'email', 'A valid email address is required.')
    elif User.query.filter(func.lower(User.email) == email.lower()).first():
        add_error(errors, 'email', 'The email has already been taken.')

    phone = (data.get('phone') or '').strip()
    if phone:
        if not is_valid_bd_phone(phone):
            add_error(errors, 'phone', 'Phone number must be 11 digits.')
        elif User.query.filter_by(phone=phone).first():
            add_error(errors, 'phone', 'The phone has already been taken.')

    validate_password(
        data.get('password'),
        errors,
        min_password,
        max_password,
        strong_password)
    if data.get('password') != data.get('conf_password'):
        add_error(
            errors, 'conf_password', 'Password confirmation does not match.')
    return errors


def build_user(data, role, status=AccountStatus.ACTIVE):
    user = User(
        first_name=data['first_name'].strip(),
        last_name=(data.get('last_name') or '').strip() or None,
        email=data['email'].strip().lower(),
        phone=(data.get('phone') or '').strip() or None,
        role=role,
        status=status,
        notification_preferences=dict(DEFAULT_NOTIFICATION_PREFERENCES),
    )
    user.set_password(data['password'])
    db.session.add(user)
    db.session.flush()
    return user


def register_customer(data):
    errors = validate_user_fields(data)
    if errors:
        raise ValidationFailed(errors)

    try:
        user = build_user(data, UserRole.CUSTOMER)
        customer_for_user(user)
        linked = link_guest_orders_to_user(user)
        token = issue_token(user, 'ecommerce-auth-token')
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return user, token, linked


def record_failed_login(user: User):
    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    max_attempts = current_app.config.get('LOGIN_MAX_ATTEMPTS', 5)
    if user.failed_login_attempts >= max_attempts:
        minutes = current_app.config.get('LOGIN_LOCKOUT_MINUTES', 30)
        user.locked_until = datetime.utcnow() + timedelta(minutes=minutes)
        logger.warning(
            "Locked user %s for %s minutes after %s failed logins",
            user.id,
            minutes,
            user.failed_login_attempts,
        )
    db.session.commit()


def record_login(user: User, ip=None):
    user.failed_login_attempts = 0
    user.locked_until = None
    user.last_login_at = datetime.utcnow()
    user.last_login_ip = ip
    user.login_count = (user.login_count or 0) + 1


def authenticate(login, password, ip=None, role=None):
    """Check credentials and account state; returns the user.

    Failures raise ``ServiceError`` (401 bad credentials, 423 locked) or
    ``AccountStateError`` (403 wrong account type or non-active status).
    """
    user = find_by_login(login)
    if user is None:
        raise ServiceError('Invalid credentials', 401)
    if role is not None and user.role != role:
        raise AccountStateError(
            'This endpoint is for corporate accounts only. '
            'Please use the appropriate login endpoint.')
    if user.is_locked():
        raise ServiceError(
            'Your account has been temporarily locked due to multiple '
            'failed login attempts. Please try again later.',
            423,
            data={'locked_until': user.locked_until.isoformat()})
    if not user.check_password(password or ''):
        record_failed_login(user)
        raise ServiceError('Invalid credentials', 401)
    if user.status != AccountStatus.ACTIVE:
        raise AccountStateError(
            STATUS_MESSAGES[user.status],
            data={'status': user.status.value})

    record_login(user, ip)
    return user


def user_to_dict(user: User):
    return {
        'id': user.id,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'name': user.full_name,
        'email': user.email,
        'phone': user.phone,
        'role': user.role.value,
        'status': user.status.value,
        'notification_preferences': user.notification_preferences or {},
        'last_login_at': (
            user.last_login_at.isoformat() if user.last_login_at else None
        ),
        'created_at': user.created_at.isoformat(),
    }


def update_profile(user: User, data):
    errors = {}
    if 'first_name' in data and not (data.get('first_name') or '').strip():
        add_error(errors, 'first_name', 'The first name field is required.')
    phone = data.get('phone')
    if phone:
        if not is_valid_bd_phone(phone):
            add_error(errors, 'phone', 'Phone number must be 11 digits.')
        else:
            taken = User.query.filter(
                User.phone == phone, User.id != user.id).first()
            if taken:
                add_error(errors, 'phone', 'The phone has already been taken.')
    preferences = data.get('notification_preferences')
    if preferences is not None and not isinstance(preferences, dict):
        add_error(
            errors,
            'notification_preferences',
            'Notification preferences must be an object.')
    if errors:
        raise ValidationFailed(errors)

    if 'first_name' in data:
        user.first_name = data['first_name'].strip()
    if 'last_name' in data:
        user.last_name = (data.get('last_name') or '').strip() or None
    if phone:
        user.phone = phone
    if preferences is not None:
        merged = dict(user.notification_preferences or {})
        merged.update(preferences)
        user.notification_preferences = merged

    if user.customer is not None:
        user.customer.name = user.full_name
        user.customer.phone = user.phone
    db.session.commit()
    return user


def change_password(user: User, data, strong=False):
    errors = {}
    if not user.check_password(data.get('current_password') or ''):
        add_error(
            errors, 'current_password', 'Current password is incorrect.')
    validate_password(
        data.get('password'),
        errors,
        8 if strong else 6,
        20,
        strong)
    if data.get('password') != data.get('conf_password'):
        add_error(
            errors, 'conf_password', 'Password confirmation does not match.')
    if errors:
        raise ValidationFailed(errors)
    user.set_password(data['password'])
    db.session.commit()
    return user

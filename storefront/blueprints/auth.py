from flask import Blueprint, g, request
from flask_login import login_required, current_user
from storefront.exceptions import ServiceError
from storefront.extensions import db
from storefront.services import account_service
from storefront.services.audit_service import log_audit
from storefront.services.token_service import issue_token, revoke_token
from storefront.utils import api_error, api_success, validation_error
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__)


@bp.route('/api/user-registration', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    user, token, linked = account_service.register_customer(data)

    log_audit(
        actor_id=user.id,
        actor_role=user.role.value,
        action='REGISTER',
        target_type='USER',
        target_id=user.id,
        payload={'email': user.email, 'guest_orders_linked': linked}
    )

    return api_success({
        'user': account_service.user_to_dict(user),
        'token': token,
        'token_type': 'Bearer',
        'guest_orders_linked': linked,
    }, 'Registration successful', 201)


@bp.route('/api/user-login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    login_id = (data.get('email') or data.get('phone') or '').strip()
    password = data.get('password') or ''

    if not login_id or not password:
        errors = {}
        if not login_id:
            errors['email'] = ['The email field is required.']
        if not password:
            errors['password'] = ['The password field is required.']
        return validation_error(errors)

    try:
        user = account_service.authenticate(
            login_id, password, ip=request.remote_addr)
    except ServiceError as e:
        log_audit(
            actor_id=None,
            actor_role='ANONYMOUS',
            action='LOGIN_FAILED',
            target_type='USER',
            payload={'login': login_id, 'reason': e.message}
        )
        raise

    token = issue_token(user, 'ecommerce-auth-token')
    db.session.commit()

    log_audit(
        actor_id=user.id,
        actor_role=user.role.value,
        action='LOGIN_SUCCESS',
        target_type='USER',
        target_id=user.id,
        payload={'event': 'login_success'}
    )

    return api_success({
        'user': account_service.user_to_dict(user),
        'token': token,
        'token_type': 'Bearer',
    }, 'Login successful')


@bp.route('/api/logout', methods=['POST'])
@login_required
def logout():
    token = getattr(g, 'current_token', None)
    if token is None:
        return api_error('No active token', 400)
    revoke_token(token)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='LOGOUT',
        target_type='USER',
        target_id=current_user.id,
    )
    return api_success(None, 'Logged out successfully')


@bp.route('/api/my-profile', methods=['GET'])
@login_required
def my_profile():
    return api_success(account_service.user_to_dict(current_user))


@bp.route('/api/my-profile', methods=['PUT', 'PATCH'])
@login_required
def update_my_profile():
    data = request.get_json(silent=True) or {}
    user = account_service.update_profile(current_user, data)

    log_audit(
        actor_id=user.id,
        actor_role=user.role.value,
        action='PROFILE_UPDATE',
        target_type='USER',
        target_id=user.id,
        payload={'fields': sorted(data.keys())}
    )
    return api_success(
        account_service.user_to_dict(user), 'Profile updated successfully')


@bp.route('/api/change-password', methods=['POST'])
@login_required
def change_password():
    data = request.get_json(silent=True) or {}
    strong = current_user.role.value == 'CORPORATE'
    account_service.change_password(current_user, data, strong=strong)

    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action='PASSWORD_CHANGE',
        target_type='USER',
        target_id=current_user.id,
    )
    return api_success(None, 'Password changed successfully')

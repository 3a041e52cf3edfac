from flask import Blueprint, g, request
from flask_login import login_required, current_user
from storefront.exceptions import ServiceError
from storefront.extensions import db
from storefront.middleware import role_required
from storefront.models import AccountStatus, UserRole
from storefront.services import corporate_service
from storefront.services.audit_service import activity_for, log_audit
from storefront.services.account_service import authenticate
from storefront.services.token_service import issue_token, revoke_token
from storefront.utils import (
    api_error,
    api_success,
    get_page_args,
    paginate_query,
    validation_error,
)
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('corporate', __name__)


def _audit(action, account, payload=None):
    log_audit(
        actor_id=current_user.id,
        actor_role=current_user.role.value,
        action=action,
        target_type='CORPORATE_ACCOUNT',
        target_id=account.id,
        payload=payload
    )


@bp.route('/api/corporate/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    user, token = corporate_service.register_corporate(data)

    log_audit(
        actor_id=user.id,
        actor_role=user.role.value,
        action='REGISTER_CORPORATE',
        target_type='CORPORATE_ACCOUNT',
        target_id=user.id,
        payload={
            'company_legal_name': user.corporate_profile.company_legal_name,
            'status': user.status.value,
        }
    )

    payload = corporate_service.account_to_dict(user)
    payload.update({'token': token, 'token_type': 'Bearer'})
    return api_success(
        payload,
        'Corporate account registered successfully. '
        'Your account is pending admin approval.',
        201)


@bp.route('/api/corporate/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    login_id = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not login_id or not password:
        errors = {}
        if not login_id:
            errors['email'] = ['The email field is required.']
        if not password:
            errors['password'] = ['The password field is required.']
        return validation_error(errors)

    try:
        user = authenticate(
            login_id,
            password,
            ip=request.remote_addr,
            role=UserRole.CORPORATE)
    except ServiceError as e:
        log_audit(
            actor_id=None,
            actor_role='ANONYMOUS',
            action='LOGIN_FAILED',
            target_type='CORPORATE_ACCOUNT',
            payload={'login': login_id, 'reason': e.message}
        )
        raise

    token = issue_token(user, 'corporate-auth-token')
    db.session.commit()

    log_audit(
        actor_id=user.id,
        actor_role=user.role.value,
        action='LOGIN_SUCCESS',
        target_type='CORPORATE_ACCOUNT',
        target_id=user.id,
    )

    payload = corporate_service.account_to_dict(user)
    payload.update({'token': token, 'token_type': 'Bearer'})
    return api_success(payload, 'Login successful')


@bp.route('/api/corporate/logout', methods=['POST'])
@login_required
@role_required('CORPORATE')
def logout():
    token = getattr(g, 'current_token', None)
    if token is None:
        return api_error('No active token', 400)
    revoke_token(token)
    _audit('LOGOUT', current_user)
    return api_success(None, 'Logged out successfully')


@bp.route('/api/corporate/profile', methods=['GET'])
@login_required
@role_required('CORPORATE')
def profile():
    return api_success(corporate_service.account_to_dict(current_user))


@bp.route('/api/corporate/profile', methods=['PUT', 'PATCH'])
@login_required
@role_required('CORPORATE')
def update_profile():
    data = request.get_json(silent=True) or {}
    user = corporate_service.update_corporate_profile(current_user, data)
    _audit('CORPORATE_PROFILE_UPDATE', user, {'fields': sorted(data.keys())})
    return api_success(
        corporate_service.account_to_dict(user),
        'Profile updated successfully')


# Admin management of corporate accounts

@bp.route('/api/admin/corporate-accounts', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def list_accounts():
    page, per_page = get_page_args()
    query = corporate_service.corporate_accounts_query(
        status=request.args.get('status'),
        search=request.args.get('search'),
    )
    return api_success(paginate_query(
        query,
        page,
        per_page,
        serializer=corporate_service.account_to_dict,
    ))


@bp.route('/api/admin/corporate-accounts/pending', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def pending_accounts():
    page, per_page = get_page_args()
    query = corporate_service.corporate_accounts_query(
        status=AccountStatus.PENDING.value)
    return api_success(paginate_query(
        query,
        page,
        per_page,
        serializer=corporate_service.account_to_dict,
    ))


@bp.route('/api/admin/corporate-accounts/payment-terms', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def payment_terms():
    return api_success(corporate_service.payment_term_options())


@bp.route('/api/admin/corporate-accounts/<int:user_id>', methods=['GET'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def show_account(user_id):
    user = corporate_service.get_corporate_account(user_id)
    data = corporate_service.account_to_dict(user, include_admin=True)
    data['activity'] = [
        {
            'action': log.action,
            'actor_id': log.actor_id,
            'payload': log.get_payload(),
            'created_at': log.created_at.isoformat(),
        }
        for log in activity_for('CORPORATE_ACCOUNT', user.id)
    ]
    return api_success(data)


@bp.route(
    '/api/admin/corporate-accounts/<int:user_id>/approve', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def approve_account(user_id):
    user = corporate_service.get_corporate_account(user_id)
    data = request.get_json(silent=True) or {}
    corporate_service.approve_account(user, current_user, data)
    _audit('CORPORATE_APPROVE', user, {
        'credit_limit': data.get('credit_limit'),
        'payment_terms': user.corporate_profile.payment_terms.value,
    })
    return api_success(
        corporate_service.account_to_dict(user, include_admin=True),
        'Corporate account approved successfully')


@bp.route(
    '/api/admin/corporate-accounts/<int:user_id>/reject', methods=['POST'])
@login_required
@role_required('ADMIN', 'SALES_MANAGER')
def reject_account(user_id):
    user = corporate_service.get_corporate_account(user_id)
    data = request.get_json(silent=True) or {}
    corporate_service.reject_account(user, data)
    _audit('CORPORATE_REJECT', user, {'reason': data.get('reason')})
    return api_success(
        corporate_service.account_to_dict(user, include_admin=True),
        'Corporate account rejected')


@bp.route(
    '/api/admin/corporate-accounts/<int:user_id>/suspend', methods=['POST'])
@login_required
@role_required('ADMIN')
def suspend_account(user_id):
    user = corporate_service.get_corporate_account(user_id)
    data = request.get_json(silent=True) or {}
    corporate_service.suspend_account(user, data)
    _audit('CORPORATE_SUSPEND', user, {'reason': data.get('reason')})
    return api_success(
        corporate_service.account_to_dict(user, include_admin=True),
        'Corporate account suspended')


@bp.route(
    '/api/admin/corporate-accounts/<int:user_id>/reactivate',
    methods=['POST'])
@login_required
@role_required('ADMIN')
def reactivate_account(user_id):
    user = corporate_service.get_corporate_account(user_id)
    corporate_service.reactivate_account(user, current_user)
    _audit('CORPORATE_REACTIVATE', user)
    return api_success(
        corporate_service.account_to_dict(user, include_admin=True),
        'Corporate account reactivated')


@bp.route(
    '/api/admin/corporate-accounts/<int:user_id>/credit-terms',
    methods=['PUT'])
@login_required
@role_required('ADMIN')
def update_credit_terms(user_id):
    user = corporate_service.get_corporate_account(user_id)
    data = request.get_json(silent=True) or {}
    corporate_service.update_credit_terms(user, data)
    profile = user.corporate_profile
    _audit('CORPORATE_CREDIT_TERMS', user, {
        'credit_limit': float(profile.credit_limit),
        'payment_terms': profile.payment_terms.value,
    })
    return api_success(
        corporate_service.account_to_dict(user, include_admin=True),
        'Credit terms updated')

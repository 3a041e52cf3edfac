from flask import g, request
from flask_login import current_user
from functools import wraps
from werkzeug.exceptions import HTTPException
from datetime import datetime
from storefront.exceptions import ServiceError
from storefront.extensions import db
from storefront.utils import api_error, service_error_response
import logging
import time
import uuid

logger = logging.getLogger(__name__)


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if not header.lower().startswith('bearer '):
        return None
    return header[7:].strip() or None


def setup_token_auth(login_manager):

    @login_manager.request_loader
    def load_user_from_request(req):
        from storefront.services.token_service import resolve_token

        token = resolve_token(_bearer_token())
        if token is None:
            return None
        token.last_used_at = datetime.utcnow()
        db.session.commit()
        g.current_token = token
        return token.user

    @login_manager.unauthorized_handler
    def unauthorized():
        return api_error('Unauthenticated', 401)


def setup_request_context(app):

    @app.before_request
    def stamp_request():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get('X-Request-ID') or (
            uuid.uuid4().hex)

    @app.after_request
    def echo_request_id(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers['X-Request-ID'] = request_id
        return response


def register_error_handlers(app):

    @app.errorhandler(ServiceError)
    def handle_service_error(exc):
        db.session.rollback()
        return service_error_response(exc)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return api_error(exc.description or exc.name, exc.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        logger.error(
            "Unhandled error on %s %s: %s",
            request.method,
            request.path,
            exc,
            exc_info=True,
        )
        db.session.rollback()
        return api_error('Internal server error', 500)


def role_required(*allowed_roles):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return api_error('Unauthenticated', 401)

            # allowed_roles is a list of role names.
            if current_user.role.value not in allowed_roles:
                logger.warning(
                    "User %s attempted to access roles %s, current role: %s",
                    current_user.id,
                    allowed_roles,
                    current_user.role.value,
                )
                return api_error('Insufficient permissions', 403)

            return f(*args, **kwargs)
        return decorated_function
    return decorator

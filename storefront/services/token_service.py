from storefront.extensions import db
from storefront.models import PersonalAccessToken, User
from flask import current_app
from datetime import datetime, timedelta
import hashlib
import hmac
import logging
import secrets

logger = logging.getLogger(__name__)


def _digest(secret):
    return hashlib.sha256(secret.encode('utf-8')).hexdigest()


def issue_token(user: User, name='auth_token', abilities=None):
    """Create a personal access token and return its plain text form.

    The plain token is ``"<id>|<secret>"``; only the SHA-256 digest of the
    secret is stored, so the value cannot be shown again.
    """
    secret = secrets.token_urlsafe(30)[:40]
    days = current_app.config.get('TOKEN_EXPIRE_DAYS')
    token = PersonalAccessToken(
        user_id=user.id,
        name=name,
        token_hash=_digest(secret),
        abilities=abilities or ['*'],
        expires_at=(
            datetime.utcnow() + timedelta(days=days) if days else None
        ),
    )
    db.session.add(token)
    db.session.flush()
    return f'{token.id}|{secret}'


def resolve_token(plain):
    if not plain or '|' not in plain:
        return None
    token_id, secret = plain.split('|', 1)
    if not token_id.isdigit() or not secret:
        return None

    token = db.session.get(PersonalAccessToken, int(token_id))
    if token is None:
        return None
    if not hmac.compare_digest(token.token_hash, _digest(secret)):
        return None
    if token.expires_at and token.expires_at < datetime.utcnow():
        logger.info("Rejected expired token %s", token.id)
        return None
    return token


def revoke_token(token: PersonalAccessToken):
    db.session.delete(token)
    db.session.commit()


def revoke_all_tokens(user: User):
    PersonalAccessToken.query.filter_by(user_id=user.id).delete()
    db.session.commit()

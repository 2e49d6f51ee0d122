"""Account store capabilities: bearer tokens and request authentication.

Tokens are HS256 JWTs carrying the username. ``verify_token`` is the one
capability the matchmaking core depends on; it never raises for a bad token.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from baller import db, login_manager
from baller.models import User

ALGORITHM = 'HS256'


def _secret() -> str:
    cfg = current_app.config
    return cfg.get('JWT_SECRET') or cfg['SECRET_KEY']


def issue_token(username: str) -> str:
    ttl = timedelta(days=int(current_app.config.get('TOKEN_TTL_DAYS', 30)))
    payload = {
        'username': username,
        'exp': datetime.now(timezone.utc) + ttl,
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def decode_token(token: Any) -> Optional[str]:
    """Return the username inside a valid token, else None."""
    if not token or not isinstance(token, str):
        return None
    try:
        payload = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except jwt.PyJWTError as exc:
        current_app.logger.info(f"[token-invalid] reason={exc.__class__.__name__}")
        return None
    username = payload.get('username')
    return username if isinstance(username, str) else None


def verify_token(token: Any) -> Optional[str]:
    """Resolve a token to the username of an existing account."""
    user = load_user_from_token(token)
    return user.username if user else None


def load_user_from_token(token: Any) -> Optional[User]:
    username = decode_token(token)
    if not username:
        return None
    try:
        return User.query.filter_by(username=username).first()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[token-lookup-failed] user={username} reason={exc.__class__.__name__}")
        return None


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(request):
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        return None
    return load_user_from_token(token.strip())


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Session expired, please log in again'}), 401

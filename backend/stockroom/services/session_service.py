# Overview: Service-layer operations for bearer-token sessions.

"""
Bearer tokens

- 32 random bytes, hex encoded, handed to the client exactly once
- Only the SHA-256 digest is persisted
- Expire SESSION_TTL_HOURS after issue; logout revokes early
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 hex digest; tokens are high-entropy so a slow hash is unnecessary."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _unrevoked(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.is_revoked.is_(False))
        .first()
    )


def create_session(user_id: int) -> tuple[SessionToken, str]:
    """
    Issue a token for `user_id`.

    Returns (session_row, token). Only the row is kept server-side.
    """
    if db.session.get(User, user_id) is None:
        raise ValueError("User not found")

    token = generate_token()
    issued_at = utcnow()
    ttl = timedelta(hours=current_app.config["SESSION_TTL_HOURS"])

    row = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=issued_at,
        expires_at=issued_at + ttl,
        is_revoked=False,
    )
    db.session.add(row)
    db.session.commit()
    return row, token


def validate_session(token: str) -> User | None:
    """The user behind a live token; None if unknown, revoked or expired."""
    row = _unrevoked(token)
    if row is None or row.expires_at < utcnow():
        return None
    return row.user


def revoke_session(token: str) -> bool:
    """Revoke a token. False if it was unknown or already revoked."""
    row = _unrevoked(token)
    if row is None:
        return False

    row.is_revoked = True
    row.revoked_at = utcnow()
    db.session.commit()
    return True


def cleanup_expired_sessions() -> int:
    """Delete expired and revoked rows; returns how many went."""
    now = utcnow()
    deleted = (
        db.session.query(SessionToken)
        .filter((SessionToken.expires_at < now) | SessionToken.is_revoked.is_(True))
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted

# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, at least one letter and one digit
- Emails are normalized to lower case and are globally unique
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app, has_app_context

from ..extensions import db
from ..models import User, ROLE_USER, VALID_ROLES
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def _bcrypt_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    return 12


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for malformed hashes instead of raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(email: str, password: str, full_name: str, role: str = ROLE_USER) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: missing/invalid email or name, unknown role
        PasswordValidationError: weak password
        ConflictError: email already registered
    """
    email = normalize_email(email)
    full_name = (full_name or "").strip()

    if not email or not EMAIL_RE.match(email):
        raise ValidationError("A valid email is required")
    if not full_name:
        raise ValidationError("full_name is required")
    if role not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")

    if db.session.query(User.id).filter_by(email=email).first():
        raise ConflictError("User with this email already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Return the user for valid credentials, else None.

    Updates last_login_at on success.
    """
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user or not password:
        return None
    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user

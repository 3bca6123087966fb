# Overview: Service-layer operations for auth; signup, credential checks and bcrypt hashing.

"""
Authentication service.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Emails are stored lowercased and are unique system-wide
- Session tokens managed separately (see session_service.py)
"""

import bcrypt

from flask import current_app

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import User
from billing.time_utils import utcnow

MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _normalize_email(email) -> str:
    if not isinstance(email, str) or "@" not in email.strip():
        raise ValidationError("A valid email is required")
    return email.strip().lower()


def create_user(email: str, password: str, full_name: str, phone_number: str | None = None) -> User:
    """
    Create a new user account.

    Raises ValidationError for bad input, PasswordValidationError for weak
    passwords and ConflictError when the email is already registered.
    """
    email = _normalize_email(email)
    if not isinstance(full_name, str) or not full_name.strip():
        raise ValidationError("full_name is required")

    existing = db.session.query(User.id).filter(User.email == email).first()
    if existing:
        raise ConflictError("Email is already registered")

    user = User(
        email=email,
        full_name=full_name.strip(),
        phone_number=phone_number.strip() if phone_number else None,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("User %s registered", user.id)
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Check credentials.

    Returns the User and stamps last_login_at on success, None otherwise.
    """
    if not isinstance(email, str) or not isinstance(password, str):
        return None
    user = (
        db.session.query(User)
        .filter(User.email == email.strip().lower(), User.is_active.is_(True))
        .first()
    )
    if not user or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user

# Overview: Admin accounts and password authentication.

"""
Authentication Service

Passwords are hashed with bcrypt; the cost factor comes from BCRYPT_ROUNDS
so tests can run with a cheap setting. Session tokens are handled separately
(see session_service.py).
"""

import bcrypt
from flask import current_app

from ..models import Admin, ROLES, ROLE_ADMIN
from ..results import Ok, Result, conflict, validation
from supplydesk.time_utils import utcnow

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str, rounds: int | None = None) -> str:
    if rounds is None:
        rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a
    mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_admin(
    session,
    *,
    username: str | None,
    email: str | None,
    password: str | None,
    role: str | None = None,
) -> Result:
    """Create an admin account. Email is unique and stored lower-cased."""
    username = (username or "").strip()
    email = (email or "").strip().lower()
    role = role or ROLE_ADMIN

    if not username or not email or not password:
        return validation("username, email and password are required")
    if "@" not in email:
        return validation("email is invalid")
    if len(password) < MIN_PASSWORD_LENGTH:
        return validation(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if role not in ROLES:
        return validation(f"role must be one of: {', '.join(ROLES)}")

    if session.query(Admin.id).filter(Admin.email == email).first():
        return conflict("Admin with this email already exists")

    admin = Admin(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    session.add(admin)
    session.commit()
    return Ok(admin.to_dict(), message="Admin created successfully")


def authenticate(session, email: str, password: str) -> Admin | None:
    """
    Return the active Admin for these credentials, else None.

    Updates last_login_at on success.
    """
    if not email or not password:
        return None

    admin = session.query(Admin).filter(Admin.email == email.strip().lower()).first()
    if not admin or not admin.is_active:
        return None
    if not verify_password(password, admin.password_hash):
        return None

    admin.last_login_at = utcnow()
    session.commit()
    return admin

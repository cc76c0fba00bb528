# Overview: Bearer session tokens.

"""
Session Token Management Service

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout from SESSION_TTL_HOURS
- Revocable on logout or account deactivation
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..models import Admin, SessionToken
from supplydesk.time_utils import utcnow


@dataclass
class SessionContext:
    admin: Admin
    session: SessionToken


def generate_token() -> str:
    """Return a 64-character hex token (32 bytes of entropy); only its hash is stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    session,
    admin: Admin,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session token for an admin.

    Returns (session_record, plaintext_token). The client receives the
    plaintext token; the database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))

    record = SessionToken(
        admin_id=admin.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + ttl,
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    session.add(record)
    session.commit()
    return record, plaintext_token


def validate_session(session, token: str) -> SessionContext | None:
    """
    Resolve a token to its SessionContext.

    Returns None if the token is unknown, expired or revoked, or if the
    admin has been deactivated (the session is revoked in that case).
    """
    now = utcnow()
    record = session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not record:
        return None

    if record.expires_at < now:
        return None

    admin = record.admin
    if not admin or not admin.is_active:
        record.is_revoked = True
        record.revoked_at = now
        record.revoked_reason = "Admin account deactivated"
        session.commit()
        return None

    record.last_used_at = now
    session.commit()
    return SessionContext(admin=admin, session=record)


def revoke_session(session, token: str, reason: str = "Admin logout") -> bool:
    """Revoke a token. Returns False if it was not an active session."""
    record = session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not record:
        return False

    record.is_revoked = True
    record.revoked_at = utcnow()
    record.revoked_reason = reason
    session.commit()
    return True

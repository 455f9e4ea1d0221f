# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service with Multi-Tenant Support

WHY: Bearer tokens are cryptographically random, stored only as a hash,
time-limited and revocable.

MULTI-TENANT: Sessions capture company_id at creation time. This is the
tenant scope of every authenticated request made with the token.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Company, SessionToken, User
from slabworks.time_utils import utcnow


@dataclass
class SessionContext:
    """
    Complete session context returned by validate_session.

    company_id comes from the immutable session record, not the user.
    """
    user: User
    session: SessionToken
    company_id: int


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy), sent to the client once."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _session_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token). The database stores only the
    hash. Raises ValueError if the user or its company is missing/inactive.
    """
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise ValueError("User not found")

    company = db.session.query(Company).filter_by(id=user.company_id).first()
    if not company or not company.is_active:
        raise ValueError("Company is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        company_id=user.company_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _session_ttl(),
        user_agent=user_agent,
        ip_address=ip_address,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if the token is unknown, expired or revoked, or if the user
    or company has been deactivated. Updates last_used_at on success.
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter(
        SessionToken.token_hash == hash_token(token),
        SessionToken.revoked_at.is_(None),
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    user = session.user
    if not user or not user.is_active:
        session.revoked_at = now
        db.session.commit()
        return None

    company = db.session.query(Company).filter_by(id=session.company_id).first()
    if not company or not company.is_active:
        session.revoked_at = now
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session, company_id=session.company_id)


def revoke_session(token: str) -> bool:
    """Returns True if session was revoked, False if not found."""
    session = db.session.query(SessionToken).filter(
        SessionToken.token_hash == hash_token(token),
        SessionToken.revoked_at.is_(None),
    ).first()

    if not session:
        return False

    session.revoked_at = utcnow()
    db.session.commit()
    return True

# Overview: Bearer session tokens and their lifetime rules.

"""
Bearer sessions

The client holds a random 32-byte token; the database holds only its
SHA-256. A session lives at most SESSION_ABSOLUTE_TIMEOUT and dies after
SESSION_IDLE_TIMEOUT without use.

MULTI-TENANT: tenant_id is copied from the user when the session is opened
and never changes. decorators.require_tenant compares it with X-Tenant-ID.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from smallbiz.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)  # Maximum session length
SESSION_IDLE_TIMEOUT = timedelta(hours=2)        # Activity timeout


@dataclass
class SessionContext:
    """Validated session: the user plus the tenant the session was opened for."""
    user: User
    session: SessionToken
    tenant_id: int


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy); never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 of the token, hex-encoded.

    Tokens are already high-entropy, so a fast hash is sufficient here.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()

    now = utcnow()
    session = SessionToken(
        user_id=user.id,
        tenant_id=user.tenant_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _active_session(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def _revocation_reason(session: SessionToken, now) -> str | None:
    """Why an unexpired session can no longer be used, if it can't."""
    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        return "Idle timeout"
    if session.user is None or not session.user.is_active:
        return "User account deactivated"
    if session.tenant is None or not session.tenant.is_active:
        return "Tenant deactivated"
    return None


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext, or None.

    Expired tokens are simply refused. Idle tokens and tokens whose user or
    tenant has been deactivated are revoked on the spot so they stay dead.
    A successful lookup slides last_used_at forward.
    """
    session = _active_session(token)
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    reason = _revocation_reason(session, now)
    if reason:
        _revoke(session, reason)
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=session.user, session=session, tenant_id=session.tenant_id)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Revoke the session behind `token`. False when it is unknown or already revoked."""
    session = _active_session(token)
    if session is None:
        return False
    _revoke(session, reason)
    return True

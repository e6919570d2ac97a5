"""
services/session_service.py

Shared-session tokens:
- create_session: mint a token for an owner with a permission and a lifetime
- deactivate: permanent, idempotent revocation
- list_sessions / session_stats: the owner's history of invitations

A session is usable only while it is active AND unexpired. Rows are never
deleted, revoked and expired sessions stay listed.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple
from uuid import uuid4

from config import MAX_SESSION_TTL_DAYS, TOKEN_SEGMENT_LENGTH, TOKEN_SEGMENTS
from models import utcnow
from schemas.sessions import Permission, SessionStats, SharedSession
from services.errors import SessionNotFound, ValidationFailed

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.digits + string.ascii_lowercase


# =====================================================================
# SECTION: TOKENS AND STATE
# =====================================================================

def generate_token() -> str:
    """Two 13-character base-36 segments from the OS CSPRNG."""
    return "".join(
        "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_SEGMENT_LENGTH))
        for _ in range(TOKEN_SEGMENTS)
    )


def token_preview(token: str) -> str:
    return f"{token[:8]}..."


def is_usable(session: SharedSession, now: datetime) -> bool:
    return session.is_usable(now)


def session_state(session: SharedSession, now: datetime) -> str:
    if not session.is_active:
        return "revoked"
    if session.expires_at <= now:
        return "expired"
    return "active"


def split_sessions(
    sessions: List[SharedSession], now: datetime
) -> Tuple[List[SharedSession], List[SharedSession]]:
    """(active, inactive); inactive covers both revoked and expired."""
    active = [s for s in sessions if is_usable(s, now)]
    inactive = [s for s in sessions if not is_usable(s, now)]
    return active, inactive


# =====================================================================
# SECTION: SERVICE
# =====================================================================

class SessionTokenService:

    def __init__(
        self,
        gateway,
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[], str] = generate_token,
    ):
        self._gateway = gateway
        self._clock = clock
        self._token_factory = token_factory

    def now(self) -> datetime:
        return self._clock()

    def create_session(self, owner_id: str, permission, ttl_days: int) -> SharedSession:
        if not owner_id:
            raise ValidationFailed(["Owner id is required"])
        try:
            permission = Permission(permission)
        except ValueError:
            raise ValidationFailed([f"Unknown permission {permission!r}"])
        if not (1 <= int(ttl_days) <= MAX_SESSION_TTL_DAYS):
            raise ValidationFailed([f"Expiry must be between 1 and {MAX_SESSION_TTL_DAYS} days"])

        now = self._clock()
        session = SharedSession(
            id=str(uuid4()),
            owner_id=owner_id,
            token=self._token_factory(),
            permissions=permission,
            created_at=now,
            expires_at=now + timedelta(days=int(ttl_days)),
            is_active=True,
        )
        self._gateway.create_shared_session(session)

        logger.info(
            f"[sessions] created owner={owner_id} permission={permission.value} "
            f"ttl_days={ttl_days} token={token_preview(session.token)}"
        )
        return session

    def deactivate(self, token: str, owner_id: Optional[str] = None) -> SharedSession:
        """
        Revoke a session. Revoking an already revoked session is a no-op.
        With owner_id set, sessions of other owners are reported as not found.
        """
        session = self._gateway.find_shared_session_by_token(token)
        if session is None or (owner_id is not None and session.owner_id != owner_id):
            raise SessionNotFound()

        if not session.is_active:
            return session

        self._gateway.update_shared_session_active(token, False)
        logger.info(f"[sessions] deactivated owner={session.owner_id} token={token_preview(token)}")
        return session.model_copy(update={"is_active": False})

    def list_sessions(self, owner_id: str) -> List[SharedSession]:
        """Everything this owner ever created, newest first, unfiltered."""
        sessions = self._gateway.list_shared_sessions(owner_id)
        return sorted(sessions, key=lambda s: s.created_at, reverse=True)

    def session_stats(self, owner_id: str) -> SessionStats:
        now = self._clock()
        stats = SessionStats()
        for session in self.list_sessions(owner_id):
            stats.total += 1
            state = session_state(session, now)
            if state == "revoked":
                stats.revoked += 1
            elif state == "expired":
                stats.expired += 1
            else:
                stats.active += 1
        return stats

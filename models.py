# =======================================
# SECTION: IMPORTS AND BASE
# =======================================

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    JSON,
)

from db import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column here is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =======================================
# SECTION: USER MODELS
# =======================================

class AppUser(Base):
    __tablename__ = "users"

    # Opaque identifier from the client (tg_<id>, telegram_anon_<id>, dev_user, ...)
    user_id = Column(String(100), primary_key=True, index=True)

    name = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# =======================================
# SECTION: OWNER DATASET
# One row per owner, replaced wholesale on every flush.
# =======================================

class UserData(Base):
    __tablename__ = "user_data"

    user_id = Column(String(100), primary_key=True, index=True)

    flights = Column(JSON, nullable=False, default=list)
    airlines = Column(JSON, nullable=False, default=list)
    origin_cities = Column(JSON, nullable=False, default=list)
    destination_cities = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


# =======================================
# SECTION: SHARED SESSIONS
# Never deleted, revoked and expired rows stay for the sessions list.
# =======================================

class SharedSessionRow(Base):
    __tablename__ = "shared_sessions"

    id = Column(String(36), primary_key=True, index=True)
    owner_id = Column(String(100), index=True, nullable=False)
    token = Column(String(64), unique=True, index=True, nullable=False)

    permissions = Column(String(10), nullable=False, default="view")  # view | edit

    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    is_active = Column(Boolean, nullable=False, default=True)

"""schemas/users.py - Pydantic models for user sync."""

from typing import Optional

from pydantic import BaseModel


class UserSyncPayload(BaseModel):
    # Identity: accept any of these, canonicalised in /user-sync
    external_id: Optional[str] = None
    user_id: Optional[str] = None

    name: Optional[str] = None
    first_name: Optional[str] = None
    username: Optional[str] = None


class PublicUser(BaseModel):
    user_id: str
    name: Optional[str] = None

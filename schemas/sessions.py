"""schemas/sessions.py - Pydantic models for shared sessions, share links and joining."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from config import DEFAULT_SESSION_TTL_DAYS
from schemas.flights import FlightRecord


class Permission(str, Enum):
    VIEW = "view"
    EDIT = "edit"


class SharedSession(BaseModel):
    id: str
    owner_id: str
    token: str
    permissions: Permission
    expires_at: datetime
    created_at: datetime
    is_active: bool = True

    def is_usable(self, now: datetime) -> bool:
        # Revocation and expiry are independent, both end usability
        return self.is_active and now < self.expires_at


class SessionCreate(BaseModel):
    permissions: Permission = Permission.VIEW
    expiryDays: int = DEFAULT_SESSION_TTL_DAYS


class ShareLinks(BaseModel):
    # Link to hand to the guest for this permission level
    url: str
    # Plain web link, opens in view mode from any browser
    webUrl: str
    # Mini-app deep link, only for edit sessions
    miniAppUrl: Optional[str] = None


class SharedSessionOut(BaseModel):
    id: str
    token: str
    permissions: Permission
    expires_at: datetime
    created_at: datetime
    is_active: bool

    # Computed UI state
    state: str  # "active" | "revoked" | "expired"


class SessionCreated(BaseModel):
    session: SharedSessionOut
    links: ShareLinks


class SessionStats(BaseModel):
    total: int = 0
    active: int = 0
    expired: int = 0
    revoked: int = 0


class JoinRequest(BaseModel):
    # Bare token, a pasted ?token= link, or a share_<token> start param
    token: str
    inMiniApp: bool = False


class GuestOut(BaseModel):
    guestId: str
    ownerId: str
    ownerLabel: str
    permissions: Permission
    displayName: str


class JoinResponse(BaseModel):
    guest: GuestOut
    flights: List[FlightRecord]
    airlines: List[str]
    originCities: List[str]
    destinationCities: List[str]

"""routers/sessions.py - Shared access: create, list, revoke, stats, and joining as a guest."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from routers.deps import get_identity, get_services
from schemas.sessions import (
    GuestOut,
    JoinRequest,
    JoinResponse,
    SessionCreate,
    SessionCreated,
    SessionStats,
    SharedSession,
    SharedSessionOut,
)
from services.context import AppServices
from services.errors import InvalidToken
from services.guest_resolver import check_entry_point
from services.identity import Identity, guest_display_name, require_owner
from services.session_service import session_state, split_sessions
from services.share_links import build_share_links, extract_token

router = APIRouter()


def _session_out(session: SharedSession, services: AppServices) -> SharedSessionOut:
    return SharedSessionOut(
        id=session.id,
        token=session.token,
        permissions=session.permissions,
        expires_at=session.expires_at,
        created_at=session.created_at,
        is_active=session.is_active,
        state=session_state(session, services.sessions.now()),
    )


@router.post("/sessions", response_model=SessionCreated)
def create_session(
    payload: SessionCreate,
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    owner = require_owner(identity)
    session = services.sessions.create_session(owner.user_id, payload.permissions, payload.expiryDays)
    return SessionCreated(
        session=_session_out(session, services),
        links=build_share_links(session),
    )


@router.get("/sessions", response_model=List[SharedSessionOut])
def list_sessions(
    status: Optional[str] = "all",
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    owner = require_owner(identity)
    sessions = services.sessions.list_sessions(owner.user_id)

    status_value = (status or "all").strip().lower()
    if status_value not in ("all", "active", "inactive"):
        raise HTTPException(status_code=400, detail="Invalid status, use all, active or inactive")

    if status_value != "all":
        active, inactive = split_sessions(sessions, services.sessions.now())
        sessions = active if status_value == "active" else inactive

    return [_session_out(s, services) for s in sessions]


@router.get("/sessions/stats", response_model=SessionStats)
def sessions_stats(
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    owner = require_owner(identity)
    return services.sessions.session_stats(owner.user_id)


@router.post("/sessions/{token}/deactivate", response_model=SharedSessionOut)
def deactivate_session(
    token: str,
    identity: Identity = Depends(get_identity),
    services: AppServices = Depends(get_services),
):
    owner = require_owner(identity)
    session = services.sessions.deactivate(token, owner_id=owner.user_id)
    return _session_out(session, services)


@router.post("/join", response_model=JoinResponse)
def join_session(
    payload: JoinRequest,
    services: AppServices = Depends(get_services),
):
    token = extract_token(payload.token)
    if token is None:
        raise InvalidToken()

    resolution = services.resolver.resolve(token)
    if resolution is None:
        raise InvalidToken()

    guest = resolution.identity
    check_entry_point(guest, payload.inMiniApp)

    dataset = resolution.dataset
    return JoinResponse(
        guest=GuestOut(
            guestId=guest.guest_id,
            ownerId=guest.owner_id,
            ownerLabel=guest.owner_label,
            permissions=guest.permission,
            displayName=guest_display_name(guest, payload.inMiniApp),
        ),
        flights=dataset.flights,
        airlines=dataset.airlines,
        originCities=dataset.originCities,
        destinationCities=dataset.destinationCities,
    )

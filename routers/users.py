"""routers/users.py - User sync, used for the owner name guests see."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from routers.deps import get_services
from schemas.users import PublicUser, UserSyncPayload
from services.context import AppServices

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/user-sync", response_model=PublicUser)
def user_sync(payload: UserSyncPayload, services: AppServices = Depends(get_services)):
    canonical_id = (
        (payload.external_id or "").strip()
        or (payload.user_id or "").strip()
    )
    if not canonical_id:
        raise HTTPException(status_code=400, detail="Missing external_id")

    name = (
        (payload.name or "").strip()
        or (payload.first_name or "").strip()
        or (payload.username or "").strip()
        or None
    )
    logger.info(f"[user-sync] user_id={canonical_id} has_name={name is not None}")

    services.gateway.upsert_user(canonical_id, name)
    return PublicUser(user_id=canonical_id, name=name or services.gateway.get_user_name(canonical_id))

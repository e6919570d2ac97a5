"""routers/deps.py - Request dependencies: the service container and the acting identity."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from services.context import AppServices
from services.errors import InvalidToken
from services.guest_resolver import check_entry_point
from services.identity import Identity, OwnerIdentity


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_identity(
    services: AppServices = Depends(get_services),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_share_token: Optional[str] = Header(None, alias="X-Share-Token"),
    x_mini_app: bool = Header(False, alias="X-Mini-App"),
) -> Identity:
    """
    Guest when a share token is sent (it wins over X-User-Id), owner otherwise.
    Re-resolved on every request so revocation and expiry apply immediately,
    and an edit token is refused outside the mini-app just as it is at /join.
    """
    if x_share_token:
        guest = services.resolver.resolve_identity(x_share_token)
        if guest is None:
            raise InvalidToken()
        check_entry_point(guest, x_mini_app)
        return guest

    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail={"code": "UNAUTHORIZED"})
    return OwnerIdentity(user_id=user_id)

"""
services/identity.py

Who is acting on a request. Two variants, discriminated by `kind`:

- OwnerIdentity: the user whose dataset is being read or written.
- GuestIdentity: someone holding a shared-session token. Always reads and
  writes the owner's dataset, never gets a dataset of their own.

GuestIdentity instances are only built by GuestSessionResolver.
"""

from dataclasses import dataclass, field
from typing import Literal, Union

from schemas.sessions import Permission
from services.errors import PermissionDenied


@dataclass(frozen=True)
class OwnerIdentity:
    user_id: str
    name: str = ""
    kind: Literal["owner"] = field(default="owner", init=False)


@dataclass(frozen=True)
class GuestIdentity:
    guest_id: str
    owner_id: str
    owner_label: str
    permission: Permission
    token: str
    kind: Literal["guest"] = field(default="guest", init=False)


Identity = Union[OwnerIdentity, GuestIdentity]


def data_owner_id(identity: Identity) -> str:
    """Dataset key for reads and writes made by this identity."""
    if identity.kind == "guest":
        return identity.owner_id
    return identity.user_id


def can_edit(identity: Identity) -> bool:
    if identity.kind == "guest":
        return identity.permission == Permission.EDIT
    return True


def require_edit(identity: Identity) -> None:
    if not can_edit(identity):
        raise PermissionDenied()


def require_owner(identity: Identity) -> OwnerIdentity:
    # Guests can neither list nor revoke sessions, whatever their permission
    if identity.kind != "owner":
        raise PermissionDenied("Only the owner can manage shared access")
    return identity


def permission_label(identity: Identity) -> str:
    if identity.kind == "guest":
        return identity.permission.value
    return "owner"


def guest_display_name(identity: GuestIdentity, in_mini_app: bool = False) -> str:
    mode = "editing" if identity.permission == Permission.EDIT else "viewing"
    if in_mini_app:
        return f"Telegram guest ({mode})"
    return f"Web guest ({mode})"

"""
services/guest_resolver.py

Turns a shared-session token into a guest identity bound to the owner's data.

The permission carried by the returned GuestIdentity is the only source of
truth for later edit/delete checks. Unknown, too short, revoked and expired
tokens all come back as None so callers cannot tell which case happened.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from config import TOKEN_MIN_LENGTH
from models import utcnow
from schemas.flights import OwnerDataset
from schemas.sessions import Permission
from services.errors import GatewayError, MiniAppRequired
from services.identity import GuestIdentity
from services.session_service import TOKEN_ALPHABET, token_preview
from services.share_links import build_edit_link

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuestResolution:
    identity: GuestIdentity
    dataset: OwnerDataset


def new_guest_id() -> str:
    suffix = "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(5))
    return f"guest_{int(time.time() * 1000)}_{suffix}"


def format_owner_id(owner_id: str) -> str:
    if not owner_id:
        return "Owner"
    if owner_id.startswith("tg_"):
        digits = owner_id[len("tg_"):]
        return f"User #{digits[:6]}"
    if owner_id.startswith("telegram_anon_"):
        return "Anonymous user"
    if owner_id == "dev_user" or "development" in owner_id:
        return "Developer"
    return f"User {owner_id[:8]}"


class GuestSessionResolver:

    def __init__(
        self,
        gateway,
        dataset_loader: Optional[Callable[[str], OwnerDataset]] = None,
        clock: Callable[[], datetime] = utcnow,
        guest_id_factory: Callable[[], str] = new_guest_id,
    ):
        self._gateway = gateway
        self._dataset_loader = dataset_loader or self._load_from_gateway
        self._clock = clock
        self._guest_id_factory = guest_id_factory

    def _load_from_gateway(self, owner_id: str) -> OwnerDataset:
        return self._gateway.get_owner_dataset(owner_id) or OwnerDataset()

    def owner_label(self, owner_id: str) -> str:
        try:
            name = self._gateway.get_user_name(owner_id)
        except GatewayError:
            # Label is cosmetic, fall back to the formatted id
            name = None
        return name or format_owner_id(owner_id)

    def resolve_identity(self, token: Optional[str]) -> Optional[GuestIdentity]:
        token = (token or "").strip()
        if len(token) < TOKEN_MIN_LENGTH:
            return None

        session = self._gateway.find_shared_session_by_token(token)
        if session is None or not session.is_usable(self._clock()):
            logger.info(f"[token] rejected token={token_preview(token)}")
            return None

        return GuestIdentity(
            guest_id=self._guest_id_factory(),
            owner_id=session.owner_id,
            owner_label=self.owner_label(session.owner_id),
            permission=session.permissions,
            token=token,
        )

    def resolve(self, token: Optional[str]) -> Optional[GuestResolution]:
        identity = self.resolve_identity(token)
        if identity is None:
            return None

        dataset = self._dataset_loader(identity.owner_id)
        logger.info(
            f"[token] guest joined owner={identity.owner_id} "
            f"permission={identity.permission.value} flights={len(dataset.flights)}"
        )
        return GuestResolution(identity=identity, dataset=dataset)


def check_entry_point(identity: GuestIdentity, in_mini_app: bool) -> None:
    """Edit access is only granted inside the mini-app; elsewhere point the guest at it."""
    if identity.permission == Permission.EDIT and not in_mini_app:
        raise MiniAppRequired(build_edit_link(identity.token))

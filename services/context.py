"""
services/context.py

The service container. Built once at startup and stored on app.state;
routers receive it through routers/deps.py instead of reaching for globals.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from config import AUTOSAVE_DELAY_SECONDS
from models import utcnow
from services.autosave import AutosaveScheduler
from services.flight_store import WorkspaceRegistry
from services.gateway import PersistenceGateway, SqlGateway
from services.guest_resolver import GuestSessionResolver
from services.session_service import SessionTokenService


@dataclass
class AppServices:
    gateway: PersistenceGateway
    autosave: AutosaveScheduler
    workspaces: WorkspaceRegistry
    sessions: SessionTokenService
    resolver: GuestSessionResolver


def build_services(
    session_factory,
    autosave_delay: float = AUTOSAVE_DELAY_SECONDS,
    timer_factory: Callable = threading.Timer,
    clock: Callable[[], datetime] = utcnow,
) -> AppServices:
    gateway = SqlGateway(session_factory)
    autosave = AutosaveScheduler(gateway, delay=autosave_delay, timer_factory=timer_factory)
    workspaces = WorkspaceRegistry(gateway, autosave)
    return AppServices(
        gateway=gateway,
        autosave=autosave,
        workspaces=workspaces,
        sessions=SessionTokenService(gateway, clock=clock),
        # Guests see the owner's in-memory state, including edits not yet flushed
        resolver=GuestSessionResolver(gateway, dataset_loader=workspaces.dataset_for, clock=clock),
    )

import re

import pytest

from schemas.sessions import Permission
from services.errors import SessionNotFound, ValidationFailed
from services.session_service import (
    SessionTokenService,
    generate_token,
    session_state,
    split_sessions,
)


@pytest.fixture
def service(gateway, clock):
    return SessionTokenService(gateway, clock=clock)


def test_token_is_two_base36_segments():
    token = generate_token()
    assert re.fullmatch(r"[0-9a-z]{26}", token)
    assert len({generate_token() for _ in range(200)}) == 200


def test_create_session_sets_expiry_and_active(service, clock):
    session = service.create_session("tg_1001", "edit", 7)
    assert session.permissions == Permission.EDIT
    assert session.is_active
    assert session.created_at == clock.now
    assert (session.expires_at - session.created_at).days == 7
    assert session.is_usable(clock.now)


@pytest.mark.parametrize("ttl", [0, -1, 366])
def test_create_session_rejects_bad_ttl(service, ttl):
    with pytest.raises(ValidationFailed):
        service.create_session("tg_1001", "view", ttl)


def test_create_session_rejects_unknown_permission(service):
    with pytest.raises(ValidationFailed):
        service.create_session("tg_1001", "admin", 7)


def test_deactivate_is_idempotent(service, gateway, clock):
    session = service.create_session("tg_1001", "view", 7)

    first = service.deactivate(session.token)
    second = service.deactivate(session.token)

    assert first.is_active is False
    assert second.is_active is False
    stored = gateway.find_shared_session_by_token(session.token)
    assert stored.is_active is False
    assert not stored.is_usable(clock.now)


def test_deactivate_other_owners_session_is_not_found(service):
    session = service.create_session("tg_1001", "view", 7)
    with pytest.raises(SessionNotFound):
        service.deactivate(session.token, owner_id="tg_2002")


def test_deactivate_unknown_token(service):
    with pytest.raises(SessionNotFound):
        service.deactivate("x" * 26)


def test_list_is_newest_first_and_unfiltered(service, clock):
    first = service.create_session("tg_1001", "view", 1)
    clock.advance(hours=1)
    second = service.create_session("tg_1001", "edit", 30)
    clock.advance(hours=1)
    third = service.create_session("tg_1001", "view", 7)
    service.create_session("tg_2002", "view", 7)
    service.deactivate(second.token)
    clock.advance(days=2)

    sessions = service.list_sessions("tg_1001")
    assert [s.token for s in sessions] == [third.token, second.token, first.token]

    active, inactive = split_sessions(sessions, clock.now)
    assert [s.token for s in active] == [third.token]
    assert {s.token for s in inactive} == {first.token, second.token}


def test_list_for_owner_without_sessions_is_empty(service):
    assert service.list_sessions("tg_nobody") == []


def test_state_prefers_revoked_over_expired(service, clock):
    session = service.create_session("tg_1001", "view", 1)
    service.deactivate(session.token)
    clock.advance(days=3)
    [stored] = service.list_sessions("tg_1001")
    assert session_state(stored, clock.now) == "revoked"


def test_stats(service, clock):
    expired = service.create_session("tg_1001", "view", 1)
    revoked = service.create_session("tg_1001", "edit", 30)
    service.create_session("tg_1001", "view", 30)
    service.deactivate(revoked.token)
    clock.advance(days=1)

    stats = service.session_stats("tg_1001")
    assert (stats.total, stats.active, stats.expired, stats.revoked) == (3, 1, 1, 1)

    by_token = {s.token: s for s in service.list_sessions("tg_1001")}
    assert session_state(by_token[expired.token], clock.now) == "expired"

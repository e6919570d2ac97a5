import pytest

from schemas.flights import OwnerDataset
from schemas.sessions import Permission
from services.errors import GatewayError, MiniAppRequired
from services.guest_resolver import GuestSessionResolver, check_entry_point, format_owner_id
from services.session_service import SessionTokenService

from helpers import make_flight


@pytest.fixture
def tokens(gateway, clock):
    return SessionTokenService(gateway, clock=clock)


@pytest.fixture
def resolver(gateway, clock):
    return GuestSessionResolver(gateway, clock=clock)


def test_token_lifecycle(tokens, resolver, clock):
    session = tokens.create_session("tg_1001", "view", 7)
    assert resolver.resolve(session.token) is not None

    tokens.deactivate(session.token)
    assert resolver.resolve(session.token) is None


def test_expired_token_is_rejected_even_if_active(tokens, resolver, clock):
    session = tokens.create_session("tg_1001", "edit", 7)
    clock.advance(days=7, seconds=-1)
    assert resolver.resolve_identity(session.token) is not None

    clock.advance(seconds=1)
    # now == expires_at
    assert resolver.resolve_identity(session.token) is None


@pytest.mark.parametrize("token", [None, "", "   ", "short", "z" * 26])
def test_missing_short_or_unknown_tokens(resolver, token):
    assert resolver.resolve(token) is None


def test_resolution_carries_permission_and_owner_data(tokens, resolver, gateway):
    gateway.put_owner_dataset("tg_1001", OwnerDataset(flights=[make_flight(id="1")], airlines=["Pegasus"]))
    gateway.upsert_user("tg_1001", "Anna")
    session = tokens.create_session("tg_1001", "edit", 7)

    result = resolver.resolve(session.token)

    assert result.identity.kind == "guest"
    assert result.identity.owner_id == "tg_1001"
    assert result.identity.owner_label == "Anna"
    assert result.identity.permission == Permission.EDIT
    assert result.identity.guest_id.startswith("guest_")
    assert [f.id for f in result.dataset.flights] == ["1"]


def test_guest_id_is_fresh_per_resolution(tokens, resolver):
    session = tokens.create_session("tg_1001", "view", 7)
    first = resolver.resolve_identity(session.token)
    second = resolver.resolve_identity(session.token)
    assert first.guest_id != second.guest_id


def test_owner_without_data_resolves_to_empty_dataset(tokens, resolver):
    session = tokens.create_session("tg_1001", "view", 7)
    assert resolver.resolve(session.token).dataset == OwnerDataset()


@pytest.mark.parametrize("owner_id,label", [
    ("tg_123456789", "User #123456"),
    ("telegram_anon_x1y2", "Anonymous user"),
    ("dev_user", "Developer"),
    ("local_development_1", "Developer"),
    ("abcdefghijkl", "User abcdefgh"),
    ("", "Owner"),
])
def test_owner_label_fallbacks(owner_id, label):
    assert format_owner_id(owner_id) == label


def test_owner_label_survives_lookup_failure(clock):
    class BrokenNames:
        def get_user_name(self, user_id):
            raise GatewayError("get_user_name failed")

    resolver = GuestSessionResolver(BrokenNames(), clock=clock)
    assert resolver.owner_label("tg_42") == "User #42"


def test_lookup_failure_propagates_as_gateway_error(clock):
    class Down:
        def find_shared_session_by_token(self, token):
            raise GatewayError("find_shared_session_by_token failed")

    with pytest.raises(GatewayError):
        GuestSessionResolver(Down(), clock=clock).resolve("a" * 26)


def test_edit_access_outside_mini_app_points_to_deep_link(tokens, resolver):
    session = tokens.create_session("tg_1001", "edit", 7)
    guest = resolver.resolve_identity(session.token)

    with pytest.raises(MiniAppRequired) as exc:
        check_entry_point(guest, in_mini_app=False)
    assert exc.value.link.endswith(f"?start=share_{session.token}")

    check_entry_point(guest, in_mini_app=True)


def test_view_access_works_anywhere(tokens, resolver):
    session = tokens.create_session("tg_1001", "view", 7)
    check_entry_point(resolver.resolve_identity(session.token), in_mini_app=False)

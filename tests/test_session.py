import uuid

import pytest

from conftest import build_room
from poker_planning.modules.room import NotAMember, Unauthenticated
from poker_planning.modules.session import SessionResolver


@pytest.fixture
def resolver():
    return SessionResolver()


@pytest.fixture
def room():
    return build_room(members=[("token-alice", "Alice", None, 0)])


def test_mint_returns_unique_uuids(resolver):
    tokens = {resolver.mint() for _ in range(100)}

    assert len(tokens) == 100
    for token in tokens:
        # Verify UUID format
        assert len(token) == 36
        assert str(uuid.UUID(token)) == token


def test_ensure_token(resolver):
    assert resolver.ensure_token("abc") == "abc"
    with pytest.raises(Unauthenticated) as exc_info:
        resolver.ensure_token(None)
    assert exc_info.value.status_code == 401
    with pytest.raises(Unauthenticated):
        resolver.ensure_token("")


def test_identify(resolver, room):
    assert resolver.identify(room, "token-alice").name == "Alice"
    assert resolver.identify(room, "someone-else") is None
    assert resolver.identify(room, None) is None


def test_resolve_member(resolver, room):
    member = resolver.resolve(room, "token-alice")
    assert member.id == "token-alice"


@pytest.mark.parametrize("session_id", [None, "", "token-bob"])
def test_resolve_rejects_non_members(resolver, room, session_id):
    with pytest.raises(NotAMember) as exc_info:
        resolver.resolve(room, session_id)
    assert exc_info.value.status_code == 403

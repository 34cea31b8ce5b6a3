import time

import pytest
from sqlalchemy import text

from orbit.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from orbit.services.connections import ConnectionManager


@pytest.fixture
def manager(connection_store, profiles):
    return ConnectionManager(connection_store, profiles)


def _count(session_factory, status: str) -> int:
    with session_factory() as db:
        return db.execute(text("SELECT COUNT(*) FROM connection_request WHERE status = :s"), {"s": status}).scalar_one()


def test_self_request_is_rejected(manager, make_profile):
    a = make_profile()
    with pytest.raises(ValidationError) as exc:
        manager.send_request(a, a)
    assert exc.value.reason == "self_request"


def test_request_to_unknown_user(manager, make_profile):
    a = make_profile()
    with pytest.raises(NotFoundError):
        manager.send_request(a, "00000000-0000-0000-0000-000000000000")


def test_send_then_accept_by_recipient(manager, make_profile):
    a, b = make_profile(), make_profile()
    req = manager.send_request(a, b)
    assert req["status"] == "pending"
    assert req["auto_accepted"] is False

    accepted = manager.accept(req["id"], b)
    assert accepted["status"] == "accepted"
    assert manager.ensure_pair_access(req["id"], a)["status"] == "accepted"
    assert manager.ensure_pair_access(req["id"], b)["status"] == "accepted"


def test_only_recipient_may_resolve(manager, make_profile):
    a, b, c = make_profile(), make_profile(), make_profile()
    req = manager.send_request(a, b)
    for actor in (a, c):
        with pytest.raises(AuthorizationError):
            manager.accept(req["id"], actor)
        with pytest.raises(AuthorizationError):
            manager.reject(req["id"], actor)
    assert manager.store.get(req["id"])["status"] == "pending"


def test_resolving_twice_conflicts(manager, make_profile):
    a, b = make_profile(), make_profile()
    req = manager.send_request(a, b)
    manager.reject(req["id"], b)
    with pytest.raises(ConflictError) as exc:
        manager.accept(req["id"], b)
    assert exc.value.reason == "already_rejected"


def test_unknown_request(manager, make_profile):
    b = make_profile()
    with pytest.raises(NotFoundError):
        manager.accept("missing", b)


def test_mutual_requests_produce_one_accepted_connection(manager, make_profile, session_factory):
    a, b = make_profile(), make_profile()
    first = manager.send_request(a, b)
    second = manager.send_request(b, a)

    assert second["auto_accepted"] is True
    assert second["id"] == first["id"]
    assert second["status"] == "accepted"
    assert _count(session_factory, "accepted") == 1
    assert _count(session_factory, "pending") == 0
    assert len(manager.list_accepted(a)) == 1
    assert len(manager.list_accepted(b)) == 1


def test_duplicate_active_request_conflicts(manager, make_profile):
    a, b = make_profile(), make_profile()
    req = manager.send_request(a, b)
    with pytest.raises(ConflictError) as exc:
        manager.send_request(a, b)
    assert exc.value.reason == "already_pending"

    manager.accept(req["id"], b)
    for sender, target in ((a, b), (b, a)):
        with pytest.raises(ConflictError) as exc:
            manager.send_request(sender, target)
        assert exc.value.reason == "already_accepted"


def test_rejection_allows_a_new_request(manager, make_profile):
    a, b = make_profile(), make_profile()
    first = manager.send_request(a, b)
    manager.reject(first["id"], b)

    again = manager.send_request(a, b)
    assert again["id"] != first["id"]
    assert again["status"] == "pending"


def test_list_inbound_newest_first_with_sender(manager, make_profile):
    target = make_profile()
    older = make_profile(username="older", interests=["art"])
    newer = make_profile(username="newer", interests=["music", "coding"])
    manager.send_request(older, target)
    time.sleep(0.01)
    manager.send_request(newer, target)
    manager.send_request(target, make_profile())

    inbound = manager.list_inbound(target)
    assert [r["from_user"] for r in inbound] == [newer, older]
    assert inbound[0]["sender"]["username"] == "newer"
    assert inbound[0]["sender"]["interests"] == ["music", "coding"]
    assert manager.list_inbound(older) == []


def test_list_accepted_resolves_other_party(manager, make_profile):
    me = make_profile()
    sent_to = make_profile(username="sent_to")
    received_from = make_profile(username="received_from")
    r1 = manager.send_request(me, sent_to)
    manager.accept(r1["id"], sent_to)
    r2 = manager.send_request(received_from, me)
    manager.accept(r2["id"], me)
    manager.send_request(me, make_profile())

    connections = manager.list_accepted(me)
    others = {c["other_user"]: c["other_profile"]["username"] for c in connections}
    assert others == {sent_to: "sent_to", received_from: "received_from"}


def test_pair_access_requires_accepted_connection(manager, make_profile):
    a, b, c = make_profile(), make_profile(), make_profile()
    req = manager.send_request(a, b)
    with pytest.raises(AuthorizationError) as exc:
        manager.ensure_pair_access(req["id"], a)
    assert exc.value.reason == "connection_pending"

    manager.accept(req["id"], b)
    with pytest.raises(AuthorizationError):
        manager.ensure_pair_access(req["id"], c)
    with pytest.raises(NotFoundError):
        manager.ensure_pair_access("missing", a)


def test_simultaneous_mutual_sends_still_auto_accept(manager, connection_store, make_profile, session_factory, monkeypatch):
    a, b = make_profile(), make_profile()
    first = manager.send_request(a, b)

    # b's send reads the pair before a's row is visible, then loses on the active-pair index
    for name in ("_pending_from", "_active_for_pair"):
        real = getattr(connection_store, name)
        calls = []

        def _stale(*args, _real=real, _calls=calls):
            _calls.append(args)
            return None if len(_calls) == 1 else _real(*args)

        monkeypatch.setattr(connection_store, name, _stale)

    second = manager.send_request(b, a)

    assert second["auto_accepted"] is True
    assert second["id"] == first["id"]
    assert second["status"] == "accepted"
    assert _count(session_factory, "accepted") == 1
    assert _count(session_factory, "pending") == 0


def test_same_direction_race_is_a_conflict(manager, connection_store, make_profile, monkeypatch):
    a, b = make_profile(), make_profile()
    manager.send_request(a, b)
    monkeypatch.setattr(connection_store, "_active_for_pair", lambda db, key: None)

    with pytest.raises(ConflictError) as exc:
        manager.send_request(a, b)
    assert exc.value.reason == "already_pending"

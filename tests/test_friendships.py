"""Friendship store behaviour and the /friends routes."""
from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from neocomm.models import Friendship
from neocomm.services import (
    AlreadyExists,
    InvalidRequest,
    NotFound,
    StoreFailure,
    add_friend,
    are_friends,
    list_friends,
)


def _friendship_count(db) -> int:
    return db.scalar(select(func.count(Friendship.id)))


def test_are_friends_is_commutative_for_either_storage_order(db, user_factory, befriend):
    alice = user_factory("alice")
    bob = user_factory("bob")
    carol = user_factory("carol")

    befriend(bob, alice)

    assert are_friends(db, alice.id, bob.id)
    assert are_friends(db, bob.id, alice.id)
    assert not are_friends(db, alice.id, carol.id)
    assert not are_friends(db, carol.id, alice.id)


def test_are_friends_requires_acceptance_flag(db, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")
    db.add(Friendship(user_a_id=alice.id, user_b_id=bob.id, status="pending"))
    db.commit()

    assert not are_friends(db, alice.id, bob.id)


def test_add_friend_by_email_creates_accepted_relation(db, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob", email="bob@example.com")

    friendship, friend = add_friend(db, requester_id=alice.id, email="  BOB@example.com ")

    assert friend.id == bob.id
    assert friendship.status == "accepted"
    assert friendship.involves(alice.id) and friendship.involves(bob.id)
    assert are_friends(db, bob.id, alice.id)


def test_add_friend_by_identifier(db, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")

    _, friend = add_friend(db, requester_id=alice.id, target_id=bob.id)

    assert friend.id == bob.id
    assert are_friends(db, alice.id, bob.id)


def test_add_friend_unknown_target_leaves_store_unchanged(db, user_factory):
    alice = user_factory("alice")
    before = _friendship_count(db)

    with pytest.raises(NotFound):
        add_friend(db, requester_id=alice.id, email="nobody@example.com")
    with pytest.raises(NotFound):
        add_friend(db, requester_id=alice.id, target_id=uuid4())

    assert _friendship_count(db) == before


def test_add_friend_twice_keeps_single_relation(db, user_factory):
    alice = user_factory("alice")
    bob = user_factory("bob")

    add_friend(db, requester_id=alice.id, target_id=bob.id)
    with pytest.raises(AlreadyExists):
        add_friend(db, requester_id=alice.id, target_id=bob.id)
    with pytest.raises(AlreadyExists):
        add_friend(db, requester_id=bob.id, target_id=alice.id)

    assert _friendship_count(db) == 1


def test_add_friend_detects_relation_stored_in_reverse_order(db, user_factory, befriend):
    alice = user_factory("alice")
    bob = user_factory("bob")
    befriend(bob, alice)

    with pytest.raises(AlreadyExists):
        add_friend(db, requester_id=alice.id, target_id=bob.id)


def test_cannot_befriend_yourself(db, user_factory):
    alice = user_factory("alice")

    with pytest.raises(InvalidRequest):
        add_friend(db, requester_id=alice.id, target_id=alice.id)


def test_list_friends_unions_both_orderings_without_duplicates(db, user_factory, befriend):
    alice = user_factory("alice")
    bob = user_factory("bob")
    carol = user_factory("carol")
    dave = user_factory("dave")

    befriend(alice, bob)
    befriend(bob, alice)
    befriend(carol, alice)
    befriend(bob, dave)

    friends = list_friends(db, user_id=alice.id)

    assert [friend.username for friend in friends] == ["bob", "carol"]


def test_add_friend_route_status_codes(client, user_factory, auth_headers):
    alice = user_factory("alice")
    bob = user_factory("bob", email="bob@example.com", avatar_url="/uploads/bob.png")
    headers = auth_headers(alice)

    created = client.post("/friends/add", json={"email": "bob@example.com"}, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["id"] == str(bob.id)
    assert body["avatar_url"].endswith("/uploads/bob.png")

    duplicate = client.post("/friends/add", json={"friend_id": str(bob.id)}, headers=headers)
    assert duplicate.status_code == 400

    unknown = client.post("/friends/add", json={"email": "ghost@example.com"}, headers=headers)
    assert unknown.status_code == 404

    empty = client.post("/friends/add", json={}, headers=headers)
    assert empty.status_code == 422


def test_friend_list_routes(client, user_factory, befriend, auth_headers):
    alice = user_factory("alice")
    bob = user_factory("bob")
    carol = user_factory("carol")
    befriend(alice, bob)
    befriend(carol, alice)

    mine = client.get("/friends", headers=auth_headers(alice))
    assert mine.status_code == 200
    assert [item["username"] for item in mine.json()] == ["bob", "carol"]

    theirs = client.get(f"/friends/{bob.id}", headers=auth_headers(carol))
    assert theirs.status_code == 200
    assert [item["id"] for item in theirs.json()] == [str(alice.id)]


def test_failed_refresh_after_insert_is_a_store_failure(db, user_factory, monkeypatch):
    alice = user_factory("alice")
    bob = user_factory("bob")

    def _broken_refresh(instance) -> None:
        raise OperationalError("SELECT friendships", {}, Exception("connection reset"))

    monkeypatch.setattr(db, "refresh", _broken_refresh)

    with pytest.raises(StoreFailure):
        add_friend(db, requester_id=alice.id, target_id=bob.id)


def test_failed_friend_listing_returns_json_500(client, user_factory, auth_headers, monkeypatch):
    alice = user_factory("alice")

    def _broken_scalars(self, *args, **kwargs):
        raise OperationalError("SELECT users", {}, Exception("connection reset"))

    monkeypatch.setattr("sqlalchemy.orm.Session.scalars", _broken_scalars)

    response = client.get("/friends", headers=auth_headers(alice))

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to load friends"}

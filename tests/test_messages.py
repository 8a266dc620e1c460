"""Friendship-gated message writes and conversation history."""
from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

import neocomm.services.message_service as message_service
from neocomm.models import Message
from neocomm.services import Forbidden, StoreFailure, create_message, list_conversation


def _message_count(db) -> int:
    return db.scalar(select(func.count(Message.id)))


@pytest.mark.parametrize("content", ["hi", "", "   ", "x" * 500])
def test_create_message_between_strangers_is_forbidden(db, user_factory, content):
    alice = user_factory("alice")
    bob = user_factory("bob")

    with pytest.raises(Forbidden):
        create_message(db, sender_id=alice.id, receiver_id=bob.id, content=content)

    assert _message_count(db) == 0


def test_create_message_appends_one_hydrated_entry(db, user_factory, befriend):
    alice = user_factory("alice", avatar_url="alice.png")
    bob = user_factory("bob")
    befriend(bob, alice)

    first = create_message(db, sender_id=bob.id, receiver_id=alice.id, content="hello")
    before = list_conversation(db, alice.id, bob.id)

    created = create_message(db, sender_id=alice.id, receiver_id=bob.id, content="hi")
    after = list_conversation(db, alice.id, bob.id)

    assert len(after) == len(before) + 1
    latest = after[-1]
    assert latest.id == created.id
    assert latest.content == "hi"
    assert latest.sender_id == alice.id
    assert latest.receiver_id == bob.id
    assert latest.sent_at >= first.sent_at

    assert created.sender.username == "alice"
    assert created.sender.avatar_url == "alice.png"
    assert created.receiver.username == "bob"


def test_conversation_is_symmetric_and_ordered(db, user_factory, befriend):
    alice = user_factory("alice")
    bob = user_factory("bob")
    carol = user_factory("carol")
    befriend(alice, bob)
    befriend(alice, carol)

    for index in range(6):
        sender, receiver = (alice, bob) if index % 2 == 0 else (bob, alice)
        create_message(db, sender_id=sender.id, receiver_id=receiver.id, content=f"m{index}")
    create_message(db, sender_id=alice.id, receiver_id=carol.id, content="elsewhere")

    forward = list_conversation(db, alice.id, bob.id)
    backward = list_conversation(db, bob.id, alice.id)

    assert [item.id for item in forward] == [item.id for item in backward]
    assert [item.content for item in forward] == [f"m{index}" for index in range(6)]
    timestamps = [item.sent_at for item in forward]
    assert timestamps == sorted(timestamps)


def test_store_failure_rolls_back_and_persists_nothing(db, user_factory, befriend, monkeypatch):
    alice = user_factory("alice")
    bob = user_factory("bob")
    befriend(alice, bob)

    def _broken_commit() -> None:
        raise OperationalError("INSERT INTO messages", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", _broken_commit)

    with pytest.raises(StoreFailure):
        create_message(db, sender_id=alice.id, receiver_id=bob.id, content="lost")

    monkeypatch.undo()
    assert _message_count(db) == 0


def test_post_message_route_returns_hydrated_message(client, user_factory, befriend, auth_headers):
    alice = user_factory("alice", avatar_url="/uploads/alice.png")
    bob = user_factory("bob")
    befriend(alice, bob)

    response = client.post(
        "/messages",
        json={"receiver_id": str(bob.id), "content": "hey bob"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["sender_id"] == str(alice.id)
    assert body["receiver_id"] == str(bob.id)
    assert body["content"] == "hey bob"
    assert body["sender_username"] == "alice"
    assert body["receiver_username"] == "bob"
    assert body["sender_avatar_url"].endswith("/uploads/alice.png")
    assert body["receiver_avatar_url"] is None


def test_post_message_to_stranger_returns_403_without_row(client, db, user_factory, auth_headers):
    alice = user_factory("alice")
    bob = user_factory("bob")

    response = client.post(
        "/messages",
        json={"receiver_id": str(bob.id), "content": "hi"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 403
    assert _message_count(db) == 0


def test_conversation_route_lists_both_directions(client, user_factory, befriend, auth_headers):
    alice = user_factory("alice")
    bob = user_factory("bob")
    befriend(alice, bob)

    client.post("/messages", json={"receiver_id": str(bob.id), "content": "one"}, headers=auth_headers(alice))
    client.post("/messages", json={"receiver_id": str(alice.id), "content": "two"}, headers=auth_headers(bob))
    client.post("/messages", json={"receiver_id": str(bob.id), "content": "three"}, headers=auth_headers(alice))

    from_alice = client.get(f"/messages/{bob.id}", headers=auth_headers(alice))
    from_bob = client.get(f"/messages/{alice.id}", headers=auth_headers(bob))

    assert from_alice.status_code == 200
    assert [item["content"] for item in from_alice.json()] == ["one", "two", "three"]
    assert from_alice.json() == from_bob.json()


def _broken_query(*args, **kwargs):
    raise OperationalError("SELECT friendships", {}, Exception("database is locked"))


def test_failed_friendship_lookup_is_a_store_failure(db, user_factory, befriend, monkeypatch):
    alice = user_factory("alice")
    bob = user_factory("bob")
    befriend(alice, bob)
    monkeypatch.setattr(message_service, "are_friends", _broken_query)

    with pytest.raises(StoreFailure):
        create_message(db, sender_id=alice.id, receiver_id=bob.id, content="hi")


def test_failed_timestamp_lookup_returns_json_500(client, user_factory, befriend, auth_headers, monkeypatch):
    alice = user_factory("alice")
    bob = user_factory("bob")
    befriend(alice, bob)
    monkeypatch.setattr(message_service, "_next_sent_at", _broken_query)

    response = client.post("/messages", json={"receiver_id": str(bob.id), "content": "hi"}, headers=auth_headers(alice))

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to persist message"}

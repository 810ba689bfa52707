from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import server
from glossary_bot.entities import QueueMessage
from glossary_bot.transport import QueueTransport
from glossary_bot.models import Room


@pytest.fixture
def client(session_factory):
    server.app.dependency_overrides[server.get_session_factory] = lambda: session_factory
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_post_message_enqueues_for_worker(client, session_factory):
    body = {
        "id": "m-1",
        "text": "!add API:REST",
        "sender": {"id": "user-1", "username": "alice", "emails": [{"address": "a@example.com", "verified": True}]},
        "room": {"id": "room-1", "kind": "d"},
    }
    resp = client.post("/messages", json=body)
    assert resp.status_code == 200
    assert resp.json()["status"] == "success"

    session = session_factory()
    try:
        row = session.query(QueueMessage).one()
        assert row.sender_id == "glossary::room-1"
        assert row.receiver_id == server.QUEUE_RECEIVER_ID
        assert row.type == "message_posted"
        assert row.payload["text"] == "!add API:REST"
        assert row.payload["sender"]["emails"][0]["address"] == "a@example.com"
    finally:
        session.close()


def test_post_message_validates_body(client):
    resp = client.post("/messages", json={"text": "hi"})
    assert resp.status_code == 422


def test_replies_are_drained_once(client, session_factory):
    transport = QueueTransport(session_factory, sender_id="worker")
    transport.send_text(Room(id="room-1", kind="d"), "first")
    transport.send_text(Room(id="room-1", kind="d"), "second")
    transport.send_text(Room(id="room-2", kind="d"), "other room")

    replies = client.get("/messages/room-1/replies").json()
    assert [r["text"] for r in replies] == ["first", "second"]
    assert client.get("/messages/room-1/replies").json() == []
    assert len(client.get("/messages/room-2/replies").json()) == 1

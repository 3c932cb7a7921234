"""Chat message API tests — /send-message and /messages history."""

import pytest


@pytest.mark.asyncio
async def test_send_message_delivers_to_online_receiver(client, connect, persistence):
    receiver, _ = await connect("b@x")

    r = await client.post(
        "/api/v1/send-message",
        json={"senderIdentity": "a@x", "receiverIdentity": "b@x", "text": "hi"},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["delivered"] is True
    assert data["message"]["roomId"] == "a@x_b@x"

    frames = receiver.events("message-received")
    assert len(frames) == 1
    assert frames[0]["data"]["text"] == "hi"
    assert frames[0]["data"]["timestamp"] == data["message"]["timestamp"]
    assert len(persistence.messages) == 1


@pytest.mark.asyncio
async def test_send_message_offline_receiver_is_stored(client, persistence):
    r = await client.post(
        "/api/v1/send-message",
        json={"senderIdentity": "a@x", "receiverIdentity": "b@x", "text": "later"},
    )
    assert r.status_code == 200
    assert r.json()["delivered"] is False
    assert persistence.messages[0].text == "later"


@pytest.mark.asyncio
async def test_send_message_persistence_failure_is_500(client, connect, persistence):
    receiver, _ = await connect("b@x")
    persistence.fail_writes = True

    r = await client.post(
        "/api/v1/send-message",
        json={"senderIdentity": "a@x", "receiverIdentity": "b@x", "text": "hi"},
    )
    assert r.status_code == 500
    assert receiver.sent == []


@pytest.mark.asyncio
async def test_history_for_pair_either_direction(client):
    for sender, receiver, text in [
        ("a@x", "b@x", "one"),
        ("b@x", "a@x", "two"),
        ("a@x", "c@x", "not ours"),
    ]:
        r = await client.post(
            "/api/v1/send-message",
            json={"senderIdentity": sender, "receiverIdentity": receiver, "text": text},
        )
        assert r.status_code == 200

    r = await client.get("/api/v1/messages", params={"userA": "b@x", "userB": "a@x"})
    assert r.status_code == 200
    texts = {m["text"] for m in r.json()}
    assert texts == {"one", "two"}
    assert all(m["roomId"] == "a@x_b@x" for m in r.json())


@pytest.mark.asyncio
async def test_history_limit(client):
    for n in range(3):
        await client.post(
            "/api/v1/send-message",
            json={"senderIdentity": "a@x", "receiverIdentity": "b@x", "text": f"m{n}"},
        )
    r = await client.get(
        "/api/v1/messages", params={"userA": "a@x", "userB": "b@x", "limit": 2}
    )
    assert len(r.json()) == 2


@pytest.mark.asyncio
async def test_history_requires_both_users(client):
    r = await client.get("/api/v1/messages", params={"userA": "a@x"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_send_message_overlong_identity_is_rejected(client, persistence):
    r = await client.post(
        "/api/v1/send-message",
        json={"senderIdentity": "a" * 321, "receiverIdentity": "b@x", "text": "hi"},
    )
    assert r.status_code == 422
    assert persistence.messages == []

    r = await client.post(
        "/api/v1/send-message",
        json={"senderIdentity": "a" * 320, "receiverIdentity": "b@x", "text": "hi"},
    )
    assert r.status_code == 200
    assert len(persistence.messages) == 1

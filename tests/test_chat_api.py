from __future__ import annotations

from conftest import auth_headers

from ustadgee.models import ChatThread


def _start(client, sender_id: int, recipient_id: int, message: str, key: str = "recipientId"):
    return client.post(
        "/api/startChat",
        json={key: recipient_id, "message": message},
        headers=auth_headers(sender_id),
    )


def test_start_chat_creates_thread_and_history(client, seed) -> None:
    res = _start(client, seed.requester_id, seed.provider_id, "Salam, are you free today?")
    assert res.status_code == 201
    chat_id = res.json()["data"]["chat_id"]

    res = _start(client, seed.provider_id, seed.requester_id, "Yes, after 5pm", key="recipient_id")
    assert res.json()["data"]["chat_id"] == chat_id

    res = client.get("/api/chats", headers=auth_headers(seed.requester_id))
    [thread] = res.json()["data"]
    assert thread["lastMsg"] == "Yes, after 5pm"
    assert thread["otherUser"]["id"] == seed.provider_id

    res = client.get(
        f"/api/chats?partnerId={seed.provider_id}", headers=auth_headers(seed.requester_id)
    )
    history = res.json()["data"]
    assert [m["message"] for m in history] == ["Salam, are you free today?", "Yes, after 5pm"]
    assert history[0]["senderId"] == seed.requester_id


def test_start_chat_validation(client, seed) -> None:
    assert _start(client, seed.requester_id, seed.requester_id, "me").status_code == 400
    assert _start(client, seed.requester_id, 9999, "hello").status_code == 404
    assert _start(client, seed.requester_id, seed.provider_id, "   ").status_code == 422


def test_update_chat_only_by_participant(client, seed) -> None:
    chat_id = _start(client, seed.requester_id, seed.provider_id, "hi").json()["data"]["chat_id"]

    res = client.put(
        "/api/chat",
        json={"chat_id": chat_id, "message": "voice.m4a", "type": "audio"},
        headers=auth_headers(seed.outsider_id),
    )
    assert res.status_code == 403

    res = client.put(
        "/api/chat",
        json={"chat_id": chat_id, "message": "voice.m4a", "type": "audio"},
        headers=auth_headers(seed.provider_id),
    )
    assert res.status_code == 200
    [thread] = client.get("/api/chats", headers=auth_headers(seed.requester_id)).json()["data"]
    assert thread["type"] == "audio"


def test_delete_is_soft_until_both_delete(client, db, seed) -> None:
    chat_id = _start(client, seed.requester_id, seed.provider_id, "hi").json()["data"]["chat_id"]

    assert client.delete(f"/api/chat/{chat_id}", headers=auth_headers(seed.requester_id)).status_code == 200
    assert client.get("/api/chats", headers=auth_headers(seed.requester_id)).json()["data"] == []
    assert len(client.get("/api/chats", headers=auth_headers(seed.provider_id)).json()["data"]) == 1

    assert client.delete(f"/api/chat/{chat_id}", headers=auth_headers(seed.provider_id)).status_code == 200
    db.expire_all()
    assert db.get(ChatThread, chat_id) is None


def test_new_message_revives_deleted_thread(client, seed) -> None:
    chat_id = _start(client, seed.requester_id, seed.provider_id, "hi").json()["data"]["chat_id"]
    client.delete(f"/api/chat/{chat_id}", headers=auth_headers(seed.requester_id))

    _start(client, seed.provider_id, seed.requester_id, "Are you still there?")

    [thread] = client.get("/api/chats", headers=auth_headers(seed.requester_id)).json()["data"]
    assert thread["id"] == chat_id
    assert thread["lastMsg"] == "Are you still there?"


def test_delete_unknown_chat(client, seed) -> None:
    res = client.delete("/api/chat/9999", headers=auth_headers(seed.requester_id))
    assert res.status_code == 404

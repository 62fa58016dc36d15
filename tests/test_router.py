from __future__ import annotations

import json

import pytest


async def _bind(hub, conn, user_id: int) -> None:
    await hub.router.on_frame(conn, json.dumps({"type": "auth", "userId": user_id}))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    ["not json", "[1, 2, 3]", '"auth"', "{}", '{"type": "auth"}', '{"type": "auth", "userId": "x"}'],
)
async def test_malformed_frames_are_dropped(hub, make_connection, raw) -> None:
    conn = make_connection()
    await hub.router.on_frame(conn, raw)
    assert conn.transport.sent == []
    assert conn.is_open
    assert not conn.is_bound


@pytest.mark.asyncio
async def test_unknown_frame_type_is_ignored(hub, make_connection) -> None:
    conn = make_connection()
    await _bind(hub, conn, 1)
    await hub.router.on_frame(conn, json.dumps({"type": "typing", "recipientId": 2}))
    assert len(conn.transport.sent) == 1
    assert conn.is_open


@pytest.mark.asyncio
async def test_chat_before_auth_is_dropped(hub, make_connection) -> None:
    sender, recipient = make_connection(), make_connection()
    await _bind(hub, recipient, 2)

    await hub.router.on_frame(
        sender, json.dumps({"type": "chat", "recipientId": 2, "message": "hi"})
    )

    assert recipient.transport.of_type("chat") == []
    assert sender.is_open


@pytest.mark.asyncio
async def test_binary_utf8_frame_is_accepted(hub, make_connection) -> None:
    conn = make_connection()
    await hub.router.on_frame(conn, json.dumps({"type": "auth", "userId": 8}).encode("utf-8"))
    assert hub.registry.is_online(8)


@pytest.mark.asyncio
async def test_auth_then_chat_reaches_every_recipient_tab(hub, make_connection) -> None:
    a = make_connection()
    b1, b2 = make_connection(), make_connection()
    await _bind(hub, a, 1)
    await _bind(hub, b1, 2)
    await _bind(hub, b2, 2)

    await hub.router.on_frame(
        a, json.dumps({"type": "chat", "senderId": 1, "recipientId": 2, "message": "hello"})
    )

    assert a.transport.sent == [{"type": "auth_success", "message": "Authentication successful"}]
    for conn in (b1, b2):
        [frame] = conn.transport.of_type("chat")
        assert frame["senderId"] == 1
        assert frame["message"] == "hello"
        assert frame["timestamp"]


@pytest.mark.asyncio
async def test_chat_to_offline_user_is_silently_dropped(hub, make_connection, fake_store) -> None:
    a = make_connection()
    await _bind(hub, a, 10)

    await hub.router.on_frame(
        a, json.dumps({"type": "chat", "senderId": 10, "recipientId": 20, "message": "hi"})
    )

    assert len(a.transport.sent) == 1
    assert a.is_open
    assert fake_store.chats == []
    assert await hub.router.relay_chat(10, 20, "anyone there?") == 0


@pytest.mark.asyncio
async def test_chat_with_spoofed_sender_is_rejected(hub, make_connection) -> None:
    a, b = make_connection(), make_connection()
    await _bind(hub, a, 1)
    await _bind(hub, b, 2)

    await hub.router.on_frame(
        a, json.dumps({"type": "chat", "senderId": 3, "recipientId": 2, "message": "hi"})
    )

    assert b.transport.of_type("chat") == []
    assert a.is_open


@pytest.mark.asyncio
async def test_chat_relay_survives_one_dead_tab(hub, make_connection) -> None:
    a = make_connection()
    live, dead = make_connection(), make_connection()
    await _bind(hub, a, 1)
    await _bind(hub, live, 2)
    await _bind(hub, dead, 2)
    dead.transport.fail = True

    sent = await hub.router.relay_chat(1, 2, "still there?")

    assert sent == 1
    assert len(live.transport.of_type("chat")) == 1
    assert hub.registry.connections_for(2) == frozenset({live})


@pytest.mark.asyncio
async def test_notification_permission_is_acknowledged_and_persisted(
    hub, make_connection, fake_store
) -> None:
    conn = make_connection()
    await _bind(hub, conn, 4)

    await hub.router.on_frame(
        conn, json.dumps({"type": "notification_permission", "status": "granted"})
    )

    assert conn.transport.of_type("notification_permission_update") == [
        {"type": "notification_permission_update", "status": "success"}
    ]
    assert conn.notification_permission == "granted"
    assert fake_store.permissions == {4: "granted"}


@pytest.mark.asyncio
async def test_notification_permission_ack_survives_store_failure(
    hub, make_connection, fake_store
) -> None:
    fake_store.fail_permissions = True
    conn = make_connection()
    await _bind(hub, conn, 4)

    await hub.router.on_frame(
        conn, json.dumps({"type": "notification_permission", "permission": "denied"})
    )

    assert len(conn.transport.of_type("notification_permission_update")) == 1
    assert conn.notification_permission == "denied"


@pytest.mark.asyncio
async def test_custom_handler_can_be_registered(hub, make_connection) -> None:
    seen = []

    async def on_typing(connection, data):
        seen.append((connection.user_id, data["recipientId"]))

    hub.router.register_handler("typing", on_typing)
    conn = make_connection()
    await _bind(hub, conn, 1)
    await hub.router.on_frame(conn, json.dumps({"type": "typing", "recipientId": 2}))
    assert seen == [(1, 2)]


@pytest.mark.asyncio
async def test_deeply_nested_frame_is_dropped(hub, make_connection) -> None:
    conn = make_connection()
    await hub.router.on_frame(conn, "[" * 200000)
    assert conn.is_open

    await _bind(hub, conn, 6)
    assert hub.registry.is_online(6)


@pytest.mark.asyncio
async def test_failing_handler_does_not_escape(hub, make_connection) -> None:
    async def broken(connection, data):
        raise OverflowError("Python int too large to convert to SQLite INTEGER")

    hub.router.register_handler("typing", broken)
    conn = make_connection()
    await _bind(hub, conn, 1)

    await hub.router.on_frame(conn, json.dumps({"type": "typing", "recipientId": 2}))

    assert conn.is_open
    assert hub.registry.is_online(1)

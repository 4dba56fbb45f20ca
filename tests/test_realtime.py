import pytest
from starlette.websockets import WebSocketDisconnect

from app.realtime.events import AUTH_FAILED_CLOSE_CODE


def _connect(client, account=None):
    url = f"/ws?token={account.token}" if account else "/ws"
    return client.websocket_connect(url)


def _join(ws, group_id):
    ws.send_json({"event": "join_group", "data": {"groupId": group_id}})
    return ws.receive_json()


def test_handshake_announces_identity(client, alice):
    with _connect(client, alice) as ws:
        frame = ws.receive_json()

    assert frame == {"event": "authenticated", "data": {"userId": alice.user_id, "displayName": "Alice"}}


def test_invalid_token_gets_auth_error_and_close(client):
    with client.websocket_connect("/ws?token=not-a-token") as ws:
        frame = ws.receive_json()
        with pytest.raises(WebSocketDisconnect) as exc_info:
            ws.receive_json()

    assert frame["event"] == "auth_error"
    assert exc_info.value.code == AUTH_FAILED_CLOSE_CODE


def test_unauthenticated_connection_cannot_join(client, group):
    with _connect(client) as ws:
        ws.send_json({"event": "join_group", "data": {"groupId": group["groupId"]}})
        frame = ws.receive_json()

    assert frame == {"event": "error", "data": {"message": "Authentication required."}}


def test_non_member_cannot_join_room(client, group, register):
    outsider = register("eve@example.com", "Eve")

    with _connect(client, outsider) as ws:
        ws.receive_json()
        frame = _join(ws, group["groupId"])

    assert frame["event"] == "error"
    assert frame["data"]["message"] == "You are not a member of this group."


def test_malformed_frames_keep_connection_open(client, alice):
    with _connect(client, alice) as ws:
        ws.receive_json()
        ws.send_text("{not json")
        malformed = ws.receive_json()
        ws.send_json({"event": "dance", "data": {}})
        unknown = ws.receive_json()
        ws.send_json({"event": "join_group", "data": {"groupId": "  "}})
        blank = ws.receive_json()

    assert malformed["event"] == "error"
    assert unknown["data"]["message"] == "Unknown event: dance"
    assert blank["data"]["message"] == "groupId is required."


def test_typing_requires_joined_room(client, group, alice):
    with _connect(client, alice) as ws:
        ws.receive_json()
        ws.send_json({"event": "typing", "data": {"groupId": group["groupId"]}})
        frame = ws.receive_json()

    assert frame["event"] == "error"


def test_collaboration_session(client, group, alice, bob):
    gid = group["groupId"]

    with _connect(client, alice) as ws_alice:
        assert ws_alice.receive_json()["event"] == "authenticated"
        online = _join(ws_alice, gid)
        assert online["event"] == "online_users"
        assert [u["userId"] for u in online["data"]["users"]] == [alice.user_id]

        with _connect(client, bob) as ws_bob:
            assert ws_bob.receive_json()["event"] == "authenticated"
            online = _join(ws_bob, gid)
            assert sorted(u["userId"] for u in online["data"]["users"]) == sorted([alice.user_id, bob.user_id])

            joined = ws_alice.receive_json()
            assert joined == {"event": "user_joined", "data": {"userId": bob.user_id, "displayName": "Bob"}}

            # Typing goes to everyone but the typist
            ws_alice.send_json({"event": "typing", "data": {"groupId": gid}})
            typing = ws_bob.receive_json()
            assert typing["event"] == "typing"
            assert typing["data"] == {"userId": alice.user_id, "groupId": gid, "displayName": "Alice"}

            ws_alice.send_json({"event": "stop_typing", "data": {"groupId": gid}})
            stopped = ws_bob.receive_json()
            assert stopped == {"event": "stop_typing", "data": {"userId": alice.user_id, "groupId": gid}}

            ws_alice.send_json({"event": "send_message", "data": {"groupId": gid, "text": " hi bob "}})
            to_alice = ws_alice.receive_json()
            to_bob = ws_bob.receive_json()
            assert to_alice["event"] == "new_message"
            assert to_alice == to_bob
            assert to_bob["data"]["text"] == "hi bob"
            assert to_bob["data"]["senderId"] == alice.user_id

            # Messages sent over the socket are persisted like REST ones
            history = client.get(f"/chat/{gid}/messages", headers=bob.headers).json()
            assert [m["messageId"] for m in history] == [to_bob["data"]["messageId"]]

            saved = client.put(f"/notes/{gid}", json={"content": "<p>plan</p>"}, headers=bob.headers)
            assert saved.status_code == 200
            for ws in (ws_alice, ws_bob):
                note_event = ws.receive_json()
                assert note_event["event"] == "note_updated"
                assert note_event["data"]["lastEditedBy"] == {"userId": bob.user_id, "displayName": "Bob"}
                assert "content" not in note_event["data"]

            deleted = client.delete(f"/chat/{gid}/messages/{to_bob['data']['messageId']}", headers=alice.headers)
            assert deleted.status_code == 204
            for ws in (ws_alice, ws_bob):
                assert ws.receive_json() == {
                    "event": "message_deleted",
                    "data": {"messageId": to_bob["data"]["messageId"], "groupId": gid},
                }

        left = ws_alice.receive_json()
        assert left == {"event": "user_left", "data": {"userId": bob.user_id, "displayName": "Bob"}}


def test_rest_message_is_broadcast_to_room(client, group, alice, bob):
    gid = group["groupId"]

    with _connect(client, bob) as ws_bob:
        ws_bob.receive_json()
        _join(ws_bob, gid)

        posted = client.post(f"/chat/{gid}/messages", json={"text": "from rest"}, headers=alice.headers)
        frame = ws_bob.receive_json()

    assert frame["event"] == "new_message"
    assert frame["data"]["messageId"] == posted.json()["messageId"]


def test_leave_group_announces_once(client, group, alice, bob):
    gid = group["groupId"]

    with _connect(client, alice) as ws_alice, _connect(client, bob) as ws_bob:
        ws_alice.receive_json()
        ws_bob.receive_json()
        _join(ws_alice, gid)
        _join(ws_bob, gid)
        ws_alice.receive_json()  # user_joined for Bob

        ws_bob.send_json({"event": "leave_group", "data": {"groupId": gid}})
        left = ws_alice.receive_json()
        assert left["event"] == "user_left"

        # Bob is out of the room: his typing is refused and Alice hears nothing of it
        ws_bob.send_json({"event": "typing", "data": {"groupId": gid}})
        assert ws_bob.receive_json()["event"] == "error"

        ws_alice.send_json({"event": "send_message", "data": {"groupId": gid, "text": "still here"}})
        assert ws_alice.receive_json()["event"] == "new_message"

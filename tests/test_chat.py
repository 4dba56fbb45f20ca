from app.modules.chat.service import MESSAGES_TABLE


def _post(client, account, group_id, text):
    response = client.post(f"/chat/{group_id}/messages", json={"text": text}, headers=account.headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_post_message_snapshots_sender(client, group, alice):
    message = _post(client, alice, group["groupId"], "  hello  ")

    assert message["text"] == "hello"
    assert message["senderId"] == alice.user_id
    assert message["senderName"] == "Alice"
    assert message["senderEmail"] == "alice@example.com"
    assert message["groupId"] == group["groupId"]


def test_message_text_bounds(client, group, alice):
    gid = group["groupId"]

    empty = client.post(f"/chat/{gid}/messages", json={"text": "   "}, headers=alice.headers)
    too_long = client.post(f"/chat/{gid}/messages", json={"text": "x" * 2001}, headers=alice.headers)
    at_limit = client.post(f"/chat/{gid}/messages", json={"text": "x" * 2000}, headers=alice.headers)

    assert empty.status_code == 400
    assert too_long.status_code == 400
    assert at_limit.status_code == 201


def test_history_is_oldest_first_and_paged(client, group, alice, bob):
    gid = group["groupId"]
    sent = [_post(client, alice if i % 2 else bob, gid, f"message {i}") for i in range(5)]

    latest = client.get(f"/chat/{gid}/messages", params={"limit": 3}, headers=alice.headers)
    assert latest.status_code == 200
    assert [m["text"] for m in latest.json()] == ["message 2", "message 3", "message 4"]

    older = client.get(
        f"/chat/{gid}/messages",
        params={"limit": 3, "before": latest.json()[0]["createdAt"]},
        headers=alice.headers,
    )
    assert [m["messageId"] for m in older.json()] == [sent[0]["messageId"], sent[1]["messageId"]]


def test_history_limit_is_bounded(client, group, alice):
    response = client.get(f"/chat/{group['groupId']}/messages", params={"limit": 101}, headers=alice.headers)

    assert response.status_code == 400


def test_non_member_cannot_read_or_post(client, group, register):
    outsider = register("eve@example.com", "Eve")
    gid = group["groupId"]

    read = client.get(f"/chat/{gid}/messages", headers=outsider.headers)
    post = client.post(f"/chat/{gid}/messages", json={"text": "hi"}, headers=outsider.headers)

    assert read.status_code == 403
    assert post.status_code == 403


def test_only_sender_can_delete(client, group, alice, bob, store):
    gid = group["groupId"]
    message = _post(client, alice, gid, "mine")

    by_bob = client.delete(f"/chat/{gid}/messages/{message['messageId']}", headers=bob.headers)
    by_alice = client.delete(f"/chat/{gid}/messages/{message['messageId']}", headers=alice.headers)

    assert by_bob.status_code == 403
    assert by_alice.status_code == 204
    assert store.rows(MESSAGES_TABLE) == []


def test_delete_missing_message(client, group, alice):
    response = client.delete(f"/chat/{group['groupId']}/messages/nope", headers=alice.headers)

    assert response.status_code == 404


def test_delete_rejects_message_from_another_group(client, group, alice, store):
    other = client.post("/groups", json={"name": "Other"}, headers=alice.headers).json()
    message = _post(client, alice, other["groupId"], "elsewhere")

    response = client.delete(f"/chat/{group['groupId']}/messages/{message['messageId']}", headers=alice.headers)

    assert response.status_code == 400
    assert len(store.rows(MESSAGES_TABLE)) == 1

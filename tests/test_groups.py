from app.modules.groups.service import GROUPS_TABLE, generate_invite_code, invite_codes_match
from app.modules.users.service import USERS_TABLE


def _create_group(client, account, name="Study Group", description=""):
    response = client.post("/groups", json={"name": name, "description": description}, headers=account.headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_invite_codes_are_uppercase_and_compared_case_insensitively():
    code = generate_invite_code()

    assert len(code) == 8
    assert code == code.upper()
    assert invite_codes_match(code, code.lower())
    assert invite_codes_match(code, f"  {code}  ")
    assert not invite_codes_match(code, "ZZZZZZZZ")


def test_create_group_makes_creator_admin(client, alice, store):
    group = _create_group(client, alice, name="  Physics  ", description=" Midterm prep ")

    assert group["name"] == "Physics"
    assert group["description"] == "Midterm prep"
    assert group["createdBy"] == alice.user_id
    assert [(m["userId"], m["role"]) for m in group["members"]] == [(alice.user_id, "admin")]
    assert store.rows(USERS_TABLE)[0]["group_ids"] == [group["groupId"]]


def test_create_group_validates_name(client, alice):
    blank = client.post("/groups", json={"name": "   "}, headers=alice.headers)
    too_long = client.post("/groups", json={"name": "x" * 81}, headers=alice.headers)

    assert blank.status_code == 400
    assert too_long.status_code == 400


def test_description_length_is_checked_after_trimming(client, alice):
    padded = client.post(
        "/groups", json={"name": "Padded", "description": "  " + "d" * 500 + "  "}, headers=alice.headers
    )
    too_long = client.post("/groups", json={"name": "Long", "description": "d" * 501}, headers=alice.headers)

    assert padded.status_code == 201
    assert padded.json()["description"] == "d" * 500
    assert too_long.status_code == 400
    assert too_long.json()["errors"][0]["field"] == "description"


def test_list_groups_only_returns_own_groups(client, alice, bob):
    mine = _create_group(client, alice, name="Mine")
    _create_group(client, bob, name="Theirs")

    response = client.get("/groups", headers=alice.headers)

    assert response.status_code == 200
    assert [g["groupId"] for g in response.json()] == [mine["groupId"]]


def test_join_with_lowercase_invite_code(client, alice, bob):
    group = _create_group(client, alice)

    response = client.post(
        f"/groups/{group['groupId']}/join",
        json={"inviteCode": group["inviteCode"].lower()},
        headers=bob.headers,
    )

    assert response.status_code == 200
    members = {m["userId"]: m["role"] for m in response.json()["members"]}
    assert members == {alice.user_id: "admin", bob.user_id: "member"}


def test_join_with_wrong_code_is_rejected(client, alice, bob):
    group = _create_group(client, alice)

    response = client.post(f"/groups/{group['groupId']}/join", json={"inviteCode": "WRONG123"}, headers=bob.headers)

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "inviteCode"


def test_join_twice_conflicts(client, group, bob):
    response = client.post(
        f"/groups/{group['groupId']}/join",
        json={"inviteCode": group["inviteCode"]},
        headers=bob.headers,
    )

    assert response.status_code == 409


def test_join_unknown_group_is_not_found(client, bob):
    response = client.post("/groups/missing/join", json={"inviteCode": "ABCDEFGH"}, headers=bob.headers)

    assert response.status_code == 404


def test_non_member_cannot_read_group_or_members(client, group, register):
    outsider = register("eve@example.com", "Eve")

    detail = client.get(f"/groups/{group['groupId']}", headers=outsider.headers)
    members = client.get(f"/groups/{group['groupId']}/members", headers=outsider.headers)

    assert detail.status_code == 403
    assert members.status_code == 403
    assert "inviteCode" not in detail.json()


def test_members_listing(client, group, bob):
    response = client.get(f"/groups/{group['groupId']}/members", headers=bob.headers)

    assert response.status_code == 200
    assert [m["displayName"] for m in response.json()] == ["Alice", "Bob"]


def test_admin_leaving_promotes_first_remaining_member(client, group, alice, bob, store):
    response = client.post(f"/groups/{group['groupId']}/leave", headers=alice.headers)

    assert response.status_code == 200
    stored = store.rows(GROUPS_TABLE)[0]
    assert [(m["user_id"], m["role"]) for m in stored["members"]] == [(bob.user_id, "admin")]
    assert client.get("/groups", headers=alice.headers).json() == []


def test_last_member_leaving_deletes_group(client, alice, store):
    group = _create_group(client, alice)

    response = client.post(f"/groups/{group['groupId']}/leave", headers=alice.headers)

    assert response.status_code == 200
    assert "deleted" in response.json()["message"]
    assert store.rows(GROUPS_TABLE) == []
    assert client.get(f"/groups/{group['groupId']}", headers=alice.headers).status_code == 404


def test_leave_by_non_member_is_forbidden(client, alice, bob):
    group = _create_group(client, alice)

    response = client.post(f"/groups/{group['groupId']}/leave", headers=bob.headers)

    assert response.status_code == 403

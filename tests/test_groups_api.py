async def create_group(client, headers, name="Trip"):
    resp = await client.post("/api/v1/groups/", json={"name": name}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()


async def test_create_group_makes_creator_owner_and_member(client, api_users):
    alice_id, alice = api_users["alice"]

    group = await create_group(client, alice)
    assert group["created_by"] == alice_id

    detail = await client.get(f"/api/v1/groups/{group['id']}", headers=alice)
    assert detail.status_code == 200
    assert detail.json()["members"] == [alice_id]

    mine = await client.get("/api/v1/groups/my-groups", headers=alice)
    assert [g["id"] for g in mine.json()] == [group["id"]]


async def test_blank_group_name_rejected(client, api_users):
    _, alice = api_users["alice"]

    resp = await client.post("/api/v1/groups/", json={"name": "   "}, headers=alice)
    assert resp.status_code == 400


async def test_invite_accept_flow(client, api_users):
    alice_id, alice = api_users["alice"]
    bob_id, bob = api_users["bob"]
    group = await create_group(client, alice)

    resp = await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "bob@example.com"}, headers=alice)
    assert resp.status_code == 200, resp.text
    invitation = resp.json()
    assert invitation["status"] == "pending"
    assert invitation["invitee_id"] == bob_id
    assert invitation["inviter_name"] == "Alice"

    pending = await client.get("/api/v1/groups/invitations", headers=bob)
    assert [i["id"] for i in pending.json()] == [invitation["id"]]
    assert pending.json()[0]["group_name"] == "Trip"

    resp = await client.post(
        f"/api/v1/groups/invitations/{invitation['id']}/respond", json={"status": "accepted"}, headers=bob
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "accepted"

    detail = await client.get(f"/api/v1/groups/{group['id']}", headers=bob)
    assert detail.json()["members"] == [alice_id, bob_id]

    assert (await client.get("/api/v1/groups/invitations", headers=bob)).json() == []

    again = await client.post(
        f"/api/v1/groups/invitations/{invitation['id']}/respond", json={"status": "declined"}, headers=bob
    )
    assert again.status_code == 400


async def test_duplicate_pending_invitation_rejected(client, api_users):
    _, alice = api_users["alice"]
    _, bob = api_users["bob"]
    group = await create_group(client, alice)

    first = await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "bob@example.com"}, headers=alice)
    assert first.status_code == 200

    second = await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "bob@example.com"}, headers=alice)
    assert second.status_code == 400
    assert second.json()["detail"] == "User has already been invited to this group"

    pending = await client.get("/api/v1/groups/invitations", headers=bob)
    assert len(pending.json()) == 1


async def test_invite_errors(client, api_users):
    _, alice = api_users["alice"]
    _, bob = api_users["bob"]
    group = await create_group(client, alice)

    unknown = await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "nobody@example.com"}, headers=alice)
    assert unknown.status_code == 404
    assert unknown.json()["detail"] == "User not found"

    member = await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "alice@example.com"}, headers=alice)
    assert member.status_code == 400
    assert member.json()["detail"] == "User is already a member of this group"

    outsider = await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "carol@example.com"}, headers=bob)
    assert outsider.status_code == 403

    missing = await client.post("/api/v1/groups/999/invite", json={"email": "bob@example.com"}, headers=alice)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Group not found"


async def test_only_invitee_can_respond(client, api_users):
    _, alice = api_users["alice"]
    _, carol = api_users["carol"]
    group = await create_group(client, alice)
    invitation = (
        await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "bob@example.com"}, headers=alice)
    ).json()

    resp = await client.post(
        f"/api/v1/groups/invitations/{invitation['id']}/respond", json={"status": "accepted"}, headers=carol
    )
    assert resp.status_code == 403

    missing = await client.post("/api/v1/groups/invitations/999/respond", json={"status": "accepted"}, headers=carol)
    assert missing.status_code == 404


async def test_declined_invitation_can_be_resent(client, api_users):
    _, alice = api_users["alice"]
    _, bob = api_users["bob"]
    group = await create_group(client, alice)

    invitation = (
        await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "bob@example.com"}, headers=alice)
    ).json()
    await client.post(f"/api/v1/groups/invitations/{invitation['id']}/respond", json={"status": "declined"}, headers=bob)

    detail = await client.get(f"/api/v1/groups/{group['id']}", headers=bob)
    assert detail.status_code == 403

    resent = await client.post(f"/api/v1/groups/{group['id']}/invite", json={"email": "bob@example.com"}, headers=alice)
    assert resent.status_code == 200


async def join(client, group_id, owner_headers, email, invitee_headers):
    invitation = (
        await client.post(f"/api/v1/groups/{group_id}/invite", json={"email": email}, headers=owner_headers)
    ).json()
    resp = await client.post(
        f"/api/v1/groups/invitations/{invitation['id']}/respond", json={"status": "accepted"}, headers=invitee_headers
    )
    assert resp.status_code == 200


async def test_remove_member_rules(client, api_users):
    alice_id, alice = api_users["alice"]
    bob_id, bob = api_users["bob"]
    carol_id, _ = api_users["carol"]
    group = await create_group(client, alice)
    await join(client, group["id"], alice, "bob@example.com", bob)

    not_owner = await client.delete(f"/api/v1/groups/{group['id']}/remove/{alice_id}", headers=bob)
    assert not_owner.status_code == 403
    assert not_owner.json()["detail"] == "Only the group owner can remove members"

    owner = await client.delete(f"/api/v1/groups/{group['id']}/remove/{alice_id}", headers=alice)
    assert owner.status_code == 400
    assert owner.json()["detail"] == "Cannot remove the group owner"

    not_member = await client.delete(f"/api/v1/groups/{group['id']}/remove/{carol_id}", headers=alice)
    assert not_member.status_code == 404

    removed = await client.delete(f"/api/v1/groups/{group['id']}/remove/{bob_id}", headers=alice)
    assert removed.status_code == 200

    members = await client.get(f"/api/v1/groups/{group['id']}/group-members", headers=alice)
    assert [m["id"] for m in members.json()] == [alice_id]

    # membership is read live, so bob can no longer log group expenses
    resp = await client.post(
        "/api/v1/expense/",
        json={"description": "Fuel", "amount": 20, "participants": [bob_id], "group_id": group["id"]},
        headers=bob,
    )
    assert resp.status_code == 403


async def test_group_summaries(client, api_users):
    alice_id, alice = api_users["alice"]
    bob_id, bob = api_users["bob"]
    trip = await create_group(client, alice, "Trip")
    flat = await create_group(client, alice, "Flat")
    await join(client, trip["id"], alice, "bob@example.com", bob)

    for amount in (30, 12.5):
        resp = await client.post(
            "/api/v1/expense/",
            json={"description": "Fuel", "amount": amount, "participants": [alice_id, bob_id], "group_id": trip["id"]},
            headers=alice,
        )
        assert resp.status_code == 200, resp.text

    summaries = {s["id"]: s for s in (await client.get("/api/v1/groups/summaries", headers=alice)).json()}

    assert summaries[trip["id"]]["total_amount"] == 42.5
    assert summaries[trip["id"]]["recent_expense_count"] == 2
    assert summaries[flat["id"]]["total_amount"] == 0.0
    assert summaries[flat["id"]]["recent_expense_count"] == 0

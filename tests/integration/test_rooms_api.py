"""Room API end to end: lifecycle, access rules, leaderboard and response shape."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from tests.conftest import add_session, auth_headers

pytestmark = pytest.mark.asyncio


async def _create_room(client: AsyncClient, owner, name: str = "Deep Work", **extra) -> dict:
    response = await client.post(
        "/api/v1/rooms", json={"name": name, **extra}, headers=auth_headers(owner.id)
    )
    assert response.status_code == 201, response.text
    return response.json()["room"]


class TestCreateRoomAPI:

    async def test_create_returns_room(self, client: AsyncClient, alice):
        room = await _create_room(client, alice, "Deep Work", description="Phones away")
        assert room["name"] == "Deep Work"
        assert room["description"] == "Phones away"
        assert room["createdBy"] == str(alice.id)
        assert "createdAt" in room

    async def test_creator_sees_owner_role(self, client: AsyncClient, alice):
        room = await _create_room(client, alice)
        response = await client.get(f"/api/v1/rooms/{room['id']}", headers=auth_headers(alice.id))
        assert response.status_code == 200
        details = response.json()["room"]
        assert details["role"] == "owner"
        assert details["memberCount"] == 1
        assert details["members"][0]["userId"] == str(alice.id)
        assert details["members"][0]["profile"]["displayName"] == "Alice"
        assert set(details["stats"]) == {"totalHours", "totalSessions", "activeToday", "avgHoursPerMember"}

    @pytest.mark.parametrize(
        "body",
        [
            {"name": ""},
            {"name": "x" * 101},
            {"name": "ok", "description": "d" * 501},
            {},
        ],
    )
    async def test_invalid_body_rejected(self, client: AsyncClient, alice, body):
        response = await client.post("/api/v1/rooms", json=body, headers=auth_headers(alice.id))
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    async def test_requires_auth(self, client: AsyncClient, alice):
        response = await client.post("/api/v1/rooms", json={"name": "Nope"})
        assert response.status_code in (401, 403)

    async def test_unknown_profile_unauthorised(self, client: AsyncClient, alice):
        response = await client.post(
            "/api/v1/rooms", json={"name": "Nope"}, headers=auth_headers(uuid.uuid4())
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "User not found"

    async def test_bad_token_unauthorised(self, client: AsyncClient, alice):
        response = await client.get("/api/v1/rooms", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401


class TestMembershipAPI:

    async def test_join_and_list(self, client: AsyncClient, alice, bob):
        room = await _create_room(client, alice)

        response = await client.post(f"/api/v1/rooms/{room['id']}/join", headers=auth_headers(bob.id))
        assert response.status_code == 200
        assert response.json() == {"message": "Successfully joined room"}

        members = await client.get(f"/api/v1/rooms/{room['id']}/members", headers=auth_headers(bob.id))
        assert members.status_code == 200
        data = members.json()["members"]
        assert [m["userId"] for m in data] == [str(alice.id), str(bob.id)]
        assert [m["role"] for m in data] == ["owner", "member"]

        rooms = await client.get("/api/v1/rooms", headers=auth_headers(bob.id))
        assert rooms.status_code == 200
        listed = rooms.json()["rooms"]
        assert len(listed) == 1
        assert listed[0]["role"] == "member"
        assert listed[0]["memberCount"] == 2

    async def test_join_twice(self, client: AsyncClient, alice, bob):
        room = await _create_room(client, alice)
        await client.post(f"/api/v1/rooms/{room['id']}/join", headers=auth_headers(bob.id))
        response = await client.post(f"/api/v1/rooms/{room['id']}/join", headers=auth_headers(bob.id))
        assert response.status_code == 400
        assert response.json()["detail"] == "User is already a member of this room"

    async def test_join_missing_room(self, client: AsyncClient, bob):
        response = await client.post(f"/api/v1/rooms/{uuid.uuid4()}/join", headers=auth_headers(bob.id))
        assert response.status_code == 404
        assert response.json()["detail"] == "Room not found"

    async def test_member_leaves(self, client: AsyncClient, alice, bob):
        room = await _create_room(client, alice)
        await client.post(f"/api/v1/rooms/{room['id']}/join", headers=auth_headers(bob.id))

        response = await client.delete(f"/api/v1/rooms/{room['id']}/leave", headers=auth_headers(bob.id))
        assert response.status_code == 200
        assert response.json() == {"message": "Successfully left room"}

        details = await client.get(f"/api/v1/rooms/{room['id']}", headers=auth_headers(bob.id))
        assert details.status_code == 403

    async def test_owner_cannot_leave_with_members(self, client: AsyncClient, alice, bob):
        room = await _create_room(client, alice)
        await client.post(f"/api/v1/rooms/{room['id']}/join", headers=auth_headers(bob.id))

        response = await client.delete(f"/api/v1/rooms/{room['id']}/leave", headers=auth_headers(alice.id))
        assert response.status_code == 400
        assert response.json()["detail"] == "Room owner cannot leave while other members exist"

    async def test_sole_owner_leave_deletes_room(self, client: AsyncClient, alice):
        room = await _create_room(client, alice)

        response = await client.delete(f"/api/v1/rooms/{room['id']}/leave", headers=auth_headers(alice.id))
        assert response.status_code == 200

        preview = await client.get(f"/api/v1/rooms/{room['id']}/preview", headers=auth_headers(alice.id))
        assert preview.status_code == 404
        rooms = await client.get("/api/v1/rooms", headers=auth_headers(alice.id))
        assert rooms.json()["rooms"] == []

    async def test_non_member_cannot_leave(self, client: AsyncClient, alice, bob):
        room = await _create_room(client, alice)
        response = await client.delete(f"/api/v1/rooms/{room['id']}/leave", headers=auth_headers(bob.id))
        assert response.status_code == 403


class TestReadAccessAPI:

    async def test_preview_open_to_non_members(self, client: AsyncClient, alice, bob):
        room = await _create_room(client, alice, "Invite Me", description="All welcome")
        response = await client.get(f"/api/v1/rooms/{room['id']}/preview", headers=auth_headers(bob.id))
        assert response.status_code == 200
        preview = response.json()["room"]
        assert preview["name"] == "Invite Me"
        assert preview["description"] == "All welcome"
        assert preview["memberCount"] == 1

    async def test_details_forbidden_for_non_members(self, client: AsyncClient, alice, bob):
        room = await _create_room(client, alice)
        response = await client.get(f"/api/v1/rooms/{room['id']}", headers=auth_headers(bob.id))
        assert response.status_code == 403
        assert response.json()["detail"] == "User is not a member of this room"

    async def test_members_and_leaderboard_forbidden_for_non_members(self, client: AsyncClient, alice, bob):
        room = await _create_room(client, alice)
        for path in ("members", "leaderboard"):
            response = await client.get(f"/api/v1/rooms/{room['id']}/{path}", headers=auth_headers(bob.id))
            assert response.status_code == 403

    async def test_missing_room_is_404_not_403(self, client: AsyncClient, bob):
        for path in ("", "/members", "/leaderboard", "/preview"):
            response = await client.get(f"/api/v1/rooms/{uuid.uuid4()}{path}", headers=auth_headers(bob.id))
            assert response.status_code == 404

    async def test_malformed_room_id(self, client: AsyncClient, alice):
        response = await client.get("/api/v1/rooms/not-a-uuid", headers=auth_headers(alice.id))
        assert response.status_code == 422


class TestLeaderboardAPI:

    async def test_ranked_entries(self, client: AsyncClient, db_session, alice, bob):
        room = await _create_room(client, alice)
        await client.post(f"/api/v1/rooms/{room['id']}/join", headers=auth_headers(bob.id))

        room_id = uuid.UUID(room["id"])
        recent = datetime.now(timezone.utc) - timedelta(days=1)
        await add_session(db_session, alice.id, room_id, recent, 1200)
        await add_session(db_session, bob.id, room_id, recent + timedelta(minutes=30), 3000)

        response = await client.get(
            f"/api/v1/rooms/{room['id']}/leaderboard", headers=auth_headers(alice.id)
        )
        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "week"
        entries = data["entries"]
        assert [e["userId"] for e in entries] == [str(bob.id), str(alice.id)]
        assert [e["rank"] for e in entries] == [1, 2]
        assert entries[0]["totalSeconds"] == 3000
        assert entries[0]["streakDays"] == 0
        assert entries[0]["user"]["displayName"] == "Bob"
        assert "lastActiveAt" in entries[0]

    async def test_period_param(self, client: AsyncClient, db_session, alice):
        room = await _create_room(client, alice)
        old = datetime.now(timezone.utc) - timedelta(days=20)
        await add_session(db_session, alice.id, uuid.UUID(room["id"]), old, 600)

        week = await client.get(
            f"/api/v1/rooms/{room['id']}/leaderboard?period=week", headers=auth_headers(alice.id)
        )
        assert week.json()["entries"] == []

        month = await client.get(
            f"/api/v1/rooms/{room['id']}/leaderboard?period=month", headers=auth_headers(alice.id)
        )
        assert month.json()["period"] == "month"
        assert len(month.json()["entries"]) == 1

        all_time = await client.get(
            f"/api/v1/rooms/{room['id']}/leaderboard?period=all-time", headers=auth_headers(alice.id)
        )
        assert all_time.json()["period"] == "all-time"

    async def test_invalid_period_rejected(self, client: AsyncClient, alice):
        room = await _create_room(client, alice)
        response = await client.get(
            f"/api/v1/rooms/{room['id']}/leaderboard?period=year", headers=auth_headers(alice.id)
        )
        assert response.status_code == 422

    async def test_empty_leaderboard(self, client: AsyncClient, alice):
        room = await _create_room(client, alice)
        response = await client.get(
            f"/api/v1/rooms/{room['id']}/leaderboard?period=day", headers=auth_headers(alice.id)
        )
        assert response.status_code == 200
        assert response.json() == {"entries": [], "period": "day"}

from __future__ import annotations

import pytest

from interaction_service.repositories.decisions import DecisionRepository
from interaction_service.repositories.exceptions import StorageUnavailableRepositoryError


@pytest.mark.asyncio
async def test_requests_without_a_valid_token_are_rejected(api_client, seed_user) -> None:
    await seed_user("alice")

    missing = await api_client.post("/api/likes", json={"target_user_id": "bob"})
    assert missing.status_code == 401

    bogus = await api_client.get("/api/matches", headers={"Authorization": "Bearer not-a-jwt"})
    assert bogus.status_code == 401


@pytest.mark.asyncio
async def test_super_like_then_like_back_creates_match(api_client, seed_user, headers_for) -> None:
    await seed_user("alice", display_name="Alice")
    await seed_user("bob", display_name="Bob")

    sent = await api_client.post(
        "/api/likes",
        json={"target_user_id": "bob", "kind": "super_like"},
        headers=headers_for("alice"),
    )
    assert sent.status_code == 200, sent.text
    body = sent.json()
    assert body["status"] == "ok"
    assert body["is_super_like"] is True
    assert body["is_match"] is False
    assert body["super_likes_remaining"] == 0

    back = await api_client.post("/api/likes", json={"target_user_id": "alice"}, headers=headers_for("bob"))
    assert back.status_code == 200, back.text
    matched = back.json()
    assert matched["is_match"] is True
    assert matched["match_created"] is True
    conversation_id = matched["conversation_id"]
    assert conversation_id

    for user, partner in (("alice", "bob"), ("bob", "alice")):
        matches = await api_client.get("/api/matches", headers=headers_for(user))
        assert matches.status_code == 200
        [summary] = matches.json()["matches"]
        assert summary["partner_id"] == partner
        assert summary["conversation_id"] == conversation_id

        conversations = await api_client.get("/api/conversations", headers=headers_for(user))
        [conversation] = conversations.json()["conversations"]
        assert conversation["conversation_id"] == conversation_id
        assert conversation["partner_id"] == partner

    bob_feed = await api_client.get("/api/notifications", headers=headers_for("bob"))
    kinds = sorted(n["kind"] for n in bob_feed.json()["notifications"])
    assert kinds == ["match", "super_like"]


@pytest.mark.asyncio
async def test_declined_actions_carry_reason_codes(api_client, seed_user, headers_for) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await seed_user("carol")
    headers = headers_for("alice")

    ok = await api_client.post("/api/likes", json={"target_user_id": "bob"}, headers=headers)
    assert ok.status_code == 200

    duplicate = await api_client.post("/api/likes", json={"target_user_id": "bob"}, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["reason"] == "duplicate_decision"
    assert duplicate.json()["detail"]["status"] == "declined"

    self_like = await api_client.post("/api/likes", json={"target_user_id": "alice"}, headers=headers)
    assert self_like.status_code == 400
    assert self_like.json()["detail"]["reason"] == "invalid_actor"

    unknown = await api_client.post("/api/likes", json={"target_user_id": "nobody"}, headers=headers)
    assert unknown.status_code == 404
    assert unknown.json()["detail"]["reason"] == "unknown_target"

    await api_client.post(
        "/api/likes", json={"target_user_id": "carol", "kind": "super_like"}, headers=headers
    )
    quota = await api_client.post(
        "/api/likes", json={"target_user_id": "bob", "kind": "super_like"}, headers=headers
    )
    # Existing like wins over the quota check
    assert quota.status_code == 409

    await seed_user("dave")
    exhausted = await api_client.post(
        "/api/likes", json={"target_user_id": "dave", "kind": "super_like"}, headers=headers
    )
    assert exhausted.status_code == 429
    assert exhausted.json()["detail"]["message"] == "No Super Likes left today"


@pytest.mark.asyncio
async def test_blank_target_is_rejected(api_client, seed_user, headers_for) -> None:
    await seed_user("alice")

    response = await api_client.post("/api/likes", json={"target_user_id": "   "}, headers=headers_for("alice"))

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_pass_hides_profile_and_blocks_like(api_client, seed_user, headers_for) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await seed_user("carol")
    headers = headers_for("alice")

    before = await api_client.get("/api/discovery", headers=headers)
    assert sorted(c["user_id"] for c in before.json()["candidates"]) == ["bob", "carol"]

    passed = await api_client.post("/api/passes", json={"target_user_id": "bob"}, headers=headers)
    assert passed.status_code == 200
    assert passed.json() == {"status": "ok", "target_id": "bob"}

    liked = await api_client.post("/api/likes", json={"target_user_id": "bob"}, headers=headers)
    assert liked.status_code == 409

    after = await api_client.get("/api/discovery", headers=headers)
    assert [c["user_id"] for c in after.json()["candidates"]] == ["carol"]


@pytest.mark.asyncio
async def test_discovery_ranks_premium_first_and_pages(api_client, seed_user, headers_for) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await seed_user("carol", is_premium=True)
    await seed_user("dave", is_active=False)

    first = await api_client.get("/api/discovery?limit=1", headers=headers_for("alice"))
    page = first.json()
    assert [c["user_id"] for c in page["candidates"]] == ["carol"]
    assert page["next_offset"] == 1

    second = await api_client.get("/api/discovery?limit=5&offset=1", headers=headers_for("alice"))
    assert [c["user_id"] for c in second.json()["candidates"]] == ["bob"]


@pytest.mark.asyncio
async def test_super_like_allowance_endpoint(api_client, seed_user, headers_for) -> None:
    await seed_user("alice", is_premium=True)

    response = await api_client.get("/api/likes/super-likes", headers=headers_for("alice"))

    assert response.status_code == 200
    body = response.json()
    assert body["remaining"] == 5
    assert body["allowance"] == 5
    assert body["resets_at"]


@pytest.mark.asyncio
async def test_notification_endpoints(api_client, seed_user, headers_for) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await seed_user("carol")
    await api_client.post("/api/likes", json={"target_user_id": "bob"}, headers=headers_for("alice"))
    await api_client.post("/api/likes", json={"target_user_id": "bob"}, headers=headers_for("carol"))
    headers = headers_for("bob")

    listed = await api_client.get("/api/notifications", headers=headers)
    assert listed.status_code == 200
    assert listed.json()["unread_count"] == 2
    etag = listed.headers["etag"]

    cached = await api_client.get("/api/notifications", headers={**headers, "If-None-Match": etag})
    assert cached.status_code == 304

    count = await api_client.get("/api/notifications/unread-count", headers=headers)
    assert count.json() == {"unread_count": 2}

    notification_id = listed.json()["notifications"][0]["notification_id"]
    foreign = await api_client.post(f"/api/notifications/{notification_id}/read", headers=headers_for("alice"))
    assert foreign.status_code == 404

    marked = await api_client.post(f"/api/notifications/{notification_id}/read", headers=headers)
    assert marked.status_code == 200
    assert marked.json() == {"status": "ok", "updated": 1}

    changed = await api_client.get("/api/notifications", headers={**headers, "If-None-Match": etag})
    assert changed.status_code == 200
    assert changed.json()["unread_count"] == 1

    cleared = await api_client.post("/api/notifications/read-all", headers=headers)
    assert cleared.json()["updated"] == 1
    count = await api_client.get("/api/notifications/unread-count", headers=headers)
    assert count.json() == {"unread_count": 0}


@pytest.mark.asyncio
async def test_storage_outage_maps_to_503(api_client, seed_user, headers_for, monkeypatch) -> None:
    await seed_user("alice")
    await seed_user("bob")

    async def _unavailable(self, **_kwargs):
        raise StorageUnavailableRepositoryError("decisions.upsert failed: no servers")

    monkeypatch.setattr(DecisionRepository, "insert_decision", _unavailable)

    response = await api_client.post("/api/likes", json={"target_user_id": "bob"}, headers=headers_for("alice"))

    assert response.status_code == 503
    assert response.json()["detail"]["reason"] == "storage_unavailable"


@pytest.mark.asyncio
async def test_events_stream_requires_realtime_bus(api_client, seed_user, headers_for) -> None:
    await seed_user("alice")

    response = await api_client.get("/api/events", headers=headers_for("alice"))

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_admin_and_health_routes(api_client) -> None:
    health = await api_client.get("/api/health/db")
    assert health.json() == {"mongo": "connected", "db": "interactions-test"}

    ensured = await api_client.post("/api/admin/ensure-indexes")
    assert ensured.status_code == 200
    assert ensured.json() == {"ok": True}

    root = await api_client.get("/")
    assert root.json() == {"status": "interaction-api-ok"}

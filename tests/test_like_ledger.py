from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from interaction_service.config import get_settings
from interaction_service.db.collections import (
    DECISIONS_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    SUPER_LIKE_USAGE_COLLECTION,
)
from interaction_service.models.likes import DecisionAction
from interaction_service.repositories.decisions import DecisionRepository
from interaction_service.repositories.exceptions import StorageUnavailableRepositoryError
from interaction_service.services.errors import (
    DuplicateDecision,
    InvalidActor,
    QuotaExceeded,
    StorageUnavailable,
    UnknownTarget,
)
from interaction_service.services.interaction_engine import InteractionEngine


@pytest.mark.asyncio
async def test_like_records_single_decision(engine, seed_user, database) -> None:
    await seed_user("alice")
    await seed_user("bob")

    outcome = await engine.record_like("alice", "bob")

    assert outcome.kind == "like"
    assert outcome.is_super_like is False
    assert outcome.is_match is False
    assert outcome.super_likes_remaining is None
    stored = await database[DECISIONS_COLLECTION].find_one({"actor_id": "alice", "target_id": "bob"})
    assert stored is not None
    assert stored["action"] == "like"


@pytest.mark.asyncio
async def test_second_like_is_declined_as_duplicate(engine, seed_user, database) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await engine.record_like("alice", "bob")

    with pytest.raises(DuplicateDecision) as excinfo:
        await engine.record_like("alice", "bob")

    assert excinfo.value.reason == "duplicate_decision"
    assert excinfo.value.message == "You already liked this profile"
    assert await database[DECISIONS_COLLECTION].count_documents({"actor_id": "alice"}) == 1


@pytest.mark.asyncio
async def test_like_after_pass_is_declined(engine, seed_user, database) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await engine.record_pass("alice", "bob")

    with pytest.raises(DuplicateDecision) as excinfo:
        await engine.record_like("alice", "bob")

    assert "passed" in excinfo.value.message
    stored = await database[DECISIONS_COLLECTION].find_one({"actor_id": "alice", "target_id": "bob"})
    assert stored["action"] == "pass"


@pytest.mark.asyncio
async def test_pass_after_like_is_declined(engine, seed_user) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await engine.record_like("alice", "bob")

    with pytest.raises(DuplicateDecision):
        await engine.record_pass("alice", "bob")


@pytest.mark.asyncio
async def test_concurrent_duplicate_likes_store_one_decision(engine, seed_user, database) -> None:
    await seed_user("alice")
    await seed_user("bob")

    results = await asyncio.gather(
        engine.record_like("alice", "bob"),
        engine.record_like("alice", "bob"),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], DuplicateDecision)
    assert await database[DECISIONS_COLLECTION].count_documents({"actor_id": "alice"}) == 1


@pytest.mark.asyncio
async def test_self_like_is_invalid_actor(engine, seed_user) -> None:
    await seed_user("alice")

    with pytest.raises(InvalidActor):
        await engine.record_like("alice", "alice")
    with pytest.raises(InvalidActor):
        await engine.record_pass("alice", "alice")


@pytest.mark.asyncio
async def test_inactive_or_missing_accounts_are_rejected(engine, seed_user) -> None:
    await seed_user("alice")
    await seed_user("ghost", is_active=False)
    await seed_user("frozen", is_active=False)

    with pytest.raises(UnknownTarget) as excinfo:
        await engine.record_like("alice", "nobody")
    assert excinfo.value.status_code == 404

    with pytest.raises(UnknownTarget):
        await engine.record_like("alice", "ghost")

    with pytest.raises(InvalidActor):
        await engine.record_like("frozen", "alice")

    with pytest.raises(InvalidActor):
        await engine.record_like("stranger", "alice")


@pytest.mark.asyncio
async def test_standard_user_gets_one_super_like_per_day(engine, seed_user, database) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await seed_user("carol")

    first = await engine.record_like("alice", "bob", "super_like")
    assert first.is_super_like is True
    assert first.super_likes_remaining == 0

    with pytest.raises(QuotaExceeded) as excinfo:
        await engine.record_like("alice", "carol", "super_like")
    assert excinfo.value.status_code == 429

    assert await database[DECISIONS_COLLECTION].find_one({"actor_id": "alice", "target_id": "carol"}) is None
    usage = await database[SUPER_LIKE_USAGE_COLLECTION].find_one({"user_id": "alice"})
    assert usage["used"] == 1

    # Plain likes are not limited by the super-like allowance
    outcome = await engine.record_like("alice", "carol")
    assert outcome.kind == "like"


@pytest.mark.asyncio
async def test_premium_user_gets_five_super_likes(engine, seed_user) -> None:
    await seed_user("queen", is_premium=True)
    targets = [f"target-{i}" for i in range(6)]
    for target in targets:
        await seed_user(target)

    for index, target in enumerate(targets[:5]):
        outcome = await engine.record_like("queen", target, "super_like")
        assert outcome.super_likes_remaining == 4 - index

    with pytest.raises(QuotaExceeded):
        await engine.record_like("queen", targets[5], "super_like")


@pytest.mark.asyncio
async def test_concurrent_super_likes_never_exceed_allowance(engine, seed_user, database) -> None:
    await seed_user("alice")
    for target in ("t1", "t2", "t3"):
        await seed_user(target)

    results = await asyncio.gather(
        *(engine.record_like("alice", target, "super_like") for target in ("t1", "t2", "t3")),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    assert len(successes) == 1
    assert all(isinstance(r, QuotaExceeded) for r in results if isinstance(r, Exception))
    assert (
        await database[DECISIONS_COLLECTION].count_documents({"actor_id": "alice", "action": "super_like"})
        == 1
    )


@pytest.mark.asyncio
async def test_declined_super_like_hands_its_slot_back(engine, seed_user) -> None:
    await seed_user("alice")
    await seed_user("bob")
    await engine.record_like("alice", "bob")
    alice = await engine.ledger.resolve_actor("alice", "bob")

    with pytest.raises(DuplicateDecision):
        await engine.ledger.record_like(alice, "bob", DecisionAction.SUPER_LIKE)

    remaining, allowance, _ = await engine.super_likes_remaining("alice")
    assert (remaining, allowance) == (1, 1)


@pytest.mark.asyncio
async def test_super_like_allowance_resets_at_utc_midnight(engine, seed_user, clock) -> None:
    clock.now = datetime(2026, 3, 14, 23, 59, 0)
    await seed_user("alice")
    await seed_user("bob")
    await seed_user("carol")

    await engine.record_like("alice", "bob", "super_like")
    remaining, _, resets_at = await engine.super_likes_remaining("alice")
    assert remaining == 0
    assert resets_at == datetime(2026, 3, 15, 0, 0, 0)

    clock.advance(minutes=2)
    remaining, _, resets_at = await engine.super_likes_remaining("alice")
    assert remaining == 1
    assert resets_at == datetime(2026, 3, 16, 0, 0, 0)

    outcome = await engine.record_like("alice", "carol", "super_like")
    assert outcome.super_likes_remaining == 0


@pytest.mark.asyncio
async def test_allowances_follow_configuration(database, seed_user, clock, monkeypatch) -> None:
    monkeypatch.setenv("SUPER_LIKE_DAILY_ALLOWANCE", "2")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    engine = InteractionEngine.from_database(database, settings=get_settings(), clock=clock)
    await seed_user("alice")

    remaining, allowance, _ = await engine.super_likes_remaining("alice")

    assert (remaining, allowance) == (2, 2)


@pytest.mark.asyncio
async def test_pass_is_recorded_and_hidden_from_discovery(engine, seed_user, database) -> None:
    await seed_user("alice")
    await seed_user("bob")

    outcome = await engine.record_pass("alice", "bob")

    assert outcome.target_id == "bob"
    ids = await engine.ledger.decided_target_ids("alice")
    assert ids == {"bob"}
    assert await database[DECISIONS_COLLECTION].count_documents({"action": "pass"}) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", ["pass", "love"])
async def test_non_like_kinds_are_rejected_before_any_write(engine, seed_user, database, kind) -> None:
    await seed_user("alice")
    await seed_user("bob")

    with pytest.raises(ValueError):
        await engine.record_like("alice", "bob", kind)

    assert await database[DECISIONS_COLLECTION].count_documents({}) == 0
    assert await database[NOTIFICATIONS_COLLECTION].count_documents({}) == 0


@pytest.mark.asyncio
async def test_timed_out_write_that_committed_keeps_the_slot(engine, seed_user, database, monkeypatch) -> None:
    await seed_user("alice")
    await seed_user("bob")
    original = DecisionRepository.insert_decision

    async def _commit_then_time_out(self, **kwargs):
        await original(self, **kwargs)
        raise StorageUnavailableRepositoryError("decisions.upsert failed: timed out")

    monkeypatch.setattr(DecisionRepository, "insert_decision", _commit_then_time_out)

    with pytest.raises(StorageUnavailable):
        await engine.record_like("alice", "bob", "super_like")

    usage = await database[SUPER_LIKE_USAGE_COLLECTION].find_one({"user_id": "alice"})
    assert usage["used"] == 1
    stored = await database[DECISIONS_COLLECTION].find_one({"actor_id": "alice", "target_id": "bob"})
    assert stored["action"] == "super_like"


@pytest.mark.asyncio
async def test_failed_write_hands_the_slot_back(engine, seed_user, database, monkeypatch) -> None:
    await seed_user("alice")
    await seed_user("bob")

    async def _unavailable(self, **_kwargs):
        raise StorageUnavailableRepositoryError("decisions.upsert failed: no servers")

    monkeypatch.setattr(DecisionRepository, "insert_decision", _unavailable)

    with pytest.raises(StorageUnavailable):
        await engine.record_like("alice", "bob", "super_like")

    usage = await database[SUPER_LIKE_USAGE_COLLECTION].find_one({"user_id": "alice"})
    assert usage["used"] == 0

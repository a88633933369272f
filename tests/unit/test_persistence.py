import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from vibecircle.domain.common.errors import NotFound, PersistenceFailed
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.matching.models import MatchStatus
from vibecircle.infra.persistence import (
    WRITES_STREAM,
    EntityWrite,
    MemoryWriteThrough,
    NullWriteThrough,
    PersistenceError,
    RedisWriteThrough,
    build_write_through,
)
from vibecircle.infra.redis import redis_client
from vibecircle.settings import Settings


@pytest.mark.asyncio
async def test_unit_of_work_merges_writes_per_entity(ctx, writer):
    async with UnitOfWork(ctx, "merge") as tx:
        tx.record("match", "m1", status=MatchStatus.PENDING)
        tx.record("match", "m1", status=MatchStatus.CONNECTED, score=0.5)
        tx.record("profile", "p1", bio="hi")

    assert len(writer.flushes) == 1
    user_id, batch = writer.flushes[0]
    assert user_id == ctx.user_id
    assert [(write.entity, write.entity_id) for write in batch] == [("match", "m1"), ("profile", "p1")]
    assert batch[0].fields == {"status": MatchStatus.CONNECTED, "score": 0.5}


@pytest.mark.asyncio
async def test_unit_of_work_without_writes_does_not_flush(ctx, writer):
    async with UnitOfWork(ctx, "noop"):
        pass

    assert writer.flushes == []


@pytest.mark.asyncio
async def test_error_in_block_runs_compensations_in_reverse(ctx, writer):
    undone: list[str] = []

    with pytest.raises(NotFound):
        async with UnitOfWork(ctx, "failing") as tx:
            tx.compensate(lambda: undone.append("first"))
            tx.compensate(lambda: undone.append("second"))
            tx.record("match", "m1", status="x")
            raise NotFound(detail="match:m1")

    assert undone == ["second", "first"]
    assert writer.flushes == []


@pytest.mark.asyncio
async def test_flush_failure_rolls_back_and_skips_hooks(ctx, writer):
    undone: list[str] = []
    hooks: list[str] = []
    writer.fail_next()

    async def hook():
        hooks.append("ran")

    with pytest.raises(PersistenceFailed):
        async with UnitOfWork(ctx, "flush") as tx:
            tx.compensate(lambda: undone.append("undo"))
            tx.after_commit(hook)
            tx.record("profile", "p1", bio="hi")

    assert undone == ["undo"]
    assert hooks == []


@pytest.mark.asyncio
async def test_after_commit_hooks_run_once_flushed(ctx, writer):
    order: list[str] = []

    async def hook():
        order.append(f"hook after {len(writer.flushes)} flush")

    async with UnitOfWork(ctx, "hooks") as tx:
        tx.after_commit(hook)
        tx.record("profile", "p1", bio="hi")

    assert order == ["hook after 1 flush"]


def test_entity_write_encodes_domain_values():
    write = EntityWrite(
        "match",
        "m1",
        {
            "status": MatchStatus.PASSED,
            "shared_circles": frozenset({"b", "a"}),
            "admitted_on": datetime(2026, 3, 2, tzinfo=timezone.utc),
        },
    )

    encoded = write.encoded_fields()

    assert json.loads(encoded["status"]) == "passed"
    assert json.loads(encoded["shared_circles"]) == ["a", "b"]
    assert json.loads(encoded["admitted_on"]).startswith("2026-03-02")


@pytest.mark.asyncio
async def test_redis_write_through_stores_hashes_and_stream(fake_redis):
    store = RedisWriteThrough(redis_client)
    writes = [
        EntityWrite("match", "m1", {"status": MatchStatus.CONNECTED}),
        EntityWrite("circle", "c1", {"joined": True, "member_count": 4}),
    ]

    await store.write_many("user-mira", writes)

    assert await fake_redis.hgetall("vc:user-mira:match:m1") == {"status": '"connected"'}
    circle = await fake_redis.hgetall("vc:user-mira:circle:c1")
    assert json.loads(circle["member_count"]) == 4
    assert await fake_redis.xlen(WRITES_STREAM) == 2


@pytest.mark.asyncio
async def test_redis_errors_become_persistence_errors():
    client = MagicMock()
    client.pipeline.side_effect = RedisConnectionError("connection refused")
    store = RedisWriteThrough(client)

    with pytest.raises(PersistenceError):
        await store.write_many("user-mira", [EntityWrite("profile", "p1", {"bio": "hi"})])


@pytest.mark.asyncio
async def test_memory_write_through_failure_is_one_shot():
    store = MemoryWriteThrough()
    store.fail_next()

    with pytest.raises(PersistenceError):
        await store.write_many("u", [EntityWrite("profile", "p1", {})])
    await store.write_many("u", [EntityWrite("profile", "p1", {"bio": "hi"})])

    assert [write.fields for write in store.entities("profile")] == [{"bio": "hi"}]


@pytest.mark.parametrize(
    "backend, expected",
    [("null", NullWriteThrough), ("memory", MemoryWriteThrough), ("redis", RedisWriteThrough)],
)
def test_build_write_through_follows_settings(backend, expected):
    assert isinstance(build_write_through(Settings(persistence_backend=backend)), expected)

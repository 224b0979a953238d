# chatty/tests/unit/test_pubsub.py
import asyncio
import logging
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatty.domain.events import GroupCreated, MessageCreated, Topic
from chatty.infrastructure import schemas
from chatty.infrastructure.pubsub import InMemoryPubSub, RedisPubSub, RedisSubscription
from chatty.infrastructure.redis_client import RedisClient


@pytest.fixture
def test_logger():
    return logging.getLogger("test_pubsub")


def make_event(message_id=1, group_id=1):
    return MessageCreated(
        group_id=group_id,
        message=schemas.Message(
            id=message_id,
            text=f"message {message_id}",
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
            group_id=group_id,
            user_id=1,
            user=schemas.UserBasic(id=1, username="testuser"),
        ),
    )


async def next_event(subscription, timeout=1.0):
    return await asyncio.wait_for(subscription.__anext__(), timeout)


async def test_in_memory_delivers_to_every_subscriber(test_logger):
    pubsub = InMemoryPubSub(test_logger)
    first = await pubsub.subscribe(Topic.MESSAGE_CREATED)
    second = await pubsub.subscribe(Topic.MESSAGE_CREATED)

    event = make_event()
    await pubsub.publish(Topic.MESSAGE_CREATED, event)

    assert await next_event(first) == event
    assert await next_event(second) == event


async def test_in_memory_has_no_replay(test_logger):
    pubsub = InMemoryPubSub(test_logger)
    await pubsub.publish(Topic.MESSAGE_CREATED, make_event(1))
    subscription = await pubsub.subscribe(Topic.MESSAGE_CREATED)
    await pubsub.publish(Topic.MESSAGE_CREATED, make_event(2))

    event = await next_event(subscription)
    assert event.message.id == 2
    assert subscription.queue.empty()


async def test_in_memory_topics_are_separate(test_logger):
    pubsub = InMemoryPubSub(test_logger)
    subscription = await pubsub.subscribe(Topic.GROUP_CREATED)

    await pubsub.publish(Topic.MESSAGE_CREATED, make_event())

    assert subscription.queue.empty()


async def test_in_memory_full_queue_drops_for_that_subscriber_only(test_logger, caplog):
    pubsub = InMemoryPubSub(test_logger, queue_size=1)
    slow = await pubsub.subscribe(Topic.MESSAGE_CREATED)
    fast = await pubsub.subscribe(Topic.MESSAGE_CREATED)

    with caplog.at_level(logging.WARNING):
        await pubsub.publish(Topic.MESSAGE_CREATED, make_event(1))
        assert (await next_event(fast)).message.id == 1
        await pubsub.publish(Topic.MESSAGE_CREATED, make_event(2))

    assert (await next_event(fast)).message.id == 2
    assert (await next_event(slow)).message.id == 1
    assert slow.queue.empty()
    assert "dropping event" in caplog.text


async def test_in_memory_close_unsubscribes(test_logger):
    pubsub = InMemoryPubSub(test_logger)
    subscription = await pubsub.subscribe(Topic.MESSAGE_CREATED)

    await subscription.close()
    await pubsub.publish(Topic.MESSAGE_CREATED, make_event())

    assert pubsub.subscriptions[Topic.MESSAGE_CREATED] == []
    with pytest.raises(StopAsyncIteration):
        await subscription.__anext__()


async def test_redis_pubsub_round_trip(mock_redis, test_logger):
    redis_client = RedisClient("localhost", 6379, test_logger)
    redis_client.client = mock_redis
    pubsub = RedisPubSub(redis_client, test_logger)

    subscription = await pubsub.subscribe(Topic.MESSAGE_CREATED)
    event = make_event(5, group_id=3)
    await pubsub.publish(Topic.MESSAGE_CREATED, event)

    received = await next_event(subscription, timeout=5.0)
    await subscription.close()

    assert isinstance(received, MessageCreated)
    assert received == event


async def test_redis_publish_serialises_event_as_json(test_logger):
    redis_client = MagicMock(publish=AsyncMock())
    pubsub = RedisPubSub(redis_client, test_logger)
    event = GroupCreated(
        group=schemas.Group(
            id=4,
            name="Trip",
            created_at=datetime(2024, 1, 1, tzinfo=UTC),
            members=[schemas.UserBasic(id=1, username="a")],
        )
    )

    await pubsub.publish(Topic.GROUP_CREATED, event)

    channel, payload = redis_client.publish.call_args[0]
    assert channel == "GroupCreated"
    assert GroupCreated.model_validate_json(payload) == event


async def test_redis_subscription_skips_non_messages():
    event = make_event(9)
    redis_pubsub = MagicMock(
        get_message=AsyncMock(
            side_effect=[
                None,
                {"type": "subscribe", "data": 1},
                {"type": "message", "data": event.model_dump_json()},
            ]
        ),
        unsubscribe=AsyncMock(),
        aclose=AsyncMock(),
    )
    subscription = RedisSubscription(redis_pubsub, Topic.MESSAGE_CREATED)

    assert await subscription.__anext__() == event

    await subscription.close()
    redis_pubsub.unsubscribe.assert_awaited_once_with("MessageCreated")
    redis_pubsub.aclose.assert_awaited_once()
    with pytest.raises(StopAsyncIteration):
        await subscription.__anext__()

# chatty/infrastructure/pubsub.py
"""Broadcast bus backends.

Every subscription owns its own delivery buffer: a bounded queue in memory or
a dedicated connection for Redis. Publishing never waits on a subscriber.
"""
import asyncio
import logging
from collections import defaultdict

from chatty.domain.events import EVENT_TYPES, Event, Topic
from chatty.domain.interfaces import AbstractPubSub, Subscription
from chatty.infrastructure.redis_client import RedisClient


class InMemorySubscription(Subscription):
    def __init__(self, pubsub: "InMemoryPubSub", topic: Topic, maxsize: int):
        self.pubsub = pubsub
        self.topic = topic
        self.queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    async def __anext__(self) -> Event:
        if self.closed:
            raise StopAsyncIteration
        return await self.queue.get()

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.pubsub.remove(self)


class InMemoryPubSub(AbstractPubSub):
    def __init__(self, logger: logging.Logger, queue_size: int = 100):
        self.logger = logger
        self.queue_size = queue_size
        self.subscriptions: dict[Topic, list[InMemorySubscription]] = defaultdict(list)

    async def publish(self, topic: Topic, event: Event) -> None:
        for subscription in list(self.subscriptions[topic]):
            try:
                subscription.queue.put_nowait(event)
            except asyncio.QueueFull:
                self.logger.warning(
                    f"Subscriber queue full on {topic.value}, dropping event"
                )

    async def subscribe(self, topic: Topic) -> Subscription:
        subscription = InMemorySubscription(self, topic, self.queue_size)
        self.subscriptions[topic].append(subscription)
        return subscription

    def remove(self, subscription: InMemorySubscription) -> None:
        subscribers = self.subscriptions[subscription.topic]
        if subscription in subscribers:
            subscribers.remove(subscription)


class RedisSubscription(Subscription):
    def __init__(self, pubsub, topic: Topic):
        self.pubsub = pubsub
        self.topic = topic
        self.event_type = EVENT_TYPES[topic]
        self.closed = False

    async def __anext__(self) -> Event:
        while not self.closed:
            message = await self.pubsub.get_message(
                ignore_subscribe_messages=True, timeout=1.0
            )
            if message is not None and message.get("type") == "message":
                return self.event_type.model_validate_json(message["data"])
        raise StopAsyncIteration

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            await self.pubsub.unsubscribe(self.topic.value)
            await self.pubsub.aclose()


class RedisPubSub(AbstractPubSub):
    """Fans events out across processes through one Redis channel per topic."""

    def __init__(self, redis_client: RedisClient, logger: logging.Logger):
        self.redis_client = redis_client
        self.logger = logger

    async def publish(self, topic: Topic, event: Event) -> None:
        await self.redis_client.publish(topic.value, event.model_dump_json())

    async def subscribe(self, topic: Topic) -> Subscription:
        pubsub = self.redis_client.pubsub()
        await pubsub.subscribe(topic.value)
        return RedisSubscription(pubsub, topic)

# chatty/domain/interfaces.py
from abc import ABC, abstractmethod

from chatty.domain.events import Event, Topic


class Subscription(ABC):
    """A live, non-replaying stream of the events published on one topic."""

    def __aiter__(self) -> "Subscription":
        return self

    @abstractmethod
    async def __anext__(self) -> Event:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


class AbstractPubSub(ABC):
    @abstractmethod
    async def publish(self, topic: Topic, event: Event) -> None:
        pass

    @abstractmethod
    async def subscribe(self, topic: Topic) -> Subscription:
        """Open a subscription; it only sees events published after this returns."""
        pass

# chatty/domain/events.py
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel

from chatty.infrastructure import schemas


class Topic(str, Enum):
    MESSAGE_CREATED = "MessageCreated"
    GROUP_CREATED = "GroupCreated"


class Event(BaseModel):
    topic: ClassVar[Topic]


class MessageCreated(Event):
    topic: ClassVar[Topic] = Topic.MESSAGE_CREATED

    group_id: int
    message: schemas.Message


class GroupCreated(Event):
    topic: ClassVar[Topic] = Topic.GROUP_CREATED

    group: schemas.Group

    @property
    def member_ids(self) -> list[int]:
        return self.group.member_ids


EVENT_TYPES: dict[Topic, type[Event]] = {
    Topic.MESSAGE_CREATED: MessageCreated,
    Topic.GROUP_CREATED: GroupCreated,
}

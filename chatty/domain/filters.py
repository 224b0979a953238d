# chatty/domain/filters.py
"""Per-subscriber delivery rules for the live event channels.

Both filters are pure: they only look at the event, the arguments the
subscriber opened the stream with and the subscriber's identity. An anonymous
subscriber cannot be filtered and fails with ``Unauthenticated``, which ends
that one stream.
"""
from typing import Protocol

from chatty.domain.events import GroupCreated, MessageCreated
from chatty.domain.exceptions import Unauthenticated
from chatty.infrastructure import schemas


class Subscriber(Protocol):
    id: int


def _require_subscriber(subscriber: Subscriber | None) -> Subscriber:
    if subscriber is None:
        raise Unauthenticated()
    return subscriber


def message_added_filter(
    event: MessageCreated,
    args: schemas.MessageAddedArgs,
    subscriber: Subscriber | None,
) -> bool:
    subscriber = _require_subscriber(subscriber)
    if not args.group_ids:
        return False
    # the sender already has the message from its mutation response
    return (
        event.group_id in args.group_ids
        and event.message.user_id != subscriber.id
    )


def group_added_filter(
    event: GroupCreated,
    args: schemas.GroupAddedArgs,
    subscriber: Subscriber | None,
) -> bool:
    subscriber = _require_subscriber(subscriber)
    member_ids = event.member_ids
    if args.user_id is None or not member_ids:
        return False
    # first member is the creator
    return args.user_id in member_ids and subscriber.id != member_ids[0]

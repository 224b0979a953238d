# chatty/interactors/pagination.py
"""Cursor pagination over a group's messages.

Pages are always newest first, which flips the usual cursor vocabulary:
``before`` asks for messages newer than the cursor (id > cursor) and ``after``
for messages older than the cursor (id < cursor). Page info is answered with
existence probes so no extra rows are loaded.
"""
from chatty.domain.cursor import decode_cursor, encode_cursor
from chatty.gateways.interfaces import IMessageGateway
from chatty.infrastructure import schemas


async def paginate_messages(
    message_gateway: IMessageGateway,
    group_id: int,
    page: schemas.PageRequest,
) -> schemas.MessageConnection:
    newer_than = decode_cursor(page.before) if page.before else None
    older_than = decode_cursor(page.after) if page.after else None
    limit = page.limit

    messages = await message_gateway.get_page(
        group_id, limit=limit, newer_than=newer_than, older_than=older_than
    )
    edges = [
        schemas.MessageEdge(
            cursor=encode_cursor(message.id),
            node=schemas.Message.model_validate(message._model),
        )
        for message in messages
    ]

    if limit is None or len(messages) < limit or not messages:
        has_next_page = False
    else:
        has_next_page = await message_gateway.exists_between(
            group_id, newer_than=newer_than, older_than=messages[-1].id
        )

    # opposite side of the requested bound, the cursor row included
    if older_than is not None:
        has_previous_page = await message_gateway.exists_between(
            group_id, newer_than=older_than - 1
        )
    elif newer_than is not None:
        has_previous_page = await message_gateway.exists_between(
            group_id, older_than=newer_than + 1
        )
    else:
        has_previous_page = False

    return schemas.MessageConnection(
        edges=edges,
        page_info=schemas.PageInfo(
            has_next_page=has_next_page, has_previous_page=has_previous_page
        ),
    )

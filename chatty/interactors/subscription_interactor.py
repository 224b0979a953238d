# chatty/interactors/subscription_interactor.py
"""Live subscriptions over one WebSocket connection.

Frames follow the graphql-ws shape. The client sends ``connection_init``,
``subscribe``, ``complete`` and ``ping``; the server answers with
``connection_ack``, ``next``, ``error``, ``complete`` and ``pong``. Each
subscribed operation id runs in its own task reading its own subscription, so
a failing stream never touches the others.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from chatty.domain.events import Event, Topic
from chatty.domain.exceptions import ChattyError, ForbiddenError
from chatty.domain.filters import group_added_filter, message_added_filter
from chatty.domain.interfaces import AbstractPubSub, Subscription
from chatty.infrastructure import schemas

SendFrame = Callable[[dict[str, Any]], Awaitable[None]]
Authenticate = Callable[[str | None], Awaitable[schemas.User | None]]
LoadGroupIds = Callable[[int], Awaitable[set[int]]]


class CloseConnection(Exception):
    """Protocol violation; the transport closes the socket with ``code``."""

    def __init__(self, code: int, reason: str):
        self.code = code
        self.reason = reason
        super().__init__(f"{code}: {reason}")


@dataclass(frozen=True)
class Operation:
    topic: Topic
    args_type: type[BaseModel]
    filter: Callable[[Any, Any, Any], bool]
    render: Callable[[Any], BaseModel]


OPERATIONS: dict[str, Operation] = {
    "messageAdded": Operation(
        Topic.MESSAGE_CREATED,
        schemas.MessageAddedArgs,
        message_added_filter,
        lambda event: event.message,
    ),
    "groupAdded": Operation(
        Topic.GROUP_CREATED,
        schemas.GroupAddedArgs,
        group_added_filter,
        lambda event: event.group,
    ),
}


def error_payload(error: ChattyError) -> list[dict[str, Any]]:
    return [{"message": error.detail, "extensions": {"code": error.code}}]


class SubscriptionSession:
    def __init__(
        self,
        pubsub: AbstractPubSub,
        send: SendFrame,
        authenticate: Authenticate,
        load_group_ids: LoadGroupIds,
        logger: logging.Logger | None = None,
    ):
        self.pubsub = pubsub
        self.send = send
        self.authenticate = authenticate
        self.load_group_ids = load_group_ids
        self.logger = logger or logging.getLogger(__name__)
        self.user: schemas.User | None = None
        self.acknowledged = False
        self.operations: dict[str, asyncio.Task] = {}
        self.subscriptions: dict[str, Subscription] = {}

    async def handle(self, frame: dict[str, Any]) -> None:
        frame_type = frame.get("type")
        if frame_type == "connection_init":
            payload = frame.get("payload") or {}
            if not isinstance(payload, dict):
                raise CloseConnection(4400, "Invalid connection_init payload")
            await self._init(payload)
        elif frame_type == "subscribe":
            await self._subscribe(frame.get("id"), frame.get("payload") or {})
        elif frame_type == "complete":
            await self.stop(frame.get("id"))
        elif frame_type == "ping":
            await self.send({"type": "pong"})
        elif frame_type == "pong":
            pass
        else:
            raise CloseConnection(4400, f"Unknown message type {frame_type!r}")

    async def _init(self, payload: dict[str, Any]) -> None:
        if self.acknowledged:
            raise CloseConnection(4429, "Too many initialisation requests")
        token = payload.get("token") or payload.get("authorization")
        if token is not None and not isinstance(token, str):
            raise CloseConnection(4400, "Token must be a string")
        if token and token.lower().startswith("bearer "):
            token = token[7:]
        try:
            self.user = await self.authenticate(token)
        except ChattyError as e:
            raise CloseConnection(4401, e.detail) from e
        self.acknowledged = True
        await self.send({"type": "connection_ack"})
        self.logger.debug(
            f"Subscription connection ready for user {self.user.id if self.user else None}"
        )

    async def _subscribe(self, op_id: Any, payload: dict[str, Any]) -> None:
        if not self.acknowledged:
            raise CloseConnection(4401, "Unauthorized")
        if not isinstance(op_id, str) or not op_id:
            raise CloseConnection(4400, "Subscribe message requires an id")
        if op_id in self.operations:
            raise CloseConnection(4409, f"Subscriber for {op_id} already exists")
        if not isinstance(payload, dict):
            raise CloseConnection(4400, "Invalid subscribe payload")

        name = payload.get("operation")
        operation = OPERATIONS.get(name)
        if operation is None:
            await self._send_error(op_id, [{"message": f"Unknown operation {name!r}"}])
            return
        try:
            args = operation.args_type.model_validate(payload.get("variables") or {})
            await self._authorize(name, args)
        except ValidationError as e:
            await self._send_error(op_id, [{"message": str(e)}])
            return
        except ChattyError as e:
            await self._send_error(op_id, error_payload(e))
            return

        await self.start(op_id, name, operation, args)

    async def _authorize(self, name: str, args: BaseModel) -> None:
        # anonymous streams are rejected by the filter on their first event
        if self.user is None:
            return
        if args.user_id is not None and args.user_id != self.user.id:
            raise ForbiddenError()
        if name == "messageAdded" and args.group_ids:
            group_ids = await self.load_group_ids(self.user.id)
            if not set(args.group_ids) <= group_ids:
                raise ForbiddenError()

    async def start(
        self, op_id: str, name: str, operation: Operation, args: BaseModel
    ) -> None:
        # subscribe before the task runs so nothing published from here on is missed
        subscription = await self.pubsub.subscribe(operation.topic)
        self.subscriptions[op_id] = subscription
        self.operations[op_id] = asyncio.create_task(
            self._run(op_id, name, operation, args, subscription)
        )

    async def _run(
        self,
        op_id: str,
        name: str,
        operation: Operation,
        args: BaseModel,
        subscription: Subscription,
    ) -> None:
        try:
            async for event in subscription:
                try:
                    deliver = operation.filter(event, args, self.user)
                except ChattyError as e:
                    await self._send_error(op_id, error_payload(e))
                    return
                if deliver:
                    await self.send(self._next_frame(op_id, name, operation, event))
            await self.send({"id": op_id, "type": "complete"})
        except asyncio.CancelledError:
            raise
        except Exception:
            self.logger.exception(f"Subscription {op_id} ({name}) failed")
        finally:
            await subscription.close()
            if self.operations.get(op_id) is asyncio.current_task():
                del self.operations[op_id]
                self.subscriptions.pop(op_id, None)

    @staticmethod
    def _next_frame(
        op_id: str, name: str, operation: Operation, event: Event
    ) -> dict[str, Any]:
        node = operation.render(event)
        return {
            "id": op_id,
            "type": "next",
            "payload": {"data": {name: node.model_dump(mode="json")}},
        }

    async def _send_error(self, op_id: str, errors: list[dict[str, Any]]) -> None:
        await self.send({"id": op_id, "type": "error", "payload": errors})

    async def stop(self, op_id: Any) -> None:
        task = self.operations.pop(op_id, None)
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        # a task cancelled before its first step never reaches its finally block
        subscription = self.subscriptions.pop(op_id, None)
        if subscription is not None:
            await subscription.close()

    async def close(self) -> None:
        for op_id in list(self.operations):
            await self.stop(op_id)

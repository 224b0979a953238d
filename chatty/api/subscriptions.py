# chatty/api/subscriptions.py
import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from chatty.gateways.group_gateway import GroupGateway
from chatty.gateways.user_gateway import UserGateway
from chatty.infrastructure import schemas
from chatty.infrastructure.uow import UnitOfWork
from chatty.interactors.auth_interactor import AuthInteractor
from chatty.interactors.subscription_interactor import (
    CloseConnection,
    SubscriptionSession,
)

router = APIRouter()

SUBPROTOCOL = "graphql-transport-ws"


@router.websocket("")
async def subscriptions_endpoint(websocket: WebSocket):
    state = websocket.app.state
    database = state.database

    # identity and memberships are read in short sessions, never held open
    async def authenticate(token: str | None) -> schemas.User | None:
        async with database.session() as session:
            user_gateway = UserGateway(session, UnitOfWork(session))
            return await AuthInteractor(state.security_service, user_gateway).resolve_user(
                token
            )

    async def load_group_ids(user_id: int) -> set[int]:
        async with database.session() as session:
            return await GroupGateway(session, UnitOfWork(session)).get_user_group_ids(
                user_id
            )

    requested = websocket.scope.get("subprotocols") or []
    await websocket.accept(subprotocol=SUBPROTOCOL if SUBPROTOCOL in requested else None)

    session = SubscriptionSession(
        state.pubsub,
        websocket.send_json,
        authenticate,
        load_group_ids,
        state.logger,
    )
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except json.JSONDecodeError:
                raise CloseConnection(4400, "Invalid message received")
            if not isinstance(frame, dict):
                raise CloseConnection(4400, "Invalid message received")
            await session.handle(frame)
    except CloseConnection as e:
        state.logger.info(f"Closing subscription connection: {e.reason}")
        await websocket.close(code=e.code, reason=e.reason)
    except WebSocketDisconnect:
        state.logger.debug("Subscription client disconnected")
    finally:
        await session.close()

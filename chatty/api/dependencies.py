# chatty/api/dependencies.py
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from chatty.config import AppConfig
from chatty.gateways.group_gateway import GroupGateway
from chatty.gateways.message_gateway import MessageGateway
from chatty.gateways.user_gateway import UserGateway
from chatty.infrastructure import schemas
from chatty.infrastructure.event_dispatcher import EventDispatcher
from chatty.infrastructure.security import SecurityService
from chatty.infrastructure.uow import UnitOfWork
from chatty.interactors.auth_interactor import AuthInteractor, get_authenticated_user
from chatty.interactors.group_interactor import GroupInteractor
from chatty.interactors.message_interactor import MessageInteractor
from chatty.interactors.user_interactor import UserInteractor

bearer_scheme = HTTPBearer(auto_error=False)


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_security_service(request: Request) -> SecurityService:
    return request.app.state.security_service


def get_event_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.event_dispatcher


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_uow(session: AsyncSession = Depends(get_session)) -> UnitOfWork:
    return UnitOfWork(session)


async def get_user_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return UserGateway(session, uow)


async def get_group_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return GroupGateway(session, uow)


async def get_message_gateway(
    session: AsyncSession = Depends(get_session), uow: UnitOfWork = Depends(get_uow)
):
    return MessageGateway(session, uow)


async def get_auth_interactor(
    security_service: SecurityService = Depends(get_security_service),
    user_gateway: UserGateway = Depends(get_user_gateway),
):
    return AuthInteractor(security_service, user_gateway)


async def get_user_interactor(
    user_gateway: UserGateway = Depends(get_user_gateway),
    group_gateway: GroupGateway = Depends(get_group_gateway),
):
    return UserInteractor(user_gateway, group_gateway)


async def get_group_interactor(
    group_gateway: GroupGateway = Depends(get_group_gateway),
    user_gateway: UserGateway = Depends(get_user_gateway),
    message_gateway: MessageGateway = Depends(get_message_gateway),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
):
    return GroupInteractor(group_gateway, user_gateway, message_gateway, dispatcher)


async def get_message_interactor(
    message_gateway: MessageGateway = Depends(get_message_gateway),
    group_gateway: GroupGateway = Depends(get_group_gateway),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
):
    return MessageInteractor(message_gateway, group_gateway, dispatcher)


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_interactor: AuthInteractor = Depends(get_auth_interactor),
) -> Optional[schemas.User]:
    token = credentials.credentials if credentials else None
    return await auth_interactor.resolve_user(token)


async def get_current_user(
    user: Optional[schemas.User] = Depends(get_current_user_optional),
) -> schemas.User:
    return get_authenticated_user(user)

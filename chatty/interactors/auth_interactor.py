# chatty/interactors/auth_interactor.py

from chatty.domain.exceptions import (
    EmailTaken,
    InvalidCredentials,
    InvalidToken,
    StaleSession,
    Unauthenticated,
)
from chatty.gateways.interfaces import IUserGateway
from chatty.infrastructure import schemas
from chatty.infrastructure.security import SecurityService
from chatty.infrastructure.uow import UoWModel


def get_authenticated_user(user: schemas.User | None) -> schemas.User:
    if user is None:
        raise Unauthenticated()
    return user


class AuthInteractor:
    def __init__(self, security_service: SecurityService, user_gateway: IUserGateway):
        self.security_service = security_service
        self.user_gateway = user_gateway

    async def resolve_user(self, token: str | None) -> schemas.User | None:
        """Turn a bearer token into the live user, or None when no token was sent."""
        if not token:
            return None
        claims = await self.security_service.verify_access_token(token)
        if claims is None:
            raise InvalidToken()
        user: UoWModel | None = await self.user_gateway.get_user(claims["id"])
        if user is None:
            raise InvalidToken()
        if claims["version"] != user._model.version:
            raise StaleSession()
        return schemas.User.model_validate(user._model)

    def issue_token(self, user: UoWModel) -> str:
        return self.security_service.create_access_token(
            user._model.id, user._model.email, user._model.version
        )

    def _payload(self, user: UoWModel) -> schemas.AuthPayload:
        return schemas.AuthPayload(
            user=schemas.User.model_validate(user._model),
            token=self.issue_token(user),
        )

    async def login(self, credentials: schemas.LoginRequest) -> schemas.AuthPayload:
        user: UoWModel | None = await self.user_gateway.get_by_email(credentials.email)
        if not user:
            raise InvalidCredentials()
        if not await self.user_gateway.verify_password(
            user, credentials.password, self.security_service
        ):
            raise InvalidCredentials()
        return self._payload(user)

    async def signup(self, signup: schemas.SignupRequest) -> schemas.AuthPayload:
        new_user: UoWModel | None = await self.user_gateway.create_user(
            signup, self.security_service
        )
        if new_user is None:
            raise EmailTaken()
        return self._payload(new_user)

    async def change_password(
        self, current_user: schemas.User, change: schemas.PasswordChange
    ) -> schemas.AuthPayload:
        user: UoWModel | None = await self.user_gateway.get_user(current_user.id)
        if user is None:
            raise Unauthenticated()
        if not await self.user_gateway.verify_password(
            user, change.old_password, self.security_service
        ):
            raise InvalidCredentials("Current password incorrect")
        user = await self.user_gateway.update_password(
            user, change.new_password, self.security_service
        )
        return self._payload(user)

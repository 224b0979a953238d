# chatty/interactors/user_interactor.py

from chatty.domain.exceptions import ForbiddenError, NotFound
from chatty.gateways.interfaces import IGroupGateway, IUserGateway
from chatty.infrastructure import schemas
from chatty.infrastructure.uow import UoWModel


class UserInteractor:
    def __init__(self, user_gateway: IUserGateway, group_gateway: IGroupGateway):
        self.user_gateway = user_gateway
        self.group_gateway = group_gateway

    async def get_user_detail(
        self, user_id: int, current_user: schemas.User
    ) -> schemas.UserDetail:
        # users can only read their own record
        if user_id != current_user.id:
            raise ForbiddenError()
        user: UoWModel | None = await self.user_gateway.get_user(user_id)
        if not user:
            raise NotFound("User not found")

        groups = await self.group_gateway.get_user_groups(user_id)
        friends = await self.user_gateway.get_friends(user_id)
        return schemas.UserDetail(
            **schemas.User.model_validate(user._model).model_dump(),
            groups=[schemas.GroupBasic.model_validate(g._model) for g in groups],
            friends=[schemas.UserBasic.model_validate(f._model) for f in friends],
        )

    async def update_user(
        self, current_user: schemas.User, user_update: schemas.UserUpdate
    ) -> schemas.User:
        user: UoWModel | None = await self.user_gateway.get_user(current_user.id)
        if not user:
            raise NotFound("User not found")
        updated_user = await self.user_gateway.update_user(user, user_update)
        return schemas.User.model_validate(updated_user._model)

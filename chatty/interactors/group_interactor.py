# chatty/interactors/group_interactor.py
from typing import Optional

from chatty.domain.events import GroupCreated
from chatty.domain.exceptions import ForbiddenError, NotFound
from chatty.gateways.interfaces import IGroupGateway, IMessageGateway, IUserGateway
from chatty.infrastructure import schemas
from chatty.infrastructure.event_dispatcher import EventDispatcher
from chatty.infrastructure.uow import UoWModel
from chatty.interactors.pagination import paginate_messages


async def get_member_group(
    group_gateway: IGroupGateway, group_id: int, user_id: int
) -> UoWModel:
    """Load a group the user currently belongs to."""
    group = await group_gateway.get_group(group_id)
    if not group:
        raise NotFound("Group not found")
    if group._model.membership_for(user_id) is None:
        raise ForbiddenError()
    return group


def _check_legacy_user_id(user_id: Optional[int], current_user: schemas.User) -> None:
    # older clients still send their own id along
    if user_id is not None and user_id != current_user.id:
        raise ForbiddenError()


class GroupInteractor:
    def __init__(
        self,
        group_gateway: IGroupGateway,
        user_gateway: IUserGateway,
        message_gateway: IMessageGateway,
        dispatcher: EventDispatcher,
    ):
        self.group_gateway = group_gateway
        self.user_gateway = user_gateway
        self.message_gateway = message_gateway
        self.dispatcher = dispatcher

    async def get_group(
        self,
        group_id: int,
        current_user: schemas.User,
        page: Optional[schemas.PageRequest] = None,
    ) -> schemas.GroupDetail:
        group = await get_member_group(self.group_gateway, group_id, current_user.id)
        connection = await paginate_messages(
            self.message_gateway, group.id, page or schemas.PageRequest()
        )
        last_read_id = group._model.membership_for(current_user.id).last_read_id
        unread_count = await self.message_gateway.count_unread(
            group.id, current_user.id, last_read_id
        )
        return schemas.GroupDetail(
            **schemas.Group.model_validate(group._model).model_dump(),
            messages=connection,
            unread_count=unread_count,
            last_read_id=last_read_id,
        )

    async def create_group(
        self, group_create: schemas.GroupCreate, current_user: schemas.User
    ) -> schemas.Group:
        _check_legacy_user_id(group_create.user_id, current_user)

        # only confirmed friends can be added, anyone else is dropped
        friends = await self.user_gateway.get_friends(
            current_user.id, among=group_create.user_ids
        )
        member_ids = [current_user.id] + [friend.id for friend in friends]

        new_group = await self.group_gateway.create_group(
            group_create.name, member_ids, group_create.icon
        )
        group = schemas.Group.model_validate(new_group._model)
        await self.dispatcher.dispatch(GroupCreated(group=group))
        return group

    async def update_group(
        self,
        group_id: int,
        group_update: schemas.GroupUpdate,
        current_user: schemas.User,
    ) -> schemas.Group:
        group = await get_member_group(self.group_gateway, group_id, current_user.id)
        fields = group_update.model_fields_set

        if group_update.last_read is not None:
            message = await self.message_gateway.get_message(group_update.last_read)
            if not message or message.group_id != group.id:
                raise NotFound("Message not found")
            group = await self.group_gateway.set_last_read(
                group, current_user.id, message.id
            )
        if fields & {"name", "icon"}:
            group = await self.group_gateway.update_group(group, group_update)
        return schemas.Group.model_validate(group._model)

    async def delete_group(
        self, group_id: int, current_user: schemas.User
    ) -> schemas.GroupRef:
        group = await get_member_group(self.group_gateway, group_id, current_user.id)
        await self.group_gateway.delete_group(group)
        return schemas.GroupRef(id=group_id)

    async def leave_group(
        self,
        group_id: int,
        current_user: schemas.User,
        user_id: Optional[int] = None,
    ) -> schemas.GroupRef:
        _check_legacy_user_id(user_id, current_user)
        group = await get_member_group(self.group_gateway, group_id, current_user.id)
        await self.group_gateway.remove_member(group, current_user.id)
        return schemas.GroupRef(id=group_id)

# chatty/interactors/message_interactor.py
from typing import Optional

from chatty.domain.events import MessageCreated
from chatty.gateways.interfaces import IGroupGateway, IMessageGateway
from chatty.infrastructure import schemas
from chatty.infrastructure.event_dispatcher import EventDispatcher
from chatty.interactors.group_interactor import get_member_group
from chatty.interactors.pagination import paginate_messages


class MessageInteractor:
    def __init__(
        self,
        message_gateway: IMessageGateway,
        group_gateway: IGroupGateway,
        dispatcher: EventDispatcher,
    ):
        self.message_gateway = message_gateway
        self.group_gateway = group_gateway
        self.dispatcher = dispatcher

    async def get_messages(
        self,
        group_id: int,
        current_user: schemas.User,
        page: Optional[schemas.PageRequest] = None,
    ) -> schemas.MessageConnection:
        group = await get_member_group(self.group_gateway, group_id, current_user.id)
        return await paginate_messages(
            self.message_gateway, group.id, page or schemas.PageRequest()
        )

    async def create_message(
        self, message: schemas.MessageCreate, current_user: schemas.User
    ) -> schemas.Message:
        await get_member_group(self.group_gateway, message.group_id, current_user.id)
        new_message = await self.message_gateway.create_message(
            message, current_user.id
        )
        created = schemas.Message.model_validate(new_message._model)
        # the write is committed at this point, subscribers may see it
        await self.dispatcher.dispatch(
            MessageCreated(group_id=created.group_id, message=created)
        )
        return created

# chatty/gateways/message_gateway.py
from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatty.gateways.interfaces import IMessageGateway
from chatty.infrastructure import models, schemas
from chatty.infrastructure.data_mappers import MessageMapper
from chatty.infrastructure.uow import UnitOfWork, UoWModel


class MessageGateway(IMessageGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.Message] = MessageMapper(session)

    @staticmethod
    def _range_filters(
        group_id: int, newer_than: int | None, older_than: int | None
    ) -> list:
        filters = [models.Message.group_id == group_id]
        if newer_than is not None:
            filters.append(models.Message.id > newer_than)
        if older_than is not None:
            filters.append(models.Message.id < older_than)
        return filters

    async def get_message(self, message_id: int) -> UoWModel | None:
        stmt = select(models.Message).filter(models.Message.id == message_id)
        result = await self.session.execute(stmt)
        message = result.scalar_one_or_none()
        return UoWModel(message, self.uow) if message else None

    async def create_message(
        self, message: schemas.MessageCreate, user_id: int
    ) -> UoWModel:
        sender = await self.session.get(models.User, user_id)
        if sender is None:
            raise ValueError(f"User with id {user_id} not found")

        db_message = models.Message(
            text=message.text,
            group_id=message.group_id,
            user_id=user_id,
            user=sender,
            created_at=models.utcnow(),
        )
        uow_message = self.uow.register_new(db_message)
        await self.uow.commit()
        return uow_message

    async def get_page(
        self,
        group_id: int,
        limit: int | None = None,
        newer_than: int | None = None,
        older_than: int | None = None,
    ) -> list[UoWModel]:
        stmt = (
            select(models.Message)
            .filter(*self._range_filters(group_id, newer_than, older_than))
            .order_by(models.Message.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        messages = result.scalars().all()
        return [UoWModel(message, self.uow) for message in messages]

    async def exists_between(
        self,
        group_id: int,
        newer_than: int | None = None,
        older_than: int | None = None,
    ) -> bool:
        stmt = select(
            exists().where(*self._range_filters(group_id, newer_than, older_than))
        )
        return bool(await self.session.scalar(stmt))

    async def count_unread(
        self, group_id: int, user_id: int, last_read_id: int | None = None
    ) -> int:
        stmt = select(func.count(models.Message.id)).filter(
            *self._range_filters(group_id, last_read_id, None),
            models.Message.user_id != user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

# chatty/gateways/group_gateway.py
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatty.gateways.interfaces import IGroupGateway
from chatty.infrastructure import models, schemas
from chatty.infrastructure.data_mappers import GroupMapper
from chatty.infrastructure.uow import UnitOfWork, UoWModel


class GroupGateway(IGroupGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.Group] = GroupMapper(session)

    async def get_group(self, group_id: int) -> Optional[UoWModel]:
        stmt = select(models.Group).filter(models.Group.id == group_id)
        result = await self.session.execute(stmt)
        group = result.scalar_one_or_none()
        return UoWModel(group, self.uow) if group else None

    async def get_user_groups(self, user_id: int) -> List[UoWModel]:
        stmt = (
            select(models.Group)
            .join(models.GroupMember, models.GroupMember.group_id == models.Group.id)
            .filter(models.GroupMember.user_id == user_id)
            .order_by(models.Group.id)
        )
        result = await self.session.execute(stmt)
        groups = result.scalars().all()
        return [UoWModel(group, self.uow) for group in groups]

    async def get_user_group_ids(self, user_id: int) -> set[int]:
        stmt = select(models.GroupMember.group_id).filter(
            models.GroupMember.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def create_group(
        self, name: str, member_ids: List[int], icon: Optional[str] = None
    ) -> UoWModel:
        stmt = select(models.User).filter(models.User.id.in_(member_ids))
        result = await self.session.execute(stmt)
        users = {user.id: user for user in result.scalars().all()}

        db_group = models.Group(name=name, icon=icon, created_at=models.utcnow())
        # keep the caller's order so the creator stays the first member
        for member_id in dict.fromkeys(member_ids):
            if member_id in users:
                db_group.memberships.append(models.GroupMember(user=users[member_id]))
        uow_group = self.uow.register_new(db_group)
        await self.uow.commit()
        return uow_group

    async def update_group(
        self, group: UoWModel, group_update: schemas.GroupUpdate
    ) -> UoWModel:
        update_data = group_update.model_dump(exclude_unset=True)
        if update_data.get("name") is not None:
            group.name = update_data["name"]
        if "icon" in update_data:
            group.icon = update_data["icon"]
        await self.uow.commit()
        return group

    async def set_last_read(
        self, group: UoWModel, user_id: int, message_id: int
    ) -> UoWModel:
        membership = group._model.membership_for(user_id)
        if membership is None:
            raise ValueError(f"User {user_id} is not a member of group {group.id}")
        membership.last_read_id = message_id
        self.uow.register_dirty(group._model)
        await self.uow.commit()
        return group

    async def remove_member(self, group: UoWModel, user_id: int) -> bool:
        """Drop one membership; returns True when the group was deleted with it."""
        membership = group._model.membership_for(user_id)
        if membership is not None:
            group._model.memberships.remove(membership)
        if group._model.memberships:
            self.uow.register_dirty(group._model)
            await self.uow.commit()
            return False
        await self._delete_cascade(group)
        await self.uow.commit()
        return True

    async def delete_group(self, group: UoWModel) -> None:
        group._model.memberships.clear()
        await self._delete_cascade(group)
        await self.uow.commit()

    async def _delete_cascade(self, group: UoWModel) -> None:
        # memberships go with the group through the orphan cascade,
        # messages are removed here, everything lands in one commit
        await self.session.execute(
            delete(models.Message).where(models.Message.group_id == group.id)
        )
        self.uow.register_deleted(group._model)

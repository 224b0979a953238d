# chatty/gateways/user_gateway.py


from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatty.gateways.interfaces import IUserGateway
from chatty.infrastructure import models, schemas
from chatty.infrastructure.data_mappers import UserMapper
from chatty.infrastructure.security import SecurityService
from chatty.infrastructure.uow import UnitOfWork, UoWModel


class UserGateway(IUserGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.User] = UserMapper(session)

    async def get_user(self, user_id: int) -> UoWModel | None:
        stmt = select(models.User).filter(models.User.id == user_id)
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_by_email(self, email: str) -> UoWModel | None:
        stmt = select(models.User).filter(
            func.lower(models.User.email) == func.lower(email)
        )
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_friends(
        self, user_id: int, among: list[int] | None = None
    ) -> list[UoWModel]:
        stmt = (
            select(models.User)
            .join(models.friends, models.friends.c.friend_id == models.User.id)
            .filter(models.friends.c.user_id == user_id)
        )
        if among is not None:
            stmt = stmt.filter(models.User.id.in_(among))
        stmt = stmt.order_by(models.User.id)
        result = await self.session.execute(stmt)
        friends = result.scalars().all()
        return [UoWModel(friend, self.uow) for friend in friends]

    async def add_friend(self, user_id: int, friend_id: int) -> None:
        if user_id == friend_id:
            raise ValueError("A user cannot befriend themselves")
        existing = await self.get_friends(user_id, among=[friend_id])
        if existing:
            return
        await self.session.execute(
            insert(models.friends),
            [
                {"user_id": user_id, "friend_id": friend_id},
                {"user_id": friend_id, "friend_id": user_id},
            ],
        )
        await self.uow.commit()

    async def create_user(
        self, user: schemas.SignupRequest, security_service: SecurityService
    ) -> UoWModel | None:
        existing_user = await self.get_by_email(user.email)
        if existing_user:
            return None

        hashed_password = await security_service.hash_password(user.password)
        db_user = models.User(
            email=user.email,
            username=user.username or user.email.split("@")[0],
            hashed_password=hashed_password,
            version=1,
            badge_count=0,
            created_at=models.utcnow(),
        )
        uow_user = self.uow.register_new(db_user)
        await self.uow.commit()
        return uow_user

    async def update_user(
        self, user: UoWModel, user_update: schemas.UserUpdate
    ) -> UoWModel:
        user_update_data = user_update.model_dump(exclude_unset=True)
        if user_update_data.get("badge_count") is not None:
            user.badge_count = user_update_data["badge_count"]
        if "registration_id" in user_update_data:
            user.registration_id = user_update_data["registration_id"]

        await self.uow.commit()
        return user

    async def verify_password(
        self, user: UoWModel, password: str, security_service: SecurityService
    ) -> bool:
        return await security_service.check_password(
            password, user._model.hashed_password
        )

    async def update_password(
        self, user: UoWModel, new_password: str, security_service: SecurityService
    ) -> UoWModel:
        user.hashed_password = await security_service.hash_password(new_password)
        # every token issued for the previous version stops resolving
        user.version = user._model.version + 1
        await self.uow.commit()
        return user

    async def bump_badge_counts(self, user_ids: list[int]) -> list[UoWModel]:
        if not user_ids:
            return []
        stmt = select(models.User).filter(
            models.User.id.in_(user_ids), models.User.registration_id.is_not(None)
        )
        result = await self.session.execute(stmt)
        users = [UoWModel(user, self.uow) for user in result.scalars().all()]
        for user in users:
            user.badge_count = user._model.badge_count + 1
        await self.uow.commit()
        return users

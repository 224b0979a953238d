# chatty/gateways/interfaces.py
from abc import ABC, abstractmethod
from typing import List, Optional

from chatty.infrastructure import schemas
from chatty.infrastructure.security import SecurityService
from chatty.infrastructure.uow import UoWModel


class IUserGateway(ABC):
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_friends(
        self, user_id: int, among: Optional[List[int]] = None
    ) -> List[UoWModel]:
        pass

    @abstractmethod
    async def add_friend(self, user_id: int, friend_id: int) -> None:
        pass

    @abstractmethod
    async def create_user(
        self, user: schemas.SignupRequest, security_service: SecurityService
    ) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def update_user(
        self, user: UoWModel, user_update: schemas.UserUpdate
    ) -> UoWModel:
        pass

    @abstractmethod
    async def verify_password(
        self, user: UoWModel, password: str, security_service: SecurityService
    ) -> bool:
        pass

    @abstractmethod
    async def update_password(
        self, user: UoWModel, new_password: str, security_service: SecurityService
    ) -> UoWModel:
        pass

    @abstractmethod
    async def bump_badge_counts(self, user_ids: List[int]) -> List[UoWModel]:
        pass


class IGroupGateway(ABC):
    @abstractmethod
    async def get_group(self, group_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_user_groups(self, user_id: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def get_user_group_ids(self, user_id: int) -> set[int]:
        pass

    @abstractmethod
    async def create_group(
        self, name: str, member_ids: List[int], icon: Optional[str] = None
    ) -> UoWModel:
        pass

    @abstractmethod
    async def update_group(
        self, group: UoWModel, group_update: schemas.GroupUpdate
    ) -> UoWModel:
        pass

    @abstractmethod
    async def set_last_read(
        self, group: UoWModel, user_id: int, message_id: int
    ) -> UoWModel:
        pass

    @abstractmethod
    async def remove_member(self, group: UoWModel, user_id: int) -> bool:
        pass

    @abstractmethod
    async def delete_group(self, group: UoWModel) -> None:
        pass


class IMessageGateway(ABC):
    @abstractmethod
    async def get_message(self, message_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_message(
        self, message: schemas.MessageCreate, user_id: int
    ) -> UoWModel:
        pass

    @abstractmethod
    async def get_page(
        self,
        group_id: int,
        limit: Optional[int] = None,
        newer_than: Optional[int] = None,
        older_than: Optional[int] = None,
    ) -> List[UoWModel]:
        pass

    @abstractmethod
    async def exists_between(
        self,
        group_id: int,
        newer_than: Optional[int] = None,
        older_than: Optional[int] = None,
    ) -> bool:
        pass

    @abstractmethod
    async def count_unread(
        self, group_id: int, user_id: int, last_read_id: Optional[int] = None
    ) -> int:
        pass

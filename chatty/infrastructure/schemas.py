# chatty/infrastructure/schemas.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBasic(BaseModel):
    id: int
    username: str | None = None

    model_config = ConfigDict(from_attributes=True)


class User(UserBasic):
    email: str
    version: int
    badge_count: int = 0
    registration_id: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    badge_count: int | None = Field(None, ge=0)
    registration_id: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    username: str | None = None


class PasswordChange(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=8)


class AuthPayload(BaseModel):
    user: User
    token: str
    token_type: str = "bearer"


class GroupBasic(BaseModel):
    id: int
    name: str
    icon: str | None = None

    model_config = ConfigDict(from_attributes=True)


class Group(GroupBasic):
    created_at: datetime
    members: list[UserBasic] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @property
    def member_ids(self) -> list[int]:
        return [member.id for member in self.members]


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    user_ids: list[int] = Field(default_factory=list)
    # legacy argument, must be the caller when present
    user_id: int | None = None
    icon: str | None = None


class GroupUpdate(BaseModel):
    name: str | None = Field(None, min_length=1)
    icon: str | None = None
    last_read: int | None = None


class GroupLeave(BaseModel):
    user_id: int | None = None


class GroupRef(BaseModel):
    id: int


class UserDetail(User):
    groups: list[GroupBasic] = Field(default_factory=list)
    friends: list[UserBasic] = Field(default_factory=list)


class MessageCreate(BaseModel):
    text: str = Field(..., min_length=1)
    group_id: int


class Message(BaseModel):
    id: int
    text: str
    created_at: datetime
    group_id: int
    user_id: int
    user: UserBasic

    model_config = ConfigDict(from_attributes=True)


class PageRequest(BaseModel):
    first: int | None = Field(None, ge=0)
    after: str | None = None
    last: int | None = Field(None, ge=0)
    before: str | None = None

    @property
    def limit(self) -> int | None:
        return self.first if self.first is not None else self.last


class MessageEdge(BaseModel):
    cursor: str
    node: Message


class PageInfo(BaseModel):
    has_next_page: bool
    has_previous_page: bool


class MessageConnection(BaseModel):
    edges: list[MessageEdge] = Field(default_factory=list)
    page_info: PageInfo


class GroupDetail(Group):
    messages: MessageConnection
    unread_count: int = 0
    last_read_id: int | None = None


class MessageAddedArgs(BaseModel):
    user_id: int | None = Field(None, alias="userId")
    group_ids: list[int] | None = Field(None, alias="groupIds")

    model_config = ConfigDict(populate_by_name=True)


class GroupAddedArgs(BaseModel):
    user_id: int | None = Field(None, alias="userId")

    model_config = ConfigDict(populate_by_name=True)

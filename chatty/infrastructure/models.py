# chatty/infrastructure/models.py
from datetime import UTC, datetime
from typing import List, Optional

from chatty.infrastructure.database import Base
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func


def utcnow() -> datetime:
    return datetime.now(UTC)


# stored in both directions, friendship is symmetric
friends = Table(
    "friends",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
    Column("friend_id", Integer, ForeignKey("users.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    username: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    hashed_password: Mapped[str] = mapped_column(String)
    # bumped whenever credentials change, invalidates every issued token
    version: Mapped[int] = mapped_column(Integer, default=1)
    badge_count: Mapped[int] = mapped_column(Integer, default=0)
    registration_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    friends: Mapped[List["User"]] = relationship(
        "User",
        secondary=friends,
        primaryjoin=lambda: User.id == friends.c.user_id,
        secondaryjoin=lambda: User.id == friends.c.friend_id,
        lazy="select",
    )


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String)
    icon: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    # ordered by join order, memberships[0] is the creator
    memberships: Mapped[List["GroupMember"]] = relationship(
        "GroupMember",
        order_by="GroupMember.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def members(self) -> List[User]:
        return [membership.user for membership in self.memberships]

    def membership_for(self, user_id: int) -> Optional["GroupMember"]:
        return next(
            (m for m in self.memberships if m.user_id == user_id), None
        )


class GroupMember(Base):
    __tablename__ = "group_members"

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
        Index("ix_group_members_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(Integer, ForeignKey("groups.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"))
    last_read_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    user: Mapped[User] = relationship("User", lazy="joined")


class Message(Base):
    __tablename__ = "messages"

    # AUTOINCREMENT keeps ids of deleted messages from being reused
    __table_args__ = (
        Index("ix_messages_group_id_id", "group_id", "id"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    text: Mapped[str] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    # no cascade from membership removal, former members keep their messages
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    group_id: Mapped[int] = mapped_column(Integer, ForeignKey("groups.id"))

    user: Mapped[User] = relationship(
        "User",
        lazy="joined",  # Many-to-one, always rendered as the sender
    )

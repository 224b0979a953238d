# chatty/infrastructure/seed_data.py
import logging
import random

from sqlalchemy import select

from chatty.gateways.group_gateway import GroupGateway
from chatty.gateways.message_gateway import MessageGateway
from chatty.gateways.user_gateway import UserGateway
from chatty.infrastructure import models, schemas
from chatty.infrastructure.database import Database
from chatty.infrastructure.security import SecurityService
from chatty.infrastructure.uow import UnitOfWork

GROUPS = 4
USERS_PER_GROUP = 5
MESSAGES_PER_USER = 5

WORDS = (
    "lorem ipsum dolor sit amet trip lunch weekend plans coffee board games "
    "hiking climbing music movies study group project deadline pizza beach"
).split()


def _words(rng: random.Random, count: int) -> str:
    return " ".join(rng.choice(WORDS) for _ in range(count))


async def init_seed_data(
    database: Database,
    security_service: SecurityService,
    logger: logging.Logger,
    seed: int = 123,
) -> list[tuple[str, str]]:
    """Fill an empty database with groups of befriended users and their messages.

    Returns the generated ``(email, password)`` pairs. Does nothing when users
    already exist.
    """
    rng = random.Random(seed)
    credentials: list[tuple[str, str]] = []

    async with database.session() as session:
        if await session.scalar(select(models.User.id).limit(1)) is not None:
            logger.info("Seed data skipped, database is not empty")
            return credentials

        uow = UnitOfWork(session)
        user_gateway = UserGateway(session, uow)
        group_gateway = GroupGateway(session, uow)
        message_gateway = MessageGateway(session, uow)

        for group_index in range(GROUPS):
            member_ids = []
            for user_index in range(USERS_PER_GROUP):
                username = f"{rng.choice(WORDS)}{group_index}{user_index}"
                password = f"{_words(rng, 2).replace(' ', '-')}-{rng.randint(100, 999)}"
                user = await user_gateway.create_user(
                    schemas.SignupRequest(
                        email=f"{username}@example.com",
                        password=password,
                        username=username,
                    ),
                    security_service,
                )
                member_ids.append(user.id)
                credentials.append((user.email, password))
                logger.info(f"Seed user {user.email} ({username}) password: {password}")

            # everyone in a group is friends with everyone else in it
            for i, user_id in enumerate(member_ids):
                for friend_id in member_ids[i + 1:]:
                    await user_gateway.add_friend(user_id, friend_id)

            group = await group_gateway.create_group(_words(rng, 3), member_ids)
            for user_id in member_ids:
                for _ in range(MESSAGES_PER_USER):
                    await message_gateway.create_message(
                        schemas.MessageCreate(
                            text=_words(rng, rng.randint(4, 12)).capitalize() + ".",
                            group_id=group.id,
                        ),
                        user_id,
                    )

    logger.info(f"Seeded {GROUPS} groups with {len(credentials)} users")
    return credentials

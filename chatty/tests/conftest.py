# chatty/tests/conftest.py

import random
import string
from datetime import UTC, datetime

import pytest
from fakeredis import aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from chatty.api import dependencies
from chatty.config import AppConfig
from chatty.gateways.group_gateway import GroupGateway
from chatty.gateways.message_gateway import MessageGateway
from chatty.gateways.user_gateway import UserGateway
from chatty.infrastructure import schemas
from chatty.infrastructure.database import Base, create_database
from chatty.infrastructure.security import SecurityService
from chatty.infrastructure.uow import UnitOfWork
from chatty.main import Application

TEST_PASSWORD = "testpassword"


@pytest.fixture(scope="function")
def app_config():
    """
    Provide a test configuration with an in-memory SQLite database.
    """
    return AppConfig(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        SECRET_KEY="test_secret_key",
        PROJECT_NAME="Test Chatty API",
        PROJECT_VERSION="1.0.0",
        PROJECT_DESCRIPTION="Test Chatty API",
        API_V1_STR="/api/v1",
        ALGORITHM="HS256",
        BCRYPT_ROUNDS=4,
        PUBSUB_BACKEND="memory",
        SUBSCRIPTION_QUEUE_SIZE=10,
        PUSH_ENABLED=False,
        SEED_DATA=False,
    )


@pytest.fixture(scope="function")
async def mock_redis():
    """Provide a fake Redis client for testing."""
    redis = aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture(scope="function")
async def engine(app_config):
    """Create a SQLAlchemy engine for testing with a single shared connection."""
    engine = create_async_engine(
        app_config.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Reuse the same connection
        echo=False,
    )
    async with engine.begin() as conn:
        from chatty.infrastructure import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def database(engine):
    return create_database(engine)


@pytest.fixture(scope="function")
async def db_session(engine):
    """Provide a SQLAlchemy session for testing."""
    async_session_factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False
    )
    session = async_session_factory()
    yield session
    await session.close()


@pytest.fixture(scope="function")
async def uow(db_session):
    """Provide a UnitOfWork bound to the test session."""
    return UnitOfWork(db_session)


@pytest.fixture(scope="function")
def security_service(app_config):
    return SecurityService(app_config)


@pytest.fixture(scope="function")
def user_gateway(db_session, uow):
    return UserGateway(db_session, uow)


@pytest.fixture(scope="function")
def group_gateway(db_session, uow):
    return GroupGateway(db_session, uow)


@pytest.fixture(scope="function")
def message_gateway(db_session, uow):
    return MessageGateway(db_session, uow)


@pytest.fixture(scope="function")
def make_user(user_gateway, security_service):
    """Create users with unique emails."""

    async def _make_user(username=None, password=TEST_PASSWORD):
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=10))
        username = username or f"testuser_{suffix}"
        signup = schemas.SignupRequest(
            email=f"{username}_{suffix}@example.com",
            password=password,
            username=username,
        )
        return await user_gateway.create_user(signup, security_service)

    return _make_user


@pytest.fixture(scope="function")
def befriend(user_gateway):
    async def _befriend(user, *others):
        for other in others:
            await user_gateway.add_friend(user.id, other.id)

    return _befriend


@pytest.fixture(scope="function")
def make_message(message_gateway):
    async def _make_message(group, user, text=None):
        message = schemas.MessageCreate(
            text=text or f"message at {datetime.now(UTC).isoformat()}",
            group_id=group.id,
        )
        return await message_gateway.create_message(message, user.id)

    return _make_message


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """Override the get_session dependency to use the test session."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture(scope="function")
async def application(app_config, database):
    """Build the application around the test database."""
    application = Application(config=app_config)
    application.database = database
    application.event_handlers.database = database
    return application


@pytest.fixture(scope="function")
async def app(application):
    return application.create_app()


@pytest.fixture(scope="function")
async def app_with_db(app, override_get_db):
    """Override dependencies to use the test database session."""
    app.dependency_overrides[dependencies.get_session] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app_with_db):
    """Provide an HTTP client with the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app_with_db), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture(scope="function")
async def test_user(make_user):
    """Create a test user in the database."""
    return await make_user()


@pytest.fixture(scope="function")
async def test_user2(make_user):
    """Create a second test user in the database."""
    return await make_user()


@pytest.fixture(scope="function")
async def test_group(group_gateway, test_user, test_user2, befriend):
    """Create a group with both test users, the first one as creator."""
    await befriend(test_user, test_user2)
    return await group_gateway.create_group("Test Group", [test_user.id, test_user2.id])


@pytest.fixture(scope="function")
def login_as(client):
    """Log a user in through the API and return the authorization header."""

    async def _login_as(user, password=TEST_PASSWORD):
        response = await client.post(
            "/api/v1/auth/login", json={"email": user.email, "password": password}
        )
        assert response.status_code == 200, f"Login failed: {response.json()}"
        token = response.json().get("token")
        assert token is not None, "Token was not returned in the response"
        return {"Authorization": f"Bearer {token}"}

    return _login_as


@pytest.fixture(scope="function")
async def auth_header(login_as, test_user):
    """Provide an authorization header for authenticated requests."""
    return await login_as(test_user)


@pytest.fixture(scope="function")
async def auth_header2(login_as, test_user2):
    return await login_as(test_user2)

# chatty/tests/unit/test_database.py
import pytest
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from chatty.infrastructure.database import Database


@pytest.fixture
async def in_memory_db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    db = Database(engine=engine)
    yield db
    await engine.dispose()


async def test_database_connect_creates_tables(in_memory_db):
    await in_memory_db.connect()

    async with in_memory_db.engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    assert {"users", "friends", "groups", "group_members", "messages"} <= set(tables)


async def test_database_disconnect(in_memory_db):
    await in_memory_db.connect()

    # Test that the engine is working before disconnect
    async with in_memory_db.engine.connect() as conn:
        result = await conn.execute(text("SELECT 1"))
        assert result.scalar() == 1

    await in_memory_db.disconnect()
    assert in_memory_db.engine is not None


async def test_database_session(in_memory_db):
    async with in_memory_db.session() as session:
        assert isinstance(session, AsyncSession)

# chatty/tests/unit/test_unit_of_work.py

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from chatty.domain.exceptions import StorageFailure
from chatty.infrastructure import models
from chatty.infrastructure.data_mappers import UserMapper
from chatty.infrastructure.uow import UnitOfWork, UoWModel


@pytest.fixture
def mock_session():
    """
    Provides a mocked AsyncSession for testing.
    """
    return AsyncMock()


@pytest.fixture
def uow(mock_session):
    """
    Initializes the UnitOfWork with a mocked UserMapper.
    """
    uow = UnitOfWork(mock_session)
    user_mapper = UserMapper(mock_session)
    user_mapper.insert = AsyncMock()
    user_mapper.update = AsyncMock()
    user_mapper.delete = AsyncMock()
    uow.mappers[models.User] = user_mapper
    return uow


def make_user(email="test@example.com"):
    return models.User(username="testuser", email=email, version=1)


async def test_register_new_model(uow):
    user = make_user()
    uow_model = uow.register_new(user)

    assert len(uow.new) == 1, "New models should be tracked in 'new'"
    assert id(user) in uow.new, "Registered model should exist in 'new'"
    assert isinstance(uow_model, UoWModel), "Returned object should be an instance of UoWModel"


async def test_modify_new_model_does_not_register_dirty(uow):
    user = make_user()
    uow_model = uow.register_new(user)

    uow_model.username = "updateduser"

    assert len(uow.dirty) == 0, "'dirty' should remain empty for new models"
    assert user.username == "updateduser"


async def test_modify_existing_model_registers_dirty(uow):
    user = make_user()

    uow_model = UoWModel(user, uow)
    uow_model.badge_count = 3

    assert id(user) in uow.dirty, "Modified existing model should exist in 'dirty'"


async def test_register_deleted_model_removes_from_new_and_dirty(uow):
    new_user = make_user("new@example.com")
    uow_model = uow.register_new(new_user)

    dirty_user = make_user("dirty@example.com")
    uow.register_dirty(dirty_user)

    uow.register_deleted(uow_model)
    uow.register_deleted(dirty_user)

    assert id(new_user) not in uow.new, "Deleted new model shouldn't remain in 'new'"
    assert id(new_user) not in uow.deleted, "Deleted new model should not be in 'deleted'"
    assert id(dirty_user) not in uow.dirty, "Deleted dirty model should be removed from 'dirty'"
    assert id(dirty_user) in uow.deleted, "Deleted dirty model should be added to 'deleted'"


async def test_commit_handles_multiple_operations(uow, mock_session):
    new_user = make_user("new@example.com")
    uow.register_new(new_user)

    existing_user = make_user("existing@example.com")
    uow.register_dirty(existing_user)

    to_delete_user = make_user("delete@example.com")
    uow.register_deleted(to_delete_user)

    await uow.commit()

    uow.mappers[models.User].insert.assert_awaited_once_with(new_user)
    uow.mappers[models.User].update.assert_awaited_once_with(existing_user)
    uow.mappers[models.User].delete.assert_awaited_once_with(to_delete_user)
    mock_session.commit.assert_awaited_once()
    assert not uow.new and not uow.dirty and not uow.deleted


async def test_commit_without_session_only_flushes():
    uow = UnitOfWork()
    mapper = AsyncMock()
    uow.mappers[models.User] = mapper
    user = make_user()
    uow.register_new(user)

    await uow.commit()

    mapper.insert.assert_awaited_once_with(user)
    assert not uow.new


async def test_commit_failure_rolls_back_and_raises_storage_failure(uow, mock_session):
    uow.mappers[models.User].insert.side_effect = OperationalError(
        "INSERT", {}, Exception("database is locked")
    )
    uow.register_new(make_user())

    with pytest.raises(StorageFailure):
        await uow.commit()

    mock_session.rollback.assert_awaited_once()
    mock_session.commit.assert_not_awaited()
    assert not uow.new, "Pending models are cleared after a failed commit"

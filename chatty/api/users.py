# chatty/api/users.py
from fastapi import APIRouter, Depends

from chatty.api.dependencies import get_current_user, get_user_interactor
from chatty.infrastructure import schemas
from chatty.interactors.user_interactor import UserInteractor

router = APIRouter()


@router.get("/me", response_model=schemas.UserDetail)
async def read_users_me(
    user_interactor: UserInteractor = Depends(get_user_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await user_interactor.get_user_detail(current_user.id, current_user)


@router.put("/me", response_model=schemas.User)
async def update_user(
    user_update: schemas.UserUpdate,
    user_interactor: UserInteractor = Depends(get_user_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await user_interactor.update_user(current_user, user_update)


@router.get("/{user_id}", response_model=schemas.UserDetail)
async def read_user(
    user_id: int,
    user_interactor: UserInteractor = Depends(get_user_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await user_interactor.get_user_detail(user_id, current_user)

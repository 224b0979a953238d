# chatty/api/groups.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from chatty.api.dependencies import get_current_user, get_group_interactor
from chatty.infrastructure import schemas
from chatty.interactors.group_interactor import GroupInteractor

router = APIRouter()


@router.post("/", response_model=schemas.Group)
async def create_group(
    group: schemas.GroupCreate,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await group_interactor.create_group(group, current_user)


@router.get("/{group_id}", response_model=schemas.GroupDetail)
async def read_group(
    group_id: int,
    first: Optional[int] = Query(None, ge=0),
    after: Optional[str] = Query(None, description="Return messages older than this cursor"),
    last: Optional[int] = Query(None, ge=0),
    before: Optional[str] = Query(None, description="Return messages newer than this cursor"),
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    page = schemas.PageRequest(first=first, after=after, last=last, before=before)
    return await group_interactor.get_group(group_id, current_user, page)


@router.put("/{group_id}", response_model=schemas.Group)
async def update_group(
    group_id: int,
    group_update: schemas.GroupUpdate,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await group_interactor.update_group(group_id, group_update, current_user)


@router.delete("/{group_id}", response_model=schemas.GroupRef)
async def delete_group(
    group_id: int,
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await group_interactor.delete_group(group_id, current_user)


@router.post("/{group_id}/leave", response_model=schemas.GroupRef)
async def leave_group(
    group_id: int,
    leave: Optional[schemas.GroupLeave] = Body(None),
    group_interactor: GroupInteractor = Depends(get_group_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    user_id = leave.user_id if leave else None
    return await group_interactor.leave_group(group_id, current_user, user_id)

# chatty/api/messages.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from chatty.api.dependencies import get_current_user, get_message_interactor
from chatty.infrastructure import schemas
from chatty.interactors.message_interactor import MessageInteractor

router = APIRouter()


@router.post("/", response_model=schemas.Message, status_code=status.HTTP_201_CREATED)
async def create_message(
    message: schemas.MessageCreate,
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await message_interactor.create_message(message, current_user)


@router.get("/", response_model=schemas.MessageConnection)
async def read_messages(
    group_id: int,
    first: Optional[int] = Query(None, ge=0),
    after: Optional[str] = Query(None),
    last: Optional[int] = Query(None, ge=0),
    before: Optional[str] = Query(None),
    message_interactor: MessageInteractor = Depends(get_message_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    page = schemas.PageRequest(first=first, after=after, last=last, before=before)
    return await message_interactor.get_messages(group_id, current_user, page)

# chatty/api/auth.py
from fastapi import APIRouter, Depends, status

from chatty.api.dependencies import get_auth_interactor, get_current_user
from chatty.infrastructure import schemas
from chatty.interactors.auth_interactor import AuthInteractor

router = APIRouter()


@router.post("/login", response_model=schemas.AuthPayload)
async def login(
    credentials: schemas.LoginRequest,
    auth_interactor: AuthInteractor = Depends(get_auth_interactor),
):
    return await auth_interactor.login(credentials)


@router.post(
    "/signup", response_model=schemas.AuthPayload, status_code=status.HTTP_201_CREATED
)
async def signup(
    signup_request: schemas.SignupRequest,
    auth_interactor: AuthInteractor = Depends(get_auth_interactor),
):
    return await auth_interactor.signup(signup_request)


@router.post("/password", response_model=schemas.AuthPayload)
async def change_password(
    change: schemas.PasswordChange,
    auth_interactor: AuthInteractor = Depends(get_auth_interactor),
    current_user: schemas.User = Depends(get_current_user),
):
    return await auth_interactor.change_password(current_user, change)

# justgold/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from justgold.core.auth import require_auth
from justgold.database import get_session
from justgold.models.user import User
from justgold.repositories.user_repo import UserRepository
from justgold.schemas.user import TokenResponse, UserLogin, UserRead, UserRegister
from justgold.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])

repo = UserRepository()
service = UserService(repo)


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: UserRegister,
    session: Session = Depends(get_session),
):
    """
    Create a customer account and return an access token.
    """
    return service.register(session, payload)


@router.post("/login", response_model=TokenResponse)
def login(
    payload: UserLogin,
    session: Session = Depends(get_session),
):
    return service.login(session, payload)


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(require_auth)):
    """
    Return the authenticated user's profile.
    """
    return current_user

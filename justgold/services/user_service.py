# justgold/services/user_service.py
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from justgold.core.auth import create_access_token, hash_password, verify_password
from justgold.models.user import User
from justgold.repositories.user_repo import UserRepository
from justgold.schemas.user import TokenResponse, UserLogin, UserRead, UserRegister

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for accounts.

    Responsibilities:
      - hash passwords on registration, verify them on login
      - issue access tokens
      - map domain errors to HTTP errors
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def _token_for(self, user: User) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(user),
            user=UserRead.model_validate(user, from_attributes=True),
        )

    def register(self, session: Session, payload: UserRegister) -> TokenResponse:
        """
        Create a 'user' account and return a token for it.

        Raises:
            HTTPException(409): if the email is already registered.
        """
        if self.repo.get_by_email(session, payload.email) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered",
            )

        user = User(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            role="user",
        )
        try:
            user = self.repo.create(session, user)
        except IntegrityError as exc:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered",
            ) from exc

        logger.info("Registered user %s", user.id)
        return self._token_for(user)

    def login(self, session: Session, payload: UserLogin) -> TokenResponse:
        """
        Raises:
            HTTPException(401): unknown email or wrong password.
        """
        user = self.repo.get_by_email(session, payload.email.lower())
        if user is None or not verify_password(payload.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            )
        return self._token_for(user)

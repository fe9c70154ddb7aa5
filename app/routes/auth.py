"""Account endpoints: signup, login and session verification."""

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.config import get_settings
from app.dependencies import get_credential_store, get_token_service
from app.models.user import UserPublic
from app.services import accounts
from app.services.credential_store import CredentialStore
from app.services.tokens import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(BaseModel):
    """Request body for signup."""

    email: str | None = None
    password: str | None = None
    name: str | None = None


class LoginRequest(BaseModel):
    """Request body for login."""

    email: str | None = None
    password: str | None = None


class VerifyRequest(BaseModel):
    """Request body for session verification."""

    user_id: str | None = Field(default=None, alias="userId")


class AuthResponse(BaseModel):
    """User details with a fresh session token."""

    success: bool = True
    user: UserPublic
    token: str


class VerifyResponse(BaseModel):
    success: bool = True
    user: UserPublic


@router.post(
    "/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
def signup(
    request: SignupRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Create an account and return it with a session token."""
    user, token = accounts.signup(
        store,
        tokens,
        get_settings().auth,
        email=request.email,
        password=request.password,
        name=request.name,
    )
    return AuthResponse(user=user.public(), token=token)


@router.post("/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Exchange email and password for a session token."""
    user, token = accounts.login(
        store, tokens, email=request.email, password=request.password
    )
    return AuthResponse(user=user.public(), token=token)


@router.post("/verify", response_model=VerifyResponse)
def verify(
    request: VerifyRequest,
    store: CredentialStore = Depends(get_credential_store),
) -> VerifyResponse:
    """Check that a stored user ID still belongs to an account."""
    user = accounts.verify_user(store, request.user_id)
    return VerifyResponse(user=user.public())

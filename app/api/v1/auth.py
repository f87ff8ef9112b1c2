"""Register, login and logout endpoints plus auth dependencies (get_current_identity)."""

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import PasswordHasher
from app.schemas.auth import (
    AuthResponse,
    CurrentIdentity,
    LoginRequest,
    RegisterRequest,
)
from app.services.auth_service import (
    AuthService,
    InvalidCredentialsError,
    UserExistsError,
)
from app.services.credential_store import CredentialStore
from app.services.token_service import InvalidTokenError, TokenIdentity, TokenService

router = APIRouter()
security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide token service; owns the revocation list shared by all requests."""
    settings = get_settings()
    return TokenService(
        secret=settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.JWT_EXPIRE_MINUTES,
    )


def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AuthService:
    return AuthService(
        store=CredentialStore(db),
        tokens=tokens,
        hasher=hasher,
        default_role=get_settings().DEFAULT_ROLE,
    )


def _require_bearer(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


@router.post("/register", response_class=PlainTextResponse)
def register(
    body: RegisterRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> str:
    """Create an account with the default role. 400 if the username is taken."""
    try:
        auth.register(body.username, body.password)
    except UserExistsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    return "User register success!"


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Authenticate with username and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <accessToken>
    """
    try:
        token = auth.login(body.username, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    return AuthResponse(access_token=token)


@router.get("/logout", response_class=PlainTextResponse)
def logout(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> str:
    """Revoke the bearer token. Logging out an expired or already revoked token succeeds."""
    token = _require_bearer(credentials)
    try:
        auth.logout(token)
    except InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token") from e
    return "Logged out successfully"


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> TokenIdentity:
    """Dependency: require a valid, unrevoked Bearer JWT. Raises 401 if missing or invalid."""
    token = _require_bearer(credentials)
    try:
        return tokens.verify_token(token)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


@router.get("/me", response_model=CurrentIdentity)
def me(
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
) -> CurrentIdentity:
    """Return the identity carried by the caller's token."""
    return CurrentIdentity(username=identity.username, roles=list(identity.roles))

"""Registration, login and logout built on the credential store, hasher and token service."""

import logging

from app.core.security import PasswordHasher
from app.models import User
from app.services.credential_store import CredentialStore, DuplicateUsernameError
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for authentication failures surfaced to the API layer."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UserExistsError(AuthError):
    """Username is already registered."""


class RoleMissingError(AuthError):
    """The default role has not been provisioned (configuration error)."""


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password. Deliberately does not say which."""


def ensure_default_role(store: CredentialStore, name: str) -> None:
    """Raise RoleMissingError unless the role exists. Run once at startup."""
    if store.find_role_by_name(name) is None:
        raise RoleMissingError(
            f"Role '{name}' is not provisioned; run migrations or app.scripts.create_role"
        )


class AuthService:
    """Orchestrates register / login / logout. No retries: every failure is final."""

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenService,
        hasher: PasswordHasher,
        default_role: str = "USER",
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.hasher = hasher
        self.default_role = default_role

    def register(self, username: str, password: str) -> User:
        if self.store.exists_by_username(username):
            logger.warning("Registration rejected: username taken (%s)", username)
            raise UserExistsError("User name is taken.")

        role = self.store.find_role_by_name(self.default_role)
        if role is None:
            logger.error("Registration failed: role '%s' is not provisioned", self.default_role)
            raise RoleMissingError(f"Role '{self.default_role}' is not provisioned")

        user = User(
            username=username,
            password_hash=self.hasher.hash(password),
            roles=[role],
        )
        try:
            user = self.store.save_user(user)
        except DuplicateUsernameError as e:
            logger.warning("Registration rejected: username taken (%s)", username)
            raise UserExistsError("User name is taken.") from e
        logger.info("User registered: id=%s username=%s", user.id, user.username)
        return user

    def login(self, username: str, password: str) -> str:
        """Return a signed access token for valid credentials."""
        user = self.store.find_user_by_username(username)
        if user is None:
            # Same bcrypt cost as a real check, so unknown usernames are not distinguishable by timing.
            self.hasher.verify(password, self.hasher.dummy_hash)
            logger.warning("Login failed for username=%s", username)
            raise InvalidCredentialsError("Invalid username or password.")
        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Login failed for username=%s", username)
            raise InvalidCredentialsError("Invalid username or password.")
        token = self.tokens.issue_token(user.username, user.role_names)
        logger.info("Login succeeded for username=%s", username)
        return token

    def logout(self, token: str) -> None:
        """Revoke the token; raises InvalidTokenError if it is malformed."""
        self.tokens.revoke_token(token)

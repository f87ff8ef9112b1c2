"""Credential store: user and role lookups and inserts over a SQLAlchemy session."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Role, User

logger = logging.getLogger(__name__)


class DuplicateUsernameError(Exception):
    """Raised when an insert hits the unique index on users.username."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username already exists: {username}")


class CredentialStore:
    """Persistence for users and roles. Each write commits its own transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_user_by_username(self, username: str) -> User | None:
        return self.db.query(User).filter(User.username == username).first()

    def exists_by_username(self, username: str) -> bool:
        return (
            self.db.query(User.id).filter(User.username == username).first()
            is not None
        )

    def save_user(self, user: User) -> User:
        """
        Insert the user and commit; returns it with its database-assigned id.
        Raises DuplicateUsernameError if another request inserted the same
        username first.
        """
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if self.exists_by_username(user.username):
                raise DuplicateUsernameError(user.username) from e
            raise
        self.db.refresh(user)
        logger.debug("Saved user id=%s username=%s", user.id, user.username)
        return user

    def find_role_by_name(self, name: str) -> Role | None:
        return self.db.query(Role).filter(Role.name == name).first()

    def save_role(self, role: Role) -> Role:
        self.db.add(role)
        self.db.commit()
        self.db.refresh(role)
        return role

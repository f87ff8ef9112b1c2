"""
Create a user outside the registration endpoint (e.g. first admin). Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD [ROLE ...]
Example:
  python -m app.scripts.create_user admin your-secure-password USER ADMIN
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    PasswordHasher,
)
from app.models import User
from app.services.credential_store import CredentialStore, DuplicateUsernameError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Create a Gatekeep user.")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "roles",
        nargs="*",
        help=f"Role names to assign (default: {settings.DEFAULT_ROLE})",
    )
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        logger.error("Invalid username length.")
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        logger.error("Password must be %s-%s characters.", PASSWORD_MIN_LEN, PASSWORD_MAX_LEN)
        return 1
    role_names = args.roles or [settings.DEFAULT_ROLE]

    db = SessionLocal()
    try:
        store = CredentialStore(db)
        if store.exists_by_username(username):
            logger.error("User '%s' already exists.", username)
            return 1
        roles = []
        for name in role_names:
            role = store.find_role_by_name(name)
            if role is None:
                logger.error("Role '%s' does not exist; create it with app.scripts.create_role.", name)
                return 1
            roles.append(role)
        hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
        user = User(username=username, password_hash=hasher.hash(args.password), roles=roles)
        try:
            store.save_user(user)
        except DuplicateUsernameError:
            logger.error("User '%s' already exists.", username)
            return 1
        logger.info("Created user '%s' with roles %s.", username, ", ".join(role_names))
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

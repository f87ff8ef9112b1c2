"""
Provision a role (registration needs the default role, "USER"). Run from project root:
  python -m app.scripts.create_role NAME
Example:
  python -m app.scripts.create_role USER
"""
import argparse
import logging
import sys

from app.core.database import SessionLocal
from app.models import Role
from app.services.credential_store import CredentialStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Gatekeep role.")
    parser.add_argument("name", help="Role name (1-64 chars), e.g. USER")
    args = parser.parse_args(argv)

    name = args.name.strip()
    if not name or len(name) > 64:
        logger.error("Invalid role name length.")
        return 1

    db = SessionLocal()
    try:
        store = CredentialStore(db)
        if store.find_role_by_name(name) is not None:
            logger.info("Role '%s' already exists.", name)
            return 0
        role = store.save_role(Role(name=name))
        logger.info("Created role '%s' (id=%s).", role.name, role.id)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

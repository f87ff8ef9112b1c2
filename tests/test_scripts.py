"""Tests for the provisioning CLIs (create_role, create_user) against in-memory SQLite."""

import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import verify_password
from app.models import Base, Role, User
from app.scripts import create_role, create_user


class _ScriptTestCase(unittest.TestCase):
    def setUp(self) -> None:
        engine = create_engine("sqlite://", poolclass=StaticPool)
        Base.metadata.create_all(engine)
        self.SessionTesting = sessionmaker(bind=engine, autoflush=False)

    def query(self, model):
        db = self.SessionTesting()
        try:
            return db.query(model).all()
        finally:
            db.close()


class TestCreateRole(_ScriptTestCase):
    def test_creates_role_once(self) -> None:
        with patch.object(create_role, "SessionLocal", self.SessionTesting):
            self.assertEqual(create_role.main(["USER"]), 0)
            self.assertEqual(create_role.main(["USER"]), 0)
        self.assertEqual([r.name for r in self.query(Role)], ["USER"])

    def test_rejects_blank_name(self) -> None:
        with patch.object(create_role, "SessionLocal", self.SessionTesting):
            self.assertEqual(create_role.main(["  "]), 1)


class TestCreateUser(_ScriptTestCase):
    def setUp(self) -> None:
        super().setUp()
        with patch.object(create_role, "SessionLocal", self.SessionTesting):
            create_role.main(["USER"])
            create_role.main(["ADMIN"])

    def test_creates_user_with_default_role(self) -> None:
        with patch.object(create_user, "SessionLocal", self.SessionTesting):
            self.assertEqual(create_user.main(["alice", "password-1"]), 0)
        db = self.SessionTesting()
        try:
            user = db.query(User).filter(User.username == "alice").one()
            self.assertEqual(user.role_names, ["USER"])
            self.assertTrue(verify_password("password-1", user.password_hash))
        finally:
            db.close()

    def test_creates_admin_with_explicit_roles(self) -> None:
        with patch.object(create_user, "SessionLocal", self.SessionTesting):
            self.assertEqual(create_user.main(["root", "password-1", "USER", "ADMIN"]), 0)
        self.assertEqual(self.query(User)[0].role_names, ["ADMIN", "USER"])

    def test_duplicate_unknown_role_and_empty_password_fail(self) -> None:
        with patch.object(create_user, "SessionLocal", self.SessionTesting):
            self.assertEqual(create_user.main(["alice", "password-1"]), 0)
            self.assertEqual(create_user.main(["alice", "password-2"]), 1)
            self.assertEqual(create_user.main(["bob", "password-1", "OWNER"]), 1)
            self.assertEqual(create_user.main(["carol", ""]), 1)
        self.assertEqual([u.username for u in self.query(User)], ["alice"])


if __name__ == "__main__":
    unittest.main()

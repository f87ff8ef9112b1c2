"""Tests for app.services.credential_store over in-memory SQLite."""

import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, Role, User
from app.services.credential_store import CredentialStore, DuplicateUsernameError


class TestCredentialStore(unittest.TestCase):
    def setUp(self) -> None:
        engine = create_engine("sqlite://", poolclass=StaticPool)
        Base.metadata.create_all(engine)
        self.db = sessionmaker(bind=engine, autoflush=False)()
        self.store = CredentialStore(self.db)
        self.role = self.store.save_role(Role(name="USER"))

    def tearDown(self) -> None:
        self.db.close()

    def test_lookup_missing_user(self) -> None:
        self.assertIsNone(self.store.find_user_by_username("nobody"))
        self.assertFalse(self.store.exists_by_username("nobody"))

    def test_save_user_assigns_id_and_roles(self) -> None:
        user = self.store.save_user(User(username="alice", password_hash="h", roles=[self.role]))
        self.assertIsInstance(user.id, int)
        self.assertTrue(self.store.exists_by_username("alice"))
        self.assertEqual(self.store.find_user_by_username("alice").role_names, ["USER"])

    def test_username_lookup_is_exact(self) -> None:
        self.store.save_user(User(username="alice", password_hash="h", roles=[self.role]))
        self.assertFalse(self.store.exists_by_username("alic"))

    def test_unique_index_violation_raises_duplicate(self) -> None:
        self.store.save_user(User(username="alice", password_hash="h1", roles=[self.role]))
        with self.assertRaises(DuplicateUsernameError) as ctx:
            self.store.save_user(User(username="alice", password_hash="h2", roles=[self.role]))
        self.assertEqual(ctx.exception.username, "alice")
        self.assertEqual(self.db.query(User).count(), 1)

    def test_find_role_by_name(self) -> None:
        self.assertEqual(self.store.find_role_by_name("USER").id, self.role.id)
        self.assertIsNone(self.store.find_role_by_name("ADMIN"))


if __name__ == "__main__":
    unittest.main()

"""Test environment: in-memory SQLite and cheap bcrypt before app settings load."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("AUTH_STARTUP_CHECK", "false")

"""Tests for app.main lifespan: startup role check and the background revocation sweep."""

import asyncio
import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import main
from app.main import app, check_default_role, revocation_sweep_loop
from app.models import Base, Role
from app.services.auth_service import RoleMissingError


def _session_factory(*role_names: str) -> sessionmaker:
    engine = create_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False)
    db = factory()
    for name in role_names:
        db.add(Role(name=name))
    db.commit()
    db.close()
    return factory


class TestStartupRoleCheck(unittest.TestCase):
    def test_missing_default_role_is_fatal(self) -> None:
        with patch.object(main, "SessionLocal", _session_factory()):
            with self.assertRaises(RoleMissingError):
                check_default_role()

    def test_provisioned_default_role_passes(self) -> None:
        with patch.object(main, "SessionLocal", _session_factory("USER")):
            check_default_role()

    def test_app_starts_and_stops_with_sweeper(self) -> None:
        with patch.object(main, "SessionLocal", _session_factory("USER")):
            with TestClient(app) as client:
                self.assertEqual(client.get("/").json(), {"message": "Gatekeep API"})


class TestRevocationSweepLoop(unittest.TestCase):
    def test_purges_until_cancelled(self) -> None:
        tokens = MagicMock()
        tokens.purge_expired.return_value = 1

        async def run() -> None:
            task = asyncio.create_task(revocation_sweep_loop(tokens, 0.01))
            await asyncio.sleep(0.05)
            task.cancel()
            await task

        asyncio.run(run())
        self.assertGreaterEqual(tokens.purge_expired.call_count, 1)

    def test_errors_do_not_stop_the_loop(self) -> None:
        calls: list[int] = []

        def purge() -> int:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return 0

        tokens = MagicMock()
        tokens.purge_expired.side_effect = purge

        async def run() -> None:
            task = asyncio.create_task(revocation_sweep_loop(tokens, 0.005))
            await asyncio.sleep(0.05)
            task.cancel()
            await task

        asyncio.run(run())
        self.assertGreaterEqual(tokens.purge_expired.call_count, 2)


if __name__ == "__main__":
    unittest.main()

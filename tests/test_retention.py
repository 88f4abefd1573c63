"""Unit and integration tests for refresh token retention: delete-only run_retention."""

import unittest
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock

from qms.models import RefreshToken
from qms.services.retention import run_retention

from db_support import make_session_factory, make_settings, make_user


class TestRetentionDisabled(unittest.TestCase):
    """When RETENTION_ENABLED is False, run_retention does nothing."""

    def test_returns_zero_and_does_not_query(self) -> None:
        settings = MagicMock()
        settings.RETENTION_ENABLED = False
        settings.RETENTION_HOURS = 48
        session = MagicMock()
        self.assertEqual(run_retention(session, settings), 0)
        session.query.assert_not_called()
        session.commit.assert_not_called()


class TestRetentionNothingToDelete(unittest.TestCase):
    def test_returns_zero_and_commits(self) -> None:
        settings = MagicMock()
        settings.RETENTION_ENABLED = True
        settings.RETENTION_HOURS = 48
        session = MagicMock()
        session.query.return_value.filter.return_value.delete.return_value = 0
        self.assertEqual(run_retention(session, settings), 0)
        session.commit.assert_called_once()


class TestRetentionIntegration(unittest.TestCase):
    """Against a real (SQLite) database: only long-dead rows go."""

    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.user = make_user(self.db)
        self.now = datetime.now(timezone.utc)

    def tearDown(self) -> None:
        self.db.close()

    def _token(self, expires_at: datetime, revoked_at: datetime | None = None) -> int:
        record = RefreshToken(
            user_id=self.user.id,
            token_hash="x",
            created_at=self.now - timedelta(days=30),
            expires_at=expires_at,
            revoked_at=revoked_at,
        )
        self.db.add(record)
        self.db.commit()
        return record.id

    def test_deletes_only_rows_dead_past_the_cutoff(self) -> None:
        long_expired = self._token(self.now - timedelta(hours=72))
        long_revoked = self._token(
            self.now + timedelta(days=5), revoked_at=self.now - timedelta(hours=72)
        )
        recently_expired = self._token(self.now - timedelta(hours=1))
        recently_revoked = self._token(
            self.now + timedelta(days=5), revoked_at=self.now - timedelta(hours=1)
        )
        live = self._token(self.now + timedelta(days=5))

        deleted = run_retention(self.db, make_settings(RETENTION_ENABLED=True, RETENTION_HOURS=48))

        self.assertEqual(deleted, 2)
        remaining = {r.id for r in self.db.query(RefreshToken).all()}
        self.assertEqual(remaining, {recently_expired, recently_revoked, live})
        self.assertNotIn(long_expired, remaining)
        self.assertNotIn(long_revoked, remaining)

    def test_second_run_deletes_nothing(self) -> None:
        self._token(self.now - timedelta(hours=72))
        settings = make_settings(RETENTION_ENABLED=True, RETENTION_HOURS=48)
        self.assertEqual(run_retention(self.db, settings), 1)
        self.assertEqual(run_retention(self.db, settings), 0)


if __name__ == "__main__":
    unittest.main()

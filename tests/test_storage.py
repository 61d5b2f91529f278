"""
Tests for Firestore storage.
"""

import pytest
from unittest.mock import MagicMock

from autocoach.data.storage import FirestoreStorage

from fakes import make_firestore_team, make_info_team


class TestFirestoreStorage:
    """Test cases for FirestoreStorage with a mocked client."""

    def setup_method(self):
        """Set up test fixtures."""
        self.db = MagicMock()
        self.batch = self.db.batch.return_value
        self.storage = FirestoreStorage(self.db)

    def test_load_missing_user(self):
        """Users without a document load as None."""
        self.db.collection.return_value.document.return_value.get.return_value.exists = False
        assert self.storage.load_user("u1") is None

    def test_sync_teams(self):
        """New teams are written with default settings and stale teams deleted."""
        teams_collection = self.db.collection.return_value

        result = self.storage.sync_teams(
            [make_info_team("A", team_name="Team A")], [make_firestore_team("C")], "u1"
        )

        assert len(result) == 1
        assert result[0]["team_key"] == "A"
        assert result[0]["team_name"] == "Team A"
        assert result[0]["is_setting_lineups"] is False
        assert result[0]["uid"] == "u1"

        self.db.collection.assert_any_call("users/u1/teams")
        teams_collection.document.assert_any_call("A")
        teams_collection.document.assert_any_call("C")
        written = self.batch.set.call_args.args[1]
        assert written["team_key"] == "A"
        assert written["allow_transactions"] is False
        self.batch.delete.assert_called_once()
        self.batch.commit.assert_called_once()

    def test_sync_skips_finished_teams(self):
        """Teams whose season has ended are not added."""
        result = self.storage.sync_teams([make_info_team("A", end_date=1)], [], "u1")

        assert result == []
        self.batch.set.assert_not_called()

    def test_sync_commit_failure(self):
        """A failed batch commit is raised as a sync error."""
        self.batch.commit.side_effect = Exception("deadline exceeded")

        with pytest.raises(RuntimeError, match="Error syncing teams in Firebase."):
            self.storage.sync_teams([make_info_team("A")], [], "u1")

    def test_fetch_teams(self):
        """Team documents are converted to FirestoreTeam."""
        doc = MagicMock()
        doc.to_dict.return_value = make_firestore_team("A").to_dict()
        self.db.collection.return_value.where.return_value.stream.return_value = [doc]

        teams = self.storage.fetch_teams("u1")

        assert [t.team_key for t in teams] == ["A"]

    def test_fetch_teams_failure(self):
        """Query failures are raised with the user id."""
        self.db.collection.return_value.where.side_effect = Exception("unavailable")

        with pytest.raises(RuntimeError, match="u1"):
            self.storage.fetch_teams("u1")

    def test_update_team_failure(self):
        """A failed update returns False."""
        self.db.collection.return_value.document.return_value.update.side_effect = Exception("not found")
        assert self.storage.update_team("u1", "A", {"is_setting_lineups": True}) is False

    def test_scarcity_offsets(self):
        """Offsets are keyed by game code."""
        doc = MagicMock()
        doc.id = "nhl"
        doc.to_dict.return_value = {"C": [2, 4, 6]}
        self.db.collection.return_value.stream.return_value = [doc]

        assert self.storage.get_positional_scarcity_offsets() == {"nhl": {"C": [2, 4, 6]}}

    def test_scarcity_offsets_failure(self):
        """Unavailable offsets give an empty collection."""
        self.db.collection.return_value.stream.side_effect = Exception("unavailable")
        assert self.storage.get_positional_scarcity_offsets() == {}

    def test_disable_lineup_setting(self):
        """Every team setting lineups is switched off in one batch."""
        docs = [MagicMock(), MagicMock()]
        self.db.collection.return_value.where.return_value.stream.return_value = docs

        self.storage.disable_lineup_setting_for_user("u1")

        assert self.batch.update.call_count == 2
        self.batch.update.assert_any_call(docs[0].reference, {"is_setting_lineups": False})
        self.batch.commit.assert_called_once()

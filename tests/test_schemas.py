"""
Tests for response and request schemas.
"""

import pytest
from pydantic import ValidationError

from autocoach.api.schemas import (
    ScheduleSchema,
    SportsnetGamesResponse,
    TeamStandingsSchema,
    TransactionsDataSchema,
    YahooGamesResponse,
    YahooLeagueGameIdsByDateResponse,
    YahooScoreboardGameResponse,
)


class TestTeamStandingsSchema:
    """Test cases for Yahoo team standings."""

    def test_rank_defaults_to_none(self):
        """A missing rank becomes None and other fields are kept."""
        result = TeamStandingsSchema.model_validate({"team_standings": {"points_for": "100"}})
        assert result.model_dump() == {"team_standings": {"rank": None, "points_for": "100"}}

    def test_numeric_rank(self):
        """Numeric ranks are kept as numbers."""
        result = TeamStandingsSchema.model_validate(
            {"team_standings": {"rank": 5, "points_for": "100"}}
        )
        assert result.model_dump() == {"team_standings": {"rank": 5, "points_for": "100"}}

    def test_string_rank(self):
        """String ranks are kept as strings."""
        result = TeamStandingsSchema.model_validate({"team_standings": {"rank": "3"}})
        assert result.model_dump() == {"team_standings": {"rank": "3"}}

    def test_null_rank(self):
        """An explicit null rank stays None."""
        result = TeamStandingsSchema.model_validate({"team_standings": {"rank": None}})
        assert result.model_dump() == {"team_standings": {"rank": None}}


class TestScheduleSchemas:
    """Test cases for schedule API responses."""

    def test_graphite_response(self):
        """Yahoo Graphite games are read per league."""
        response = YahooLeagueGameIdsByDateResponse.model_validate({"data": {"leagues": [
            {"games": [{"gameId": "nhl.g.1", "startTime": "2024-03-20T23:00:00Z", "status": "pregame"}]},
        ]}})
        assert response.data.leagues[0].games[0].startTime == "2024-03-20T23:00:00Z"

    def test_sportsnet_response(self):
        """Sportsnet games carry a start timestamp in seconds."""
        team = {"id": 1, "name": "Oilers", "short_name": "EDM", "city": "Edmonton"}
        response = SportsnetGamesResponse.model_validate({"data": {"games": [{
            "details": {"timestamp": 1710975600, "status": "Pre-Game"},
            "visiting_team": team,
            "home_team": team,
        }]}})
        assert response.data.games[0].details.timestamp == 1710975600

    def test_scoreboard_response(self):
        """Scoreboard games carry team ids and a status."""
        response = YahooScoreboardGameResponse.model_validate({"data": {"games": [{
            "awayTeamId": "nhl.t.1",
            "homeTeamId": "nhl.t.2",
            "startTime": "2024-03-20T23:00:00Z",
            "gameStatus": "status.type.postponed",
        }]}})
        assert response.data.games[0].gameStatus == "status.type.postponed"

    def test_legacy_games_response(self):
        """The legacy games list is keyed by "0"."""
        response = YahooGamesResponse.model_validate({"league": {"games": {"0": [{"game": {
            "game_status": {
                "type": "status.type.postponed",
                "description": "Postponed",
                "display_name": "Ppd",
            },
            "start_time": "Wed, 20 Mar 2024 10:05:00 +0000",
            "team_ids": [{"away_team_id": "nhl.t.1", "home_team_id": "nhl.t.2"}],
        }}]}}})
        assert response.league.games.games[0].game.game_status.display_name == "Ppd"

    def test_schedule_rejects_unknown_league(self):
        """Schedules only contain supported leagues."""
        with pytest.raises(ValidationError):
            ScheduleSchema.model_validate({"date": "2024-03-20", "games": {"xfl": []}})


class TestTransactionsDataSchema:
    """Test cases for posted transaction bodies."""

    def test_groups_may_be_null(self):
        """Each group of transactions may be null."""
        body = {"dropPlayerTransactions": None, "lineupChanges": None, "addSwapTransactions": None}
        result = TransactionsDataSchema.model_validate(body)
        assert result.addSwapTransactions is None

    def test_invalid_transaction_type(self):
        """Unknown transaction types are rejected."""
        body = {
            "dropPlayerTransactions": [[{
                "teamName": "My Team",
                "leagueName": "Test League",
                "teamKey": "419.l.1000.t.1",
                "sameDayTransactions": True,
                "description": "Drop",
                "reason": None,
                "players": [{
                    "playerKey": "419.p.1",
                    "transactionType": "trade",
                    "isInactiveList": False,
                    "player": {},
                }],
            }]],
            "lineupChanges": None,
            "addSwapTransactions": None,
        }
        with pytest.raises(ValidationError):
            TransactionsDataSchema.model_validate(body)

"""
Tests for the transaction services.
"""

import pytest

from autocoach.data.models import LineupChanges, TransactionsData
from autocoach.errors import ApiRateLimitError, AuthorizationError, HttpError
from autocoach.services.transactions import (
    enrich_rosters_with_settings,
    get_transactions,
    post_transactions,
)
from autocoach.analysis.transaction_builder import TransactionBuilder

from fakes import (
    FAR_FUTURE_MS,
    FakeStorage,
    FakeYahooClient,
    make_firestore_team,
    make_player,
    make_roster,
)

TEAM_A = "419.l.1000.t.1"
TEAM_B = "419.l.2000.t.2"


def add_transaction(team_key, player_key="fa1"):
    roster = make_roster(
        team_key,
        [make_player("p1", 90), make_player("p2", 80)],
        make_firestore_team(team_key, allow_transactions=True, allow_adding=True),
    )
    return TransactionBuilder({}).build_team_transactions(
        roster, [make_player(player_key, 60)]
    ).add_swaps[0]


class TestEnrichRosters:
    """Test cases for attaching Firestore settings to rosters."""

    def test_attaches_settings_and_drops_unknown(self):
        """Rosters without Firestore settings are left out."""
        team = make_firestore_team(TEAM_A)
        rosters = [make_roster(TEAM_A, []), make_roster(TEAM_B, [])]

        result = enrich_rosters_with_settings(rosters, [team])

        assert [r.team_key for r in result] == [TEAM_A]
        assert result[0].settings is team


class TestGetTransactions:
    """Test cases for building suggestions for a user."""

    def test_no_active_teams(self):
        """Users without transaction-enabled teams get nothing."""
        storage = FakeStorage([make_firestore_team(TEAM_A)])

        result = get_transactions("u1", FakeYahooClient(), storage)

        assert result.all_player_transactions() == []
        assert result.drop_player_transactions is None

    def test_future_teams_are_skipped(self):
        """Teams whose season has not started are left out."""
        storage = FakeStorage([make_firestore_team(
            TEAM_A, is_setting_lineups=True, allow_transactions=True,
            allow_adding=True, start_date=FAR_FUTURE_MS,
        )])
        yahoo = FakeYahooClient(
            rosters=[make_roster(TEAM_A, [make_player("p1", 90)])],
            top_available={TEAM_A: [make_player("fa1", 60)]},
        )

        result = get_transactions("u1", yahoo, storage)

        assert result.all_player_transactions() == []
        assert yahoo.roster_dates == []

    def test_builds_suggestions(self):
        """Active teams get suggestions for today's roster."""
        storage = FakeStorage([make_firestore_team(
            TEAM_A, is_setting_lineups=True, allow_transactions=True, allow_adding=True,
        )])
        yahoo = FakeYahooClient(
            rosters=[make_roster(TEAM_A, [make_player("p1", 90), make_player("p2", 80)])],
            top_available={TEAM_A: [make_player("fa1", 60)]},
        )

        result = get_transactions("u1", yahoo, storage)

        transactions = result.all_player_transactions()
        assert [t.players[0].player_key for t in transactions] == ["fa1"]
        assert len(yahoo.roster_dates) == 1


class TestPostTransactions:
    """Test cases for posting selected transactions."""

    def test_all_posted(self):
        """Every transaction and lineup change is sent to Yahoo."""
        yahoo = FakeYahooClient()
        changes = LineupChanges(TEAM_A, "date", "2024-03-20", {"p1": "BN"})
        data = TransactionsData(
            drop_player_transactions=None,
            lineup_changes=[changes],
            add_swap_transactions=[[add_transaction(TEAM_A)], [add_transaction(TEAM_B)]],
        )

        result = post_transactions(data, "u1", yahoo)

        assert result.success is True
        assert len(result.transaction_results.posted_transactions) == 2
        assert yahoo.lineup_changes == [changes]

    def test_failures_are_collected(self):
        """A failed transaction is reported and the rest still post."""
        yahoo = FakeYahooClient(post_errors={TEAM_A: HttpError("HTTP 400: Bad Request", 400)})
        data = TransactionsData(
            add_swap_transactions=[[add_transaction(TEAM_A)], [add_transaction(TEAM_B)]],
        )

        result = post_transactions(data, "u1", yahoo)

        assert result.success is False
        assert [t.team_key for t in result.transaction_results.posted_transactions] == [TEAM_B]
        assert len(result.transaction_results.failed_reasons) == 1
        assert "HTTP 400" in result.transaction_results.failed_reasons[0]

    @pytest.mark.parametrize("error", [
        ApiRateLimitError("rate limited", 429),
        AuthorizationError("unauthorized", 401, "u1"),
    ])
    def test_rate_limit_and_auth_errors_propagate(self, error):
        """Rate limit and auth errors stop processing."""
        yahoo = FakeYahooClient(post_errors={TEAM_A: error})
        data = TransactionsData(
            add_swap_transactions=[[add_transaction(TEAM_A)], [add_transaction(TEAM_B)]],
        )

        with pytest.raises(type(error)):
            post_transactions(data, "u1", yahoo)

        assert yahoo.posted == []

"""
Hand-written test doubles for Firestore storage and the Yahoo client.
"""

from typing import Any, Dict, List, Optional

from autocoach.data.models import (
    FirestoreTeam,
    InfoTeam,
    Player,
    PlayerOwnership,
    TeamRoster,
    merge_teams,
    yahoo_to_firestore,
)

DAY_MS = 24 * 60 * 60 * 1000
FAR_FUTURE_MS = 4102444800000  # 2100-01-01


def make_info_team(team_key: str, **overrides) -> InfoTeam:
    values = dict(
        team_key=team_key,
        game_code="nhl",
        start_date=0,
        end_date=FAR_FUTURE_MS,
        weekly_deadline="",
        roster_positions={"C": 2, "LW": 2, "BN": 4, "IR": 2},
        num_teams=12,
        team_name=f"Team {team_key}",
        league_name="Test League",
    )
    values.update(overrides)
    return InfoTeam(**values)


def make_firestore_team(team_key: str, uid: str = "u1", **overrides) -> FirestoreTeam:
    values = dict(
        uid=uid,
        team_key=team_key,
        game_code="nhl",
        start_date=0,
        end_date=FAR_FUTURE_MS,
        weekly_deadline="1",
        roster_positions={"C": 2, "LW": 2, "BN": 4, "IR": 2},
        num_teams=12,
    )
    values.update(overrides)
    return FirestoreTeam(**values)


def make_player(player_key: str, percent_owned: float = 50, positions=("C",),
                waivers: bool = False, **overrides) -> Player:
    values = dict(
        player_key=player_key,
        player_name=f"Player {player_key}",
        eligible_positions=list(positions),
        display_positions=list(positions),
        selected_position="BN",
        percent_owned=percent_owned,
        ownership=PlayerOwnership("waivers" if waivers else "freeagents"),
    )
    values.update(overrides)
    return Player(**values)


def make_roster(team_key: str, players: List[Player], settings: Optional[FirestoreTeam] = None,
                **overrides) -> TeamRoster:
    values = dict(
        team_key=team_key,
        game_code="nhl",
        num_teams=12,
        roster_positions={"C": 1, "LW": 1, "BN": 1, "IR": 1},
        players=players,
        team_name=f"Team {team_key}",
        league_name="Test League",
        settings=settings,
    )
    values.update(overrides)
    return TeamRoster(**values)


class FakeStorage:
    """In-memory stand-in for FirestoreStorage."""

    def __init__(self, teams: Optional[List[FirestoreTeam]] = None, sync_error: Optional[Exception] = None):
        self.teams: Dict[str, FirestoreTeam] = {t.team_key: t for t in teams or []}
        self.sync_error = sync_error
        self.sync_calls: List[Any] = []
        self.updates: List[Any] = []
        self.schedule: Optional[Dict[str, Any]] = None
        self.stored_schedules: List[Any] = []
        self.scarcity_offsets: Dict[str, Dict[str, List[float]]] = {}
        self.weekly_teams: List[FirestoreTeam] = []

    def fetch_teams(self, uid: str) -> List[FirestoreTeam]:
        return [t for t in self.teams.values() if t.uid == uid]

    def sync_teams(self, missing_teams: List[InfoTeam], extra_teams: List[FirestoreTeam], uid: str):
        self.sync_calls.append((missing_teams, extra_teams, uid))
        if self.sync_error:
            raise self.sync_error
        result = []
        for team in missing_teams:
            firestore_team = yahoo_to_firestore(team, uid)
            self.teams[team.team_key] = firestore_team
            result.append(merge_teams(team, firestore_team))
        for team in extra_teams:
            self.teams.pop(team.team_key, None)
        return result

    def update_team(self, uid: str, team_key: str, data: Dict[str, Any]) -> bool:
        self.updates.append((uid, team_key, data))
        return team_key in self.teams

    def get_active_teams_for_user(self, uid: str) -> List[FirestoreTeam]:
        return [
            t for t in self.fetch_teams(uid)
            if t.is_setting_lineups and t.allow_transactions
        ]

    def get_tomorrows_active_weekly_teams(self) -> List[FirestoreTeam]:
        return list(self.weekly_teams)

    def get_schedule(self):
        return self.schedule

    def store_schedule(self, date: str, games: Dict[str, List[int]]) -> None:
        self.stored_schedules.append((date, games))
        self.schedule = {"date": date, "games": games}

    def get_positional_scarcity_offsets(self):
        return self.scarcity_offsets


class FakeYahooClient:
    """Stand-in for YahooFantasyClient that records posted transactions."""

    def __init__(self, teams: Optional[List[InfoTeam]] = None,
                 rosters: Optional[List[TeamRoster]] = None,
                 top_available: Optional[Dict[str, List[Player]]] = None,
                 post_errors: Optional[Dict[str, Exception]] = None):
        self.teams = teams or []
        self.rosters = rosters or []
        self.top_available = top_available or {}
        self.post_errors = post_errors or {}
        self.posted: List[Any] = []
        self.lineup_changes: List[Any] = []
        self.roster_dates: List[Optional[str]] = []

    def fetch_teams(self) -> List[InfoTeam]:
        return list(self.teams)

    def fetch_rosters(self, team_keys: List[str], date: Optional[str] = None) -> List[TeamRoster]:
        self.roster_dates.append(date)
        return [r for r in self.rosters if r.team_key in team_keys]

    def fetch_top_available_players(self, team_keys: List[str], *args, **kwargs):
        return {k: v for k, v in self.top_available.items() if k in team_keys}

    def post_transaction(self, transaction) -> None:
        error = self.post_errors.get(transaction.team_key)
        if error:
            raise error
        self.posted.append(transaction)

    def put_lineup_changes(self, lineup_changes) -> None:
        self.lineup_changes.append(lineup_changes)

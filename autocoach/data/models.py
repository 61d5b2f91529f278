"""
Data models for AutoCoach.
Defines the structure for players, teams, transactions, and schedules.
"""

from dataclasses import dataclass, field, fields, asdict, MISSING
from typing import List, Dict, Optional, Any, Union
from enum import Enum


class League(Enum):
    """Supported fantasy sports leagues."""
    MLB = "mlb"
    NBA = "nba"
    NFL = "nfl"
    NHL = "nhl"


class TransactionType(Enum):
    """Yahoo transaction types."""
    ADD = "add"
    DROP = "drop"
    ADD_DROP = "add/drop"


# Rank periods reported by Yahoo. The first four apply to NHL/MLB/NBA, the
# last three to NFL.
RANK_PERIODS = (
    "last30Days",
    "last14Days",
    "next7Days",
    "restOfSeason",
    "last4Weeks",
    "projectedWeek",
    "next4Weeks",
)

# Roster slots that do not count against the active roster size
INACTIVE_POSITIONS = ("IL", "IL+", "IR", "IR+", "NA")


def default_ranks() -> Dict[str, float]:
    """Ranks for a player Yahoo has not ranked in any period."""
    return {period: -1 for period in RANK_PERIODS}


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


@dataclass
class PlayerOwnership:
    """Availability of a player who is not on a roster."""
    ownership_type: str  # "waivers" or "freeagents"
    waiver_date: Optional[str] = None


@dataclass
class Player:
    """Fantasy player as reported by Yahoo for one team or league."""
    player_key: str
    player_name: str
    eligible_positions: List[str] = field(default_factory=list)
    display_positions: List[str] = field(default_factory=list)
    selected_position: Optional[str] = None
    is_editable: bool = False
    is_playing: bool = False
    injury_status: str = "Healthy"
    percent_started: float = 0
    percent_owned: float = 0
    percent_owned_delta: float = 0
    start_score: float = 0
    ownership_score: float = 0
    is_starting: Union[str, int] = "N/A"
    is_undroppable: bool = False
    ranks: Dict[str, float] = field(default_factory=default_ranks)
    ownership: Optional[PlayerOwnership] = None

    @property
    def is_on_waivers(self) -> bool:
        return self.ownership is not None and self.ownership.ownership_type == "waivers"

    @property
    def is_inactive_list(self) -> bool:
        return self.selected_position in INACTIVE_POSITIONS

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        values = _known_fields(cls, data)
        ownership = values.get("ownership")
        if isinstance(ownership, dict):
            values["ownership"] = PlayerOwnership(**_known_fields(PlayerOwnership, ownership))
        ranks = default_ranks()
        ranks.update(values.get("ranks") or {})
        values["ranks"] = ranks
        return cls(**values)


@dataclass
class FirestoreTeam:
    """User-controlled team settings persisted in Firestore."""
    uid: str
    team_key: str
    game_code: str
    start_date: int
    end_date: int
    weekly_deadline: Union[str, int]
    roster_positions: Dict[str, int]
    num_teams: int
    allow_transactions: bool = False
    allow_dropping: bool = False
    allow_adding: bool = False
    allow_add_drops: bool = False
    allow_waiver_adds: bool = False
    automated_transaction_processing: bool = False
    last_updated: int = -1
    lineup_paused_at: int = -1
    is_subscribed: bool = True
    is_setting_lineups: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FirestoreTeam":
        """Build a team from a Firestore document, failing on missing fields."""
        values = _known_fields(cls, data)
        missing = [
            f.name for f in fields(cls)
            if f.name not in values and f.default is MISSING
        ]
        if missing:
            raise ValueError(f"Firestore team is missing fields: {', '.join(missing)}")
        if values.get("lineup_paused_at") is None:
            values["lineup_paused_at"] = -1
        return cls(**values)


@dataclass
class InfoTeam:
    """Team and league information as reported by Yahoo."""
    team_key: str
    game_code: str
    start_date: int
    end_date: int
    weekly_deadline: Union[str, int]
    roster_positions: Dict[str, int]
    num_teams: int
    edit_key: str = ""
    faab_balance: int = -1
    current_weekly_adds: int = 0
    current_season_adds: int = 0
    scoring_type: str = ""
    team_name: str = ""
    league_name: str = ""
    max_weekly_adds: int = -1
    max_season_adds: int = -1
    waiver_rule: str = ""
    max_games_played: int = -1
    max_innings_pitched: int = -1
    game_name: str = ""
    game_season: str = ""
    game_is_over: Union[bool, int] = False
    team_url: str = ""
    team_logo: str = ""
    rank: Union[str, int, None] = None
    points_for: Union[str, float, None] = None
    points_against: Union[str, float, None] = None
    points_back: Union[str, float, None] = None
    outcome_totals: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# A team as returned to the client: every Yahoo field with the Firestore
# settings laid over the top.
ClientTeam = Dict[str, Any]


def merge_teams(yahoo_team: InfoTeam, firestore_team: FirestoreTeam) -> ClientTeam:
    """Overlay Firestore settings onto a Yahoo team."""
    return {**yahoo_team.to_dict(), **firestore_team.to_dict()}


def yahoo_to_firestore(yahoo_team: InfoTeam, uid: str) -> FirestoreTeam:
    """Default Firestore settings for a team seen on Yahoo for the first time."""
    return FirestoreTeam(
        uid=uid,
        team_key=yahoo_team.team_key,
        game_code=yahoo_team.game_code,
        start_date=yahoo_team.start_date,
        end_date=yahoo_team.end_date,
        weekly_deadline=yahoo_team.weekly_deadline,
        roster_positions=dict(yahoo_team.roster_positions),
        num_teams=yahoo_team.num_teams,
    )


@dataclass
class TeamRoster:
    """A team's roster for one coverage period, with its Firestore settings."""
    team_key: str
    game_code: str
    num_teams: int
    roster_positions: Dict[str, int]
    players: List[Player] = field(default_factory=list)
    team_name: str = ""
    league_name: str = ""
    waiver_rule: str = ""
    faab_balance: int = -1
    coverage_type: str = "date"
    coverage_period: str = ""
    settings: Optional[FirestoreTeam] = None

    @property
    def league_key(self) -> str:
        return self.team_key.split(".t")[0]

    @property
    def max_active_players(self) -> int:
        return sum(
            count for position, count in self.roster_positions.items()
            if position not in INACTIVE_POSITIONS
        )

    @property
    def active_players(self) -> List[Player]:
        return [p for p in self.players if not p.is_inactive_list]

    @property
    def open_roster_spots(self) -> int:
        return self.max_active_players - len(self.active_players)

    @property
    def num_players_in_league(self) -> int:
        return self.num_teams * self.max_active_players

    def allows(self, setting: str) -> bool:
        """Check a boolean Firestore setting; teams without settings allow nothing."""
        if self.settings is None:
            return False
        return bool(getattr(self.settings, setting, False))


@dataclass
class TPlayer:
    """A player taking part in a transaction."""
    player_key: str
    transaction_type: TransactionType
    is_inactive_list: bool
    player: Player
    is_from_waivers: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "playerKey": self.player_key,
            "transactionType": self.transaction_type.value,
            "isInactiveList": self.is_inactive_list,
            "player": self.player.to_dict(),
        }
        if self.is_from_waivers is not None:
            result["isFromWaivers"] = self.is_from_waivers
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TPlayer":
        return cls(
            player_key=data["playerKey"],
            transaction_type=TransactionType(data["transactionType"]),
            is_inactive_list=data["isInactiveList"],
            player=Player.from_dict(data["player"]),
            is_from_waivers=data.get("isFromWaivers"),
        )


@dataclass
class PlayerTransaction:
    """A proposed or executed roster transaction for one team."""
    team_name: str
    league_name: str
    team_key: str
    same_day_transactions: bool
    description: str
    reason: Optional[str]
    players: List[TPlayer] = field(default_factory=list)
    is_faab_required: Optional[bool] = None

    @property
    def league_key(self) -> str:
        return self.team_key.split(".t")[0]

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "teamName": self.team_name,
            "leagueName": self.league_name,
            "teamKey": self.team_key,
            "sameDayTransactions": self.same_day_transactions,
            "description": self.description,
            "reason": self.reason,
            "players": [p.to_dict() for p in self.players],
        }
        if self.is_faab_required is not None:
            result["isFaabRequired"] = self.is_faab_required
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerTransaction":
        return cls(
            team_name=data["teamName"],
            league_name=data["leagueName"],
            team_key=data["teamKey"],
            same_day_transactions=data["sameDayTransactions"],
            description=data["description"],
            reason=data.get("reason"),
            players=[TPlayer.from_dict(p) for p in data.get("players", [])],
            is_faab_required=data.get("isFaabRequired"),
        )


@dataclass
class LineupChanges:
    """New positions for players on one team."""
    team_key: str
    coverage_type: str
    coverage_period: str
    new_player_positions: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teamKey": self.team_key,
            "coverageType": self.coverage_type,
            "coveragePeriod": self.coverage_period,
            "newPlayerPositions": dict(self.new_player_positions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineupChanges":
        return cls(
            team_key=data["teamKey"],
            coverage_type=data["coverageType"],
            coverage_period=data["coveragePeriod"],
            new_player_positions=dict(data.get("newPlayerPositions", {})),
        )


def _groups_to_dicts(groups: Optional[List[List[PlayerTransaction]]]):
    if groups is None:
        return None
    return [[t.to_dict() for t in group] for group in groups]


def _groups_from_dicts(groups: Optional[List[List[Dict[str, Any]]]]):
    if groups is None:
        return None
    return [[PlayerTransaction.from_dict(t) for t in group] for group in groups]


@dataclass
class TransactionsData:
    """Transactions for one cycle. A group set to None means none of that kind."""
    drop_player_transactions: Optional[List[List[PlayerTransaction]]] = None
    lineup_changes: Optional[List[LineupChanges]] = None
    add_swap_transactions: Optional[List[List[PlayerTransaction]]] = None

    def all_player_transactions(self) -> List[PlayerTransaction]:
        result: List[PlayerTransaction] = []
        for groups in (self.drop_player_transactions, self.add_swap_transactions):
            for group in groups or []:
                result.extend(group)
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dropPlayerTransactions": _groups_to_dicts(self.drop_player_transactions),
            "lineupChanges": (
                None if self.lineup_changes is None
                else [c.to_dict() for c in self.lineup_changes]
            ),
            "addSwapTransactions": _groups_to_dicts(self.add_swap_transactions),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionsData":
        lineup_changes = data.get("lineupChanges")
        return cls(
            drop_player_transactions=_groups_from_dicts(data.get("dropPlayerTransactions")),
            lineup_changes=(
                None if lineup_changes is None
                else [LineupChanges.from_dict(c) for c in lineup_changes]
            ),
            add_swap_transactions=_groups_from_dicts(data.get("addSwapTransactions")),
        )


@dataclass
class TransactionResults:
    """Outcome of posting a set of transactions."""
    posted_transactions: List[PlayerTransaction] = field(default_factory=list)
    failed_reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "postedTransactions": [t.to_dict() for t in self.posted_transactions],
            "failedReasons": list(self.failed_reasons),
        }


@dataclass
class PostTransactionsResult:
    """Result returned to the client after posting transactions."""
    success: bool
    transaction_results: TransactionResults

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "transactionResults": self.transaction_results.to_dict(),
        }


@dataclass
class Schedule:
    """Today's game start times (epoch ms) per league."""
    date: str
    games: Dict[str, List[int]] = field(
        default_factory=lambda: {league.value: [] for league in League}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "games": {k: list(v) for k, v in self.games.items()}}
